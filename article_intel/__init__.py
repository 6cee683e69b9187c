"""
Article Intel

Turns fetched news-article HTML into a clean article record and classifies
it into security threats, affected products, severity and recommendations.
- ArticleExtractionPipeline: layered field extraction with confidence scoring
- DateExtractor: independent multi-strategy publish-date extraction
- ArticleAnalyzer: rule-based threat and product analysis

Public API surface:
  Pipelines:      ThreatIntelPipeline, ArticleExtractionPipeline, ArticleAnalyzer
  Dates:          DateExtractor, parse_date
  Data models:    SelectorConfig, ExtractedArticle, Analysis, ArticleReport, ...
  Configuration:  PipelineSettings, ConfidenceTable
  Collaborators:  AIFieldExtractor, SelectorCache, JobRegistry
  Errors:         ArticleIntelError and subclasses
"""

# --- Pipelines ---
from .main import ThreatIntelPipeline
from .orchestrator import ArticleExtractionPipeline, extract_article
from .analyzer import ArticleAnalyzer, analyze_article
from .threats import ThreatAnalyzer, OccurrencePolicy, MinimumOccurrencePolicy, BlockedNamePolicy
from .severity import SeverityScorer

# --- Dates ---
from .dates import DateExtractor, parse_date, extract_publish_date

# --- Data models ---
from .schemas import (
    RawDocument,
    SelectorConfig,
    ExtractedArticle,
    AIExtractionResult,
    ProductRecord,
    ThreatRecord,
    ThreatType,
    Severity,
    Analysis,
    ArticleReport,
)

# --- Configuration ---
from .config import PipelineSettings, ConfidenceTable

# --- Collaborators (optional) ---
from .ai_extractor import AIFieldExtractor
from .selector_cache import SelectorCache
from .jobs import JobRegistry

# --- Exceptions ---
from .exceptions import (
    ArticleIntelError,
    ExtractionError,
    LLMClientError,
    AIExtractionError,
    ConfigurationError,
    JobConflictError,
)

__version__ = "0.3.0"
__all__ = [
    "ThreatIntelPipeline",
    "ArticleExtractionPipeline",
    "extract_article",
    "ArticleAnalyzer",
    "analyze_article",
    "ThreatAnalyzer",
    "OccurrencePolicy",
    "MinimumOccurrencePolicy",
    "BlockedNamePolicy",
    "SeverityScorer",
    "DateExtractor",
    "parse_date",
    "extract_publish_date",
    "RawDocument",
    "SelectorConfig",
    "ExtractedArticle",
    "AIExtractionResult",
    "ProductRecord",
    "ThreatRecord",
    "ThreatType",
    "Severity",
    "Analysis",
    "ArticleReport",
    "PipelineSettings",
    "ConfidenceTable",
    "AIFieldExtractor",
    "SelectorCache",
    "JobRegistry",
    "ArticleIntelError",
    "ExtractionError",
    "LLMClientError",
    "AIExtractionError",
    "ConfigurationError",
    "JobConflictError",
]
