"""
Pydantic schemas defining the contracts between pipeline stages.

SelectorConfig:     per-source selector hints, handed in by the caller
ExtractedArticle:   output of the extraction orchestrator
Analysis:           output of the threat analyzer
ArticleReport:      both of the above for one document

Data flow through the pipeline:
  RawDocument (+ SelectorConfig) → ArticleExtractionPipeline → ExtractedArticle
  ExtractedArticle → ArticleAnalyzer → Analysis
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Input models ---

class RawDocument(BaseModel):
    """An already-fetched HTML document."""
    html: str
    source_url: Optional[str] = None


class SelectorConfig(BaseModel):
    """
    Per-source selector configuration.

    Every selector may be CSS or XPath; XPath is recognized by a leading
    "/" or "(". The camelCase aliases match the JSON shape the detection
    layer persists, so a stored config can be loaded as-is.
    """
    model_config = ConfigDict(populate_by_name=True)

    title_selector: Optional[str] = Field(default=None, alias="titleSelector")
    content_selector: Optional[str] = Field(default=None, alias="contentSelector")
    author_selector: Optional[str] = Field(default=None, alias="authorSelector")
    date_selector: Optional[str] = Field(default=None, alias="dateSelector")
    article_selector: Optional[str] = Field(default=None, alias="articleSelector")
    date_alternatives: list[str] = Field(default_factory=list, alias="dateAlternatives")
    # Alternate selectors keyed by field name ("title", "content", "author")
    alternatives: dict[str, str] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return not any([
            self.title_selector, self.content_selector, self.author_selector,
            self.date_selector, self.article_selector,
            self.date_alternatives, self.alternatives,
        ])


# --- Extraction output ---

class ExtractedFields(BaseModel):
    """
    Whatever one extraction tier managed to find.

    Tiers fill what they can and leave the rest None; the orchestrator
    merges tiers field by field.
    """
    title: Optional[str] = None
    content: Optional[str] = None
    author: Optional[str] = None
    date_text: Optional[str] = None
    extraction_method: str

    def is_empty(self) -> bool:
        return not (self.title or self.content or self.author or self.date_text)


class ExtractedArticle(BaseModel):
    """The clean article record. Immutable once built."""
    model_config = ConfigDict(frozen=True)

    title: str
    content: str
    author: Optional[str] = None
    publish_date: Optional[datetime] = None
    extraction_method: str = Field(min_length=1)
    confidence: float = Field(ge=0.0, le=1.0)


class AIExtractionResult(BaseModel):
    """What an AI field-extraction collaborator hands back."""
    title: str = ""
    content: str = ""
    author: Optional[str] = None
    publish_date: Optional[str] = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    method: str = "llm"


# --- Analysis output ---

class ThreatType(str, Enum):
    ZERO_DAY = "zero-day"
    VULNERABILITY = "vulnerability"
    RANSOMWARE = "ransomware"
    MALWARE = "malware"
    EXPLOIT = "exploit"
    OTHER = "other"


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ProductRecord(BaseModel):
    """A product mentioned in the article, with an optional version string."""
    name: str
    versions: Optional[str] = None
    icon: str


class ThreatRecord(BaseModel):
    type: ThreatType
    name: str
    details: str
    cve: Optional[str] = None


class Analysis(BaseModel):
    """Threat analysis of one article."""
    summary: str
    severity: Severity = Severity.LOW
    technical_details: str
    recommendations: str
    products: list[ProductRecord] = Field(default_factory=list)
    threats: list[ThreatRecord] = Field(default_factory=list)


class ArticleReport(BaseModel):
    """Extraction plus analysis for one document."""
    source: Optional[str] = None
    article: ExtractedArticle
    analysis: Analysis
