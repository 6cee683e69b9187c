"""
Custom exceptions for the article_intel pipeline.

Error philosophy:
  - ExtractionError    → STRATEGY-LOCAL: one extraction tier failed, the
                         orchestrator logs a warning and moves to the next tier.
  - AIExtractionError  → STRATEGY-LOCAL: the optional AI extractor gave up.
  - LLMClientError     → raised by the LLM transport, wrapped into
                         AIExtractionError by the AI extractor.
  - ConfigurationError → FAIL HARD at construction time (bad settings file).
  - JobConflictError   → raised by the job registry, outside the per-document path.

Nothing raised inside the per-document path escapes to the caller: total
extraction failure becomes a zero-confidence stub article, and analysis
failure becomes a threat-free Analysis.
"""

from typing import Optional


class ArticleIntelError(Exception):
    """Base exception for all article_intel errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- Strategy-local: caught by the orchestrator ---

class ExtractionError(ArticleIntelError):
    """
    Raised when a single extraction tier cannot produce a usable record.

    The orchestrator catches it and falls through to the next tier.
    """

    def __init__(
        self,
        message: str,
        strategy: str,
        partial_result: Optional[dict] = None,
        details: Optional[dict] = None
    ):
        super().__init__(message, details)
        self.strategy = strategy
        # Fields the tier did manage to find; later tiers may keep them
        self.partial_result = partial_result or {}


class LLMClientError(ArticleIntelError):
    """Raised when an LLM API call fails."""

    def __init__(
        self,
        message: str,
        provider: str,
        details: Optional[dict] = None
    ):
        super().__init__(message, details)
        self.provider = provider


class AIExtractionError(ArticleIntelError):
    """Raised when the AI field extractor cannot return a usable result."""
    pass


# --- Fail hard: raised to the caller ---

class ConfigurationError(ArticleIntelError):
    """Raised when pipeline settings cannot be loaded or validated."""
    pass


class JobConflictError(ArticleIntelError):
    """Raised when a job is started while another job is still running."""

    def __init__(self, message: str, active_job: str, details: Optional[dict] = None):
        super().__init__(message, details)
        self.active_job = active_job
