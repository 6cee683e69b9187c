"""
Extraction orchestrator.

Runs the extraction tiers in the configured order and merges what they find
into one ExtractedArticle:

  preprocessed → ai → primary → fallback → desperate

A tier runs only while the record is still insufficient (no title, or
content shorter than min_content_length). Later tiers fill missing or short
fields and never overwrite good ones. The record's method and confidence
come from the last tier that contributed a field.

Input:  raw HTML (or labeled text) + optional source URL + optional SelectorConfig
Output: ExtractedArticle, always. Total failure yields a zero-confidence stub.
"""

import re
from datetime import datetime
from typing import Optional, Protocol

from bs4 import BeautifulSoup

from .cleaner import ContentCleaner
from .config import PipelineSettings
from .dates import DateExtractor, parse_date
from .exceptions import AIExtractionError, ExtractionError, LLMClientError
from .logger import get_module_logger
from .preprocessed import PreprocessedContentHandler
from .schemas import AIExtractionResult, ExtractedArticle, ExtractedFields, SelectorConfig
from .selector_extractor import DesperateExtractor, FallbackSelectorExtractor, PrimarySelectorExtractor
from .selector_utils import clean_author, is_valid_title, title_from_url

logger = get_module_logger("orchestrator")

STUB_TITLE = "Extraction Failed"
STUB_CONTENT = "Content extraction failed due to technical error"
STUB_METHOD = "error_fallback"
UNTITLED = "Untitled Article"

# Anything that looks like a tag; plain labeled text has none
MARKUP_PATTERN = re.compile(r'<[a-zA-Z!/]')

HTML_STRATEGIES = ("primary", "fallback", "desperate")

# Selector tiers need real markup; the desperate tier also reads bare text
MARKUP_STRATEGIES = ("primary", "fallback")


class FieldExtractor(Protocol):
    """An AI collaborator the orchestrator can consult."""

    def extract(self, html: str, source_url: Optional[str] = None) -> AIExtractionResult:
        ...


class _Draft:
    """Fields merged so far, plus the tier that last contributed."""

    def __init__(self):
        self.title: Optional[str] = None
        self.content: Optional[str] = None
        self.author: Optional[str] = None
        self.date_text: Optional[str] = None
        self.method: Optional[str] = None
        self.confidence: float = 0.0


class ArticleExtractionPipeline:
    """
    Layered article extractor.

    Usage:
        pipeline = ArticleExtractionPipeline()
        article = pipeline.extract(html, source_url=url, selectors=config)
    """

    def __init__(
        self,
        settings: Optional[PipelineSettings] = None,
        ai_extractor: Optional[FieldExtractor] = None,
        date_extractor: Optional[DateExtractor] = None,
        now: Optional[datetime] = None
    ):
        """
        Args:
            settings: tier order, confidence table and thresholds
            ai_extractor: optional AI collaborator; the "ai" tier is skipped without one
            date_extractor: defaults to a DateExtractor sharing ``now``
            now: reference time for relative dates ("3 days ago")
        """
        self.settings = settings or PipelineSettings()
        self.ai_extractor = ai_extractor
        self.now = now
        self.date_extractor = date_extractor or DateExtractor(now=now)

        self.cleaner = ContentCleaner()
        self.preprocessed = PreprocessedContentHandler()
        self.primary = PrimarySelectorExtractor(self.settings.min_content_length)
        self.fallback = FallbackSelectorExtractor(self.settings.min_content_length)
        self.desperate = DesperateExtractor()

    def extract(
        self,
        html: Optional[str],
        source_url: Optional[str] = None,
        selectors: Optional[SelectorConfig] = None
    ) -> ExtractedArticle:
        """
        Extract one article. Never raises.

        Args:
            html: page HTML, or labeled Title:/Content: text
            source_url: page URL, used for AI context and the slug title fallback
            selectors: per-source selector configuration

        Returns:
            ExtractedArticle; the stub article when nothing usable was found
        """
        try:
            return self._extract(html or "", source_url, selectors)
        except Exception as e:
            logger.error(f"Unexpected error during extraction: {e}", exc_info=True)
            return self.stub()

    def stub(self) -> ExtractedArticle:
        return ExtractedArticle(
            title=STUB_TITLE,
            content=STUB_CONTENT,
            author=None,
            publish_date=None,
            extraction_method=STUB_METHOD,
            confidence=self.settings.confidence.stub,
        )

    def _extract(self, html: str, source_url: Optional[str],
                 selectors: Optional[SelectorConfig]) -> ExtractedArticle:
        if not html.strip():
            logger.warning("Empty document, returning stub")
            return self.stub()

        has_markup = bool(MARKUP_PATTERN.search(html))
        draft = _Draft()
        soup: Optional[BeautifulSoup] = None

        for strategy in self.settings.strategy_order:
            if self._is_sufficient(draft):
                break
            if not has_markup and strategy in HTML_STRATEGIES:
                # Bare text: keep labeled content over the whole-text body
                if strategy in MARKUP_STRATEGIES or draft.content:
                    continue

            if strategy in HTML_STRATEGIES and soup is None:
                soup = self.cleaner.prepare_document(html)

            try:
                result = self._run(strategy, html, source_url, selectors, soup)
            except (ExtractionError, AIExtractionError, LLMClientError) as e:
                logger.warning(f"Strategy '{strategy}' failed: {e.message}")
                continue
            except Exception as e:
                # Tier failures stay local to the tier
                logger.warning(f"Strategy '{strategy}' raised unexpectedly: {e}", exc_info=True)
                continue

            if result is None:
                continue
            fields, confidence = result
            if self._merge(draft, fields):
                draft.method = fields.extraction_method
                draft.confidence = confidence
                logger.info(f"Strategy '{strategy}' contributed fields (confidence {confidence:.2f})")

        if not draft.content:
            logger.error("All extraction strategies failed, returning stub")
            return self.stub()

        if not draft.title:
            draft.title = title_from_url(source_url) or UNTITLED

        article = ExtractedArticle(
            title=draft.title,
            content=draft.content,
            author=draft.author,
            publish_date=self._publish_date(html, has_markup, draft.date_text, selectors),
            extraction_method=draft.method,
            confidence=draft.confidence,
        )
        logger.info(
            f"Extraction complete - method: {article.extraction_method}, "
            f"confidence: {article.confidence}, content: {len(article.content)} chars"
        )
        return article

    def _run(self, strategy: str, html: str, source_url: Optional[str],
             selectors: Optional[SelectorConfig], soup: Optional[BeautifulSoup]):
        """Run one tier. Returns (fields, confidence) or None when the tier does not apply."""
        table = self.settings.confidence

        if strategy == "preprocessed":
            if not self.preprocessed.is_preprocessed(html):
                return None
            return self.preprocessed.extract(html), table.preprocessed

        if strategy == "ai":
            if self.ai_extractor is None:
                return None
            ai_result = self.ai_extractor.extract(html, source_url)
            if ai_result.confidence <= table.ai_threshold:
                logger.info(f"AI result below threshold ({ai_result.confidence:.2f}), ignoring")
                return None
            fields = ExtractedFields(
                title=ai_result.title or None,
                content=ai_result.content or None,
                author=ai_result.author,
                date_text=ai_result.publish_date,
                extraction_method=f"ai_{ai_result.method}",
            )
            return fields, ai_result.confidence

        if strategy == "primary":
            if selectors is None or selectors.is_empty():
                return None
            return self.primary.extract(soup, selectors), table.primary

        if strategy == "fallback":
            return self.fallback.extract(soup), table.fallback

        return self.desperate.extract(soup), table.desperate

    def _is_sufficient(self, draft: _Draft) -> bool:
        return bool(draft.title) and self._content_is_long_enough(draft.content)

    def _content_is_long_enough(self, content: Optional[str]) -> bool:
        return bool(content) and len(content) >= self.settings.min_content_length

    def _merge(self, draft: _Draft, fields: ExtractedFields) -> bool:
        """Fill missing or short fields of the draft. Returns True if anything was taken."""
        contributed = False

        if not draft.title and fields.title:
            title = self.cleaner.normalize_text(fields.title)
            if is_valid_title(title):
                draft.title = title
                contributed = True

        if fields.content and not self._content_is_long_enough(draft.content):
            content = self.cleaner.normalize_text(fields.content, keep_paragraphs=True)
            if content and len(content) > len(draft.content or ""):
                draft.content = content
                contributed = True

        if not draft.author and fields.author:
            author = clean_author(self.cleaner.normalize_text(fields.author))
            if author:
                draft.author = author
                contributed = True

        if not draft.date_text and fields.date_text:
            draft.date_text = self.cleaner.normalize_text(fields.date_text)
            contributed = True

        return contributed

    def _publish_date(self, html: str, has_markup: bool, date_text: Optional[str],
                      selectors: Optional[SelectorConfig]) -> Optional[datetime]:
        """Date from tier-supplied text first, then the date subsystem on the page."""
        if date_text:
            date = parse_date(date_text, now=self.now)
            if date:
                return date
            logger.debug(f"Could not parse supplied date text: {date_text!r}")

        if not has_markup:
            return None

        selectors = selectors or SelectorConfig()
        return self.date_extractor.extract(html, selectors.date_selector, selectors.date_alternatives)


def extract_article(
    html: str,
    source_url: Optional[str] = None,
    selectors: Optional[SelectorConfig] = None
) -> ExtractedArticle:
    """Convenience function to extract an article with default settings."""
    return ArticleExtractionPipeline().extract(html, source_url, selectors)
