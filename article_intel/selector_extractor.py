"""
Selector-based extraction tiers.

  PrimarySelectorExtractor:   the per-source SelectorConfig, with repair and variations
  FallbackSelectorExtractor:  a fixed table of generic selectors per field
  DesperateExtractor:         whole-document heuristics

Each tier reads a DOM prepared by ContentCleaner and returns ExtractedFields
with whatever it found. A tier that finds nothing raises ExtractionError;
the orchestrator decides what is good enough.
"""

import re
from typing import Optional

from bs4 import BeautifulSoup, Tag

from .dates import separate_date_from_author
from .exceptions import ExtractionError
from .logger import get_module_logger
from .schemas import ExtractedFields, SelectorConfig
from .selector_utils import (
    block_text,
    clean_author,
    element_text,
    generate_selector_variations,
    is_literal_text,
    is_low_quality_content,
    is_valid_title,
    sanitize_selector,
    select_elements,
)

logger = get_module_logger("selector_extractor")


# Generic selectors per field, most specific first
FALLBACK_SELECTORS = {
    "title": [
        'h1.article-title', 'h1.entry-title', 'h1.post-title', '.article-title',
        '.post-title', '.entry-title', '.headline', '[itemprop="headline"]',
        'article h1', 'h1', 'meta[property="og:title"]',
    ],
    "content": [
        '[itemprop="articleBody"]', '.article-body', '.article-content',
        '.post-content', '.entry-content', '.story-content', '.story-body',
        '#article-content', '#article-body', 'article', 'main .content',
        '.content', '.main-content', 'main',
    ],
    "author": [
        '[rel="author"]', '[itemprop="author"] [itemprop="name"]', '[itemprop="author"]',
        '.author-name', '.article-author', '.author', '.byline', 'meta[name="author"]',
    ],
}

# Text nodes starting with a byline
BYLINE_TEXT_PATTERN = re.compile(r'^\s*By\s+[A-Z]')


def _text_or_content_attr(elem: Tag) -> str:
    # <meta> carries its value in the content attribute
    if elem.name == 'meta':
        return (elem.get('content') or '').strip()
    return element_text(elem)


def _author_from_text(text: Optional[str]) -> Optional[str]:
    """Drop any date mixed into a byline, then validate what is left."""
    if not text:
        return None
    _, author = separate_date_from_author(text)
    return clean_author(author)


def _outermost(elements: list[Tag]) -> list[Tag]:
    """Drop matches nested inside other matches so text is not counted twice."""
    ids = {id(e) for e in elements}
    return [e for e in elements if not any(id(p) in ids for p in e.parents)]


class PrimarySelectorExtractor:
    """Applies the per-source selector configuration."""

    method = "primary_selectors"

    def __init__(self, min_content_length: int = 50):
        self.min_content_length = min_content_length

    def extract(self, soup: BeautifulSoup, config: Optional[SelectorConfig]) -> ExtractedFields:
        """
        Extract fields with the configured selectors.

        Raises:
            ExtractionError: no configuration, or nothing matched
        """
        if config is None or config.is_empty():
            raise ExtractionError("No selector configuration supplied", strategy=self.method)

        fields = ExtractedFields(
            title=self._extract_title(soup, config),
            content=self._extract_content(soup, config),
            author=self._extract_author(soup, config),
            extraction_method=self.method,
        )

        if fields.is_empty():
            raise ExtractionError(
                "Configured selectors matched nothing",
                strategy=self.method,
                details={"config": config.model_dump(exclude_defaults=True)}
            )
        return fields

    def _candidates(self, selector: Optional[str], alternative: Optional[str]) -> list[str]:
        """Sanitized selector, its variations, then the alternate selector."""
        candidates = []
        cleaned = sanitize_selector(selector)
        if cleaned:
            candidates.extend(generate_selector_variations(cleaned))
        cleaned_alt = sanitize_selector(alternative)
        if cleaned_alt:
            candidates.append(cleaned_alt)
        return list(dict.fromkeys(candidates))

    def _extract_title(self, soup: BeautifulSoup, config: SelectorConfig) -> Optional[str]:
        for selector in self._candidates(config.title_selector, config.alternatives.get("title")):
            for elem in select_elements(soup, selector):
                title = _text_or_content_attr(elem)
                if is_valid_title(title):
                    if selector != config.title_selector:
                        logger.debug(f"Title found using variation '{selector}'")
                    return title
        return None

    def _extract_content(self, soup: BeautifulSoup, config: SelectorConfig) -> Optional[str]:
        best = None
        for selector in self._candidates(config.content_selector, config.alternatives.get("content")):
            elements = _outermost(select_elements(soup, selector))
            content = '\n\n'.join(t for t in (block_text(e) for e in elements) if t)
            if not content:
                continue
            if not is_low_quality_content(content, self.min_content_length):
                if selector != config.content_selector:
                    logger.debug(f"Content found using variation '{selector}' ({len(content)} chars)")
                return content
            best = best or content

        # Last resort inside the config: paragraphs under the article container
        article_selector = sanitize_selector(config.article_selector)
        if article_selector:
            for article in select_elements(soup, article_selector):
                paragraphs = [element_text(p) for p in article.find_all('p')]
                content = '\n\n'.join(p for p in paragraphs if p) or block_text(article)
                if content and not is_low_quality_content(content, self.min_content_length):
                    logger.debug(f"Content found using article selector ({len(content)} chars)")
                    return content
                best = best or content or None

        return best

    def _extract_author(self, soup: BeautifulSoup, config: SelectorConfig) -> Optional[str]:
        # Detection sometimes stores the byline text itself instead of a selector
        if config.author_selector and is_literal_text(config.author_selector):
            return _author_from_text(config.author_selector)

        for selector in self._candidates(config.author_selector, config.alternatives.get("author")):
            for elem in select_elements(soup, selector):
                author = _author_from_text(_text_or_content_attr(elem))
                if author:
                    return author
        return None


class FallbackSelectorExtractor:
    """Generic selectors that work on most news sites."""

    method = "fallback_selectors"

    def __init__(self, min_content_length: int = 50,
                 selectors: Optional[dict[str, list[str]]] = None):
        self.min_content_length = min_content_length
        self.selectors = selectors or FALLBACK_SELECTORS

    def extract(self, soup: BeautifulSoup) -> ExtractedFields:
        fields = ExtractedFields(
            title=self._first_valid(soup, "title", lambda t: t if is_valid_title(t) else None),
            content=self._extract_content(soup),
            author=self._first_valid(soup, "author", _author_from_text),
            extraction_method=self.method,
        )
        if fields.is_empty():
            raise ExtractionError("No fallback selector matched", strategy=self.method)
        return fields

    def _first_valid(self, soup: BeautifulSoup, field: str, validate) -> Optional[str]:
        for selector in self.selectors.get(field, []):
            for elem in select_elements(soup, selector):
                value = validate(_text_or_content_attr(elem))
                if value:
                    logger.debug(f"Fallback {field} found with '{selector}'")
                    return value
        return None

    def _extract_content(self, soup: BeautifulSoup) -> Optional[str]:
        for selector in self.selectors.get("content", []):
            elements = _outermost(select_elements(soup, selector))
            content = '\n\n'.join(t for t in (block_text(e) for e in elements) if t)
            if content and not is_low_quality_content(content, self.min_content_length):
                logger.debug(f"Fallback content found with '{selector}' ({len(content)} chars)")
                return content
        return None


class DesperateExtractor:
    """Whole-document heuristics for pages with no recognizable structure."""

    method = "desperate_fallback"

    # Fragments shorter than this are usually captions, labels or buttons
    MIN_PARAGRAPH_LENGTH = 20

    def extract(self, soup: BeautifulSoup) -> ExtractedFields:
        fields = ExtractedFields(
            title=self._extract_title(soup),
            content=self._extract_content(soup),
            author=self._extract_author(soup),
            extraction_method=self.method,
        )
        if fields.is_empty():
            raise ExtractionError("Document has no usable text", strategy=self.method)
        return fields

    def _extract_title(self, soup: BeautifulSoup) -> Optional[str]:
        if soup.title and soup.title.string:
            # "Headline - Site Name" / "Headline | Site Name"
            title = re.split(r'\s+[|\-–—]\s+', soup.title.string.strip())[0]
            if is_valid_title(title):
                return title

        for heading in soup.find_all(['h1', 'h2']):
            title = element_text(heading)
            if is_valid_title(title):
                return title
        return None

    def _extract_content(self, soup: BeautifulSoup) -> Optional[str]:
        main = soup.find('main')
        if main:
            content = block_text(main)
            if content:
                return content

        paragraphs = [element_text(p) for p in soup.find_all('p')]
        paragraphs = [p for p in paragraphs if len(p) >= self.MIN_PARAGRAPH_LENGTH]
        if paragraphs:
            return '\n\n'.join(paragraphs)

        body = soup.body or soup
        return element_text(body) or None

    def _extract_author(self, soup: BeautifulSoup) -> Optional[str]:
        for text in soup.find_all(string=BYLINE_TEXT_PATTERN):
            author = _author_from_text(str(text))
            if author:
                return author
        return None
