"""
AI field extractor: asks an LLM to read the article fields straight out of
the page when the selector tiers are not trusted.

Anything with an ``extract(html, source_url) -> AIExtractionResult`` method
can be injected into the orchestrator; AIFieldExtractor is the bundled one.
"""

import re
from typing import Optional

from bs4 import BeautifulSoup

from .cleaner import ContentCleaner
from .exceptions import AIExtractionError, LLMClientError
from .llm_client import BaseLLMClient, LLMClient, LLMProvider
from .logger import get_module_logger
from .schemas import AIExtractionResult
from .selector_utils import clean_author

logger = get_module_logger("ai_extractor")

# Keep the prompt inside small-model context windows
MAX_PAGE_CHARS = 50000

SYSTEM_PROMPT = """You extract news articles from web pages.
Return only text that is present on the page. Never summarize or rewrite the article body.
Respond with valid JSON only."""

USER_PROMPT = """Extract the main article from this page.

Source URL: {source_url}

Page:
```html
{html}
```

Respond with JSON:
{{
    "title": "article headline",
    "content": "full article body, paragraphs separated by blank lines",
    "author": "author name or null",
    "publishDate": "publication date as written on the page, or null",
    "confidence": 0.0
}}

Rules:
- confidence is 0.0-1.0: how sure you are that title and content are the real article
- author is a person or organization name only, never a date or a job title
- leave out navigation, ads, comments and related-article lists"""

# Author values models return when they mean "none"
EMPTY_AUTHOR_VALUES = {"null", "none", "unknown", "n/a", "not available", "staff"}

DIGITS_ONLY_PATTERN = re.compile(r'^[\d\s/.\-:,]+$')


class AIFieldExtractor:
    """LLM-backed field extractor."""

    method = "llm"

    def __init__(
        self,
        llm_client: Optional[BaseLLMClient] = None,
        provider: Optional[LLMProvider] = None,
        max_page_chars: int = MAX_PAGE_CHARS
    ):
        self.max_page_chars = max_page_chars
        self.cleaner = ContentCleaner(remove_boilerplate=False)

        # Injected clients make this testable without an API key
        if llm_client is None:
            try:
                llm_client = LLMClient.create(provider=provider)
            except LLMClientError as e:
                raise AIExtractionError(
                    f"Failed to initialize LLM client: {e.message}",
                    details={"provider": e.provider}
                )
        self.llm_client = llm_client

    def extract(self, html: str, source_url: Optional[str] = None) -> AIExtractionResult:
        """
        Ask the model for article fields.

        Args:
            html: Raw page HTML
            source_url: Page URL, passed to the model as context

        Returns:
            AIExtractionResult with the model's self-reported confidence

        Raises:
            AIExtractionError: the model call failed or returned nothing usable
        """
        page = self._compact(html)
        prompt = USER_PROMPT.format(source_url=source_url or "unknown", html=page)

        try:
            response = self.llm_client.complete_json(prompt=prompt, system_prompt=SYSTEM_PROMPT)
        except LLMClientError as e:
            raise AIExtractionError(
                f"LLM failed: {e.message}",
                details={"provider": e.provider, **e.details}
            )

        result = self._parse_response(response)
        logger.info(
            f"AI extraction: title={bool(result.title)}, content={len(result.content)} chars, "
            f"confidence={result.confidence:.2f}"
        )
        return result

    def _compact(self, html: str) -> str:
        """Drop scripts and styles, then cut to the prompt budget."""
        soup = self.cleaner.parse(html)
        for tag in soup.find_all(['script', 'style', 'noscript', 'svg']):
            tag.decompose()
        page = str(soup)
        if len(page) > self.max_page_chars:
            page = page[:self.max_page_chars] + "\n<!-- TRUNCATED -->"
        return page

    def _parse_response(self, response: dict) -> AIExtractionResult:
        title = self._as_text(response.get("title"))
        content = self._as_text(response.get("content"))
        if not title and not content:
            raise AIExtractionError("Model returned neither title nor content",
                                    details={"response": response})

        try:
            confidence = float(response.get("confidence") or 0.0)
        except (TypeError, ValueError):
            confidence = 0.0

        return AIExtractionResult(
            title=title or "",
            content=content or "",
            author=self._validate_author(response.get("author")),
            publish_date=self._validate_date(response.get("publishDate") or response.get("publish_date")),
            confidence=min(1.0, max(0.0, confidence)),
            method=self.method,
        )

    @staticmethod
    def _as_text(value) -> Optional[str]:
        if not isinstance(value, str):
            return None
        value = value.strip()
        # Some models hand back HTML fragments despite the instructions
        if '<' in value and '>' in value:
            value = BeautifulSoup(value, 'html.parser').get_text('\n\n', strip=True)
        return value or None

    @staticmethod
    def _validate_author(value) -> Optional[str]:
        if not isinstance(value, str) or value.strip().lower() in EMPTY_AUTHOR_VALUES:
            return None
        if DIGITS_ONLY_PATTERN.match(value.strip()):
            return None
        return clean_author(value)

    @staticmethod
    def _validate_date(value) -> Optional[str]:
        if not isinstance(value, str):
            return None
        value = value.strip()
        if len(value) < 4 or value.lower() in ("null", "none", "unknown"):
            return None
        return value
