"""
Fast path for documents that arrive already labeled.

A headless-browser collaborator renders some pages itself and hands over
plain text in this shape instead of HTML:

    Title: Exchange servers hit by new exploit
    Author: Jane Smith
    Date: March 10, 2024
    Content: Attackers are ...

When it fails it writes placeholders such as "(No title found)" or
"(Content extraction failed)"; those count as missing values.
"""

import re
from typing import Optional

from .exceptions import ExtractionError
from .logger import get_module_logger
from .schemas import ExtractedFields

logger = get_module_logger("preprocessed")

LABELS = ("title", "author", "date", "content")

LABEL_LINE_PATTERN = re.compile(r'^[ \t]*(Title|Author|Date|Content)[ \t]*:[ \t]*',
                                re.IGNORECASE | re.MULTILINE)

# "(No title found)", "(No author found)", "(Content extraction failed - ...)"
PLACEHOLDER_PATTERN = re.compile(
    r'^\((?:no\s+\w+\s+found|content\s+extraction\s+failed[^)]*|not\s+available)\)$',
    re.IGNORECASE
)


class PreprocessedContentHandler:
    """Parses the labeled Title/Author/Date/Content text format."""

    method = "preprocessed"

    def is_preprocessed(self, text: Optional[str]) -> bool:
        """True when text carries both a Title: and a Content: label line."""
        if not text:
            return False
        found = {m.group(1).lower() for m in LABEL_LINE_PATTERN.finditer(text)}
        return 'title' in found and 'content' in found

    def extract(self, text: str) -> ExtractedFields:
        """
        Split labeled text into fields.

        Raises:
            ExtractionError: the text is not in the labeled format
        """
        if not self.is_preprocessed(text):
            raise ExtractionError("Input is not pre-processed content", strategy=self.method)

        values = self._split_fields(text)
        fields = ExtractedFields(
            title=values.get("title"),
            author=values.get("author"),
            date_text=values.get("date"),
            content=values.get("content"),
            extraction_method=self.method,
        )

        logger.debug(
            f"Pre-processed fields: title={bool(fields.title)}, author={bool(fields.author)}, "
            f"date={bool(fields.date_text)}, content={len(fields.content or '')} chars"
        )
        return fields

    def _split_fields(self, text: str) -> dict[str, str]:
        matches = list(LABEL_LINE_PATTERN.finditer(text))
        values: dict[str, Optional[str]] = {}
        for i, match in enumerate(matches):
            label = match.group(1).lower()
            # First occurrence wins
            if label in values:
                continue
            if label == "content":
                # Everything after the Content label is body text
                value = text[match.end():].strip()
            else:
                end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
                value = text[match.end():end].strip()
            values[label] = None if PLACEHOLDER_PATTERN.match(value) else value
            if label == "content":
                break

        return {k: v for k, v in values.items() if v}
