"""
Content Cleaner: string-level HTML repair, DOM cleanup and text normalization.

Every extraction tier goes through this module twice: once to get a parsed,
boilerplate-free DOM to select from, and once to normalize whatever text it
pulled out (entities, whitespace, stray markup).

Design principle: NEVER FAIL on bad HTML. Always produce usable output.
"""

import html as html_lib
import re
import unicodedata
from typing import Optional

from bs4 import BeautifulSoup, Comment

from .logger import get_module_logger

logger = get_module_logger("cleaner")


# Residual markup fragments that survive get_text() on broken pages
# (e.g. "<<<< /p>" or "< /div>")
HTML_GARBAGE_PATTERN = re.compile(r'<+\s*/?[a-zA-Z][\w-]*[^<>]*>|<+\s*/\s*>')

# Typographic characters folded to their ASCII shapes
PUNCTUATION_MAP = {
    '‘': "'", '’': "'", '‚': "'", '‛': "'",
    '“': '"', '”': '"', '„': '"', '‟': '"',
    '–': '-', '—': '-', '―': '-', '−': '-',
    '…': '...',
    ' ': ' ', ' ': ' ', ' ': ' ', ' ': ' ', ' ': ' ',
    # zero-width characters
    '​': '', '‌': '', '‍': '', '﻿': '',
}

# C0 controls except tab/newline/CR, plus DEL and the C1 range
CONTROL_CHARS_PATTERN = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]')

# (pattern, replacement, description) applied in order; a None description
# marks a silent normalization
STRING_REPAIRS = [
    (re.compile(r'\x00'), '', "Removed NULL bytes"),
    # <<p>> from copy-paste corruption
    (re.compile(r'<{2,}(/?[a-zA-Z][^>]*?)>{2,}'), r'<\1>', "Fixed double angle brackets"),
    # "if a < b" in body text
    (re.compile(r'<(?![a-zA-Z/!?])'), '&lt;', "Escaped stray angle brackets"),
    # href=="/path"
    (re.compile(r'(\w+)==(["\'])'), r'\1=\2', "Fixed malformed attributes (double equals)"),
    (re.compile(r'\r\n?'), '\n', None),
    (re.compile(r'[\x01-\x08\x0b\x0c\x0e-\x1f]'), '', "Removed control characters"),
]

CHARSET_SNIFF_BYTES = 2048

# <meta charset=...> first, then <meta http-equiv="Content-Type" content="...; charset=...">
META_CHARSET_PATTERNS = (
    re.compile(r'<meta[^>]+charset=["\']?\s*([^\s"\';>]+)', re.IGNORECASE),
    re.compile(r'<meta[^>]+content=["\'][^"\']*charset=([^\s"\';>]+)', re.IGNORECASE),
)


class ContentCleaner:
    """
    Rule-based HTML cleaner.

    Produces a parsed DOM with non-content elements removed, and normalizes
    text pulled out of it.
    """

    # Elements whose content never belongs to an article body
    REMOVE_ELEMENTS = ['script', 'style', 'noscript', 'iframe', 'select',
                       'button', 'svg', 'template']

    # Boilerplate containers dropped before selector matching
    BOILERPLATE_SELECTORS = [
        'nav', 'footer', '.advertisement', '.ad', '.ads', '.social-share',
        '.share-buttons', '.related-posts', '.related-articles', '.sidebar',
        '.comments', '.comment', '.newsletter', '.cookie-banner',
    ]

    # WHATWG Encoding Standard: browsers silently remap these charsets.
    # https://encoding.spec.whatwg.org/#names-and-labels
    WHATWG_CHARSET_MAP = {
        'iso-8859-1': 'windows-1252',
        'iso8859-1': 'windows-1252',
        'iso88591': 'windows-1252',
        'latin-1': 'windows-1252',
        'latin1': 'windows-1252',
        'us-ascii': 'windows-1252',
        'ascii': 'windows-1252',
        'iso-8859-9': 'windows-1254',
        'iso-8859-11': 'windows-874',
    }

    @staticmethod
    def detect_charset_from_bytes(raw_bytes: bytes) -> str:
        """
        Charset declared in the first 2KB of an HTML file, mapped to what a
        browser would actually decode with. Defaults to utf-8.
        """
        head = raw_bytes[:CHARSET_SNIFF_BYTES].decode('ascii', errors='ignore')

        for pattern in META_CHARSET_PATTERNS:
            declared = pattern.search(head)
            if declared:
                charset = declared.group(1).strip().lower()
                return ContentCleaner.WHATWG_CHARSET_MAP.get(charset, charset)
        return 'utf-8'

    def __init__(self, remove_boilerplate: bool = True):
        """
        Args:
            remove_boilerplate: drop nav/footer/ad containers when preparing
                a document. Date extraction turns this off because some
                sites keep the publish date in the header or footer.
        """
        self.remove_boilerplate = remove_boilerplate

    def sanitize_html(self, html: str) -> tuple[str, list[str]]:
        """
        Repair malformed markup at the string level, before any parser sees it.

        Returns:
            Tuple of (repaired HTML, descriptions of the repairs applied)
        """
        # Lone surrogates and other unencodable code points become U+FFFD
        repaired = (html or "").encode('utf-8', errors='replace').decode('utf-8')
        applied = []

        for pattern, replacement, description in STRING_REPAIRS:
            repaired, count = pattern.subn(replacement, repaired)
            if count and description:
                applied.append(description)

        if applied:
            logger.debug(f"Applied {len(applied)} string repairs: {', '.join(applied)}")
        return repaired, applied

    def parse(self, html: str) -> BeautifulSoup:
        """
        Parse HTML with the fallback chain html5lib → lxml → html.parser.

        html5lib implements the WHATWG parsing algorithm and copes with the
        worst markup; lxml is faster but less forgiving; html.parser is
        always available.
        """
        try:
            return BeautifulSoup(html, 'html5lib')
        except Exception as e:
            logger.warning(f"html5lib parsing failed, trying lxml: {e}")

        try:
            return BeautifulSoup(html, 'lxml')
        except Exception as e:
            logger.warning(f"lxml parsing also failed: {e}")

        return BeautifulSoup(html, 'html.parser')

    def prepare_document(self, html: str) -> BeautifulSoup:
        """
        Sanitize, parse and strip non-content elements.

        Args:
            html: Raw HTML string

        Returns:
            BeautifulSoup tree ready for selector matching
        """
        sanitized, _ = self.sanitize_html(html)
        soup = self.parse(sanitized)

        self._remove_comments(soup)
        removed = self._remove_elements(soup)
        if removed:
            logger.debug(f"Removed {removed} non-content elements")

        return soup

    def _remove_comments(self, soup: BeautifulSoup) -> int:
        """Remove HTML comments. Returns count of removed comments."""
        comments = soup.find_all(string=lambda text: isinstance(text, Comment))
        for comment in comments:
            comment.extract()
        return len(comments)

    def _remove_elements(self, soup: BeautifulSoup) -> int:
        count = 0
        for elem in soup.find_all(self.REMOVE_ELEMENTS):
            elem.decompose()
            count += 1

        if self.remove_boilerplate:
            for selector in self.BOILERPLATE_SELECTORS:
                for elem in soup.select(selector):
                    # A page may wrap the whole article in an element that
                    # also carries an "ad" class; never drop the body itself.
                    if elem.name in ('body', 'html', 'main', 'article'):
                        continue
                    elem.decompose()
                    count += 1
        return count

    def strip_html_tags(self, text: str) -> str:
        """Remove markup fragments left in already-extracted text."""
        if not text:
            return ""
        return HTML_GARBAGE_PATTERN.sub(' ', text)

    def sanitize_content(self, text: str) -> str:
        """Drop replacement characters and control characters from text."""
        if not text:
            return ""
        text = text.replace('\ufffd', '')
        return CONTROL_CHARS_PATTERN.sub('', text)

    def normalize_text(self, text: Optional[str], keep_paragraphs: bool = False) -> str:
        """
        Normalize a text field.

        Decodes HTML entities, folds typographic punctuation, strips markup
        leftovers and control characters, and collapses whitespace.

        Args:
            text: Text to normalize (None is treated as empty)
            keep_paragraphs: keep blank-line paragraph breaks. Used for article
                bodies so the summary generator can still find paragraphs.

        Returns:
            Normalized text, stripped
        """
        if not text:
            return ""

        # Entities may be double-encoded (&amp;nbsp;)
        for _ in range(2):
            decoded = html_lib.unescape(text)
            if decoded == text:
                break
            text = decoded

        text = unicodedata.normalize('NFC', text)
        text = text.translate(str.maketrans(PUNCTUATION_MAP))
        text = self.strip_html_tags(text)
        text = self.sanitize_content(text)

        if not keep_paragraphs:
            return re.sub(r'\s+', ' ', text).strip()

        lines = [re.sub(r'[ \t\f\v]+', ' ', line).strip() for line in text.split('\n')]
        text = '\n'.join(lines)
        text = re.sub(r'\n{3,}', '\n\n', text)
        return text.strip()


def normalize_text(text: Optional[str], keep_paragraphs: bool = False) -> str:
    """Convenience function to normalize a text field."""
    return ContentCleaner().normalize_text(text, keep_paragraphs=keep_paragraphs)


def prepare_document(html: str) -> BeautifulSoup:
    """Convenience function to get a cleaned DOM for selector matching."""
    return ContentCleaner().prepare_document(html)
