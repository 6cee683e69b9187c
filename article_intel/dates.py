"""
Date Extraction Subsystem.

Finds an article's publish date with a ladder of strategies, stopping at
the first one that yields a plausible date:

  1. caller-provided primary selector
  2. caller-provided alternative selectors
  3. <meta> publish-date tags
  4. JSON-LD Article / NewsArticle blocks
  5. a built-in list of common date-bearing selectors
  6. free-text date patterns inside header / byline / meta regions

Every candidate string goes through parse_date(), which never raises and
only accepts years within [MIN_YEAR, MAX_YEAR].

Pipeline position: runs beside the extraction tiers, on the raw HTML.
Input:  HTML string (+ optional selector hints)
Output: datetime or None
"""

import json
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from bs4 import BeautifulSoup
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from .cleaner import ContentCleaner
from .logger import get_module_logger
from .selector_utils import sanitize_selector, select_elements

logger = get_module_logger("dates")


MIN_YEAR = 1990
MAX_YEAR = 2030

MAX_CANDIDATE_LENGTH = 100
MIN_CANDIDATE_LENGTH = 4


# --- Declarative tables ---

# Date shapes, in search order. Used to isolate a date inside longer text.
DATE_PATTERNS = [
    ("iso_datetime", re.compile(r'\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}')),
    ("iso_date", re.compile(r'\d{4}-\d{2}-\d{2}')),
    ("us_slash", re.compile(r'\d{1,2}/\d{1,2}/\d{4}')),
    ("us_dash", re.compile(r'\d{1,2}-\d{1,2}-\d{4}')),
    ("written_month_first", re.compile(r'[A-Za-z]{3,9}\.?\s+\d{1,2}(?:st|nd|rd|th)?,?\s+\d{4}')),
    ("written_day_first", re.compile(r'\d{1,2}\s+[A-Za-z]{3,9}\.?,?\s+\d{4}')),
    ("european_dotted", re.compile(r'\d{1,2}\.\d{1,2}\.\d{4}')),
    ("relative", re.compile(r'\d+\s+(?:hour|day|week|month|year)s?\s+ago', re.IGNORECASE)),
    ("unix_timestamp", re.compile(r'\b\d{10}(?:\d{3})?\b')),
]

# Attributes checked on a matched element before its text
DATA_ATTRIBUTES = ['datetime', 'data-date', 'data-published', 'data-timestamp',
                   'data-publish-date', 'data-created']

META_SELECTORS = [
    'meta[property="article:published_time"]',
    'meta[property="article:modified_time"]',
    'meta[property="og:published_time"]',
    'meta[name="date"]',
    'meta[name="publish_date"]',
    'meta[name="published"]',
    'meta[name="pubdate"]',
    'meta[name="article:published_time"]',
    'meta[itemprop="datePublished"]',
    'meta[itemprop="dateCreated"]',
]

JSON_LD_TYPES = {'Article', 'NewsArticle', 'BlogPosting', 'ReportageNewsArticle'}
JSON_LD_DATE_FIELDS = ['datePublished', 'dateCreated', 'dateModified']

DATE_SELECTORS = [
    # time elements
    'time[datetime]', 'time',
    # common classes
    '.date', '.publish-date', '.published', '.article-date', '.post-date',
    '.timestamp', '.publication-date', '.created-date', '.entry-date',
    '.byline-date', '.meta-date',
    # data attributes
    '[data-date]', '[data-published]', '[data-timestamp]', '[data-publish-date]',
    '[data-created]',
    # ids
    '#date', '#publish-date', '#published', '#timestamp',
    # meta areas
    '.meta time', '.byline time', '.article-meta time', '.post-meta time',
    '.entry-meta time',
    # schema.org microdata
    '[itemprop="datePublished"]', '[itemprop="dateCreated"]', '[itemprop="dateModified"]',
    # layout
    'header time', '.header time', 'article header time', '.article-header time',
    '.post-header time',
]

TEXT_SEARCH_AREAS = [
    'article header', '.article-header', '.post-header', '.byline', '.meta',
    '.article-meta', '.post-meta', 'header', '.header',
]

MONTHS = {
    'jan': 1, 'feb': 2, 'mar': 3, 'apr': 4, 'may': 5, 'jun': 6,
    'jul': 7, 'aug': 8, 'sep': 9, 'oct': 10, 'nov': 11, 'dec': 12,
}
MONTH_PATTERN = (r'(jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|'
                 r'aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)')

# US abbreviations dateutil does not know on its own (offsets in seconds)
TZINFOS = {
    'EST': -5 * 3600, 'EDT': -4 * 3600,
    'CST': -6 * 3600, 'CDT': -5 * 3600,
    'MST': -7 * 3600, 'MDT': -6 * 3600,
    'PST': -8 * 3600, 'PDT': -7 * 3600,
    'CET': 3600, 'CEST': 2 * 3600, 'BST': 3600,
}

AUTHOR_LIKE_PATTERNS = [
    re.compile(r'^(by|author|written by)\b', re.IGNORECASE),
    re.compile(r'^[A-Z][a-z]+ [A-Z][a-z]+$'),
]

RELATIVE_PATTERN = re.compile(r'(\d+)\s+(hour|day|week|month|year)s?\s+ago', re.IGNORECASE)

# "Published: X. Last Updated: Y"
DATE_LABEL_PATTERN = re.compile(
    r'\b(?:first\s+published|published|posted|released|last\s+updated|updated|'
    r'last\s+modified|modified|date)(?:\s+on)?\s*:?\s*',
    re.IGNORECASE
)

WEEKDAY_PREFIX = re.compile(
    r'^(?:mon|tue|tues|wed|thu|thur|thurs|fri|sat|sun)(?:day|sday|nesday|rsday|urday)?\.?,?\s+',
    re.IGNORECASE
)
TRAILING_AT_CLAUSE = re.compile(r'\s+at\s+.*$', re.IGNORECASE)
PARENTHESIZED_TZ = re.compile(r'\s*\(\s*[A-Za-z]{2,5}\s*\)')

MONTH_TIME_PATTERN = re.compile(
    r'\b' + MONTH_PATTERN + r'\.?\s+(\d{1,2})(?:st|nd|rd|th)?,?\s+(\d{4}),?\s+(?:at\s+)?'
    r'(\d{1,2}):(\d{2})\s*([ap])\.?\s*m\.?',
    re.IGNORECASE
)
MONTH_DAY_YEAR_PATTERN = re.compile(
    r'\b' + MONTH_PATTERN + r'\.?\s+(\d{1,2})(?:st|nd|rd|th)?,?\s+(\d{4})',
    re.IGNORECASE
)
DAY_MONTH_YEAR_PATTERN = re.compile(
    r'(\d{1,2})(?:st|nd|rd|th)?\s+' + MONTH_PATTERN + r'\.?,?\s+(\d{4})',
    re.IGNORECASE
)


# --- Parsing ---

def is_plausible(date: Optional[datetime]) -> bool:
    """Year bounds check applied to every parsed date."""
    return date is not None and MIN_YEAR <= date.year <= MAX_YEAR


def find_date_text(text: str) -> Optional[str]:
    """Return the first date-shaped substring of text, trying patterns in order."""
    if not text:
        return None
    for _, pattern in DATE_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(0)
    return None


def parse_date(candidate: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Parse a date candidate string. Never raises.

    Args:
        candidate: text believed to hold a date
        now: reference time for relative dates ("3 days ago") and the year of
            yearless ones ("May 12"); defaults to now

    Returns:
        datetime (timezone-aware when the input carried an offset) or None
    """
    if not candidate or not isinstance(candidate, str):
        return None

    cleaned = ' '.join(candidate.split())

    # Dates buried in long sentences
    if len(cleaned) > MAX_CANDIDATE_LENGTH:
        cleaned = find_date_text(cleaned) or ''

    if len(cleaned) < MIN_CANDIDATE_LENGTH or len(cleaned) > MAX_CANDIDATE_LENGTH:
        return None
    if any(p.search(cleaned) for p in AUTHOR_LIKE_PATTERNS):
        return None

    now = now or datetime.now()

    steps = (
        lambda text: _parse_generic(text, now),
        _parse_timestamp,
        lambda text: _parse_relative(text, now),
        lambda text: _parse_labeled(text, now),
        lambda text: _parse_after_cleanup(text, now),
        _parse_month_with_time,
        _parse_month_without_time,
    )
    for step in steps:
        try:
            date = step(cleaned)
        except (ValueError, OverflowError, TypeError):
            date = None
        if is_plausible(date):
            return date

    return None


def _parse_generic(text: str, now: datetime) -> Optional[datetime]:
    # dateutil reads long digit runs as odd formats; those are timestamps
    if text.isdigit() and len(text) != 8:
        return None
    date = date_parser.parse(text, default=datetime(now.year, 1, 1), tzinfos=TZINFOS)

    # Yearless dates ("May 12") take their latest occurrence not after now
    if date.replace(tzinfo=None) > now.replace(tzinfo=None):
        try:
            earlier = date_parser.parse(text, default=datetime(now.year - 1, 1, 1), tzinfos=TZINFOS)
        except ValueError:
            return date
        if earlier.year != date.year:
            return earlier
    return date


def _parse_timestamp(text: str) -> Optional[datetime]:
    if re.fullmatch(r'\d{10}', text):
        return datetime.fromtimestamp(int(text), tz=timezone.utc)
    if re.fullmatch(r'\d{13}', text):
        return datetime.fromtimestamp(int(text) / 1000, tz=timezone.utc)
    return None


def _parse_relative(text: str, now: datetime) -> Optional[datetime]:
    match = RELATIVE_PATTERN.search(text)
    if not match:
        return None

    amount = int(match.group(1))
    unit = match.group(2).lower()
    if unit == 'hour':
        return now - timedelta(hours=amount)
    if unit == 'day':
        return now - timedelta(days=amount)
    if unit == 'week':
        return now - timedelta(weeks=amount)
    if unit == 'month':
        return now - relativedelta(months=amount)
    return now - relativedelta(years=amount)


def _parse_labeled(text: str, now: datetime) -> Optional[datetime]:
    """First labeled date in text such as "Published: X. Last Updated: Y"."""
    labels = list(DATE_LABEL_PATTERN.finditer(text))
    for i, label in enumerate(labels):
        end = labels[i + 1].start() if i + 1 < len(labels) else len(text)
        segment = text[label.end():end].strip(' .,;|-')
        if len(segment) < MIN_CANDIDATE_LENGTH:
            continue
        steps = (lambda s: _parse_generic(s, now), lambda s: _parse_after_cleanup(s, now),
                 _parse_month_with_time, _parse_month_without_time)
        for step in steps:
            try:
                date = step(segment)
            except (ValueError, OverflowError, TypeError):
                continue
            if is_plausible(date):
                return date
    return None


def _cleanup(text: str) -> str:
    text = WEEKDAY_PREFIX.sub('', text)
    text = TRAILING_AT_CLAUSE.sub('', text)
    text = PARENTHESIZED_TZ.sub('', text)
    text = re.sub(r'[^\w\s\-/.,:+]', '', text)
    return ' '.join(text.split())


def _parse_after_cleanup(text: str, now: datetime) -> Optional[datetime]:
    cleaned = _cleanup(text)
    if not cleaned or cleaned == text:
        return None
    return _parse_generic(cleaned, now)


def _month_number(name: str) -> int:
    return MONTHS[name[:3].lower()]


def _parse_month_with_time(text: str) -> Optional[datetime]:
    match = MONTH_TIME_PATTERN.search(text)
    if not match:
        return None

    month, day, year, hour, minute, meridiem = match.groups()
    hour = int(hour)
    if hour > 12:
        return None
    if meridiem.lower() == 'p' and hour != 12:
        hour += 12
    elif meridiem.lower() == 'a' and hour == 12:
        hour = 0
    return datetime(int(year), _month_number(month), int(day), hour, int(minute))


def _parse_month_without_time(text: str) -> Optional[datetime]:
    match = MONTH_DAY_YEAR_PATTERN.search(text)
    if match:
        month, day, year = match.groups()
        return datetime(int(year), _month_number(month), int(day))

    match = DAY_MONTH_YEAR_PATTERN.search(text)
    if match:
        day, month, year = match.groups()
        return datetime(int(year), _month_number(month), int(day))
    return None


def separate_date_from_author(text: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    """
    Split a mixed byline into its date text and author.

    "By John Doe - January 15, 2024" → ("January 15, 2024", "John Doe")
    "2024-01-20 | Tech Reporter"      → ("2024-01-20", "Tech Reporter")

    Returns:
        (date_text, author); either may be None
    """
    if not text or not text.strip():
        return None, None

    text = ' '.join(text.split())
    date_text = find_date_text(text)
    if date_text:
        author = text.replace(date_text, '', 1)
        author = author.strip(' |-,:•·')
        author = re.sub(r'^(by|author:|written by:?)\s*', '', author, flags=re.IGNORECASE)
        author = author.strip(' |-,:•·')
        if len(author) < 3 or re.fullmatch(r'(home|news|article|back|more)', author, re.IGNORECASE):
            author = None
        return date_text, author

    if len(text) < 50 and re.match(r'^[A-Z][a-z]+ [A-Z][a-z]+', text):
        return None, text

    date_indicators = re.compile(
        r'\b(' + MONTH_PATTERN[1:-1] + r'|\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4}|'
        r'\d{4}[/\-.]\d{1,2}[/\-.]\d{1,2}|\d{1,2}\s+(days?|weeks?|months?|years?)\s+ago)\b',
        re.IGNORECASE
    )
    if date_indicators.search(text):
        return text, None

    return None, text


# --- Extraction ---

class DateExtractor:
    """Multi-strategy publish-date extractor. extract() never raises."""

    def __init__(self, now: Optional[datetime] = None):
        """
        Args:
            now: fixed reference time for relative dates; the current time
                is used when unset
        """
        self.now = now
        self.cleaner = ContentCleaner(remove_boilerplate=False)

    def extract(
        self,
        html: str,
        primary_selector: Optional[str] = None,
        alternative_selectors: Optional[list[str]] = None
    ) -> Optional[datetime]:
        """
        Extract the publish date from an HTML document.

        Args:
            html: raw HTML
            primary_selector: per-source date selector (CSS or XPath)
            alternative_selectors: further per-source selectors, tried in order

        Returns:
            datetime or None when nothing plausible was found
        """
        if not html or not html.strip():
            return None

        try:
            return self._extract(html, primary_selector, alternative_selectors or [])
        except Exception as e:
            logger.warning(f"Date extraction failed: {e}")
            return None

    def _extract(self, html: str, primary_selector: Optional[str],
                 alternative_selectors: list[str]) -> Optional[datetime]:
        sanitized, _ = self.cleaner.sanitize_html(html)
        soup = self.cleaner.parse(sanitized)

        if primary_selector:
            date = self._from_selector(soup, primary_selector, "structure-primary")
            if date:
                return date

        for selector in alternative_selectors:
            date = self._from_selector(soup, selector, "structure-alternative")
            if date:
                return date

        date = self._from_meta_tags(soup)
        if date:
            return date

        date = self._from_json_ld(soup)
        if date:
            return date

        for selector in DATE_SELECTORS:
            date = self._from_selector(soup, selector, "comprehensive-fallback")
            if date:
                return date

        date = self._from_text_areas(soup)
        if date:
            return date

        logger.debug("No valid date found in article")
        return None

    def _parse(self, candidate: Optional[str]) -> Optional[datetime]:
        return parse_date(candidate, now=self.now)

    def _from_selector(self, soup: BeautifulSoup, selector: str, strategy: str) -> Optional[datetime]:
        selector = sanitize_selector(selector)
        if not selector:
            return None

        for element in select_elements(soup, selector):
            for attr in DATA_ATTRIBUTES:
                value = element.get(attr)
                if value:
                    date = self._parse(str(value))
                    if date:
                        logger.debug(f"Found date via {strategy} selector '{selector}' ({attr}): {value}")
                        return date

            text = element.get_text(separator=' ', strip=True)
            if text:
                date = self._parse(text)
                if date:
                    logger.debug(f"Found date via {strategy} selector '{selector}' (text): {text[:60]}")
                    return date
        return None

    def _from_meta_tags(self, soup: BeautifulSoup) -> Optional[datetime]:
        for selector in META_SELECTORS:
            meta = soup.select_one(selector)
            content = meta.get('content') if meta else None
            if content:
                date = self._parse(content)
                if date:
                    logger.debug(f"Found date in meta tag '{selector}': {content}")
                    return date
        return None

    def _from_json_ld(self, soup: BeautifulSoup) -> Optional[datetime]:
        for script in soup.find_all('script', attrs={'type': 'application/ld+json'}):
            try:
                data = json.loads(script.string or script.get_text())
            except (json.JSONDecodeError, TypeError):
                continue

            for obj in self._json_ld_objects(data):
                types = obj.get('@type')
                types = types if isinstance(types, list) else [types]
                if not {t for t in types if isinstance(t, str)} & JSON_LD_TYPES:
                    continue
                for field in JSON_LD_DATE_FIELDS:
                    value = obj.get(field)
                    if isinstance(value, str):
                        date = self._parse(value)
                        if date:
                            logger.debug(f"Found date in JSON-LD ({field}): {value}")
                            return date
        return None

    @staticmethod
    def _json_ld_objects(data) -> list[dict]:
        """Flatten a JSON-LD payload (object, array or @graph) into objects."""
        if isinstance(data, list):
            items = data
        elif isinstance(data, dict):
            items = [data] + list(data.get('@graph') or [])
        else:
            return []
        return [item for item in items if isinstance(item, dict)]

    def _from_text_areas(self, soup: BeautifulSoup) -> Optional[datetime]:
        for area in TEXT_SEARCH_AREAS:
            for element in soup.select(area):
                text = element.get_text(separator=' ', strip=True)
                if not text:
                    continue
                for name, pattern in DATE_PATTERNS:
                    match = pattern.search(text)
                    if not match:
                        continue
                    date = self._parse(match.group(0))
                    if date:
                        logger.debug(f"Found date in text content ({area}, {name}): {match.group(0)}")
                        return date
        return None


def extract_publish_date(
    html: str,
    primary_selector: Optional[str] = None,
    alternative_selectors: Optional[list[str]] = None
) -> Optional[datetime]:
    """Convenience function to extract a publish date from HTML."""
    return DateExtractor().extract(html, primary_selector, alternative_selectors)
