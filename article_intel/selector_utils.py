"""
Selector helpers shared by the extraction tiers.

- CSS and XPath selection against a BeautifulSoup tree
- Repair of selectors produced by detection (jQuery pseudo-classes, literal text)
- Selector variations tried when a stored selector no longer matches
- Field-level quality gates: author cleanup, low-quality content, title checks
"""

import re
from typing import Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag
from lxml import etree

from .logger import get_module_logger

logger = get_module_logger("selectors")


# Block-level elements that carry article prose. Content is joined per block
# so paragraph breaks survive into the extracted body.
TEXT_BLOCK_TAGS = ['p', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'li',
                   'blockquote', 'pre', 'figcaption', 'dd']

HIDDEN_PATTERNS = [
    re.compile(r'display\s*:\s*none', re.IGNORECASE),
    re.compile(r'visibility\s*:\s*hidden', re.IGNORECASE),
]

MONTH_NAMES = (r'january|february|march|april|may|june|july|august|september|'
               r'october|november|december')

# Author candidates that are really press-contact blocks
CONTACT_PATTERN = re.compile(
    r'^(CONTACT|CONTACTS:|FOR MORE INFORMATION|PRESS CONTACT|MEDIA CONTACT)',
    re.IGNORECASE
)

# Author candidates that are really dates
DATE_LIKE_PATTERN = re.compile(
    rf'\b({MONTH_NAMES}|\d{{1,2}},?\s*\d{{4}}|\d{{1,2}}:\d{{2}}\s*(AM|PM))',
    re.IGNORECASE
)

# Biographical tails cut off an author line ("Jane Doe is a reporter...")
BIO_INDICATORS = [
    re.compile(r'\s+is\s+(a|an)\s+', re.IGNORECASE),
    re.compile(r'\s+has\s+(been|worked)', re.IGNORECASE),
    re.compile(r'\s+worked?\s+(at|for|in)', re.IGNORECASE),
    re.compile(r'\s+(veteran|former|senior)\s+', re.IGNORECASE),
    re.compile(r'\s+of\s+more\s+than\s+\d+', re.IGNORECASE),
    re.compile(r'\.\s*[A-Z]'),
    re.compile(r'\s+(received|won|earned)', re.IGNORECASE),
    re.compile(r'\s+(published|written)', re.IGNORECASE),
    re.compile(r'\s+specializes?\s+in', re.IGNORECASE),
    re.compile(r'\s+covers?\s+(topics|stories)', re.IGNORECASE),
]

NAVIGATION_START_PATTERN = re.compile(
    r'^(menu|navigation|nav|sidebar|footer|header|advertisement|ad|cookie|privacy|'
    r'terms|home|about|contact|login|register|subscribe|newsletter)(\s|$)',
    re.IGNORECASE
)

# Text that detection sometimes stores in place of a selector
LITERAL_TEXT_PATTERNS = [
    re.compile(r'^(by|written by|author:?|published:?|posted:?|date:)\s+', re.IGNORECASE),
    re.compile(r'^not available', re.IGNORECASE),
    re.compile(r'^\d{1,2}/\d{1,2}/\d{4}'),
    re.compile(r'^\d{4}-\d{2}-\d{2}'),
    re.compile(rf'^({MONTH_NAMES}|[A-Z][a-z]{{2}})\.?\s+\d{{1,2}}(st|nd|rd|th)?,?\s+\d{{4}}', re.IGNORECASE),
    re.compile(r'\s\d{1,2}:\d{2}'),
]

INVALID_TITLES = {
    "untitled", "no title", "unknown", "error", "not found", "access denied",
    "forbidden", "page not found", "cannot be found", "can't be found",
}

ERROR_TITLE_PREFIXES = ("oops ", "error:", "404:", "403:", "500:")

ERROR_TITLE_PATTERNS = [
    re.compile(r'\b404\s+(error|page|not\s+found)\b', re.IGNORECASE),
    re.compile(r'\b(403|500)\s+(error|forbidden|internal\s+server\s+error)\b', re.IGNORECASE),
    re.compile(r'\bpage\s+(not\s+found|can\'?t\s+be\s+found|cannot\s+be\s+found|doesn\'?t\s+exist)\b',
               re.IGNORECASE),
    re.compile(r'^(not\s+found|access\s+denied|forbidden)', re.IGNORECASE),
    re.compile(r'\bwe\s+can\'?t\s+find\s+(that|the|this)\s+page\b', re.IGNORECASE),
    re.compile(r'^nothing\s+(here|found)', re.IGNORECASE),
]


# --- Selector handling ---

def is_xpath(selector: str) -> bool:
    """XPath expressions start with '/' or '(' ; everything else is CSS."""
    return selector.lstrip().startswith(('/', '('))


def is_literal_text(value: str) -> bool:
    """
    True when a stored "selector" is really the text it was meant to find,
    e.g. "By John Smith" or "Published: Mon 7 Apr 2025".
    """
    value = value.strip()
    return any(p.search(value) for p in LITERAL_TEXT_PATTERNS)


def sanitize_selector(selector: Optional[str]) -> Optional[str]:
    """
    Repair a stored selector so soupsieve/lxml accept it.

    jQuery-only pseudo-classes are dropped or rewritten; literal text values
    and "null"/"undefined" placeholders become None.
    """
    if not selector or selector.strip() in ("null", "undefined"):
        return None
    if is_literal_text(selector):
        return None

    cleaned = selector.strip()
    if is_xpath(cleaned):
        return cleaned

    cleaned = re.sub(r':contains\([^)]*\)', '', cleaned)
    cleaned = re.sub(r':eq\(\d+\)', '', cleaned)
    cleaned = re.sub(r':first\b(?!-)', ':first-child', cleaned)
    cleaned = re.sub(r':last\b(?!-)', ':last-child', cleaned)
    cleaned = re.sub(r':not\(\s*\)', '', cleaned)
    cleaned = re.sub(r'\s+', ' ', cleaned).strip()

    return cleaned or None


def generate_selector_variations(selector: str) -> list[str]:
    """
    Variations of a CSS selector to try when the original matches nothing.

    Sites rename classes between deploys (article_body → article-body), add
    prefixes to class names, or restructure nesting. The original selector
    is always first; duplicates are dropped.
    """
    variations = [selector]
    if is_xpath(selector):
        return variations

    if '_' in selector:
        variations.append(selector.replace('_', '-'))
    if '-' in selector:
        variations.append(selector.replace('-', '_'))

    # Single class selector: match it as an attribute substring too
    if re.fullmatch(r'\.[\w-]+', selector):
        class_name = selector[1:]
        variations.extend([
            f'[class="{class_name}"]',
            f'[class*="{class_name}"]',
            f'[class^="{class_name}"]',
            f'[class$="{class_name}"]',
        ])

    without_pseudo = re.sub(r':[\w-]+(\([^)]*\))?', '', selector)
    without_pseudo = without_pseudo.replace(':not()', '').strip()
    if without_pseudo and without_pseudo != selector:
        variations.append(without_pseudo)

    if ' ' in selector and '>' not in selector:
        variations.append(re.sub(r'\s+', ' > ', selector))
    if '>' in selector:
        variations.append(re.sub(r'\s*>\s*', ' ', selector))

    return list(dict.fromkeys(variations))


def is_hidden(elem: Tag) -> bool:
    """Check if element is hidden via inline style or the hidden attribute."""
    if elem.has_attr('hidden'):
        return True
    style = elem.get('style', '')
    if not style:
        return False
    return any(p.search(style) for p in HIDDEN_PATTERNS)


def select_elements(soup: BeautifulSoup, selector: Optional[str]) -> list[Tag]:
    """
    Select visible elements with a CSS or XPath selector.

    Invalid selectors are logged and yield an empty list.
    """
    if not selector:
        return []

    if not is_xpath(selector):
        try:
            return [e for e in soup.select(selector) if not is_hidden(e)]
        except Exception as e:
            logger.warning(f"Invalid CSS '{selector}': {e}")
            return []

    # BeautifulSoup has no XPath support: run the expression with lxml on the
    # serialized tree, then map each hit back to its BeautifulSoup element.
    elements = []
    seen = set()
    try:
        tree = etree.HTML(str(soup))
        matches = tree.xpath(selector) if tree is not None else []
    except Exception as e:
        logger.warning(f"Invalid XPath '{selector}': {e}")
        return []

    for lxml_elem in matches:
        if not isinstance(getattr(lxml_elem, 'tag', None), str):
            continue  # text() / @attr results and comments
        soup_elem = _find_matching_soup_element(lxml_elem, soup)
        if soup_elem is not None and id(soup_elem) not in seen and not is_hidden(soup_elem):
            elements.append(soup_elem)
            seen.add(id(soup_elem))
    return elements


def _find_matching_soup_element(lxml_elem, soup: BeautifulSoup) -> Optional[Tag]:
    """
    Find the BeautifulSoup element corresponding to an lxml element.

    Matching goes from most to least specific: id, then tag + class, then
    tag + identical text, then the first element with the same tag.
    """
    tag = lxml_elem.tag
    attribs = dict(lxml_elem.attrib)

    if 'id' in attribs:
        found = soup.find(id=attribs['id'])
        if found:
            return found

    if 'class' in attribs:
        found = soup.find(tag, attrs={'class': attribs['class']})
        if found:
            return found

    candidates = soup.find_all(tag)
    text = ' '.join(''.join(lxml_elem.itertext()).split())
    if text:
        for candidate in candidates:
            if ' '.join(candidate.get_text().split()) == text:
                return candidate

    return candidates[0] if candidates else None


def element_text(elem: Tag) -> str:
    """Single-line text of an element."""
    return elem.get_text(separator=' ', strip=True)


def block_text(elem: Tag) -> str:
    """
    Text of a content container, one paragraph per text block.

    Falls back to the container's flat text when it has no block children
    (content kept directly in <div>s).
    """
    blocks = []
    for block in elem.find_all(TEXT_BLOCK_TAGS):
        # Outer block already contributes this text
        if any(parent.name in TEXT_BLOCK_TAGS for parent in _parents_within(block, elem)):
            continue
        text = block.get_text(separator=' ', strip=True)
        if text:
            blocks.append(text)

    if elem.name in TEXT_BLOCK_TAGS or not blocks:
        return element_text(elem)
    return '\n\n'.join(blocks)


def _parents_within(elem: Tag, container: Tag):
    for parent in elem.parents:
        if parent is container:
            return
        yield parent


# --- Field quality gates ---

def clean_author_name(raw_author: str) -> str:
    """
    Trim an author line down to the name.

    Cuts at the earliest biographical indicator, strips trailing punctuation,
    and shortens lines that are still too long to be a name.
    """
    if not raw_author:
        return raw_author

    cleaned = raw_author.strip()

    earliest = len(cleaned)
    for pattern in BIO_INDICATORS:
        match = pattern.search(cleaned)
        if match and match.start() < earliest:
            earliest = match.start()
    cleaned = cleaned[:earliest].strip()
    cleaned = re.sub(r'[,.]$', '', cleaned).strip()

    if len(cleaned) > 100:
        lines = [line for line in re.split(r'\n+', cleaned) if line.strip()]
        if len(lines) > 1 and len(lines[0]) < 80:
            cleaned = lines[0].strip()
        else:
            sentence = re.match(r'^[^.!?]*[.!?]', cleaned)
            if sentence and len(sentence.group(0)) < 80:
                cleaned = sentence.group(0)[:-1].strip()

    if len(cleaned) > 80:
        name = re.match(
            r'^([A-Z][a-z]+(?:\s+[A-Z][a-z]*\.?){0,3}(?:,?\s*[A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)?)',
            cleaned
        )
        if name:
            cleaned = name.group(1)
        else:
            cleaned = cleaned[:60]
            last_space = cleaned.rfind(' ')
            if last_space > 20:
                cleaned = cleaned[:last_space]

    return cleaned.strip()


def clean_author(raw_author: Optional[str]) -> Optional[str]:
    """
    Validate and clean an author candidate.

    Returns None for contact blocks, date-like strings and implausible
    lengths; otherwise the name with any "By" prefix removed.
    """
    if not raw_author:
        return None

    candidate = ' '.join(raw_author.split())
    if CONTACT_PATTERN.match(candidate):
        logger.debug(f"Rejected contact info as author: {candidate[:60]!r}")
        return None

    candidate = re.sub(r'^(by|written by|author:?)\s+', '', candidate, flags=re.IGNORECASE)
    candidate = clean_author_name(candidate)

    if DATE_LIKE_PATTERN.search(candidate):
        logger.debug(f"Rejected date-like text as author: {candidate[:60]!r}")
        return None
    if len(candidate) < 2 or len(candidate) > 100 or not re.search(r'[a-zA-Z]', candidate):
        return None

    return candidate


def is_low_quality_content(content: Optional[str], min_length: int = 50) -> bool:
    """True for text too short, navigation-like, repetitive or without letters/digits."""
    if not content or len(content) < min_length:
        return True

    trimmed = content.strip()
    return bool(
        NAVIGATION_START_PATTERN.match(trimmed)
        or re.fullmatch(r'(.{1,5}\s*)\1{3,}', trimmed)
        or re.fullmatch(r'[^a-zA-Z0-9]*', trimmed)
    )


def is_valid_title(title: Optional[str]) -> bool:
    """Reject empty, placeholder and error-page titles."""
    if not title or not title.strip():
        return False

    trimmed = title.strip()
    if len(trimmed) < 3 or len(trimmed) > 500:
        return False

    lower = trimmed.lower()
    if lower in INVALID_TITLES or lower.startswith(ERROR_TITLE_PREFIXES):
        return False
    if any(p.search(trimmed) for p in ERROR_TITLE_PATTERNS):
        return False

    return bool(re.search(r'[a-zA-Z]{2,}', trimmed))


def title_from_url(url: Optional[str]) -> Optional[str]:
    """
    Derive a readable title from the last path segment of an article URL.

    "https://x.com/news/article-big-breach-hits-bank-12345.html" →
    "Big Breach Hits Bank"
    """
    if not url:
        return None

    try:
        path = urlparse(url).path
    except ValueError:
        return None

    path = re.sub(r'\.(html?|php|aspx?|jsp|cgi)$', '', path, flags=re.IGNORECASE)
    segments = [s for s in path.split('/') if s]
    if not segments:
        return None

    slug = segments[-1]
    slug = re.sub(r'^(article-|post-|news-|blog-)', '', slug, flags=re.IGNORECASE)
    slug = re.sub(r'(-\d+|_\d+)$', '', slug)

    title = re.sub(r'[-_]', ' ', slug)
    title = re.sub(r'([a-z])([A-Z])', r'\1 \2', title)
    title = ' '.join(word[:1].upper() + word[1:] for word in title.split())

    if 5 < len(title) < 200 and re.search(r'[a-zA-Z]{3,}', title):
        return title
    return None
