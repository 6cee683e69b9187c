"""
Threat and product detection over article text.

Products come from PRODUCT_PATTERNS. Threats come from three sources:

  - CVE-anchored: one candidate per CVE identifier, named and classified
    from the text around it
  - pattern-anchored: named threats near category phrases ("ransomware
    campaign", "actively exploited"), gated by an OccurrencePolicy
  - title-derived: the headline often names the main threat outright

Candidates are de-duplicated by name, filtered by a BlockedNamePolicy,
ranked and capped at MAX_THREATS.
"""

import re
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from .logger import get_module_logger
from .patterns import (
    BULLETIN_ID_PATTERN,
    CVE_CONTEXT_AFTER,
    CVE_CONTEXT_BEFORE,
    CVE_PATTERN,
    DETERMINER_PATTERN,
    MATCH_CONTEXT_AFTER,
    MATCH_CONTEXT_BEFORE,
    MAX_NAME_LENGTH,
    MAX_THREATS,
    NAME_STOPLIST,
    PRODUCT_PATTERNS,
    THREAT_DETAIL_PATTERNS,
    THREAT_NAME_PATTERNS,
    THREAT_PATTERNS,
    THREAT_TYPE_RANK,
    TITLE_MIN_LENGTH,
    TITLE_STOPLIST,
    TITLE_THREAT_PATTERNS,
    TITLE_TYPE_KEYWORDS,
    VERSION_PATTERNS,
    VERSION_WINDOW,
    VULNERABILITY_CLASS_LABELS,
    VULNERABILITY_CLASS_PATTERN,
)
from .schemas import ProductRecord, ThreatRecord, ThreatType

logger = get_module_logger("threats")

MIN_NAME_LENGTH = 4
MIN_DETAIL_LENGTH = 30


def truncate_name(name: str, limit: int = MAX_NAME_LENGTH) -> str:
    """Names over ``limit`` characters keep limit-3 characters plus '...'."""
    if len(name) > limit:
        return name[:limit - 3] + "..."
    return name


def _word_pattern(text: str) -> re.Pattern:
    return re.compile(r'\b' + re.escape(text) + r'\b', re.IGNORECASE)


# --- Policies ---

class OccurrencePolicy(ABC):
    """Decides whether a pattern-anchored name is mentioned often enough to report."""

    @abstractmethod
    def accepts(self, name: str, content: str) -> bool:
        ...


class MinimumOccurrencePolicy(OccurrencePolicy):
    """Accept a name only if it appears at least ``minimum`` times as a whole word."""

    def __init__(self, minimum: int = 2):
        self.minimum = minimum

    def accepts(self, name: str, content: str) -> bool:
        return len(_word_pattern(name).findall(content)) >= self.minimum


class BlockedNamePolicy:
    """Rejects threat names (and name contexts) containing any blocked token."""

    def __init__(self, tokens: Iterable[str] = ("poisonseed",)):
        self.tokens = tuple(t.lower() for t in tokens)

    def is_blocked(self, text: Optional[str]) -> bool:
        if not text:
            return False
        lower = text.lower()
        return any(token in lower for token in self.tokens)


# --- Analyzer ---

class ThreatAnalyzer:
    """Finds affected products and named threats in article text."""

    def __init__(
        self,
        occurrence_policy: Optional[OccurrencePolicy] = None,
        blocked_names: Optional[BlockedNamePolicy] = None,
        max_threats: int = MAX_THREATS
    ):
        self.occurrence_policy = occurrence_policy or MinimumOccurrencePolicy(2)
        self.blocked_names = blocked_names or BlockedNamePolicy()
        self.max_threats = max_threats

    # --- Products ---

    def extract_products(self, content: str) -> list[ProductRecord]:
        """One record per product pattern that matches, in table order."""
        products: list[ProductRecord] = []
        seen: set[str] = set()

        for product in PRODUCT_PATTERNS:
            match = product.pattern.search(content)
            if not match or product.name in seen:
                continue
            seen.add(product.name)
            products.append(ProductRecord(
                name=product.name,
                versions=self._find_version(content, match),
                icon=product.icon,
            ))

        logger.debug(f"Products found: {[p.name for p in products]}")
        return products

    def _find_version(self, content: str, mention: re.Match) -> Optional[str]:
        window = content[mention.start():mention.start() + VERSION_WINDOW]
        for template in VERSION_PATTERNS:
            pattern = template.replace('{product}', re.escape(mention.group(0)))
            match = re.search(pattern, window, re.IGNORECASE)
            if match and match.group(1):
                return match.group(1)
        return None

    # --- Threats ---

    def extract_threats(self, content: str, title: Optional[str] = None) -> list[ThreatRecord]:
        """
        Detect, merge and rank threats.

        Args:
            content: cleaned article body
            title: article title; a threat named there is placed first

        Returns:
            At most max_threats ThreatRecords
        """
        candidates = self._cve_threats(content)
        candidates.extend(self._pattern_threats(content, candidates))
        threats = self._rank(self._deduplicate(candidates))

        title_threat = self.threat_from_title(title)
        if title_threat and not self._already_reported(title_threat, threats):
            logger.info(f"Title names threat '{title_threat.name}', placing it first")
            threats = [title_threat] + threats

        return threats[:self.max_threats]

    def _cve_threats(self, content: str) -> list[ThreatRecord]:
        threats = []
        seen: set[str] = set()

        for match in CVE_PATTERN.finditer(content):
            cve = match.group(0).upper()
            if cve in seen:
                continue
            seen.add(cve)

            start = match.start()
            before = content[max(0, start - CVE_CONTEXT_BEFORE):start].strip()
            after = content[start:start + CVE_CONTEXT_AFTER].strip()
            context = f"{before} {after}"

            threat_type = ThreatType.VULNERABILITY
            for category in THREAT_PATTERNS:
                if category.pattern.search(context):
                    threat_type = category.type
                    break

            threats.append(ThreatRecord(
                type=threat_type,
                name=truncate_name(self._cve_threat_name(cve, context)),
                details=self._sentence_with(content, cve)
                or f"Security vulnerability identified as {cve} affecting system integrity.",
                cve=cve,
            ))

        return threats

    @staticmethod
    def _cve_threat_name(cve: str, context: str) -> str:
        bulletin = BULLETIN_ID_PATTERN.search(context)
        if bulletin:
            return bulletin.group(1)

        vuln_class = VULNERABILITY_CLASS_PATTERN.search(context)
        if vuln_class:
            return VULNERABILITY_CLASS_LABELS[vuln_class.group(1).lower()]

        return f"Security Issue {cve[-6:]}"

    @staticmethod
    def _sentence_with(content: str, phrase: str) -> Optional[str]:
        """The sentence containing ``phrase``, if it is descriptive enough."""
        pattern = re.compile(r'[^.!?]*\b' + re.escape(phrase) + r'\b[^.!?]*(?:[.!?]|$)', re.IGNORECASE)
        match = pattern.search(content)
        if match:
            sentence = match.group(0).strip()
            if len(sentence) >= MIN_DETAIL_LENGTH:
                return sentence
        return None

    def _pattern_threats(self, content: str, existing: list[ThreatRecord]) -> list[ThreatRecord]:
        found: list[ThreatRecord] = []

        for category in THREAT_PATTERNS:
            positions = sorted(m.start() for m in category.pattern.finditer(content))
            for position in positions:
                context = content[max(0, position - MATCH_CONTEXT_BEFORE):position + MATCH_CONTEXT_AFTER]
                name = self.extract_threat_name(context)
                if not name or self._name_taken(name, existing + found):
                    continue
                if not self.occurrence_policy.accepts(name, content):
                    logger.debug(f"Rejected '{name}': not mentioned often enough")
                    continue

                details = self._describe(context)
                if not details or len(details) < MIN_DETAIL_LENGTH:
                    details = (self._sentence_with(content, name)
                               or f"{category.type.value.capitalize()} identified as {name} "
                                  f"that could affect system security.")

                found.append(ThreatRecord(
                    type=category.type,
                    name=truncate_name(name),
                    details=details,
                ))

        return found

    def extract_threat_name(self, context: str) -> Optional[str]:
        """Apply the naming heuristics to a context window; None when nothing plausible."""
        if self.blocked_names.is_blocked(context):
            return None

        for pattern in THREAT_NAME_PATTERNS:
            match = pattern.search(context)
            if not match or not match.group(1):
                continue
            name = match.group(1).strip()
            if name.lower() in NAME_STOPLIST:
                continue
            if len(name) < MIN_NAME_LENGTH or DETERMINER_PATTERN.match(name):
                continue
            return name

        return None

    @staticmethod
    def _describe(context: str) -> Optional[str]:
        for pattern in THREAT_DETAIL_PATTERNS:
            match = pattern.search(context)
            if match:
                return match.group(1).strip()
        first = re.split(r'[.!?]+', context)[0].strip()
        return first or None

    @staticmethod
    def _name_taken(name: str, threats: list[ThreatRecord]) -> bool:
        lower = name.lower()
        return any(
            t.name.lower() == lower or lower in t.name.lower() or t.name.lower() in lower
            for t in threats
        )

    def _already_reported(self, threat: ThreatRecord, threats: list[ThreatRecord]) -> bool:
        if threat.cve and any(t.cve == threat.cve for t in threats):
            return True
        return self._name_taken(threat.name, threats)

    def _deduplicate(self, threats: list[ThreatRecord]) -> list[ThreatRecord]:
        seen: set[str] = set()
        unique = []
        for threat in threats:
            key = threat.name.lower()
            if self.blocked_names.is_blocked(threat.name) or key in seen:
                continue
            seen.add(key)
            unique.append(threat)
        return unique

    @staticmethod
    def _rank(threats: list[ThreatRecord]) -> list[ThreatRecord]:
        # Stable sort: CVE first, then category, then the most detailed description
        return sorted(threats, key=lambda t: (
            t.cve is None,
            THREAT_TYPE_RANK.get(t.type, THREAT_TYPE_RANK[ThreatType.OTHER]),
            -len(t.details),
        ))

    # --- Title ---

    def threat_from_title(self, title: Optional[str]) -> Optional[ThreatRecord]:
        """The main threat named in a headline, if any."""
        if not title or len(title) < TITLE_MIN_LENGTH:
            return None

        cve_match = CVE_PATTERN.search(title)
        if cve_match:
            cve = cve_match.group(0).upper()
            return ThreatRecord(
                type=ThreatType.VULNERABILITY,
                name=truncate_name(f"{cve} Vulnerability"),
                details=f"Security vulnerability identified as {cve} mentioned in the article title.",
                cve=cve,
            )

        for pattern in TITLE_THREAT_PATTERNS:
            match = pattern.search(title)
            if not match:
                continue
            name = match.group(1)
            if name.lower() in TITLE_STOPLIST or self.blocked_names.is_blocked(name):
                continue
            if len(name) < MIN_NAME_LENGTH:
                continue

            threat_type = self._title_threat_type(title)
            name = truncate_name(name)
            return ThreatRecord(
                type=threat_type,
                name=name,
                details=f'{threat_type.value.capitalize()} identified as "{name}" in the article title.',
            )

        return None

    @staticmethod
    def _title_threat_type(title: str) -> ThreatType:
        lower = title.lower()
        for keywords, threat_type in TITLE_TYPE_KEYWORDS:
            if any(k in lower for k in keywords):
                return threat_type
        return ThreatType.OTHER
