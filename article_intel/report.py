"""
Report text for an analyzed article: summary, technical details and
recommendations. All wording comes from templates in patterns.py.
"""

import re
from typing import Optional

from .logger import get_module_logger
from .patterns import (
    ARTICLE_REFERENCE_PATTERN,
    ATTRIBUTION_CLAUSE_PATTERN,
    BEST_PRACTICE_ADVICE,
    CONCLUSION_MARKERS,
    DATE_CLAUSE_PATTERN,
    DEFAULT_SUMMARY_ACTION,
    GENERAL_PRODUCT_ADVICE,
    IOC_PATTERNS,
    LEAD_PARAGRAPH_MAX,
    LEAD_PARAGRAPH_MIN,
    MAX_INDICATORS,
    MAX_PRODUCT_ACTION_PRODUCTS,
    NEWS_DOMAINS_PATTERN,
    PRODUCT_ACTIONS,
    RANSOMWARE_ACTIONS,
    ROUTINE_ACTIONS,
    SECURITY_SENTENCE_PATTERN,
    SECURITY_TERMS_PATTERN,
    SOURCES_FOOTER,
    SUMMARY_MARKERS,
    THREAT_SUMMARY_ACTIONS,
    URGENT_ACTIONS,
    ZERO_DAY_ACTIONS,
)
from .schemas import ProductRecord, Severity, ThreatRecord, ThreatType

logger = get_module_logger("report")

PARAGRAPH_SPLIT = re.compile(r'\n\s*\n+')
LEADING_PUNCTUATION = re.compile(r'^[:\s-]+')

NO_THREATS_DETAILS = "No specific technical vulnerabilities were identified in this article."


def extract_iocs(content: str) -> list[str]:
    """Indicators of compromise in order of pattern, then first appearance; no duplicates."""
    indicators: list[str] = []
    for _, pattern in IOC_PATTERNS:
        for match in pattern.findall(content):
            if match not in indicators:
                indicators.append(match)
    return indicators


class ReportGenerator:
    """Writes the text sections of an Analysis."""

    # --- Summary ---

    def summary(self, content: str, products: list[ProductRecord],
                threats: list[ThreatRecord]) -> str:
        """The article's own summary when it has one, else a two-sentence synthesis."""
        extracted = self.extract_article_summary(content)
        if extracted:
            return extracted

        if threats:
            return self._threat_summary(threats[0], products)
        if products:
            return self._product_summary(content, products)
        return self._general_summary(content)

    def extract_article_summary(self, content: str) -> Optional[str]:
        paragraphs = [p.strip() for p in PARAGRAPH_SPLIT.split(content or "") if p.strip()]
        if not paragraphs:
            return None

        marked = self._marked_paragraph(paragraphs, SUMMARY_MARKERS)
        if marked:
            return marked

        lead = paragraphs[0]
        if LEAD_PARAGRAPH_MIN < len(lead) < LEAD_PARAGRAPH_MAX and SECURITY_TERMS_PATTERN.search(lead):
            return lead

        return self._marked_paragraph(paragraphs, CONCLUSION_MARKERS)

    @staticmethod
    def _marked_paragraph(paragraphs: list[str], markers: list[re.Pattern]) -> Optional[str]:
        for marker in markers:
            for paragraph in paragraphs:
                if marker.search(paragraph):
                    text = LEADING_PUNCTUATION.sub('', marker.sub('', paragraph, count=1).strip())
                    if text:
                        return text
        return None

    @staticmethod
    def _product_phrase(products: list[ProductRecord]) -> str:
        if not products:
            return "Microsoft systems"
        if len(products) == 1:
            return products[0].name
        if len(products) == 2:
            return f"{products[0].name} and {products[1].name}"
        return f"{products[0].name} and other Microsoft products"

    def _threat_summary(self, threat: ThreatRecord, products: list[ProductRecord]) -> str:
        threat_kind = threat.type.value.replace('-', ' ')
        cve = f" ({threat.cve})" if threat.cve else ""
        first = (f"{threat.name} {threat_kind}{cve} targeting "
                 f"{self._product_phrase(products)} has been identified.")
        second = THREAT_SUMMARY_ACTIONS.get(threat.type, DEFAULT_SUMMARY_ACTION)
        return f"{first} {second}"

    @staticmethod
    def _product_summary(content: str, products: list[ProductRecord]) -> str:
        others = " and other Microsoft products" if len(products) > 1 else ""
        first = f"The article focuses on security aspects of {products[0].name}{others}."
        if re.search(r'patch|update|fix|security bulletin|advisory', content, re.IGNORECASE):
            second = "Microsoft has released updates that should be applied to address potential security concerns."
        else:
            second = "No immediate security actions are indicated based on the available information."
        return f"{first} {second}"

    @staticmethod
    def _general_summary(content: str) -> str:
        if re.search(r'security|vulnerability|exploit|attack|threat', content, re.IGNORECASE):
            return ("This article discusses cybersecurity concerns potentially relevant to Microsoft systems. "
                    "No specific threat requiring immediate action is identified.")
        if re.search(r'patch|update|fix', content, re.IGNORECASE):
            return ("Microsoft has released software updates that include security improvements. "
                    "Users should apply these updates as part of regular maintenance.")
        return ("No specific security threats to Microsoft systems are identified in this article. "
                "Regular security practices should be maintained.")

    # --- Technical details ---

    def technical_details(self, content: str, threats: list[ThreatRecord]) -> str:
        if not threats:
            return self._no_threat_details(content)

        main = threats[0]
        details = "EXPLOIT DETAILS: "
        if main.cve:
            details += f"{main.cve} - "

        description = ATTRIBUTION_CLAUSE_PATTERN.sub('', main.details)
        description = DATE_CLAUSE_PATTERN.sub('', description)
        details += ' '.join(description.split())

        indicators = [i for i in extract_iocs(content) if not NEWS_DOMAINS_PATTERN.search(i)]
        if indicators:
            details += "\n\nTECHNICAL INDICATORS:\n" + "\n".join(indicators[:MAX_INDICATORS])

        return details

    @staticmethod
    def _no_threat_details(content: str) -> str:
        sentences = [s.strip() for s in re.split(r'[.!?]', content or "")
                     if SECURITY_SENTENCE_PATTERN.search(s)][:2]
        sentences = [s for s in sentences if s and not ARTICLE_REFERENCE_PATTERN.search(s)]

        details = NO_THREATS_DETAILS
        if sentences:
            details += "\n\nEXPLOIT INFO:\n" + ". ".join(sentences) + "."
        return details

    # --- Recommendations ---

    def recommendations(self, products: list[ProductRecord], threats: list[ThreatRecord],
                        severity: Severity) -> str:
        lines: list[str] = []

        if threats:
            lines.append(f"PRIORITY ACTIONS ({severity.value.upper()}):")
            if severity in (Severity.CRITICAL, Severity.HIGH):
                lines.extend(URGENT_ACTIONS)
            else:
                lines.extend(ROUTINE_ACTIONS)

            types = {t.type for t in threats}
            if ThreatType.RANSOMWARE in types:
                lines.append("\nRANSOMWARE PROTECTION:")
                lines.extend(RANSOMWARE_ACTIONS)
            if ThreatType.ZERO_DAY in types:
                lines.append("\nZERO-DAY RESPONSE:")
                lines.extend(ZERO_DAY_ACTIONS)

            lines.extend(self._product_actions(products))
        elif products:
            lines.extend(GENERAL_PRODUCT_ADVICE)
        else:
            lines.extend(BEST_PRACTICE_ADVICE)

        lines.extend(SOURCES_FOOTER)
        return "\n".join(lines)

    @staticmethod
    def _product_actions(products: list[ProductRecord]) -> list[str]:
        keywords = [keyword for keyword, _ in PRODUCT_ACTIONS]
        relevant = [p for p in products if any(k in p.name for k in keywords)]
        if not relevant:
            return []

        lines = ["\nPRODUCT-SPECIFIC ACTIONS:"]
        for product in relevant[:MAX_PRODUCT_ACTION_PRODUCTS]:
            lines.extend(action for keyword, action in PRODUCT_ACTIONS if keyword in product.name)
        return lines
