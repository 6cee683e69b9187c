"""Severity scoring from article vocabulary and detected threat types."""

import re
from typing import Optional

from .logger import get_module_logger
from .patterns import SEVERITY_BONUSES, SEVERITY_WORDS
from .schemas import Severity, ThreatRecord

logger = get_module_logger("severity")


class SeverityScorer:
    """
    Tallies severity words in the body and adds fixed bonuses per threat type.

    The level with the highest total wins. Ties go to the level evaluated
    first (critical, high, medium, low); an all-zero tally is low.
    """

    def __init__(self, vocabulary: Optional[dict[str, list[str]]] = None,
                 bonuses: Optional[dict] = None):
        self.vocabulary = vocabulary or SEVERITY_WORDS
        self.bonuses = bonuses or SEVERITY_BONUSES
        self._patterns = {
            level: [re.compile(rf'\b{re.escape(word)}\b', re.IGNORECASE) for word in words]
            for level, words in self.vocabulary.items()
        }

    def tally(self, content: str, threats: list[ThreatRecord]) -> dict[str, int]:
        scores = {level: 0 for level in self.vocabulary}

        for level, patterns in self._patterns.items():
            scores[level] += sum(len(p.findall(content or "")) for p in patterns)

        for threat_type in {t.type for t in threats}:
            for level, points in self.bonuses.get(threat_type, {}).items():
                scores[level] += points

        return scores

    def score(self, content: str, threats: list[ThreatRecord]) -> Severity:
        scores = self.tally(content, threats)

        best, best_score = Severity.LOW, 0
        for level, total in scores.items():
            if total > best_score:
                best, best_score = Severity(level), total

        logger.debug(f"Severity tally {scores} -> {best.value}")
        return best
