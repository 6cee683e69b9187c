import pytest

from article_intel.schemas import Severity, ThreatRecord, ThreatType
from article_intel.severity import SeverityScorer

ORDER = [Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL]


def _threat(threat_type):
    return ThreatRecord(type=threat_type, name="Sample", details="Sample threat used for scoring.")


class TestSeverityScorer:

    @pytest.fixture(autouse=True)
    def setup_scorer(self):
        self.scorer = SeverityScorer()

    def test_no_signal_is_low(self):
        assert self.scorer.score("Routine notes about the weekend.", []) == Severity.LOW

    def test_words_counted_as_whole_words(self):
        scores = self.scorer.tally("Critical and critically severe.", [])

        assert scores["critical"] == 2

    def test_tie_goes_to_higher_level(self, cve_content):
        threats = [_threat(ThreatType.VULNERABILITY)]

        assert self.scorer.tally(cve_content, threats)["critical"] == 1
        assert self.scorer.tally(cve_content, threats)["high"] == 1
        assert self.scorer.score(cve_content, threats) == Severity.CRITICAL

    def test_medium_vocabulary(self):
        assert self.scorer.score("A moderate issue with minor impact, moderate risk.", []) == Severity.MEDIUM

    def test_zero_day_bonus(self):
        assert self.scorer.score("", [_threat(ThreatType.ZERO_DAY)]) == Severity.CRITICAL

    def test_bonus_counted_once_per_type(self):
        threats = [_threat(ThreatType.VULNERABILITY), _threat(ThreatType.VULNERABILITY)]

        assert self.scorer.tally("", threats)["high"] == 1

    @pytest.mark.parametrize("content", [
        "minor low small issue",
        "a minimal, low impact change",
        "moderate concern",
        "serious and significant",
        "",
    ])
    def test_adding_zero_day_never_lowers_severity(self, content):
        before = self.scorer.score(content, [])
        after = self.scorer.score(content, [_threat(ThreatType.ZERO_DAY)])

        assert ORDER.index(after) >= ORDER.index(before)

    def test_custom_vocabulary(self):
        scorer = SeverityScorer(vocabulary={"critical": ["wormable"], "high": [], "medium": [], "low": []},
                                bonuses={})

        assert scorer.score("A wormable flaw.", []) == Severity.CRITICAL
        assert scorer.score("A critical flaw.", []) == Severity.LOW
