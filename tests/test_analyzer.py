from unittest.mock import MagicMock

import pytest

from article_intel.analyzer import FAILED_SUMMARY, ArticleAnalyzer, analyze_article
from article_intel.schemas import ExtractedArticle, Severity, ThreatType


def _article(title, content):
    return ExtractedArticle(title=title, content=content,
                            extraction_method="fallback_selectors", confidence=0.6)


class TestArticleAnalyzer:

    @pytest.fixture(autouse=True)
    def setup_analyzer(self):
        self.analyzer = ArticleAnalyzer()

    def test_cve_article(self, cve_content):
        analysis = self.analyzer.analyze(_article("Exchange patch released", cve_content))

        assert analysis.threats[0].cve == "CVE-2024-1234"
        assert analysis.threats[0].type == ThreatType.VULNERABILITY
        assert analysis.severity in (Severity.HIGH, Severity.CRITICAL)
        assert "Microsoft Exchange Server" in [p.name for p in analysis.products]
        assert analysis.technical_details.startswith("EXPLOIT DETAILS: CVE-2024-1234 - ")
        assert analysis.recommendations.startswith("PRIORITY ACTIONS (")

    def test_title_threat_without_cve(self):
        content = ("Hospitals across the region reported outages this week. "
                   "Backups were restored at several sites.")

        analysis = self.analyzer.analyze(_article("BlackCat ransomware targets healthcare providers", content))

        assert analysis.threats[0].name == "BlackCat"
        assert analysis.threats[0].type == ThreatType.RANSOMWARE
        assert analysis.severity == Severity.CRITICAL
        assert "RANSOMWARE PROTECTION:" in analysis.recommendations

    def test_quiet_article(self):
        analysis = self.analyzer.analyze_text("Weekend notes", "The office picnic moved to Sunday.")

        assert analysis.threats == []
        assert analysis.severity == Severity.LOW

    def test_is_deterministic(self, cve_content):
        article = _article("Exchange patch released", cve_content)

        assert self.analyzer.analyze(article) == self.analyzer.analyze(article)

    def test_failure_yields_placeholder(self):
        threat_analyzer = MagicMock()
        threat_analyzer.extract_products.side_effect = RuntimeError("boom")
        analyzer = ArticleAnalyzer(threat_analyzer=threat_analyzer)

        analysis = analyzer.analyze_text("Title here", "Body")

        assert analysis.summary == FAILED_SUMMARY
        assert analysis.severity == Severity.LOW
        assert analysis.threats == []
        assert analysis.products == []

    def test_convenience_function(self, cve_content):
        assert analyze_article(_article("Exchange patch released", cve_content)).threats
