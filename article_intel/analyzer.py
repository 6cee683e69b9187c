"""
Threat analysis of an extracted article.

Pipeline position: after the extraction orchestrator.
Input:  ExtractedArticle (or any title + body text)
Output: Analysis (products, threats, severity, summary, details, recommendations)
"""

from typing import Optional

from .logger import get_module_logger
from .report import ReportGenerator
from .schemas import Analysis, ExtractedArticle, Severity
from .severity import SeverityScorer
from .threats import ThreatAnalyzer

logger = get_module_logger("analyzer")

FAILED_SUMMARY = "Automated analysis could not be completed for this article."
FAILED_DETAILS = "Technical details are unavailable because automated analysis failed."
FAILED_RECOMMENDATIONS = "Review the original article manually for security-relevant information."


class ArticleAnalyzer:
    """Rule-based threat analyzer. analyze() never raises."""

    def __init__(
        self,
        threat_analyzer: Optional[ThreatAnalyzer] = None,
        severity_scorer: Optional[SeverityScorer] = None,
        report_generator: Optional[ReportGenerator] = None
    ):
        self.threats = threat_analyzer or ThreatAnalyzer()
        self.severity = severity_scorer or SeverityScorer()
        self.report = report_generator or ReportGenerator()

    def analyze(self, article: ExtractedArticle) -> Analysis:
        """Analyze an extracted article."""
        return self.analyze_text(article.title, article.content)

    def analyze_text(self, title: Optional[str], content: Optional[str]) -> Analysis:
        """
        Analyze raw title and body text.

        Returns:
            Analysis; a threat-free placeholder Analysis if anything fails
        """
        try:
            return self._analyze(title or "", content or "")
        except Exception as e:
            logger.error(f"Analysis failed: {e}", exc_info=True)
            return self.failed_analysis()

    def _analyze(self, title: str, content: str) -> Analysis:
        products = self.threats.extract_products(content)
        threats = self.threats.extract_threats(content, title=title)
        severity = self.severity.score(content, threats)

        analysis = Analysis(
            summary=self.report.summary(content, products, threats),
            severity=severity,
            technical_details=self.report.technical_details(content, threats),
            recommendations=self.report.recommendations(products, threats, severity),
            products=products,
            threats=threats,
        )
        logger.info(
            f"Analysis complete: {len(products)} products, {len(threats)} threats, "
            f"severity {severity.value}"
        )
        return analysis

    @staticmethod
    def failed_analysis() -> Analysis:
        return Analysis(
            summary=FAILED_SUMMARY,
            severity=Severity.LOW,
            technical_details=FAILED_DETAILS,
            recommendations=FAILED_RECOMMENDATIONS,
        )


def analyze_article(article: ExtractedArticle) -> Analysis:
    """Convenience function to analyze an article with default policies."""
    return ArticleAnalyzer().analyze(article)
