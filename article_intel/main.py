"""
Whole pipeline: extract an article, then analyze it.

  RawDocument → ArticleExtractionPipeline → ExtractedArticle
              → ArticleAnalyzer → Analysis

Files are read as bytes so the declared <meta> charset decides the decoding.
"""

from pathlib import Path
from typing import Iterable, Optional, Union

from .analyzer import ArticleAnalyzer
from .cleaner import ContentCleaner
from .config import PipelineSettings
from .jobs import JobRegistry
from .logger import get_module_logger, setup_logger
from .orchestrator import ArticleExtractionPipeline, FieldExtractor
from .schemas import ArticleReport, RawDocument, SelectorConfig

logger = get_module_logger("main")


class ThreatIntelPipeline:
    """
    Extraction and threat analysis in one call.

    Usage:
        pipeline = ThreatIntelPipeline()
        report = pipeline.process(html, source_url="https://...")
        report.analysis.severity
    """

    def __init__(
        self,
        settings: Optional[PipelineSettings] = None,
        ai_extractor: Optional[FieldExtractor] = None,
        analyzer: Optional[ArticleAnalyzer] = None
    ):
        self.settings = settings or PipelineSettings()
        setup_logger(level=self.settings.log_level)

        self.extractor = ArticleExtractionPipeline(self.settings, ai_extractor=ai_extractor)
        self.analyzer = analyzer or ArticleAnalyzer()
        logger.info("ThreatIntelPipeline initialized")

    def process(
        self,
        html: str,
        source_url: Optional[str] = None,
        selectors: Optional[SelectorConfig] = None,
        source: Optional[str] = None
    ) -> ArticleReport:
        """
        Extract and analyze one document.

        Args:
            html: page HTML or labeled text
            source_url: page URL
            selectors: per-source selector configuration
            source: label carried into the report (file name, feed id)

        Returns:
            ArticleReport; never raises for bad input
        """
        article = self.extractor.extract(html, source_url=source_url, selectors=selectors)
        analysis = self.analyzer.analyze(article)
        return ArticleReport(source=source or source_url, article=article, analysis=analysis)

    def process_document(self, document: RawDocument,
                         selectors: Optional[SelectorConfig] = None) -> ArticleReport:
        return self.process(document.html, source_url=document.source_url, selectors=selectors)

    def process_file(
        self,
        file_path: Union[str, Path],
        source_url: Optional[str] = None,
        selectors: Optional[SelectorConfig] = None
    ) -> ArticleReport:
        """Read an HTML file with its declared charset and process it."""
        file_path = Path(file_path)
        raw_bytes = file_path.read_bytes()
        charset = ContentCleaner.detect_charset_from_bytes(raw_bytes)
        html = raw_bytes.decode(charset, errors='replace')
        logger.debug(f"Read {file_path.name} as {charset}")
        return self.process(html, source_url=source_url, selectors=selectors, source=file_path.name)

    def process_files(
        self,
        file_paths: Iterable[Union[str, Path]],
        registry: JobRegistry,
        job_id: str = "batch",
        selectors: Optional[SelectorConfig] = None
    ) -> list[dict]:
        """
        Process a batch of files as one job.

        Files whose stem has been cancelled in the registry are skipped.
        A file that cannot be read is reported and the batch continues.

        Raises:
            JobConflictError: another job holds the registry
        """
        registry.start(job_id)
        results = []
        try:
            for file_path in file_paths:
                path = Path(file_path)
                if registry.is_cancelled(path.stem):
                    logger.info(f"Skipping cancelled source: {path.stem}")
                    results.append({"file": path.name, "status": "cancelled"})
                    continue
                try:
                    report = self.process_file(path, selectors=selectors)
                except OSError as e:
                    logger.error(f"Cannot read {path}: {e}")
                    results.append({"file": path.name, "status": "error", "error": str(e)})
                    continue
                results.append({"file": path.name, "status": "success",
                                **report.model_dump(mode="json")})
        finally:
            registry.finish(job_id)

        return results


def process_html(html: str, source_url: Optional[str] = None,
                 selectors: Optional[SelectorConfig] = None) -> ArticleReport:
    """Convenience function to extract and analyze one document."""
    return ThreatIntelPipeline().process(html, source_url=source_url, selectors=selectors)


def process_html_file(file_path: Union[str, Path]) -> ArticleReport:
    """Convenience function to extract and analyze one HTML file."""
    return ThreatIntelPipeline().process_file(file_path)
