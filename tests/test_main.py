import pytest

from article_intel.exceptions import JobConflictError
from article_intel.jobs import JobRegistry
from article_intel.main import ThreatIntelPipeline, process_html
from article_intel.schemas import ArticleReport, RawDocument, Severity

LATIN1_PAGE = (
    '<html><head><meta charset="iso-8859-1"><title>Caf\xe9 chain hit by ransomware</title></head>'
    "<body><article><h1>Caf\xe9 chain hit by ransomware attack</h1>"
    "<p>A ransomware attack disrupted point-of-sale systems at the caf\xe9 chain on Monday.</p>"
    "<p>The company said backups were intact and most stores reopened.</p>"
    "</article></body></html>"
)


class TestThreatIntelPipeline:

    @pytest.fixture(autouse=True)
    def setup_pipeline(self):
        self.pipeline = ThreatIntelPipeline()

    def test_process(self, sample_article_html, sample_selectors):
        report = self.pipeline.process(sample_article_html, source_url="https://example.com/a",
                                       selectors=sample_selectors)

        assert isinstance(report, ArticleReport)
        assert report.source == "https://example.com/a"
        assert report.article.extraction_method == "primary_selectors"
        assert "Microsoft Exchange Server" in [p.name for p in report.analysis.products]

    def test_process_empty_document(self):
        report = self.pipeline.process("")

        assert report.article.extraction_method == "error_fallback"
        assert report.article.confidence == 0
        assert report.analysis.threats == []
        assert report.analysis.severity == Severity.LOW

    def test_process_document(self, sample_article_html):
        report = self.pipeline.process_document(RawDocument(html=sample_article_html))

        assert report.article.title == "Exchange Server flaw exploited in attacks"

    def test_process_file_uses_declared_charset(self, tmp_path):
        page = tmp_path / "cafe.html"
        page.write_bytes(LATIN1_PAGE.encode("latin-1"))

        report = self.pipeline.process_file(page)

        assert report.source == "cafe.html"
        assert report.article.title == "Caf\xe9 chain hit by ransomware attack"

    def test_report_serializes_dates_as_iso(self, sample_article_html):
        report = self.pipeline.process(sample_article_html)

        data = report.model_dump(mode="json")

        assert data["article"]["publish_date"].startswith("2024-03-10T08:30:00")
        assert ArticleReport.model_validate(data).article.publish_date == report.article.publish_date

    def test_process_files(self, tmp_path, sample_article_html):
        good = tmp_path / "good.html"
        good.write_text(sample_article_html, encoding="utf-8")
        skipped = tmp_path / "skipped.html"
        skipped.write_text(sample_article_html, encoding="utf-8")
        missing = tmp_path / "missing.html"
        registry = JobRegistry()
        registry.cancel("skipped")

        results = self.pipeline.process_files([good, skipped, missing], registry, job_id="batch-1")

        assert [r["status"] for r in results] == ["success", "cancelled", "error"]
        assert results[0]["article"]["title"] == "Exchange Server flaw exploited in attacks"
        assert results[2]["file"] == "missing.html"
        assert not registry.is_running()

    def test_process_files_conflict(self, tmp_path):
        registry = JobRegistry()
        registry.start("other")

        with pytest.raises(JobConflictError):
            self.pipeline.process_files([tmp_path / "a.html"], registry)

        assert registry.active_job == "other"

    def test_convenience_function(self, sample_article_html):
        assert process_html(sample_article_html).article.extraction_method == "fallback_selectors"
