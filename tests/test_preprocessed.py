import pytest

from article_intel.exceptions import ExtractionError
from article_intel.preprocessed import PreprocessedContentHandler


class TestPreprocessedContentHandler:

    @pytest.fixture(autouse=True)
    def setup_handler(self):
        self.handler = PreprocessedContentHandler()

    def test_detects_labeled_text(self, preprocessed_text):
        assert self.handler.is_preprocessed(preprocessed_text)

    def test_rejects_html_and_partial_labels(self, sample_article_html):
        assert not self.handler.is_preprocessed(sample_article_html)
        assert not self.handler.is_preprocessed("Title: Only a title")
        assert not self.handler.is_preprocessed(None)

    def test_splits_fields(self, preprocessed_text):
        fields = self.handler.extract(preprocessed_text)

        assert fields.title == "Exchange servers hit by new exploit"
        assert fields.author == "Jane Smith"
        assert fields.date_text == "March 10, 2024"
        assert fields.content.startswith("Attackers are exploiting")
        assert fields.content.endswith("March cumulative update.")
        assert fields.extraction_method == "preprocessed"

    def test_content_keeps_label_like_lines(self):
        text = "Title: Weekly digest\nContent: First line.\nDate: this line belongs to the body."

        fields = self.handler.extract(text)

        assert fields.date_text is None
        assert fields.content == "First line.\nDate: this line belongs to the body."

    def test_placeholders_are_missing_values(self):
        text = ("Title: (No title found)\nAuthor: (No author found)\n"
                "Content: (Content extraction failed - timeout)")

        fields = self.handler.extract(text)

        assert fields.title is None
        assert fields.author is None
        assert fields.content is None

    def test_extract_raises_on_plain_text(self):
        with pytest.raises(ExtractionError) as exc_info:
            self.handler.extract("Just some text without labels.")

        assert exc_info.value.strategy == "preprocessed"
