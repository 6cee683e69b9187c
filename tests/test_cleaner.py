import pytest

from article_intel.cleaner import ContentCleaner, normalize_text


class TestContentCleaner:

    @pytest.fixture(autouse=True)
    def setup_cleaner(self):
        self.cleaner = ContentCleaner()

    def test_sanitize_fixes_double_brackets(self):
        sanitized, warnings = self.cleaner.sanitize_html("<<p>>Hello<</p>>")

        assert sanitized == "<p>Hello</p>"
        assert "Fixed double angle brackets" in warnings

    def test_sanitize_escapes_stray_brackets(self):
        sanitized, warnings = self.cleaner.sanitize_html("<p>if a < b then</p>")

        assert "a &lt; b" in sanitized
        assert "Escaped stray angle brackets" in warnings

    def test_sanitize_removes_null_bytes(self):
        sanitized, warnings = self.cleaner.sanitize_html("<p>a\x00b</p>")

        assert sanitized == "<p>ab</p>"
        assert "Removed NULL bytes" in warnings

    def test_sanitize_fixes_double_equals_attributes(self):
        sanitized, warnings = self.cleaner.sanitize_html('<a href=="/news">x</a>')

        assert sanitized == '<a href="/news">x</a>'
        assert warnings == ["Fixed malformed attributes (double equals)"]

    def test_sanitize_normalizes_line_endings_silently(self):
        sanitized, warnings = self.cleaner.sanitize_html("<p>a</p>\r\n<p>b</p>\r<p>c</p>")

        assert sanitized == "<p>a</p>\n<p>b</p>\n<p>c</p>"
        assert warnings == []

    def test_sanitize_removes_control_characters(self):
        sanitized, warnings = self.cleaner.sanitize_html("<p>a\x07b\tc</p>")

        assert sanitized == "<p>ab\tc</p>"
        assert warnings == ["Removed control characters"]

    def test_sanitize_handles_none(self):
        sanitized, warnings = self.cleaner.sanitize_html(None)

        assert sanitized == ""
        assert warnings == []

    def test_prepare_document_drops_boilerplate(self, sample_article_html):
        soup = self.cleaner.prepare_document(sample_article_html)

        assert soup.find("nav") is None
        assert soup.find("footer") is None
        assert soup.select_one(".article-body") is not None

    def test_prepare_document_keeps_boilerplate_when_disabled(self, sample_article_html):
        soup = ContentCleaner(remove_boilerplate=False).prepare_document(sample_article_html)

        assert soup.find("footer") is not None

    def test_prepare_document_drops_scripts_and_comments(self):
        soup = self.cleaner.prepare_document(
            "<html><body><script>var x = 1;</script><!-- note --><p>Text</p></body></html>"
        )

        assert soup.find("script") is None
        assert "note" not in str(soup)

    def test_detect_charset_maps_latin1(self):
        raw = b'<html><head><meta charset="iso-8859-1"></head></html>'

        assert ContentCleaner.detect_charset_from_bytes(raw) == "windows-1252"

    def test_detect_charset_from_http_equiv(self):
        raw = b'<meta http-equiv="Content-Type" content="text/html; charset=shift_jis">'

        assert ContentCleaner.detect_charset_from_bytes(raw) == "shift_jis"

    def test_detect_charset_ignores_declaration_past_sniff_window(self):
        raw = b"<html>" + b" " * 4096 + b'<meta charset="shift_jis">'

        assert ContentCleaner.detect_charset_from_bytes(raw) == "utf-8"

    def test_detect_charset_defaults_to_utf8(self):
        assert ContentCleaner.detect_charset_from_bytes(b"<html></html>") == "utf-8"


class TestNormalizeText:

    def test_double_encoded_entities(self):
        assert normalize_text("Caf&amp;eacute; &ldquo;quoted&rdquo;") == 'Café "quoted"'

    def test_strips_markup_garbage(self):
        assert normalize_text("Hello   <<<< /p> world") == "Hello world"

    def test_folds_typographic_punctuation(self):
        assert normalize_text("It’s a zero-click… attack — again") == "It's a zero-click... attack - again"

    def test_keep_paragraphs(self):
        text = "Para   one.\n\n\n\nPara two.\n"

        assert normalize_text(text, keep_paragraphs=True) == "Para one.\n\nPara two."

    def test_collapses_whitespace_without_paragraphs(self):
        assert normalize_text("Para one.\n\nPara two.") == "Para one. Para two."

    def test_none_is_empty(self):
        assert normalize_text(None) == ""
