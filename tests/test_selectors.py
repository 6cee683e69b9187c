import pytest
from bs4 import BeautifulSoup

from article_intel.exceptions import ExtractionError
from article_intel.schemas import SelectorConfig
from article_intel.selector_extractor import (
    DesperateExtractor,
    FallbackSelectorExtractor,
    PrimarySelectorExtractor,
)
from article_intel.selector_utils import (
    block_text,
    clean_author,
    generate_selector_variations,
    is_low_quality_content,
    is_valid_title,
    sanitize_selector,
    select_elements,
    title_from_url,
)


def _soup(html):
    return BeautifulSoup(html, "html5lib")


class TestSelectorUtils:

    def test_sanitize_drops_jquery_pseudo_classes(self):
        assert sanitize_selector("div.content:contains('Read more')") == "div.content"
        assert sanitize_selector("ul li:eq(2)") == "ul li"
        assert sanitize_selector("p:first") == "p:first-child"

    def test_sanitize_rejects_literal_text(self):
        assert sanitize_selector("By John Smith") is None
        assert sanitize_selector("Published: March 3, 2024") is None
        assert sanitize_selector("null") is None
        assert sanitize_selector("") is None

    def test_sanitize_keeps_xpath(self):
        assert sanitize_selector("//div[@id='main']") == "//div[@id='main']"

    def test_variations_swap_separators(self):
        variations = generate_selector_variations(".article_body")

        assert variations[0] == ".article_body"
        assert ".article-body" in variations
        assert '[class*="article_body"]' in variations
        assert len(variations) == len(set(variations))

    def test_select_css_skips_hidden(self):
        soup = _soup('<p class="x">shown</p><p class="x" style="display: none">hidden</p>')

        assert [e.get_text() for e in select_elements(soup, "p.x")] == ["shown"]

    def test_select_xpath_maps_back_to_soup(self):
        soup = _soup('<div id="main"><p>Hello</p></div>')

        elements = select_elements(soup, "//div[@id='main']")

        assert len(elements) == 1
        assert elements[0].get_text() == "Hello"

    def test_select_invalid_css_is_empty(self):
        assert select_elements(_soup("<p>x</p>"), "p[[[") == []

    def test_block_text_keeps_paragraphs(self):
        soup = _soup("<div><p>One.</p><ul><li>Two.</li></ul></div>")

        assert block_text(soup.div) == "One.\n\nTwo."

    def test_clean_author_strips_prefix_and_bio(self):
        assert clean_author("By Jane Doe is a reporter at Example News") == "Jane Doe"

    def test_clean_author_rejects_contacts_and_dates(self):
        assert clean_author("CONTACT: press@example.com") is None
        assert clean_author("January 15, 2024") is None
        assert clean_author(None) is None

    def test_title_validation(self):
        assert is_valid_title("Exchange flaw patched")
        assert not is_valid_title("404 Page Not Found")
        assert not is_valid_title("Untitled")
        assert not is_valid_title("  ")

    def test_low_quality_content(self):
        assert is_low_quality_content("short")
        assert is_low_quality_content("Menu Home About Contact Subscribe Newsletter Login Register")
        assert not is_low_quality_content(
            "Attackers exploited a flaw in Exchange Server to deploy web shells on servers."
        )

    def test_title_from_url(self):
        url = "https://example.com/news/article-big-breach-hits-bank-12345.html"

        assert title_from_url(url) == "Big Breach Hits Bank"
        assert title_from_url("https://example.com/") is None
        assert title_from_url(None) is None


class TestPrimarySelectorExtractor:

    @pytest.fixture(autouse=True)
    def setup_extractor(self):
        self.extractor = PrimarySelectorExtractor()

    def test_extracts_configured_fields(self, sample_article_html, sample_selectors):
        fields = self.extractor.extract(_soup(sample_article_html), sample_selectors)

        assert fields.title == "Exchange Server flaw exploited in attacks"
        assert fields.author == "Jane Smith"
        assert fields.content.startswith("Microsoft warned")
        assert "\n\n" in fields.content
        assert fields.extraction_method == "primary_selectors"

    def test_renamed_class_found_by_variation(self, sample_article_html):
        config = SelectorConfig(content_selector=".article_body")

        fields = self.extractor.extract(_soup(sample_article_html), config)

        assert fields.content.startswith("Microsoft warned")

    def test_xpath_title(self, sample_article_html):
        config = SelectorConfig(title_selector="//h1[@class='headline']")

        fields = self.extractor.extract(_soup(sample_article_html), config)

        assert fields.title == "Exchange Server flaw exploited in attacks"

    def test_literal_author_selector(self, sample_article_html):
        config = SelectorConfig(author_selector="By Tom Baker")

        fields = self.extractor.extract(_soup(sample_article_html), config)

        assert fields.author == "Tom Baker"

    def test_article_selector_paragraphs(self, sample_article_html):
        config = SelectorConfig(content_selector=".missing", article_selector="article")

        fields = self.extractor.extract(_soup(sample_article_html), config)

        assert fields.content.startswith("Microsoft warned")

    def test_empty_config_raises(self, sample_article_html):
        with pytest.raises(ExtractionError) as exc_info:
            self.extractor.extract(_soup(sample_article_html), SelectorConfig())

        assert exc_info.value.strategy == "primary_selectors"

    def test_nothing_matched_raises(self, sample_article_html):
        config = SelectorConfig(title_selector=".nope", content_selector=".nothing")

        with pytest.raises(ExtractionError):
            self.extractor.extract(_soup(sample_article_html), config)


class TestFallbackAndDesperate:

    def test_fallback_generic_selectors(self, sample_article_html):
        fields = FallbackSelectorExtractor().extract(_soup(sample_article_html))

        assert fields.title == "Exchange Server flaw exploited in attacks"
        assert fields.author == "Jane Smith"
        assert fields.content.startswith("Microsoft warned")
        assert fields.extraction_method == "fallback_selectors"

    def test_fallback_reads_meta_content(self):
        html = '<html><head><meta property="og:title" content="Defender update fixes scanning bug"></head></html>'

        fields = FallbackSelectorExtractor().extract(_soup(html))

        assert fields.title == "Defender update fixes scanning bug"

    def test_fallback_raises_on_unstructured_page(self):
        with pytest.raises(ExtractionError):
            FallbackSelectorExtractor().extract(_soup("<html><body><span>x</span></body></html>"))

    def test_desperate_uses_title_tag_and_paragraphs(self):
        html = ("<html><head><title>Patch Tuesday roundup | Example</title></head><body><div>"
                "<p>Short.</p>"
                "<p>This paragraph is long enough to count as article prose for extraction.</p>"
                "<p>By Alex Chen</p>"
                "</div></body></html>")

        fields = DesperateExtractor().extract(_soup(html))

        assert fields.title == "Patch Tuesday roundup"
        assert fields.content.startswith("This paragraph is long enough")
        assert "Short." not in fields.content
        assert fields.author == "Alex Chen"
        assert fields.extraction_method == "desperate_fallback"

    def test_desperate_raises_on_empty_document(self):
        with pytest.raises(ExtractionError):
            DesperateExtractor().extract(_soup("<html><body></body></html>"))
