from datetime import datetime, timedelta, timezone

import pytest

from article_intel.dates import (
    DateExtractor,
    extract_publish_date,
    find_date_text,
    parse_date,
    separate_date_from_author,
)


class TestParseDate:

    def test_month_name_with_time_and_zone(self):
        date = parse_date("JULY 09, 2025 03:54 PM (EDT)")

        assert (date.year, date.month, date.day) == (2025, 7, 9)
        assert (date.hour, date.minute) == (15, 54)

    def test_iso_datetime_with_offset(self):
        date = parse_date("2024-01-15T10:30:00Z")

        assert date == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)

    def test_iso_output_reparses_to_same_instant(self):
        date = parse_date("2024-01-15T10:30:00+02:00")

        assert parse_date(date.isoformat()) == date

    def test_unix_timestamp(self):
        assert parse_date("1705314600") == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)

    def test_relative_date_uses_reference_time(self, fixed_now):
        assert parse_date("3 days ago", now=fixed_now) == fixed_now - timedelta(days=3)

    def test_yearless_date_takes_reference_year(self, fixed_now):
        assert parse_date("May 2", now=fixed_now) == datetime(2024, 5, 2)

    @pytest.mark.parametrize("candidate, expected", [
        ("May 12", datetime(2023, 5, 12)),
        ("Dec 25", datetime(2023, 12, 25)),
    ])
    def test_yearless_date_never_after_reference(self, fixed_now, candidate, expected):
        assert parse_date(candidate, now=fixed_now) == expected

    def test_labeled_yearless_date_takes_reference_year(self, fixed_now):
        assert parse_date("Published: March 3", now=fixed_now) == datetime(2024, 3, 3)

    def test_explicit_future_year_kept(self, fixed_now):
        assert parse_date("2025-01-15", now=fixed_now) == datetime(2025, 1, 15)

    def test_labeled_text_takes_first_label(self):
        date = parse_date("Published: January 5, 2024. Last Updated: February 1, 2024")

        assert (date.year, date.month, date.day) == (2024, 1, 5)

    def test_out_of_bounds_year_rejected(self):
        assert parse_date("January 5, 1850") is None
        assert parse_date("2031-01-01") is None

    @pytest.mark.parametrize("candidate", [None, "", "abc", "By John Smith", "not a date at all"])
    def test_unparseable_returns_none(self, candidate):
        assert parse_date(candidate) is None


class TestDateHelpers:

    def test_find_date_text_in_sentence(self):
        assert find_date_text("Posted on 12/03/2023 by staff") == "12/03/2023"
        assert find_date_text("no dates here") is None

    def test_separate_byline_and_date(self):
        assert separate_date_from_author("By John Doe - January 15, 2024") == ("January 15, 2024", "John Doe")

    def test_separate_date_first(self):
        assert separate_date_from_author("2024-01-20 | Tech Reporter") == ("2024-01-20", "Tech Reporter")

    def test_separate_author_only(self):
        assert separate_date_from_author("Jane Smith") == (None, "Jane Smith")

    def test_separate_empty(self):
        assert separate_date_from_author("   ") == (None, None)


class TestDateExtractor:

    @pytest.fixture(autouse=True)
    def setup_extractor(self, fixed_now):
        self.extractor = DateExtractor(now=fixed_now)

    def test_meta_tag(self, sample_article_html):
        date = self.extractor.extract(sample_article_html)

        assert date == datetime(2024, 3, 10, 8, 30, tzinfo=timezone.utc)

    def test_json_ld(self, json_ld_html):
        date = self.extractor.extract(json_ld_html)

        assert (date.year, date.month, date.day) == (2024, 2, 20)

    def test_primary_selector_wins_over_meta(self):
        html = ('<html><head><meta property="article:published_time" content="2024-01-01T00:00:00Z">'
                '</head><body><span class="posted">JULY 09, 2025 03:54 PM (EDT)</span></body></html>')

        date = self.extractor.extract(html, primary_selector=".posted")

        assert (date.year, date.month, date.day, date.hour) == (2025, 7, 9, 15)

    def test_xpath_alternative_selector(self):
        html = '<html><body><span class="stamp">March 3, 2024</span></body></html>'

        date = self.extractor.extract(html, primary_selector=".missing",
                                      alternative_selectors=["//span[@class='stamp']"])

        assert date == datetime(2024, 3, 3)

    def test_time_element_datetime_attribute(self):
        html = '<html><body><time datetime="2024-04-01T12:00:00Z">April 1</time></body></html>'

        date = self.extractor.extract(html)

        assert (date.year, date.month, date.day) == (2024, 4, 1)

    def test_text_area_pattern(self):
        html = '<html><body><div class="byline">Posted 12/03/2023 by staff</div></body></html>'

        assert self.extractor.extract(html) == datetime(2023, 12, 3)

    def test_relative_date_in_date_element(self, fixed_now):
        html = '<html><body><span class="date">3 days ago</span></body></html>'

        assert self.extractor.extract(html) == fixed_now - timedelta(days=3)

    def test_no_date(self):
        assert self.extractor.extract("<html><body><p>Nothing here.</p></body></html>") is None
        assert self.extractor.extract("") is None

    def test_convenience_function(self, json_ld_html):
        assert extract_publish_date(json_ld_html).year == 2024
