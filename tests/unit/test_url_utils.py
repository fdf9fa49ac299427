"""
Unit tests for crawler URL utilities.

Import directly from url_utils; it has no playwright dependency.
"""

import pytest

from src.crawler.url_utils import (
    absolutize,
    filter_detail_links,
    is_detail_url,
    page_number_from_href,
    same_page,
    strip_query_fragment,
)


class TestStripQueryFragment:
    """Tests for strip_query_fragment."""

    @pytest.mark.parametrize("url,expected", [
        ("https://www.bia.ge/Company/42?tab=1#top", "https://www.bia.ge/Company/42"),
        ("https://www.bia.ge/Company/42#top", "https://www.bia.ge/Company/42"),
        ("https://www.bia.ge/Company/42", "https://www.bia.ge/Company/42"),
        ("", ""),
    ])
    def test_strip(self, url, expected):
        assert strip_query_fragment(url) == expected

    def test_idempotent(self):
        once = strip_query_fragment("https://www.bia.ge/Company/42?a=1#b")
        assert strip_query_fragment(once) == once


class TestIsDetailUrl:
    """Tests for is_detail_url."""

    def test_detail_pages(self):
        assert is_detail_url("https://www.bia.ge/Company/42")
        assert is_detail_url("https://www.bia.ge/Company/42?lang=ka")

    def test_other_pages(self):
        assert not is_detail_url("https://www.bia.ge/Company/AdvancedSearch")
        assert not is_detail_url("https://www.bia.ge/Company/42/Reviews")
        assert not is_detail_url(None)


class TestFilterDetailLinks:
    """Tests for filter_detail_links."""

    BASE = "https://www.bia.ge/Company/AdvancedSearch?page=1"

    def test_normalizes_and_dedupes_in_order(self):
        hrefs = [
            "/Company/2#reviews",
            "https://www.bia.ge/Company/1",
            "/Company/2",
            "/Company/AdvancedSearch?page=2",
            None,
            "",
            "/Company/3?ref=list",
        ]
        assert filter_detail_links(hrefs, base=self.BASE) == [
            "https://www.bia.ge/Company/2",
            "https://www.bia.ge/Company/1",
            "https://www.bia.ge/Company/3",
        ]

    def test_idempotent(self):
        hrefs = ["/Company/5?x", "/Company/5", "/About", "/Company/6#y"]
        once = filter_detail_links(hrefs, base=self.BASE)
        assert filter_detail_links(once) == once
        assert filter_detail_links(once, base=self.BASE) == once

    def test_without_base_keeps_absolute_only_shape(self):
        assert filter_detail_links(["https://www.bia.ge/Company/9?x=1"]) == [
            "https://www.bia.ge/Company/9"
        ]


class TestPageNumberFromHref:
    """Tests for page_number_from_href."""

    @pytest.mark.parametrize("href,expected", [
        ("/Company/AdvancedSearch?page=3", 3),
        ("/Company/AdvancedSearch?Page=12", 12),
        ("/Search/Page_4", 4),
        ("/Company/AdvancedSearch", None),
        (None, None),
    ])
    def test_page_number(self, href, expected):
        assert page_number_from_href(href) == expected


class TestHelpers:
    """Tests for absolutize and same_page."""

    def test_absolutize(self):
        assert absolutize("https://www.bia.ge/a/b", "/Company/1") == "https://www.bia.ge/Company/1"
        assert absolutize("https://www.bia.ge/", "") is None

    def test_same_page(self):
        assert same_page("https://www.bia.ge/x/", "https://www.bia.ge/x#top")
        assert not same_page("https://www.bia.ge/x?page=1", "https://www.bia.ge/x?page=2")
