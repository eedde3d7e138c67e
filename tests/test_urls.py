# ==============================================================================
# Tests for URL and Referrer Normalization
# ==============================================================================
"""
Unit tests for safe_decode_uri() and normalize().
"""

import pytest

from beacon.core.urls import normalize, safe_decode_uri, split_path_query, strip_www


class TestSafeDecodeUri:
    def test_decodes_unreserved(self):
        assert safe_decode_uri("/caf%C3%A9%20menu") == "/café menu"

    def test_keeps_reserved_escaped(self):
        assert safe_decode_uri("/a%2Fb%3Fc") == "/a%2Fb%3Fc"

    def test_reserved_escape_case_preserved(self):
        assert safe_decode_uri("/a%2fb%3f%C3%A9") == "/a%2fb%3fé"

    def test_broken_escape_returned_unchanged(self):
        assert safe_decode_uri("/100%") == "/100%"
        assert safe_decode_uri("/%zz") == "/%zz"

    def test_invalid_utf8_returned_unchanged(self):
        assert safe_decode_uri("/%C3") == "/%C3"

    def test_empty(self):
        assert safe_decode_uri(None) == ""
        assert safe_decode_uri("") == ""


class TestHelpers:
    def test_split_on_first_question_mark(self):
        assert split_path_query("/p?a=1?b=2") == ("/p", "a=1?b=2")

    def test_split_without_query(self):
        assert split_path_query("/p") == ("/p", "")

    def test_strip_leading_www_only(self):
        assert strip_www("www.example.com") == "example.com"
        assert strip_www("shop.www.example.com") == "shop.www.example.com"


class TestNormalize:
    """Tests for normalize()."""

    def test_page_path_and_query(self):
        result = normalize("/pricing?plan=pro", None)
        assert result.url_path == "/pricing"
        assert result.url_query == "plan=pro"
        assert result.referrer_domain == ""

    def test_missing_url_defaults_to_root(self):
        assert normalize(None, None).url_path == "/"
        assert normalize("?utm=x", None).url_path == "/"

    def test_absolute_referrer(self):
        result = normalize("/", "https://www.google.com/search?q=beacon")
        assert result.referrer_path == "/search"
        assert result.referrer_query == "q=beacon"
        assert result.referrer_domain == "google.com"

    def test_absolute_referrer_without_path(self):
        result = normalize("/", "https://news.example.org")
        assert result.referrer_path == "/"
        assert result.referrer_domain == "news.example.org"

    def test_relative_referrer_has_no_domain(self):
        result = normalize("/", "/docs?page=2")
        assert result.referrer_path == "/docs"
        assert result.referrer_query == "page=2"
        assert result.referrer_domain == ""

    def test_malformed_absolute_referrer_does_not_raise(self):
        result = normalize("/", "http://a[b/path")
        assert result.referrer_domain == ""

    @pytest.mark.parametrize(
        "url, expected",
        [("/blog/", "/blog"), ("/", "/"), ("/a/b/", "/a/b"), ("/blog", "/blog")],
    )
    def test_remove_trailing_slash(self, url, expected):
        assert normalize(url, None, remove_trailing_slash=True).url_path == expected

    def test_trailing_slash_kept_by_default(self):
        assert normalize("/blog/", None).url_path == "/blog/"

    def test_query_unaffected_by_trailing_slash(self):
        result = normalize("/blog/?x=1/", None, remove_trailing_slash=True)
        assert result.url_path == "/blog"
        assert result.url_query == "x=1/"
