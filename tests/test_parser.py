"""Tests for link extraction and URL resolution."""

import pytest

from politecrawler.crawler.errors import MalformedUrlError
from politecrawler.crawler.parser import (ContentParser, extract_domain, extract_links,
                                          is_candidate, resolve_url)


class TestExtractLinks:

    def test_finds_links_in_document_order(self):
        html = '<a href="/one">1</a> <link href="style.css"> <a href="https://b.com/x">x</a>'

        assert extract_links(html) == ["/one", "style.css", "https://b.com/x"]

    def test_only_double_quoted_href_is_recognized(self):
        html = "<a href='/single'>s</a> <a href=/bare>b</a> <a HREF=\"/upper\">u</a>"

        assert extract_links(html) == []

    def test_unterminated_value_stops_scan(self):
        assert extract_links('<a href="/ok">ok</a><a href="/broken') == ["/ok"]

    def test_scan_ignores_markup_context(self):
        html = '<!-- <a href="/commented"> --><script>var s = \'href="/in-script"\';</script>'

        assert extract_links(html) == ["/commented", "/in-script"]

    def test_empty_document(self):
        assert extract_links("") == []


class TestIsCandidate:

    @pytest.mark.parametrize("link", [
        "http://a.com/", "https://a.com/x", "/abs", "rel/page.html", "page.html", "?q=1",
    ])
    def test_accepted(self, link):
        assert is_candidate(link)

    @pytest.mark.parametrize("link", ["#top", "#", "javascript:void(0)"])
    def test_rejected(self, link):
        assert not is_candidate(link)


class TestResolveUrl:

    BASE = "https://a.com/dir/page.html"

    def test_relative_link_resolves_against_base_directory(self):
        assert resolve_url(self.BASE, "img.png") == "https://a.com/dir/img.png"

    def test_absolute_path_replaces_base_path(self):
        assert resolve_url(self.BASE, "/root.css") == "https://a.com/root.css"

    def test_absolute_url_is_unchanged(self):
        assert resolve_url(self.BASE, "https://b.com/x") == "https://b.com/x"
        assert resolve_url(self.BASE, "http://b.com/x") == "http://b.com/x"

    def test_dot_segments_query_and_fragment_are_kept(self):
        assert resolve_url(self.BASE, "../up.html?x=1#frag") == "https://a.com/dir/../up.html?x=1#frag"

    def test_absolute_path_keeps_port(self):
        assert resolve_url("http://a.com:8080/x/y", "/z") == "http://a.com:8080/z"

    def test_absolute_path_drops_credentials(self):
        assert resolve_url("https://u:p@a.com:81/x", "/y") == "https://a.com:81/y"

    def test_absolute_path_keeps_ipv6_brackets(self):
        assert resolve_url("http://[::1]:8080/x", "/y") == "http://[::1]:8080/y"

    def test_absolute_path_against_malformed_base(self):
        with pytest.raises(MalformedUrlError):
            resolve_url("not-a-url", "/z")


class TestExtractDomain:

    def test_lowercases_host(self):
        assert extract_domain("https://Example.COM/path") == "example.com"

    def test_keeps_explicit_port(self):
        assert extract_domain("http://127.0.0.1:8080/") == "127.0.0.1:8080"

    def test_drops_credentials(self):
        assert extract_domain("https://user:pw@a.com/") == "a.com"

    @pytest.mark.parametrize("url", ["not a url", "/relative/path", "https://", "http://a.com:notaport/"])
    def test_malformed(self, url):
        with pytest.raises(MalformedUrlError):
            extract_domain(url)


class TestContentParser:

    def test_parse_resolves_filters_and_dedupes(self):
        content = (
            b'<a href="/a">a</a>'
            b'<a href="#top">top</a>'
            b'<a href="javascript:go()">js</a>'
            b'<a href="/a">again</a>'
            b'<a href="b.html">b</a>'
            b'<a href="https://y.test/c">c</a>'
        )

        parsed = ContentParser().parse("https://x.test/dir/index.html", content)

        assert parsed.url == "https://x.test/dir/index.html"
        assert parsed.links == [
            "https://x.test/a",
            "https://x.test/dir/b.html",
            "https://y.test/c",
        ]

    def test_parse_skips_unresolvable_links(self):
        parsed = ContentParser().parse("no-scheme/page", b'<a href="/abs">x</a><a href="rel">y</a>')

        assert parsed.links == ["no-scheme/rel"]

    def test_parse_handles_non_utf8_bytes(self):
        parsed = ContentParser().parse("https://x.test/", '<a href="/caf\xe9">c</a>'.encode('latin-1'))

        assert parsed.links == ["https://x.test/caf\xe9"]
