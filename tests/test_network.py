"""
Tests for the fetcher retry policy and Document helpers. The curl_cffi session
is replaced with a MagicMock.
"""
from unittest.mock import MagicMock, patch

import pytest

from avmeta.errors import FetchError
from avmeta.utils.config import AppConfig
from avmeta.utils.network import Document, Fetcher, build_proxies, header_charset


def _response(
    status_code=200,
    content=b"<html><body><p>ok</p></body></html>",
    url="https://example.com/",
    content_type="text/html",
):
    resp = MagicMock()
    resp.headers = {"content-type": content_type}
    resp.status_code = status_code
    resp.content = content
    resp.url = url
    return resp


@pytest.fixture
def session():
    with patch("avmeta.utils.network.requests") as mock_requests:
        mock_session = MagicMock()
        mock_requests.Session.return_value = mock_session
        yield mock_session


class TestFetcher:
    def test_success(self, session):
        session.get.return_value = _response(url="https://example.com/final")
        doc = Fetcher(retry=3, delay=0).fetch("https://example.com/start")
        assert doc.url == "https://example.com/final"
        assert doc.xpath("//p/text()") == ["ok"]
        kwargs = session.get.call_args.kwargs
        assert kwargs["impersonate"] == "chrome"
        assert "User-Agent" in kwargs["headers"]

    def test_client_error_not_retried(self, session):
        session.get.return_value = _response(status_code=404)
        with pytest.raises(FetchError) as exc_info:
            Fetcher(retry=3, delay=0).fetch("https://example.com/missing")
        assert exc_info.value.status_code == 404
        assert session.get.call_count == 1

    def test_server_error_retried(self, session):
        session.get.side_effect = [_response(status_code=503), _response()]
        doc = Fetcher(retry=3, delay=0).fetch("https://example.com/")
        assert doc.status_code == 200
        assert session.get.call_count == 2

    def test_transport_error_exhausts_retries(self, session):
        session.get.side_effect = ConnectionError("reset by peer")
        with pytest.raises(FetchError) as exc_info:
            Fetcher(retry=2, delay=0).fetch("https://example.com/")
        assert exc_info.value.status_code is None
        assert "reset by peer" in str(exc_info.value)
        assert session.get.call_count == 2

    def test_header_charset_decodes_body(self, session):
        body = "<html><body><p>公開日</p></body></html>".encode("shift_jis")
        session.get.return_value = _response(content=body, content_type="text/html; charset=Shift_JIS")
        doc = Fetcher(delay=0).fetch("https://example.com/")
        assert doc.encoding == "shift_jis"
        assert doc.xpath("//p/text()") == ["公開日"]

    def test_missing_header_charset(self, session):
        session.get.return_value = _response()
        assert Fetcher(delay=0).fetch("https://example.com/").encoding is None

    def test_extra_headers_merged(self, session):
        session.get.return_value = _response()
        Fetcher(delay=0).fetch("https://example.com/", headers={"Referer": "https://example.com/"})
        assert session.get.call_args.kwargs["headers"]["Referer"] == "https://example.com/"

    def test_clone_copies_configuration_not_session(self):
        with patch("avmeta.utils.network.requests") as mock_requests:
            mock_requests.Session.side_effect = lambda: MagicMock()
            parent = Fetcher(user_agent="UA/1", headers={"X-Test": "1"}, proxies={"https": "http://p:1"}, retry=4)
            child = parent.clone()
            assert child is not parent
            assert child.headers == parent.headers
            assert child.proxies == parent.proxies
            assert child.retry == 4
            assert child.session is not parent.session

    def test_context_manager_closes_session(self, session):
        with Fetcher() as fetcher:
            fetcher.session
        session.close.assert_called_once()

    def test_from_config(self):
        cfg = AppConfig(proxy_url="http://127.0.0.1:7890", timeout_sec=9, retry=2)
        fetcher = Fetcher.from_config(cfg)
        assert fetcher.proxies == {"http": "http://127.0.0.1:7890", "https": "http://127.0.0.1:7890"}
        assert fetcher.timeout == 9.0
        assert fetcher.retry == 2


class TestDocument:
    def test_absolute_url(self):
        doc = Document(url="https://example.com/a/b.html", content=b"")
        assert doc.absolute_url("/img/c.jpg") == "https://example.com/img/c.jpg"
        assert doc.absolute_url("//cdn.example.com/x.jpg") == "https://cdn.example.com/x.jpg"
        assert doc.absolute_url("https://other.example.com/y") == "https://other.example.com/y"
        assert doc.absolute_url("") == ""

    def test_empty_body_yields_queryable_tree(self):
        assert Document(url="https://example.com/", content=b"").xpath("//p") == []

    def test_build_proxies(self):
        assert build_proxies("") is None
        assert build_proxies(None) is None
        assert build_proxies(" http://p:1 ") == {"http": "http://p:1", "https": "http://p:1"}


class TestDocumentEncoding:
    """Japanese labels must survive parsing whichever way the charset is announced."""

    def test_utf8_without_meta_charset(self):
        doc = Document(url="https://example.com/", content="<html><body><p> 日本語タイトル </p></body></html>".encode("utf-8"))
        assert doc.charset == "utf-8"
        assert doc.xpath("//p/text()") == [" 日本語タイトル "]

    def test_meta_charset_used_without_header(self):
        html = '<html><head><meta charset="Shift_JIS"></head><body><p>発売日</p></body></html>'
        doc = Document(url="https://example.com/", content=html.encode("shift_jis"))
        assert doc.charset == "shift_jis"
        assert doc.xpath("//p/text()") == ["発売日"]

    def test_http_equiv_meta_charset(self):
        html = (
            '<html><head><meta http-equiv="Content-Type" content="text/html; charset=euc-jp"></head>'
            "<body><p>出演</p></body></html>"
        )
        doc = Document(url="https://example.com/", content=html.encode("euc_jp"))
        assert doc.xpath("//p/text()") == ["出演"]

    def test_header_charset_beats_meta(self):
        html = '<html><head><meta charset="iso-8859-1"></head><body><p>商品番号</p></body></html>'
        doc = Document(url="https://example.com/", content=html.encode("utf-8"), encoding="utf-8")
        assert doc.xpath("//p/text()") == ["商品番号"]

    def test_unknown_charset_falls_back_to_utf8(self):
        doc = Document(url="https://example.com/", content="<p>出演</p>".encode("utf-8"), encoding="x-bogus")
        assert doc.charset == "utf-8"
        assert doc.xpath("//p/text()") == ["出演"]

    def test_xml_declaration_is_tolerated(self):
        html = '<?xml version="1.0" encoding="utf-8"?><html><body><p>シリーズ</p></body></html>'
        doc = Document(url="https://example.com/", content=html.encode("utf-8"))
        assert doc.xpath("//p/text()") == ["シリーズ"]

    def test_header_charset(self):
        assert header_charset("text/html; charset=UTF-8") == "utf-8"
        assert header_charset('text/html; charset="Shift_JIS"') == "shift_jis"
        assert header_charset("text/html") is None
        assert header_charset("text/html; charset=nope") is None
        assert header_charset(None) is None


class TestDocumentBase:
    def test_base_href_used_for_relative_refs(self):
        html = '<html><head><base href="https://cdn.example.com/x/"></head><body></body></html>'
        doc = Document(url="https://www.example.com/page.aspx", content=html.encode("utf-8"))
        assert doc.absolute_url("img/bigcover/a.jpg") == "https://cdn.example.com/x/img/bigcover/a.jpg"
        assert doc.absolute_url("/root.jpg") == "https://cdn.example.com/root.jpg"

    def test_relative_base_href(self):
        html = '<html><head><base href="/assets/"></head><body></body></html>'
        doc = Document(url="https://www.example.com/a/page.html", content=html.encode("utf-8"))
        assert doc.absolute_url("a.jpg") == "https://www.example.com/assets/a.jpg"

    def test_no_base_uses_page_url(self):
        doc = Document(url="https://www.example.com/a/page.html", content=b"<html><body></body></html>")
        assert doc.absolute_url("b.jpg") == "https://www.example.com/a/b.jpg"
