"""
网络请求模块 - 抓取页面并解析为文档树
"""
from __future__ import annotations

import codecs
import re
import time
from dataclasses import dataclass
from functools import cached_property
from typing import Dict, Optional
from urllib.parse import urljoin

from curl_cffi import requests
from lxml import etree

from avmeta.errors import FetchError
from avmeta.utils.config import DEFAULT_USER_AGENT, AppConfig
from avmeta.utils.logger import logger


_CHARSET_RE = re.compile(rb"""<meta[^>]+charset\s*=\s*["']?([\w.:-]+)""", re.IGNORECASE)
_HEADER_CHARSET_RE = re.compile(r"charset\s*=\s*[\"']?([\w.:-]+)", re.IGNORECASE)
_XML_DECL_RE = re.compile(r"^\s*<\?xml[^>]*\?>")


def build_proxies(proxy_url: str | None) -> Dict[str, str] | None:
    pu = str(proxy_url or "").strip()
    if not pu:
        return None
    return {"http": pu, "https": pu}


def _known_encoding(name: str | bytes | None) -> str | None:
    if isinstance(name, bytes):
        name = name.decode("ascii", errors="ignore")
    name = (name or "").strip()
    if not name:
        return None
    try:
        return codecs.lookup(name).name
    except LookupError:
        return None


def header_charset(content_type: str | None) -> str | None:
    """Charset declared by a Content-Type header, None when absent or unknown."""
    m = _HEADER_CHARSET_RE.search(content_type or "")
    return _known_encoding(m.group(1)) if m else None


@dataclass
class Document:
    """A fetched response: final URL, raw bytes and the lazily parsed HTML tree.

    ``encoding`` is the charset announced by the transport (Content-Type). When
    it is missing the page's own ``<meta charset>`` is used, then UTF-8.
    """

    url: str
    content: bytes
    status_code: int = 200
    encoding: str | None = None

    @cached_property
    def charset(self) -> str:
        declared = _known_encoding(self.encoding)
        if declared:
            return declared
        m = _CHARSET_RE.search(self.content[:4096])
        return (_known_encoding(m.group(1)) if m else None) or "utf-8"

    @cached_property
    def root(self):
        # lxml refuses str input that carries an XML encoding declaration
        text = _XML_DECL_RE.sub("", self.text, count=1)
        tree = etree.HTML(text) if text.strip() else None
        if tree is None:
            # Empty or unparseable body: give rules an empty tree to query.
            tree = etree.HTML("<html></html>")
        return tree

    @property
    def text(self) -> str:
        return self.content.decode(self.charset, errors="replace")

    @cached_property
    def base_url(self) -> str:
        """Page URL, or the ``<base href>`` resolved against it."""
        base = self.root.xpath("//base/@href")
        href = base[0].strip() if base else ""
        return urljoin(self.url, href) if href else self.url

    def xpath(self, query: str) -> list:
        return self.root.xpath(query)

    def absolute_url(self, ref: str | None) -> str:
        ref = (ref or "").strip()
        if not ref:
            return ""
        return urljoin(self.base_url, ref)


class Fetcher:
    """HTTP GET + HTML parse with a fixed user agent.

    Every instance owns its own curl_cffi session. ``clone()`` copies the static
    configuration (headers, proxy, timeouts, retries) into a fresh instance so a
    nested fetch never sees the parent's cookies or pending state.
    """

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        headers: Optional[Dict[str, str]] = None,
        proxies: Optional[Dict[str, str]] = None,
        timeout: float = 25.0,
        retry: int = 3,
        delay: float = 2.0,
        request_delay: float = 0.0,
        impersonate: str = "chrome",
    ):
        self.headers = {"User-Agent": user_agent}
        if headers:
            self.headers.update(headers)
        self.proxies = dict(proxies) if proxies else None
        self.timeout = timeout
        self.retry = max(1, int(retry))
        self.delay = delay
        self.request_delay = request_delay
        self.impersonate = impersonate
        self._session = None

    @classmethod
    def from_config(cls, cfg: AppConfig) -> "Fetcher":
        return cls(
            user_agent=cfg.user_agent,
            proxies=build_proxies(cfg.proxy_url),
            timeout=cfg.timeout_sec,
            retry=cfg.retry,
            delay=cfg.retry_delay_sec,
            request_delay=cfg.request_delay_sec,
        )

    def clone(self) -> "Fetcher":
        base = dict(self.headers)
        return Fetcher(
            user_agent=base.pop("User-Agent", DEFAULT_USER_AGENT),
            headers=base,
            proxies=self.proxies,
            timeout=self.timeout,
            retry=self.retry,
            delay=self.delay,
            request_delay=self.request_delay,
            impersonate=self.impersonate,
        )

    @property
    def session(self):
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def fetch(self, url: str, headers: Optional[Dict[str, str]] = None) -> Document:
        """GET url and return the parsed document, or raise FetchError."""
        merged_headers = dict(self.headers)
        if headers:
            merged_headers.update(headers)

        reason = ""
        status_code = None
        for attempt in range(self.retry):
            if attempt:
                time.sleep(self.delay)
            if self.request_delay > 0:
                time.sleep(self.request_delay)
            try:
                logger.debug(f"GET {url}")
                response = self.session.get(
                    url,
                    headers=merged_headers,
                    timeout=self.timeout,
                    verify=False,
                    proxies=self.proxies,
                    impersonate=self.impersonate,
                )
            except Exception as e:
                reason = str(e)
                logger.warning(f"Request failed (attempt {attempt + 1}/{self.retry}): {url}: {e}")
                continue

            logger.debug(f"<- {response.status_code} {url}")
            if 200 <= response.status_code < 300:
                return Document(
                    url=str(response.url or url),
                    content=response.content,
                    status_code=response.status_code,
                    encoding=header_charset(response.headers.get("content-type")),
                )

            status_code = response.status_code
            reason = f"HTTP {status_code}"
            logger.warning(f"HTTP {status_code}: {url}")
            # Only server-side and throttling responses are worth another attempt.
            if status_code < 500 and status_code != 429:
                break

        raise FetchError(url, reason if status_code is None else "", status_code)
