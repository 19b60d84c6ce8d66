from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar
from urllib.parse import quote, urlparse

from avmeta.errors import InvalidIdentifier, Unsupported
from avmeta.utils.logger import clear_invocation_id, logger, set_invocation_id
from avmeta.utils.network import Fetcher

from .rules import ExtractionContext, Rule, apply_rules
from .types import MetadataRecord, SearchResultRecord


class Provider(ABC):
    """Base class for metadata providers.

    A provider is configuration: URL templates plus ordered rule tuples. The
    engine methods here derive the identifier, fetch the page on an isolated
    fetcher and run the rules. Nothing on the instance is mutated by an
    extraction, so one provider may serve concurrent invocations.
    """

    name: ClassVar[str]
    priority: ClassVar[int] = 1000

    # str.format templates: {id} / {keyword}
    movie_url: ClassVar[str]
    search_url: ClassVar[str] = ""

    movie_rules: ClassVar[tuple[Rule, ...]] = ()
    search_block_xpath: ClassVar[str] = ""
    search_rules: ClassVar[tuple[Rule, ...]] = ()

    def __init__(self, fetcher: Fetcher | None = None):
        self.fetcher = fetcher or Fetcher()

    # -- Identifier handling --

    def normalize_id(self, movie_id: str) -> str:
        return (movie_id or "").strip().upper()

    def tidy_keyword(self, keyword: str) -> str:
        return (keyword or "").strip().upper()

    @abstractmethod
    def parse_id(self, url: str) -> str | None:
        """Derive the movie id from a page URL, None when the URL has no id."""
        raise NotImplementedError

    def new_record(self, movie_id: str, homepage: str) -> MetadataRecord:
        return MetadataRecord(id=movie_id, homepage=homepage, provider=self.name)

    # -- Extraction --

    def get_by_id(self, movie_id: str) -> MetadataRecord:
        movie_id = self.normalize_id(movie_id)
        if not movie_id:
            raise InvalidIdentifier(movie_id)
        return self.get_by_url(self.movie_url.format(id=quote(movie_id, safe="")))

    def get_by_url(self, url: str) -> MetadataRecord:
        homepage = (url or "").strip()
        parsed = urlparse(homepage)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise InvalidIdentifier(url)
        movie_id = self.parse_id(homepage)
        if not movie_id:
            raise InvalidIdentifier(url)

        record = self.new_record(movie_id, homepage)
        set_invocation_id(f"{self.name}:{movie_id}")
        try:
            with self.fetcher.clone() as fetcher:
                doc = fetcher.fetch(homepage)
                ctx = ExtractionContext(document=doc, fetcher=fetcher, provider=self.name)
                apply_rules(self.movie_rules, ctx, record)
            logger.info(f"ok {self.name} {movie_id}: {record.title or '(no title)'}")
        finally:
            clear_invocation_id()
        return record

    # -- Search --

    @property
    def supports_search(self) -> bool:
        return bool(self.search_url)

    def search(self, keyword: str) -> list[SearchResultRecord]:
        if not self.supports_search:
            raise Unsupported(self.name, "search")
        keyword = self.tidy_keyword(keyword)
        if not keyword:
            raise InvalidIdentifier(keyword)

        results: list[SearchResultRecord] = []
        set_invocation_id(f"{self.name}:search")
        try:
            with self.fetcher.clone() as fetcher:
                doc = fetcher.fetch(self.search_url.format(keyword=quote(keyword, safe="")))
                ctx = ExtractionContext(document=doc, fetcher=fetcher, provider=self.name)
                for block in doc.xpath(self.search_block_xpath):
                    hit = SearchResultRecord(provider=self.name)
                    apply_rules(self.search_rules, ctx, hit, scope=block)
                    if not hit.id:
                        logger.debug(f"skip search hit without id: {hit.title!r}")
                        continue
                    results.append(hit)
            logger.info(f"search {self.name} {keyword!r}: {len(results)} hit(s)")
        finally:
            clear_invocation_id()
        return results
