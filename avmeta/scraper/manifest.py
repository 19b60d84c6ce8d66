"""
HLS manifest resolution for preview videos.

A page script embeds a string-templated manifest URL. The manifest is fetched
on an isolated fetcher, decoded with ``m3u8``, the best variant is chosen and
its path tokens are substituted into a direct media URL.

Preview video is optional, so every step reports ``NotFound`` instead of
raising; only a ``Resolved`` outcome touches the record.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Sequence, Union

import m3u8

from avmeta.errors import FetchError
from avmeta.utils.logger import logger
from avmeta.utils.network import Fetcher
from avmeta.utils.parser import text_of

from .rules import ExtractionContext, assign
from .types import Variant


@dataclass(frozen=True)
class Resolved:
    url: str


@dataclass(frozen=True)
class NotFound:
    reason: str


Outcome = Union[Resolved, NotFound]


def decode_master(body: bytes | str) -> list[Variant] | None:
    """Variants of a master playlist in listed order; None for anything else."""
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else (body or "")
    try:
        playlist = m3u8.loads(text)
    except Exception as e:
        logger.debug(f"manifest decode failed: {e}")
        return None
    if not playlist.is_variant:
        return None

    variants: list[Variant] = []
    for pl in playlist.playlists:
        si = getattr(pl, "stream_info", None)
        bandwidth = int(getattr(si, "bandwidth", 0) or 0)
        variants.append(Variant(bandwidth=bandwidth, uri=str(pl.uri or "")))
    return variants


def select_variant(variants: Sequence[Variant]) -> Variant | None:
    """Highest bandwidth wins; on ties the later-listed variant wins.

    Stable ascending sort, then take the last element.
    """
    if not variants:
        return None
    return sorted(variants, key=lambda v: v.bandwidth)[-1]


@dataclass(frozen=True)
class ManifestResolver:
    """Manifest URL -> direct preview media URL.

    ``variant_pattern`` must capture exactly the positional tokens consumed by
    ``media_template`` (``str.format`` placeholders ``{0}``, ``{1}`` ...).
    """

    variant_pattern: re.Pattern
    media_template: str

    def media_url(self, variant_uri: str) -> Outcome:
        m = self.variant_pattern.search(variant_uri or "")
        if not m:
            return NotFound(f"variant uri does not match: {variant_uri!r}")
        return Resolved(self.media_template.format(*m.groups()))

    def resolve(self, manifest_url: str, fetcher: Fetcher) -> Outcome:
        with fetcher.clone() as isolated:
            try:
                doc = isolated.fetch(manifest_url)
            except FetchError as e:
                return NotFound(str(e))

        variants = decode_master(doc.content)
        if variants is None:
            return NotFound(f"not a master playlist: {manifest_url}")
        best = select_variant(variants)
        if best is None:
            return NotFound(f"master playlist lists no variants: {manifest_url}")
        logger.debug(f"selected variant bandwidth={best.bandwidth} uri={best.uri}")
        return self.media_url(best.uri)


@dataclass(frozen=True)
class ManifestRule:
    """Selector rule whose value needs the nested manifest fetch.

    The script must contain ``marker``. Each of ``token_patterns`` captures one
    token; ``template_pattern`` captures len(tokens) + 1 literal pieces and the
    manifest URL is ``piece0 + token0 + piece1 + token1 + ... + pieceN``.
    """

    xpath: str
    marker: str
    token_patterns: tuple[re.Pattern, ...]
    template_pattern: re.Pattern
    resolver: ManifestResolver
    target: str = "preview_video_url"

    def manifest_url(self, script: str, ctx: ExtractionContext) -> Outcome:
        if self.marker not in script:
            return NotFound(f"marker {self.marker!r} absent")

        tokens: list[str] = []
        for pattern in self.token_patterns:
            m = pattern.search(script)
            if not m:
                return NotFound(f"token missing: {pattern.pattern}")
            tokens.append(m.group(1))

        m = self.template_pattern.search(script)
        if not m:
            return NotFound("manifest template missing")
        pieces = m.groups()
        if len(pieces) != len(tokens) + 1:
            return NotFound("manifest template does not fit the tokens")

        url = pieces[0] + "".join(token + piece for token, piece in zip(tokens, pieces[1:]))
        return Resolved(ctx.document.absolute_url(url))

    def resolve(self, script: str, ctx: ExtractionContext) -> Outcome:
        found = self.manifest_url(script, ctx)
        if isinstance(found, NotFound):
            return found
        return self.resolver.resolve(found.url, ctx.fetcher)

    def apply(self, ctx: ExtractionContext, record: Any, scope: Any = None) -> None:
        if getattr(record, self.target):
            logger.debug(f"skip manifest: {self.target} already set")
            return
        root = ctx.document.root if scope is None else scope
        for node in root.xpath(self.xpath):
            outcome = self.resolve(text_of(node), ctx)
            if isinstance(outcome, Resolved):
                assign(record, self.target, outcome.url)
                return
            logger.debug(f"preview manifest skipped: {outcome.reason}")
