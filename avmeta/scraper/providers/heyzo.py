from __future__ import annotations

import json
import re
from urllib.parse import urlparse

from avmeta.utils.parser import (
    child_text,
    child_texts,
    parse_date,
    parse_runtime,
    parse_score,
    squash_ws,
    text_of,
)

from ..engine import Provider
from ..manifest import ManifestResolver, ManifestRule
from ..rules import ExtractionContext, FieldBlockRule, FieldCase, RecordRule, SelectorRule, extract_url
from ..types import MetadataRecord


NAME = "HEYZO"
PRIORITY = 1000

MOVIE_URL = "https://www.heyzo.com/moviepages/{id}/index.html"
SAMPLE_URL = "https://www.heyzo.com/contents/{0}/{1}/{2}"

_ID_RE = re.compile(r"/moviepages/(\d+)(?:/|$)", re.IGNORECASE)
_PREFIX_RE = re.compile(r"^HEYZO[-_\s]*", re.IGNORECASE)

_EMVIDEO_RE = re.compile(r'emvideo = "(.+?)";')
_DURATION_RE = re.compile(r"o = (\{.+?});")
_SAMPLE_IMAGE_RE = re.compile(r'"(/contents/[^"]+/\d+?\.\w+?)"')


def _s(value) -> str:
    """Scalar JSON value as text; objects and arrays yield ""."""
    if isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def _dict(value) -> dict:
    return value if isinstance(value, dict) else {}


def _first(value):
    return value[0] if isinstance(value, list) and value else value


def _names(value) -> list[str]:
    """Actor entries: plain strings or Person objects, alone or in a list."""
    items = value if isinstance(value, list) else [value]
    out = []
    for item in items:
        name = _s(_dict(item).get("name")) if isinstance(item, dict) else _s(item)
        if name:
            out.append(name)
    return out


def _image(value) -> str:
    value = _first(value)
    if isinstance(value, dict):
        value = value.get("url") or value.get("contentUrl")
    return _s(value)


def _ld_json(node, ctx: ExtractionContext) -> dict | None:
    try:
        data = json.loads(text_of(node), strict=False)
    except ValueError:
        return None
    data = _first(data)
    if not isinstance(data, dict):
        return None

    video = _dict(data.get("video"))
    image = ctx.document.absolute_url(_image(data.get("image")))
    return {
        "title": squash_ws(_s(data.get("name"))),
        "summary": squash_ws(_s(data.get("description"))),
        "cover_url": image,
        "thumb_url": image,
        "publisher": _s(_dict(video.get("provider")).get("name")) or _s(video.get("provider")),
        "release_date": parse_date(_s(_dict(data.get("releasedEvent")).get("startDate"))),
        "runtime": parse_runtime(_s(video.get("duration"))),
        "score": parse_score(_s(_dict(data.get("aggregateRating")).get("ratingValue"))),
        "actors": _names(video.get("actor")),
    }


def _heading_title(node, ctx: ExtractionContext) -> str:
    # The heading reads "<title> <actress> ..."; keep the first word.
    words = text_of(node).split()
    return words[0] if words else ""


def _series(block, ctx: ExtractionContext) -> str:
    return child_text(block, "./td[2]").strip("-").strip()


def _emvideo(node, ctx: ExtractionContext) -> str | None:
    script = text_of(node)
    if "emvideo" not in script:
        return None
    m = _EMVIDEO_RE.search(script)
    return ctx.document.absolute_url(m.group(1)) if m else None


def _duration(node, ctx: ExtractionContext) -> int | None:
    script = text_of(node)
    if "o = {" not in script:
        return None
    m = _DURATION_RE.search(script)
    if not m:
        return None
    try:
        data = json.loads(m.group(1))
    except ValueError:
        return None
    return parse_runtime(_s(_dict(data).get("full")))


def _sample_images(node, ctx: ExtractionContext) -> list[str]:
    return [ctx.document.absolute_url(m.group(1)) for m in _SAMPLE_IMAGE_RE.finditer(text_of(node))]


class Heyzo(Provider):
    """heyzo.com: JSON-LD first, page structure as fallback, HLS sample video.

    The site has no listing page usable for keyword search.
    """

    name = NAME
    priority = PRIORITY
    movie_url = MOVIE_URL

    movie_rules = (
        RecordRule('//script[@type="application/ld+json"]', _ld_json),
        SelectorRule('//*[@id="movie"]/h1', "title", _heading_title),
        SelectorRule('//p[@class="memo"]', "summary"),
        SelectorRule('//meta[@property="og:image"]/@content', ("cover_url", "thumb_url"), extract_url),
        FieldBlockRule(
            '//table[@class="movieInfo"]//tr',
            "./td[1]",
            {
                "公開日": FieldCase("release_date", lambda b, ctx: parse_date(child_text(b, "./td[2]"))),
                "出演": FieldCase("actors", lambda b, ctx: child_texts(b, "./td[2]/a/span")),
                "シリーズ": FieldCase("series", _series),
                "評価": FieldCase(
                    "score", lambda b, ctx: parse_score(child_text(b, './/span[@itemprop="ratingValue"]'))
                ),
            },
        ),
        SelectorRule('//ul[@class="tag-keyword-list"]//li/a', "tags"),
        # HLS sample beats the plain emvideo link when both exist.
        ManifestRule(
            '//*[@id="playerContainer"]/script',
            marker="movieId",
            token_patterns=(
                re.compile(r"siteID\s*=\s*'(\d+?)';"),
                re.compile(r"movieId\s*=\s*'(\d+?)';"),
            ),
            template_pattern=re.compile(r"stream\s*=\s*'(.+?)'\+siteID\+'(.+?)'\+movieId\+'(.+?)';"),
            resolver=ManifestResolver(
                variant_pattern=re.compile(r"/sample/(\d+)/(\d+)/ts\.(.+?)\.m3u8"),
                media_template=SAMPLE_URL,
            ),
        ),
        SelectorRule('//script[@type="text/javascript"]', "preview_video_url", _emvideo),
        SelectorRule('//script[@type="text/javascript"]', "runtime", _duration),
        SelectorRule('//div[@class="sample-images yoxview"]/script', "preview_images", _sample_images),
    )

    def normalize_id(self, movie_id: str) -> str:
        s = _PREFIX_RE.sub("", (movie_id or "").strip())
        return s.zfill(4) if s.isdigit() else s.upper()

    def parse_id(self, url: str) -> str | None:
        m = _ID_RE.search(urlparse(url).path)
        return m.group(1) if m else None

    def new_record(self, movie_id: str, homepage: str) -> MetadataRecord:
        record = super().new_record(movie_id, homepage)
        record.number = f"HEYZO-{movie_id}"
        record.maker = "HEYZO"
        return record
