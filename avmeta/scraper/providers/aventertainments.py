from __future__ import annotations

import re

from avmeta.utils.parser import (
    child_attr,
    child_text,
    first,
    parse_date,
    parse_runtime,
    parse_texts,
    squash_ws,
    text_of,
)

from ..engine import Provider
from ..rules import ExtractionContext, FieldBlockRule, FieldCase, RecordRule, SelectorRule, extract_url


NAME = "AVE"
PRIORITY = 1000 - 2

MOVIE_URL = "https://www.aventertainments.com/product_lists.aspx?product_id={id}&languageID=2&dept_id=29"
SEARCH_URL = (
    "https://www.aventertainments.com/search_Products.aspx"
    "?languageID=2&dept_id=29&keyword={keyword}&searchby=keyword"
)

_ID_RE = re.compile(r"product_id=(\d+)", re.IGNORECASE)
_NUMBER_RE = re.compile(r"/(?:dvd\d)?([a-z\d_-]+)\.jpg", re.IGNORECASE)
_SEPARATOR_RE = re.compile(r"[\s,、/|・]+")


def parse_product_id(s: str) -> str:
    m = _ID_RE.search(s or "")
    return m.group(1) if m else ""


def parse_number(image_path: str) -> str:
    """Product number from a jacket image path, e.g. /jacket_images/dvd1abc-123.jpg -> ABC-123."""
    m = _NUMBER_RE.search(image_path or "")
    return m.group(1).upper() if m else ""


def _summary(node, ctx: ExtractionContext) -> str:
    # The description div starts with the synopsis text, followed by markup.
    texts = node.xpath("./text()")
    if texts:
        return squash_ws(texts[0])
    return squash_ws(text_of(node))


def _thumb_from_cover(node, ctx: ExtractionContext) -> str:
    return extract_url(node, ctx).replace("bigcover", "jacket_images")


def _search_link(node, ctx: ExtractionContext) -> dict:
    """One result link: id and page from the href, number and art from the jacket image."""
    href = child_attr(node, ".", "href")
    src = child_attr(node, "./img", "src")
    thumb = ctx.document.absolute_url(src)
    return {
        "id": parse_product_id(href),
        "homepage": ctx.document.absolute_url(href),
        "number": parse_number(src),
        "thumb_url": thumb,
        "cover_url": thumb.replace("jacket_images", "bigcover"),
    }


def _value(block, ctx: ExtractionContext) -> str:
    return child_text(block, ".//span[2]")


def _values(block, ctx: ExtractionContext) -> list[str]:
    # linked names are separated by bare ", " text nodes
    return [t for t in parse_texts(first(block, ".//span[2]")) if not _SEPARATOR_RE.fullmatch(t)]


def _release(block, ctx: ExtractionContext):
    # e.g. "2/17/2022 (発売日)"
    words = _value(block, ctx).split()
    return parse_date(words[0]) if words else None


class AVEntertainments(Provider):
    """aventertainments.com (Japanese site, DVD department)."""

    name = NAME
    priority = PRIORITY
    movie_url = MOVIE_URL
    search_url = SEARCH_URL

    movie_rules = (
        SelectorRule('//*[@id="MyBody"]//div[@class="section-title"]/h3', "title"),
        SelectorRule('//*[@id="MyBody"]//div[@class="product-description mt-20"]', "summary", _summary),
        SelectorRule('//*[@id="PlayerCover"]/img/@src', "cover_url", extract_url),
        SelectorRule('//*[@id="PlayerCover"]/img/@src', "thumb_url", _thumb_from_cover),
        SelectorRule('//*[@id="sscontainerppv123"]/img/@src', "preview_images", extract_url),
        SelectorRule('//*[@id="player1"]/source/@src', "preview_video_url", extract_url),
        FieldBlockRule(
            '//*[@id="MyBody"]//div[@class="product-info-block-rev mt-20"]/div[@class="single-info"]',
            ".//span[1]",
            {
                "商品番号": FieldCase("number", _value),
                "主演女優": FieldCase("actors", _values),
                "スタジオ": FieldCase("maker", _value),
                "シリーズ": FieldCase("series", _value),
                "カテゴリ": FieldCase("tags", _values),
                "発売日": FieldCase("release_date", _release),
                "収録時間": FieldCase("runtime", lambda b, ctx: parse_runtime(_value(b, ctx))),
            },
        ),
    )

    search_block_xpath = '//div[@class="single-slider-product grid-view-product"]'
    search_rules = (
        RecordRule(".//div[1]/a", _search_link),
        SelectorRule('.//div[2]/p[@class="product-title"]/a', "title"),
    )

    def parse_id(self, url: str) -> str | None:
        return parse_product_id(url) or None
