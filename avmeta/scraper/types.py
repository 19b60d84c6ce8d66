from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any


@dataclass
class MetadataRecord:
    """Canonical movie metadata produced by one extraction run.

    Strings default to "" and numbers to 0 so "unset" is simply falsy.
    """

    id: str
    homepage: str
    provider: str = ""
    number: str = ""
    title: str = ""
    summary: str = ""
    cover_url: str = ""
    thumb_url: str = ""
    preview_video_url: str = ""
    preview_images: list[str] = field(default_factory=list)
    actors: list[str] = field(default_factory=list)
    maker: str = ""
    publisher: str = ""
    series: str = ""
    release_date: date | None = None
    # minutes
    runtime: int = 0
    # 0-5
    score: float = 0.0
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["release_date"] = self.release_date.isoformat() if self.release_date else None
        return data


@dataclass
class SearchResultRecord:
    provider: str = ""
    id: str = ""
    number: str = ""
    title: str = ""
    homepage: str = ""
    thumb_url: str = ""
    cover_url: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Variant:
    """One rendition listed in an HLS master playlist."""

    bandwidth: int
    uri: str
