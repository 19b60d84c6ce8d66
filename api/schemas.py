from __future__ import annotations

from datetime import date
from typing import List

from pydantic import BaseModel, Field


class ProviderInfo(BaseModel):
    name: str
    priority: int
    search: bool


class MovieInfo(BaseModel):
    id: str
    homepage: str
    provider: str = ""
    number: str = ""
    title: str = ""
    summary: str = ""
    cover_url: str = ""
    thumb_url: str = ""
    preview_video_url: str = ""
    preview_images: List[str] = Field(default_factory=list)
    actors: List[str] = Field(default_factory=list)
    maker: str = ""
    publisher: str = ""
    series: str = ""
    release_date: date | None = None
    runtime: int = 0
    score: float = 0.0
    tags: List[str] = Field(default_factory=list)


class SearchResult(BaseModel):
    provider: str
    id: str
    number: str = ""
    title: str = ""
    homepage: str = ""
    thumb_url: str = ""
    cover_url: str = ""


class ErrorResponse(BaseModel):
    detail: str
