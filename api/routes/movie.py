"""
Movie metadata API - lookup by id / page URL and keyword search per provider
"""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from api.async_utils import run_sync
from api.constants import MAX_ID_LENGTH, MAX_KEYWORD_LENGTH, MAX_URL_LENGTH
from api.dependencies import get_config, get_fetcher, get_registry
from api.schemas import ErrorResponse, MovieInfo, ProviderInfo, SearchResult
from avmeta.errors import FetchError, InvalidIdentifier, UnknownProvider, Unsupported
from avmeta.utils.translate import translate_record

router = APIRouter()

_ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid movie id or page URL"},
    404: {"model": ErrorResponse, "description": "Unknown provider"},
    501: {"model": ErrorResponse, "description": "Provider does not support this"},
    502: {"model": ErrorResponse, "description": "Upstream page could not be fetched"},
}


def _create(registry, fetcher, name: str):
    try:
        return registry.create(name, fetcher=fetcher)
    except UnknownProvider as e:
        raise HTTPException(status_code=404, detail=str(e))


async def _call(fn, *args):
    try:
        return await run_sync(fn, *args)
    except InvalidIdentifier as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Unsupported as e:
        raise HTTPException(status_code=501, detail=str(e))
    except FetchError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/api/providers", response_model=List[ProviderInfo])
async def list_providers(registry=Depends(get_registry)):
    out = []
    for name in registry.names():
        factory = registry.factory(name)
        out.append(
            ProviderInfo(
                name=factory.name,
                priority=factory.priority,
                search=registry.create(name).supports_search,
            )
        )
    return out


@router.get("/api/movie/{provider}/{movie_id}", response_model=MovieInfo, responses=_ERRORS)
async def get_movie_by_id(
    provider: str,
    movie_id: str = Path(..., min_length=1, max_length=MAX_ID_LENGTH),
    translate: bool = False,
    registry=Depends(get_registry),
    fetcher=Depends(get_fetcher),
    cfg=Depends(get_config),
):
    p = _create(registry, fetcher, provider)
    record = await _call(p.get_by_id, movie_id)
    if translate:
        await run_sync(translate_record, record, cfg)
    return record.to_dict()


@router.get("/api/movie/{provider}", response_model=MovieInfo, responses=_ERRORS)
async def get_movie_by_url(
    provider: str,
    url: str = Query(..., min_length=1, max_length=MAX_URL_LENGTH),
    translate: bool = False,
    registry=Depends(get_registry),
    fetcher=Depends(get_fetcher),
    cfg=Depends(get_config),
):
    p = _create(registry, fetcher, provider)
    record = await _call(p.get_by_url, url)
    if translate:
        await run_sync(translate_record, record, cfg)
    return record.to_dict()


@router.get("/api/search/{provider}", response_model=List[SearchResult], responses=_ERRORS)
async def search_movies(
    provider: str,
    q: str = Query(..., min_length=1, max_length=MAX_KEYWORD_LENGTH),
    registry=Depends(get_registry),
    fetcher=Depends(get_fetcher),
):
    p = _create(registry, fetcher, provider)
    hits = await _call(p.search, q)
    return [hit.to_dict() for hit in hits]
