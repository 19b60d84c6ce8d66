"""
Centralized dependency injection for FastAPI routes.

The provider registry and the shared fetcher are created lazily here and
injected via Depends(), so tests can swap them through
app.dependency_overrides[get_xxx] = lambda: fake_instance.
"""
from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from avmeta.scraper.registry import ProviderRegistry
    from avmeta.utils.config import AppConfig
    from avmeta.utils.network import Fetcher


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    from avmeta.utils.config import load_config
    return load_config()


@lru_cache(maxsize=1)
def get_registry() -> ProviderRegistry:
    from avmeta.scraper.registry import build_default_registry
    return build_default_registry()


@lru_cache(maxsize=1)
def get_fetcher() -> Fetcher:
    # Template only: providers clone it per invocation.
    from avmeta.utils.network import Fetcher
    return Fetcher.from_config(get_config())
