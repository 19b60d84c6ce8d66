"""
Provider registry.

An explicit table of provider factories built once at startup and handed to
whatever needs lookups (CLI, API). There is no module-level registry.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from avmeta.errors import UnknownProvider

from .engine import Provider


@dataclass(frozen=True)
class ProviderFactory:
    name: str
    priority: int
    constructor: Callable[..., Provider]


class ProviderRegistry:
    def __init__(self):
        self._factories: dict[str, ProviderFactory] = {}

    @staticmethod
    def _key(name: str) -> str:
        return (name or "").strip().upper()

    def register(self, name: str, priority: int, constructor: Callable[..., Provider]) -> None:
        key = self._key(name)
        if not key:
            raise ValueError("provider name cannot be empty")
        if key in self._factories:
            raise ValueError(f"provider already registered: {name}")
        self._factories[key] = ProviderFactory(name=name, priority=int(priority), constructor=constructor)

    def register_provider(self, cls: type[Provider]) -> None:
        self.register(cls.name, cls.priority, cls)

    def factory(self, name: str) -> ProviderFactory:
        try:
            return self._factories[self._key(name)]
        except KeyError:
            raise UnknownProvider(name) from None

    def create(self, name: str, **kwargs: Any) -> Provider:
        return self.factory(name).constructor(**kwargs)

    def names(self) -> list[str]:
        """Registered names, highest priority first."""
        ordered = sorted(self._factories.values(), key=lambda f: (-f.priority, f.name))
        return [f.name for f in ordered]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._key(name) in self._factories

    def __len__(self) -> int:
        return len(self._factories)


def build_default_registry() -> ProviderRegistry:
    from .providers.aventertainments import AVEntertainments
    from .providers.heyzo import Heyzo

    registry = ProviderRegistry()
    registry.register_provider(Heyzo)
    registry.register_provider(AVEntertainments)
    return registry
