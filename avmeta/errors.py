from __future__ import annotations


class ScraperError(Exception):
    pass


class InvalidIdentifier(ScraperError, ValueError):
    """The movie id or page URL cannot be turned into an identifier."""

    def __init__(self, value: str):
        super().__init__(f"invalid identifier: {value!r}")
        self.value = value


class FetchError(ScraperError):
    """Transport failure or non-2xx response for the primary document."""

    def __init__(self, url: str, reason: str = "", status_code: int | None = None):
        msg = f"fetch failed: {url}"
        if status_code is not None:
            msg += f" (HTTP {status_code})"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
        self.url = url
        self.reason = reason
        self.status_code = status_code


class Unsupported(ScraperError):
    """The provider structurally cannot offer this capability."""

    def __init__(self, provider: str, capability: str):
        super().__init__(f"{provider}: {capability} is not supported")
        self.provider = provider
        self.capability = capability


class UnknownProvider(ScraperError, KeyError):
    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"unknown provider: {self.name}"
