"""
Async utilities for wrapping blocking calls in FastAPI route handlers.

Provider calls block on curl_cffi requests (primary page plus an optional
nested manifest fetch), so routes run them through run_sync() to keep the
asyncio event loop free.
"""
from __future__ import annotations

import asyncio
import functools
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar, Callable

T = TypeVar("T")

# Shared executor for blocking provider calls; each call owns its own fetcher clone.
_executor = ThreadPoolExecutor(max_workers=8, thread_name_prefix="api-scrape")


async def run_sync(fn: Callable[..., T], *args, **kwargs) -> T:
    """Run a synchronous blocking function in the thread pool executor.

    Usage:
        record = await run_sync(provider.get_by_id, "0841")
    """
    loop = asyncio.get_running_loop()
    if kwargs:
        call = functools.partial(fn, *args, **kwargs)
        return await loop.run_in_executor(_executor, call)
    return await loop.run_in_executor(_executor, fn, *args)
