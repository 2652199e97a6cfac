"""Execute coroutines on the main asyncio loop from sync (WSGI) contexts."""

from __future__ import annotations

import asyncio
from concurrent.futures import Future
from typing import Awaitable, Optional, TypeVar

T = TypeVar("T")


class LoopRunner:
    """Bridge from Flask worker threads to the loop that owns the pool."""

    def __init__(self, loop: asyncio.AbstractEventLoop, timeout: Optional[float] = 30.0) -> None:
        self.loop = loop
        self.timeout = timeout

    def submit(self, coro: Awaitable[T]) -> Future:
        if self.loop.is_closed():
            raise RuntimeError("Asyncio loop is closed")
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    def run(self, coro: Awaitable[T], timeout: Optional[float] = None) -> T:
        future = self.submit(coro)
        return future.result(timeout if timeout is not None else self.timeout)
