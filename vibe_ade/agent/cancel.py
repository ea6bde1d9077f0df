"""Cooperative cancellation shared by the agent router and backend clients."""

from __future__ import annotations

import asyncio

from vibe_ade.errors import Cancelled


class CancellationToken:
    """One-shot cancel flag that coroutines can also await."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise Cancelled()
