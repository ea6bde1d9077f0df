"""Per-pane event channel between the core and the UI host."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Callable

from loguru import logger

from vibe_ade.bus.events import PaneEvent

EventHandler = Callable[[PaneEvent], None]


class PaneEventBus:
    """In-process pub/sub keyed by pane id.

    Handlers registered with ``subscribe`` see every event; ``open_channel``
    hands out an asyncio queue that receives only one pane's events. Publish
    must happen on the event-loop thread (reader threads marshal through
    ``loop.call_soon_threadsafe`` first), which keeps per-pane ordering.
    """

    def __init__(self) -> None:
        self._handlers: list[EventHandler] = []
        self._channels: dict[str, list[asyncio.Queue[PaneEvent]]] = defaultdict(list)

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        """Register a handler for all panes. Returns an unsubscribe callable."""
        self._handlers.append(handler)

        def _off() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return _off

    def open_channel(self, pane_id: str) -> asyncio.Queue[PaneEvent]:
        """Queue receiving every subsequent event for ``pane_id``."""
        queue: asyncio.Queue[PaneEvent] = asyncio.Queue()
        self._channels[pane_id].append(queue)
        return queue

    def close_channels(self, pane_id: str) -> None:
        self._channels.pop(pane_id, None)

    def close_all_channels(self) -> None:
        self._channels.clear()

    def has_channel(self, pane_id: str) -> bool:
        return bool(self._channels.get(pane_id))

    def publish(self, event: PaneEvent) -> None:
        for queue in self._channels.get(event.pane_id, ()):
            queue.put_nowait(event)
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                logger.exception(f"Pane event handler failed for {event.pane_id}")
