"""Pane event bus connecting the core to the UI host."""

from vibe_ade.bus.events import AgentChunkEvent, AgentRoutedEvent, PaneEvent, PtyDataEvent, PtyExitEvent
from vibe_ade.bus.queue import PaneEventBus

__all__ = [
    "AgentChunkEvent",
    "AgentRoutedEvent",
    "PaneEvent",
    "PaneEventBus",
    "PtyDataEvent",
    "PtyExitEvent",
]
