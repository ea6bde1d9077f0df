"""Pane event contracts delivered to the UI channel."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

StreamType = Literal["thought", "action"]


@dataclass(frozen=True)
class PtyDataEvent:
    """Raw process output (or a synthetic notice) for one pane."""

    pane_id: str
    chunk: str


@dataclass(frozen=True)
class PtyExitEvent:
    """Live shell process for a pane exited."""

    pane_id: str


@dataclass(frozen=True)
class AgentChunkEvent:
    """One labeled piece of an agent response.

    ``done`` is terminal: no further chunks for ``request_id`` follow it.
    """

    pane_id: str
    chunk: str
    done: bool = False
    stream: StreamType | None = None
    error: str | None = None
    request_id: int = 0


@dataclass(frozen=True)
class AgentRoutedEvent:
    """Routing intent (or corrected effective route after fallback)."""

    pane_id: str
    route: str
    model: str
    model_name: str
    request_id: int = 0


PaneEvent = Union[PtyDataEvent, PtyExitEvent, AgentChunkEvent, AgentRoutedEvent]
