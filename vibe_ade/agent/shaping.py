"""Turn one backend response into labeled output chunks."""

from __future__ import annotations

from dataclasses import dataclass

from vibe_ade.bus.events import StreamType
from vibe_ade.config.schema import AgentRoute, ExecutionMode

THOUGHT_MARKER = "[THOUGHT]"
ACTION_MARKER = "[ACTION]"


@dataclass(frozen=True)
class ShapedChunk:
    chunk: str
    stream: StreamType
    done: bool = False


def route_label(route: AgentRoute, model_name: str) -> str:
    return f"[{'Local' if route is AgentRoute.LOCAL else 'Cloud'}:{model_name}]"


def shape_response(
    text: str,
    mode: ExecutionMode,
    effective_route: AgentRoute,
    model_name: str,
) -> list[ShapedChunk]:
    """Split into thought/action under dual-stream, else one route-labeled action.

    Only the first ``[ACTION]`` delimiter splits; later ones stay in the
    action text.
    """
    if mode is ExecutionMode.DUAL_STREAM and ACTION_MARKER in text:
        thought_raw, _, action_raw = text.partition(ACTION_MARKER)
        thought = thought_raw.replace(THOUGHT_MARKER, "", 1).strip()
        action = action_raw.strip()
        return [
            ShapedChunk(chunk=f"{thought}\n", stream="thought"),
            ShapedChunk(chunk=f"{action}\n", stream="action", done=True),
        ]

    prefix = route_label(effective_route, model_name)
    return [ShapedChunk(chunk=f"{prefix}\n{text}\n", stream="action", done=True)]
