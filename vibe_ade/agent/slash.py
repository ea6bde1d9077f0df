"""Slash-command line parser: shell line or agent route + prompt."""

from __future__ import annotations

import re
from dataclasses import dataclass

from vibe_ade.config.schema import AgentRoute

_ROUTE_RE = re.compile(r"^/(local|cloud)(?:\s+(.*))?$", re.DOTALL)


@dataclass(frozen=True)
class ShellInput:
    line: str


@dataclass(frozen=True)
class AgentInput:
    route: AgentRoute
    prompt: str


ParsedInput = ShellInput | AgentInput


def parse_input_line(line: str) -> ParsedInput:
    """``/local ...`` and ``/cloud ...`` go to the agent; everything else to the shell."""
    trimmed = line.strip()
    if not trimmed:
        return ShellInput(line="")
    match = _ROUTE_RE.match(trimmed)
    if match:
        return AgentInput(route=AgentRoute(match.group(1)), prompt=(match.group(2) or "").strip())
    return ShellInput(line=line)
