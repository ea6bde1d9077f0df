"""Execution-mode command policy and shell-specific normalization.

Sandboxed patterns are plain regex matches over the raw line, not a shell
parser. Case variants are handled; aliasing, chaining and quoting tricks are
not. Treat this as best-effort filtering.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from vibe_ade.config.schema import ExecutionMode
from vibe_ade.errors import PolicyViolation

HIGH_RISK_REASON = "high-risk command blocked"
TRAVERSAL_REASON = "traversal blocked"

_BLOCKED_PATTERNS = (
    re.compile(r"\b(remove-item|del|erase|rmdir|rd|rm|format|mkfs|shutdown|reboot|poweroff|halt)\b", re.IGNORECASE),
    re.compile(r"\b(reg\s+delete|takeown|icacls|chmod|chown|cacls)\b", re.IGNORECASE),
)

_TRAVERSAL_RE = re.compile(r"^(cd|chdir|set-location|sl|pushd)\s+\.\.", re.IGNORECASE)


@dataclass(frozen=True)
class PolicyDecision:
    """Outcome of evaluating one command line."""

    line: str
    reason: str | None = None

    @property
    def allowed(self) -> bool:
        return self.reason is None


def sanitize_command_for_mode(command: str, mode: ExecutionMode) -> str:
    """Return ``command`` unchanged or raise PolicyViolation in sandboxed mode."""
    if mode is not ExecutionMode.SANDBOXED:
        return command

    trimmed = command.strip()
    if not trimmed:
        return command

    for pattern in _BLOCKED_PATTERNS:
        if pattern.search(trimmed):
            raise PolicyViolation(HIGH_RISK_REASON)

    if _TRAVERSAL_RE.match(trimmed):
        raise PolicyViolation(TRAVERSAL_REASON)

    return command


def evaluate(command: str, mode: ExecutionMode) -> PolicyDecision:
    """Non-raising form of :func:`sanitize_command_for_mode`."""
    try:
        return PolicyDecision(line=sanitize_command_for_mode(command, mode))
    except PolicyViolation as exc:
        return PolicyDecision(line=command, reason=exc.reason)


def normalize_for_shell(command: str, shell_exe: str) -> str:
    """Map ``ls`` to ``dir`` when the pane runs the legacy cmd.exe interpreter."""
    if not shell_exe.lower().endswith("cmd.exe"):
        return command
    trimmed = command.strip()
    if trimmed == "ls":
        return "dir"
    if trimmed.startswith("ls "):
        return f"dir {trimmed[3:]}"
    return command
