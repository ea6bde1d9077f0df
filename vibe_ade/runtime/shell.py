"""Shell executable and working-directory resolution for new panes."""

from __future__ import annotations

import os
from pathlib import Path

from vibe_ade.config.schema import ExecutionMode

WINDOWS_DEFAULT_SHELL = "C:\\Windows\\System32\\cmd.exe"
POSIX_DEFAULT_SHELL = "/bin/sh"


def shell_candidates() -> list[str]:
    """Ordered shell paths to try, most capable first."""
    if os.name == "nt":
        return [
            "C:\\Program Files\\PowerShell\\7\\pwsh.exe",
            "C:\\Windows\\System32\\WindowsPowerShell\\v1.0\\powershell.exe",
            os.environ.get("ComSpec") or WINDOWS_DEFAULT_SHELL,
        ]
    candidates = [os.environ.get("SHELL", "").strip(), "/bin/bash", "/usr/bin/bash", "/bin/zsh"]
    return [c for c in candidates if c]


def resolve_shell(candidates: list[str] | None = None) -> str:
    """First existing candidate, else the platform default."""
    for path in candidates if candidates is not None else shell_candidates():
        if path and Path(path).is_file():
            return path
    return WINDOWS_DEFAULT_SHELL if os.name == "nt" else POSIX_DEFAULT_SHELL


def resolve_cwd(mode: ExecutionMode, project_root: Path) -> str:
    """Home directory under system-wide, project root otherwise."""
    if mode is ExecutionMode.SYSTEM_WIDE:
        return str(Path.home())
    return str(project_root)


def spawn_env(mode: ExecutionMode, terminal_name: str = "xterm-color") -> dict[str, str]:
    """Environment for a new shell with the execution mode propagated."""
    env = dict(os.environ)
    env.setdefault("TERM", terminal_name)
    env["VIBE_ADE_MODE"] = mode.value
    return env
