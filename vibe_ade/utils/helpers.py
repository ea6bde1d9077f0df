"""Filesystem and runtime helpers."""

from __future__ import annotations

import os
import platform
import sys
from pathlib import Path

from vibe_ade import __version__


def ensure_dir(path: Path) -> Path:
    """Create directory if missing and return it."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_path() -> Path:
    """Data directory (~/.vibe-ade, overridable with VIBE_ADE_HOME)."""
    override = os.environ.get("VIBE_ADE_HOME", "").strip()
    if override:
        return ensure_dir(Path(override).expanduser())
    return ensure_dir(Path.home() / ".vibe-ade")


def runtime_info() -> dict[str, str]:
    """Versions shown in the status bar / status command."""
    return {
        "python": platform.python_version(),
        "implementation": platform.python_implementation(),
        "platform": sys.platform,
        "vibe_ade": __version__,
    }
