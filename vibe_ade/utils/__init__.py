"""Utility functions for vibe-ade."""

from vibe_ade.utils.helpers import ensure_dir, get_data_path, runtime_info

__all__ = ["ensure_dir", "get_data_path", "runtime_info"]
