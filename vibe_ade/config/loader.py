"""Load and save vibe-ade configuration."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from loguru import logger

from vibe_ade.config.schema import Config
from vibe_ade.utils.helpers import ensure_dir, get_data_path


def get_config_path() -> Path:
    """Path of the JSON config file."""
    return get_data_path() / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """Load config from disk, falling back to defaults on missing/invalid files."""
    path = config_path or get_config_path()
    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            return Config.model_validate(convert_keys(data))
        except (json.JSONDecodeError, ValueError) as exc:
            logger.warning(f"Failed to load config from {path}: {exc}")
            logger.warning("Using default configuration.")
    return Config()


def save_config(config: Config, config_path: Path | None = None) -> None:
    """Write config to disk with camelCase keys."""
    path = config_path or get_config_path()
    ensure_dir(path.parent)
    data = convert_to_camel(config.model_dump())
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def convert_keys(data: Any) -> Any:
    """Convert camelCase keys to snake_case recursively."""
    if isinstance(data, dict):
        return {camel_to_snake(k): convert_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def convert_to_camel(data: Any) -> Any:
    """Convert snake_case keys to camelCase recursively."""
    if isinstance(data, dict):
        return {snake_to_camel(k): convert_to_camel(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_to_camel(item) for item in data]
    return data


def camel_to_snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(word.capitalize() for word in rest)
