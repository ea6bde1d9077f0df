"""Configuration module for vibe-ade."""

from vibe_ade.config.loader import get_config_path, load_config, save_config
from vibe_ade.config.schema import AgentRoute, Config, ExecutionMode, VaultSettings
from vibe_ade.config.vault import SettingsVault

__all__ = [
    "AgentRoute",
    "Config",
    "ExecutionMode",
    "SettingsVault",
    "VaultSettings",
    "get_config_path",
    "load_config",
    "save_config",
]
