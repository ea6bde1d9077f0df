"""Configuration schema for vibe-ade."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings


class ExecutionMode(str, Enum):
    """Process-wide execution mode."""

    SANDBOXED = "sandboxed"
    SYSTEM_WIDE = "system-wide"
    DUAL_STREAM = "dual-stream"


class AgentRoute(str, Enum):
    """Agent backend choice."""

    LOCAL = "local"
    CLOUD = "cloud"


LOCAL_GENERATE_URL = "http://127.0.0.1:11434/api/generate"
DEFAULT_CLOUD_URL = "https://api.openai.com/v1/chat/completions"


class BackendsConfig(BaseModel):
    """HTTP backend settings shared by the local and cloud clients."""

    local_url: str = LOCAL_GENERATE_URL
    local_timeout_s: float = 20.0
    cloud_timeout_s: float = 30.0
    retry_backoff_s: float = 0.25
    temperature: float = 0.2


class PanesConfig(BaseModel):
    """Shell pane defaults."""

    default_cols: int = 100
    default_rows: int = 28
    terminal_name: str = "xterm-color"
    layout_template: int = 2
    project_root: str = ""


class LoggingConfig(BaseModel):
    """Application log settings."""

    level: str = "INFO"
    file_name: str = "vibe-ade.log"
    rotation: str = "5 MB"
    retention: int = 3


class VaultData(BaseModel):
    """On-disk shape of the settings vault."""

    cloud_api_key_encrypted: str = ""
    cloud_api_base_url: str = DEFAULT_CLOUD_URL
    local_model: str = "llama3.2"
    cloud_model: str = "gpt-4o"
    execution_mode: ExecutionMode = ExecutionMode.SANDBOXED
    system_wide_acknowledged: bool = False

    model_config = ConfigDict(use_enum_values=False, extra="ignore")


class VaultSettings(BaseModel):
    """Decrypted view of the vault returned to callers."""

    cloud_api_key: str = ""
    cloud_api_base_url: str = DEFAULT_CLOUD_URL
    local_model: str = "llama3.2"
    cloud_model: str = "gpt-4o"
    execution_mode: ExecutionMode = ExecutionMode.SANDBOXED
    system_wide_acknowledged: bool = False


class Config(BaseSettings):
    """Root configuration for vibe-ade."""

    backends: BackendsConfig = Field(default_factory=BackendsConfig)
    panes: PanesConfig = Field(default_factory=PanesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def project_root(self) -> Path:
        """Working directory for sandboxed and dual-stream panes."""
        raw = (self.panes.project_root or "").strip()
        if not raw:
            return Path.cwd().resolve()
        return Path(raw).expanduser().resolve()

    model_config = ConfigDict(
        env_prefix="VIBE_ADE_",
        env_nested_delimiter="__",
        extra="ignore",
    )
