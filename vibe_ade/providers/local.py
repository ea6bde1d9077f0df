"""Local (Ollama) generation backend."""

from __future__ import annotations

from typing import Any

from vibe_ade.config.schema import LOCAL_GENERATE_URL, ExecutionMode
from vibe_ade.config.vault import SettingsVault
from vibe_ade.providers.base import BackendClient, BackendRequest


class LocalBackendClient(BackendClient):
    """Non-streaming ``/api/generate`` on the loopback Ollama server."""

    name = "local"
    label = "Ollama"

    def __init__(
        self,
        vault: SettingsVault,
        url: str = LOCAL_GENERATE_URL,
        timeout_s: float = 20.0,
        retry_backoff_s: float = 0.25,
    ) -> None:
        super().__init__(timeout_s=timeout_s, retry_backoff_s=retry_backoff_s)
        self._vault = vault
        self.url = url

    def model_name(self) -> str:
        return self._vault.get().local_model

    def build_request(self, prompt: str, mode: ExecutionMode) -> BackendRequest:
        del mode
        return BackendRequest(
            url=self.url,
            payload={"model": self.model_name(), "prompt": prompt, "stream": False},
        )

    def parse_response(self, body: Any) -> str:
        if not isinstance(body, dict):
            return ""
        text = body.get("response")
        return text if isinstance(text, str) else ""
