"""Cloud (OpenAI-compatible chat completions) backend."""

from __future__ import annotations

from typing import Any

from vibe_ade.config.schema import ExecutionMode
from vibe_ade.config.vault import SettingsVault
from vibe_ade.errors import MissingCredential
from vibe_ade.providers.base import BackendClient, BackendRequest, normalize_content

DUAL_STREAM_INSTRUCTION = (
    "Return with two sections exactly: [THOUGHT] then [ACTION]. Include ANSI code blocks when useful."
)
DEFAULT_INSTRUCTION = "Answer with concise, ANSI-friendly markdown. Prefer fenced code blocks for commands."
MISSING_KEY_MESSAGE = "Cloud API key missing in Settings Vault. Add a key or use /local."


class CloudBackendClient(BackendClient):
    """Bearer-authenticated chat completion against the configured endpoint."""

    name = "cloud"
    label = "Cloud API"

    def __init__(
        self,
        vault: SettingsVault,
        timeout_s: float = 30.0,
        retry_backoff_s: float = 0.25,
        temperature: float = 0.2,
    ) -> None:
        super().__init__(timeout_s=timeout_s, retry_backoff_s=retry_backoff_s)
        self._vault = vault
        self.temperature = temperature

    def model_name(self) -> str:
        return self._vault.get().cloud_model

    def build_request(self, prompt: str, mode: ExecutionMode) -> BackendRequest:
        settings = self._vault.get()
        api_key = settings.cloud_api_key.strip()
        if not api_key:
            raise MissingCredential(MISSING_KEY_MESSAGE)

        instruction = DUAL_STREAM_INSTRUCTION if mode is ExecutionMode.DUAL_STREAM else DEFAULT_INSTRUCTION
        return BackendRequest(
            url=settings.cloud_api_base_url,
            payload={
                "model": settings.cloud_model,
                "messages": [
                    {"role": "system", "content": instruction},
                    {"role": "user", "content": prompt},
                ],
                "temperature": self.temperature,
            },
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}",
            },
        )

    def parse_response(self, body: Any) -> str:
        if not isinstance(body, dict):
            return ""
        choices = body.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            return ""
        message = choices[0].get("message")
        if not isinstance(message, dict):
            return ""
        return normalize_content(message.get("content"))
