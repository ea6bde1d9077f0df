"""Agent backends: local Ollama and cloud chat-completions clients."""

from vibe_ade.providers.base import BackendClient, BackendRequest, HttpResponse, is_transient_status
from vibe_ade.providers.cloud import CloudBackendClient
from vibe_ade.providers.local import LocalBackendClient

__all__ = [
    "BackendClient",
    "BackendRequest",
    "CloudBackendClient",
    "HttpResponse",
    "LocalBackendClient",
    "is_transient_status",
]
