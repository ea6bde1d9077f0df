"""Error taxonomy for pane sessions and agent routing.

Every failure here is scoped to one pane or one agent request; none of them
is fatal to the host process.
"""

from __future__ import annotations


class VibeError(RuntimeError):
    """Base class for vibe-ade errors."""


class PolicyViolation(VibeError):
    """Command rejected by the execution-mode policy before reaching the shell."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class SpawnFailure(VibeError):
    """Shell process could not be started for a pane."""


class VaultError(VibeError):
    """Settings update rejected by the vault."""


class BackendError(VibeError):
    """Agent backend request failed."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class BackendTransient(BackendError):
    """Backend failure that may succeed on retry (timeout, 408, 429, 5xx)."""


class MissingCredential(BackendError):
    """Cloud backend has no credential configured."""


class Cancelled(BackendError):
    """Agent request was cancelled by the user or superseded."""

    def __init__(self, message: str = "Agent request was cancelled.") -> None:
        super().__init__(message)
