"""Shell-process runtime: PTY backends, policy filter, session registry."""

from .backend import PTYBackend, build_backend
from .policy import PolicyDecision, evaluate, normalize_for_shell, sanitize_command_for_mode
from .registry import INTERRUPT, SessionRegistry
from .session import ShellSession
from .shell import resolve_cwd, resolve_shell, shell_candidates

__all__ = [
    "INTERRUPT",
    "PTYBackend",
    "PolicyDecision",
    "SessionRegistry",
    "ShellSession",
    "build_backend",
    "evaluate",
    "normalize_for_shell",
    "resolve_cwd",
    "resolve_shell",
    "sanitize_command_for_mode",
    "shell_candidates",
]
