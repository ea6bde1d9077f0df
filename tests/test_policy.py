from __future__ import annotations

import pytest

from vibe_ade.config.schema import ExecutionMode
from vibe_ade.errors import PolicyViolation
from vibe_ade.runtime.policy import (
    HIGH_RISK_REASON,
    TRAVERSAL_REASON,
    evaluate,
    normalize_for_shell,
    sanitize_command_for_mode,
)


@pytest.mark.parametrize(
    "line",
    [
        "rmdir /s project",
        "Remove-Item -Recurse .\\src",
        "del *.txt",
        "format C:",
        "shutdown /s /t 0",
        "reg delete HKCU\\Software\\X",
        "icacls secrets /grant everyone:F",
        "rm -rf build",
        "sudo chmod 777 /etc/passwd",
    ],
)
def test_sandboxed_rejects_destructive_commands(line: str) -> None:
    decision = evaluate(line, ExecutionMode.SANDBOXED)

    assert not decision.allowed
    assert decision.reason == HIGH_RISK_REASON


@pytest.mark.parametrize("line", ["cd ..", "  CD ..\\..", "Set-Location ..", "pushd ../other"])
def test_sandboxed_rejects_parent_traversal(line: str) -> None:
    decision = evaluate(line, ExecutionMode.SANDBOXED)

    assert decision.reason == TRAVERSAL_REASON


@pytest.mark.parametrize("line", ["git status", "ls -la", "cd src", "echo model", "python -m pytest", ""])
def test_sandboxed_allows_ordinary_commands(line: str) -> None:
    decision = evaluate(line, ExecutionMode.SANDBOXED)

    assert decision.allowed
    assert decision.line == line


@pytest.mark.parametrize("mode", [ExecutionMode.SYSTEM_WIDE, ExecutionMode.DUAL_STREAM])
def test_other_modes_do_not_filter(mode: ExecutionMode) -> None:
    assert evaluate("rmdir /s project", mode).allowed
    assert evaluate("cd ..", mode).allowed


def test_sanitize_raises_with_reason() -> None:
    with pytest.raises(PolicyViolation) as excinfo:
        sanitize_command_for_mode("rmdir /s project", ExecutionMode.SANDBOXED)

    assert excinfo.value.reason == HIGH_RISK_REASON


def test_normalize_maps_ls_for_cmd_only() -> None:
    cmd = "C:\\Windows\\System32\\cmd.exe"

    assert normalize_for_shell("ls", cmd) == "dir"
    assert normalize_for_shell("  ls /w  ", cmd) == "dir /w"
    assert normalize_for_shell("lsof", cmd) == "lsof"
    assert normalize_for_shell("ls", "/bin/bash") == "ls"
    assert normalize_for_shell("ls", "C:\\Program Files\\PowerShell\\7\\pwsh.exe") == "ls"
