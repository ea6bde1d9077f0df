from __future__ import annotations

from typer.testing import CliRunner

from vibe_ade import orchestrator as orchestrator_module
from vibe_ade.cli.commands import app
from vibe_ade.config.loader import get_config_path
from vibe_ade.config.schema import ExecutionMode
from vibe_ade.config.vault import SettingsVault
from vibe_ade.runtime.registry import SessionRegistry
from vibe_ade.utils import log_setup

runner = CliRunner()


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert "vibe-ade v" in result.output


def test_onboard_writes_config() -> None:
    result = runner.invoke(app, ["onboard", "--non-interactive"])

    assert result.exit_code == 0
    assert get_config_path().exists()

    again = runner.invoke(app, ["onboard", "--non-interactive"])
    assert "already exists" in again.output


def test_status_reports_mode_and_models() -> None:
    result = runner.invoke(app, ["status"])

    assert result.exit_code == 0
    assert "sandboxed" in result.output
    assert "llama3.2" in result.output
    assert "missing" in result.output


def test_vault_set_and_show_masks_key() -> None:
    result = runner.invoke(app, ["vault", "set", "--cloud-api-key", "sk-abcdef123456", "--cloud-model", "gpt-4.1"])

    assert result.exit_code == 0
    settings = SettingsVault().get()
    assert settings.cloud_api_key == "sk-abcdef123456"
    assert settings.cloud_model == "gpt-4.1"

    shown = runner.invoke(app, ["vault", "show"])
    assert "sk-abcdef123456" not in shown.output
    assert "gpt-4.1" in shown.output


def test_vault_system_wide_needs_acknowledgement() -> None:
    refused = runner.invoke(app, ["vault", "set", "--mode", "system-wide"])

    assert refused.exit_code == 1
    assert "requires acknowledgement" in refused.output

    accepted = runner.invoke(app, ["vault", "set", "--mode", "system-wide", "--acknowledge-system-wide"])

    assert accepted.exit_code == 0
    assert SettingsVault().execution_mode is ExecutionMode.SYSTEM_WIDE


def test_run_host_routes_lines_and_quits(monkeypatch, tmp_path, backend_factory) -> None:
    monkeypatch.setattr(log_setup, "configure_logging", lambda *_a, **_k: tmp_path / "vibe-ade.log")
    monkeypatch.setattr(
        orchestrator_module,
        "SessionRegistry",
        lambda bus, vault, config: SessionRegistry(
            bus, vault, config, backend_factory=backend_factory, shell_resolver=lambda: "/bin/bash"
        ),
    )

    result = runner.invoke(app, ["run", "--layout", "4"], input="echo hi\n:pane 3\nrm -rf /\n:pane 9\n:quit\n")

    assert result.exit_code == 0, result.output
    assert "pane-1, pane-2, pane-3, pane-4" in result.output
    assert "No such pane: 9" in result.output
    assert backend_factory.spawned[0].writes == ["echo hi\r"]
    assert backend_factory.spawned[2].writes == []
    assert all(b.closed for b in backend_factory.spawned)
