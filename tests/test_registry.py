from __future__ import annotations

import asyncio
from pathlib import Path
from types import SimpleNamespace

import pytest

from vibe_ade.bus.events import PtyDataEvent, PtyExitEvent
from vibe_ade.errors import SpawnFailure
from vibe_ade.runtime import backend as backend_module
from vibe_ade.runtime.registry import SessionRegistry

CMD_EXE = "C:\\Windows\\System32\\cmd.exe"


def _registry(bus, vault, config, factory, shell: str = "/bin/bash") -> SessionRegistry:
    return SessionRegistry(bus, vault, config, backend_factory=factory, shell_resolver=lambda: shell)


def test_create_is_idempotent(bus_events, vault, config, backend_factory) -> None:
    bus, _ = bus_events
    registry = _registry(bus, vault, config, backend_factory)

    assert registry.create("pane-1") is True
    assert registry.create("pane-1") is False

    assert len(backend_factory.spawned) == 1
    assert registry.pane_ids == ["pane-1"]
    registry.shutdown()


def test_spawn_uses_mode_cwd_and_env(bus_events, vault, config, backend_factory, project_root) -> None:
    bus, _ = bus_events
    registry = _registry(bus, vault, config, backend_factory)

    registry.create("pane-1")
    vault.set(system_wide_acknowledged=True, execution_mode="system-wide")
    registry.create("pane-2")

    sandboxed, system_wide = backend_factory.spawned
    assert sandboxed.cwd == str(project_root)
    assert sandboxed.env["VIBE_ADE_MODE"] == "sandboxed"
    assert system_wide.cwd == str(Path.home())
    assert system_wide.env["VIBE_ADE_MODE"] == "system-wide"
    assert (sandboxed.cols, sandboxed.rows) == (config.panes.default_cols, config.panes.default_rows)
    registry.shutdown()


def test_spawn_failure_emits_notice_and_registers_nothing(bus_events, vault, config, backend_factory) -> None:
    bus, events = bus_events
    backend_factory.fail_with = SpawnFailure("no such shell")
    registry = _registry(bus, vault, config, backend_factory)

    assert registry.create("pane-1") is False

    assert not registry.has_session("pane-1")
    assert events == [PtyDataEvent("pane-1", "\r\n[Vibe-ADE] Failed to start shell: no such shell\r\n")]


def test_sandboxed_rejection_never_reaches_process(bus_events, vault, config, backend_factory) -> None:
    bus, events = bus_events
    registry = _registry(bus, vault, config, backend_factory)
    registry.create("pane-1")

    decision = registry.write("pane-1", "rmdir /s project")

    assert not decision.allowed
    assert backend_factory.spawned[0].writes == []
    assert PtyDataEvent("pane-1", "\r\n[Vibe-ADE:sandboxed] high-risk command blocked\r\n") in events
    registry.shutdown()


def test_system_wide_accepts_and_terminates_line(bus_events, vault, config, backend_factory) -> None:
    bus, _ = bus_events
    registry = _registry(bus, vault, config, backend_factory)
    registry.create("pane-1")
    vault.set(system_wide_acknowledged=True, execution_mode="system-wide")

    decision = registry.write("pane-1", "rmdir /s project")

    assert decision.allowed
    assert backend_factory.spawned[0].writes == ["rmdir /s project\r"]
    registry.shutdown()


def test_interrupt_bypasses_policy_and_terminator(bus_events, vault, config, backend_factory) -> None:
    bus, _ = bus_events
    registry = _registry(bus, vault, config, backend_factory)
    registry.create("pane-1")

    registry.write("pane-1", "\x03")

    assert backend_factory.spawned[0].writes == ["\x03"]
    registry.shutdown()


def test_cmd_exe_gets_dir_for_ls(bus_events, vault, config, backend_factory) -> None:
    bus, _ = bus_events
    registry = _registry(bus, vault, config, backend_factory, shell=CMD_EXE)
    registry.create("pane-1")

    registry.write("pane-1", "ls /w")

    assert backend_factory.spawned[0].writes == ["dir /w\r"]
    registry.shutdown()


def test_raw_input_and_resize_pass_through(bus_events, vault, config, backend_factory) -> None:
    bus, _ = bus_events
    registry = _registry(bus, vault, config, backend_factory)
    registry.create("pane-1")

    registry.write_raw("pane-1", "rm -rf /\x1b[A")
    registry.resize("pane-1", 120, 40)

    backend = backend_factory.spawned[0]
    assert backend.writes == ["rm -rf /\x1b[A"]
    assert backend.sizes == [(120, 40)]
    registry.shutdown()


def test_missing_pane_operations_are_silent(bus_events, vault, config, backend_factory) -> None:
    bus, events = bus_events
    registry = _registry(bus, vault, config, backend_factory)

    assert registry.write("ghost", "echo hi").allowed
    registry.write_raw("ghost", "x")
    registry.resize("ghost", 10, 10)
    assert registry.destroy("ghost") is False

    assert events == []


def test_destroy_closes_process(bus_events, vault, config, backend_factory) -> None:
    bus, events = bus_events
    registry = _registry(bus, vault, config, backend_factory)
    registry.create("pane-1")

    assert registry.destroy("pane-1") is True
    assert registry.destroy("pane-1") is False

    assert backend_factory.spawned[0].closed
    assert not any(isinstance(e, PtyExitEvent) for e in events)


def test_stale_exit_after_restart_keeps_new_session(bus_events, vault, config, backend_factory) -> None:
    bus, events = bus_events
    registry = _registry(bus, vault, config, backend_factory)
    registry.create("pane-1")
    old = registry.get("pane-1")

    assert registry.restart("pane-1") is True
    new = registry.get("pane-1")
    registry._handle_exit(old)

    assert new is not old
    assert registry.get("pane-1") is new
    assert not any(isinstance(e, PtyExitEvent) for e in events)

    registry._handle_exit(new)

    assert not registry.has_session("pane-1")
    assert events[-1] == PtyExitEvent("pane-1")
    new.stop()


def test_stale_output_is_dropped(bus_events, vault, config, backend_factory) -> None:
    bus, events = bus_events
    registry = _registry(bus, vault, config, backend_factory)
    registry.create("pane-1")
    old = registry.get("pane-1")
    registry.restart("pane-1")

    registry._deliver_data(old, "old output")
    registry._deliver_data(registry.get("pane-1"), "new output")

    assert [e.chunk for e in events if isinstance(e, PtyDataEvent)] == ["new output"]
    registry.shutdown()


def test_process_exit_is_marshalled_onto_loop(bus_events, vault, config, backend_factory) -> None:
    bus, events = bus_events

    async def scenario() -> None:
        registry = _registry(bus, vault, config, backend_factory)
        registry.create("pane-1")
        backend_factory.spawned[0].alive = False

        for _ in range(200):
            if not registry.has_session("pane-1"):
                break
            await asyncio.sleep(0.01)

        assert not registry.has_session("pane-1")
        assert events[-1] == PtyExitEvent("pane-1")

    asyncio.run(scenario())


def test_build_backend_reports_pty_failure_as_spawn_failure(monkeypatch) -> None:
    def refuse(*_args, **_kwargs):
        raise OSError("pty devices exhausted")

    monkeypatch.setattr(backend_module, "os", SimpleNamespace(name="posix", environ={}))
    monkeypatch.setattr(backend_module, "PexpectShellBackend", refuse)

    with pytest.raises(SpawnFailure, match="pty devices exhausted"):
        backend_module.build_backend("/bin/bash", cwd="/tmp")


def test_windows_falls_back_to_pipes_when_console_fails(monkeypatch) -> None:
    class _Pipes:
        def __init__(self, command, cols=80, rows=24, cwd=None, env=None) -> None:
            self.command = command

    def no_console(*_args, **_kwargs):
        raise SpawnFailure("no console")

    monkeypatch.setattr(backend_module, "os", SimpleNamespace(name="nt", environ={}))
    monkeypatch.setattr(backend_module, "WinptyShellBackend", no_console)
    monkeypatch.setattr(backend_module, "PipeShellBackend", _Pipes)

    backend = backend_module.build_backend(CMD_EXE)

    assert isinstance(backend, _Pipes)
    assert backend.command == CMD_EXE
