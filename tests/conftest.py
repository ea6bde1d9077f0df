"""
Shared fixtures: isolated data dir, vault, config and fake PTY backends.
"""

from __future__ import annotations

import pytest

from vibe_ade.bus.queue import PaneEventBus
from vibe_ade.config.schema import Config, PanesConfig
from vibe_ade.config.vault import SettingsVault


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path, monkeypatch):
    """Keep vault/config/log files out of the real ~/.vibe-ade."""
    home = tmp_path / "vibe-home"
    monkeypatch.setenv("VIBE_ADE_HOME", str(home))
    return home


@pytest.fixture
def vault(_isolated_home) -> SettingsVault:
    return SettingsVault()


@pytest.fixture
def project_root(tmp_path):
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def config(project_root) -> Config:
    return Config(panes=PanesConfig(project_root=str(project_root)))


@pytest.fixture
def bus_events():
    """A bus plus the list of everything published on it."""
    bus = PaneEventBus()
    events: list = []
    bus.subscribe(events.append)
    return bus, events


class FakeBackend:
    def __init__(self, command: str, cols: int, rows: int, cwd: str | None, env: dict[str, str] | None) -> None:
        self.command = command
        self.cols = cols
        self.rows = rows
        self.cwd = cwd
        self.env = env or {}
        self.writes: list[str] = []
        self.sizes: list[tuple[int, int]] = []
        self.alive = True
        self.closed = False

    def read(self) -> str:
        return ""

    def write(self, data: str) -> None:
        self.writes.append(data)

    def resize(self, cols: int, rows: int) -> None:
        self.sizes.append((cols, rows))

    def is_alive(self) -> bool:
        return self.alive

    def close(self) -> None:
        self.alive = False
        self.closed = True


class FakeBackendFactory:
    """Stands in for ``build_backend``; records every spawned backend."""

    def __init__(self) -> None:
        self.spawned: list[FakeBackend] = []
        self.fail_with: Exception | None = None

    def __call__(self, command, cols=80, rows=24, cwd=None, env=None) -> FakeBackend:
        if self.fail_with is not None:
            raise self.fail_with
        backend = FakeBackend(command, cols, rows, cwd, env)
        self.spawned.append(backend)
        return backend


@pytest.fixture
def backend_factory() -> FakeBackendFactory:
    return FakeBackendFactory()
