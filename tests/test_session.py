from __future__ import annotations

import threading
import time

from vibe_ade.runtime.session import ShellSession


class _ScriptedBackend:
    """Yields a fixed set of chunks, then reports the process as dead."""

    def __init__(self, chunks: list[str]) -> None:
        self._chunks = list(chunks)
        self.closed = False

    def read(self) -> str:
        return self._chunks.pop(0) if self._chunks else ""

    def write(self, data: str) -> None:
        pass

    def resize(self, cols: int, rows: int) -> None:
        pass

    def is_alive(self) -> bool:
        return bool(self._chunks)

    def close(self) -> None:
        self.closed = True


def test_reader_forwards_output_then_reports_exit_once() -> None:
    received: list[str] = []
    exits: list[ShellSession] = []
    exited = threading.Event()

    def on_exit(session: ShellSession) -> None:
        exits.append(session)
        exited.set()

    session = ShellSession(
        pane_id="pane-1",
        backend=_ScriptedBackend(["PS> ", "hello\r\n"]),
        shell_exe="/bin/bash",
        cwd="/tmp",
        on_data=lambda _s, chunk: received.append(chunk),
        on_exit=on_exit,
    )
    session.start()

    assert exited.wait(timeout=2.0)
    session.stop()

    assert received == ["PS> ", "hello\r\n"]
    assert exits == [session]
    assert not session.is_running


def test_stop_closes_backend_and_reports_exit() -> None:
    backend = _ScriptedBackend([])
    exits: list[ShellSession] = []
    session = ShellSession(
        pane_id="pane-1",
        backend=backend,
        shell_exe="/bin/bash",
        cwd="/tmp",
        on_data=lambda _s, _c: None,
        on_exit=exits.append,
    )

    session.stop()
    session.stop()

    assert backend.closed
    assert exits == [session]


class _BlockingBackend(_ScriptedBackend):
    """``read`` parks until released, like a PTY with no pending output."""

    def __init__(self) -> None:
        super().__init__([])
        self.reading = threading.Event()
        self.release = threading.Event()

    def read(self) -> str:
        self.reading.set()
        self.release.wait(timeout=5.0)
        return "late output"

    def is_alive(self) -> bool:
        return not self.closed


def test_stop_does_not_wait_for_blocked_reader() -> None:
    backend = _BlockingBackend()
    received: list[str] = []
    exits: list[ShellSession] = []
    session = ShellSession(
        pane_id="pane-1",
        backend=backend,
        shell_exe="/bin/bash",
        cwd="/tmp",
        on_data=lambda _s, chunk: received.append(chunk),
        on_exit=exits.append,
    )
    session.start()
    reader = session._reader_thread
    assert backend.reading.wait(timeout=2.0)

    started = time.monotonic()
    session.stop()
    elapsed = time.monotonic() - started

    backend.release.set()
    reader.join(timeout=2.0)

    assert elapsed < 0.5
    assert backend.closed
    assert not reader.is_alive()
    assert received == []
    assert exits == [session]
