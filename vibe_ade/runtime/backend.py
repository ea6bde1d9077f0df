"""Process backends that host one pane's shell."""

from __future__ import annotations

import os
import subprocess
from typing import Protocol

from loguru import logger

from vibe_ade.errors import SpawnFailure

READ_SIZE = 4096
POLL_TIMEOUT_S = 0.1


class PTYBackend(Protocol):
    """What a pane session needs from its shell process.

    ``read`` returns "" when no output is pending; the session polls
    ``is_alive`` to tell an idle shell from a dead one.
    """

    def read(self) -> str: ...

    def write(self, data: str) -> None: ...

    def resize(self, cols: int, rows: int) -> None: ...

    def is_alive(self) -> bool: ...

    def close(self) -> None: ...


class PexpectShellBackend:
    """POSIX shell on a pseudo-terminal."""

    def __init__(
        self,
        command: str,
        cols: int = 80,
        rows: int = 24,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
    ) -> None:
        import pexpect

        self._quiet = (pexpect.TIMEOUT, pexpect.EOF)
        self._child = pexpect.spawn(
            command,
            args=[],
            encoding="utf-8",
            codec_errors="ignore",
            echo=False,
            dimensions=(rows, cols),
            cwd=cwd,
            env=env,
        )

    def read(self) -> str:
        try:
            return self._child.read_nonblocking(size=READ_SIZE, timeout=POLL_TIMEOUT_S)
        except self._quiet:
            return ""

    def write(self, data: str) -> None:
        self._child.send(data)

    def resize(self, cols: int, rows: int) -> None:
        self._child.setwinsize(rows, cols)

    def is_alive(self) -> bool:
        return bool(self._child.isalive())

    def close(self) -> None:
        if self._child.isalive():
            self._child.close(force=True)


def _spawn_winpty(command: str, cols: int, rows: int, cwd: str | None, env: dict[str, str]):
    """ConPTY first, then legacy WinPTY, then whatever pywinpty defaults to."""
    from winpty import Backend, PtyProcess

    failure: Exception | None = None
    for backend in (Backend.ConPTY, Backend.WinPTY, None):
        options = {} if backend is None else {"backend": backend}
        try:
            return PtyProcess.spawn(command, dimensions=(rows, cols), env=env, cwd=cwd, **options)
        except Exception as exc:  # pragma: no cover - windows only
            logger.debug(f"[pty] winpty spawn with {backend} failed: {exc}")
            failure = exc
    raise SpawnFailure(f"Could not start {command} on a Windows console: {failure}") from failure


class WinptyShellBackend:
    """Windows shell on a ConPTY/WinPTY console."""

    def __init__(
        self,
        command: str,
        cols: int = 80,
        rows: int = 24,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
    ) -> None:
        console_env = dict(env or os.environ)
        console_env.setdefault("TERM", "xterm-256color")
        console_env.setdefault("COLORTERM", "truecolor")
        self._child = _spawn_winpty(command, cols, rows, cwd, console_env)

    def read(self) -> str:
        try:
            return self._child.read(READ_SIZE)
        except EOFError:
            return ""

    def write(self, data: str) -> None:
        self._child.write(data)

    def resize(self, cols: int, rows: int) -> None:
        self._child.setwinsize(rows, cols)

    def is_alive(self) -> bool:
        return bool(self._child.isalive())

    def close(self) -> None:
        pid = getattr(self._child, "pid", None)
        self._child.close()
        if pid is not None:
            _kill_process_tree(pid)


class PipeShellBackend:
    """Shell over plain pipes; used on Windows when no console can be created.

    Output arrives one character at a time and resizing is a no-op.
    """

    def __init__(
        self,
        command: str,
        cols: int = 80,
        rows: int = 24,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
    ) -> None:
        self._child = subprocess.Popen(
            [command],
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="ignore",
            bufsize=1,
            cwd=cwd,
            env=env,
        )

    def read(self) -> str:
        if self._child.stdout is None:
            return ""
        return self._child.stdout.read(1) or ""

    def write(self, data: str) -> None:
        if self._child.stdin is None:
            return
        self._child.stdin.write(data)
        self._child.stdin.flush()

    def resize(self, cols: int, rows: int) -> None:
        return None

    def is_alive(self) -> bool:
        return self._child.poll() is None

    def close(self) -> None:
        if self.is_alive():
            self._child.terminate()
        if os.name == "nt":
            _kill_process_tree(self._child.pid)


def _kill_process_tree(pid: int) -> None:
    # Shells spawn their own children; taskkill /T takes them down too.
    try:
        subprocess.run(["taskkill", "/F", "/T", "/PID", str(pid)], capture_output=True, timeout=3)
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug(f"[pty] taskkill for pid {pid} failed: {exc}")


def build_backend(
    command: str,
    cols: int = 80,
    rows: int = 24,
    cwd: str | None = None,
    env: dict[str, str] | None = None,
) -> PTYBackend:
    """Start ``command`` on the best backend this platform offers.

    Raises SpawnFailure when nothing can start it.
    """
    if os.name != "nt":
        try:
            backend = PexpectShellBackend(command, cols=cols, rows=rows, cwd=cwd, env=env)
        except Exception as exc:
            raise SpawnFailure(str(exc)) from exc
        logger.info(f"[pty] {command[:60]} started on a pexpect pty")
        return backend

    try:
        backend = WinptyShellBackend(command, cols=cols, rows=rows, cwd=cwd, env=env)
    except Exception as exc:
        logger.warning(f"[pty] No console for {command[:60]} ({exc}); using pipes")
    else:
        logger.info(f"[pty] {command[:60]} started on a winpty console")
        return backend
    try:
        return PipeShellBackend(command, cols=cols, rows=rows, cwd=cwd, env=env)
    except OSError as exc:
        raise SpawnFailure(str(exc)) from exc
