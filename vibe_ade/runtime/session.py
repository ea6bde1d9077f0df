"""One shell process bound to a pane."""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from loguru import logger

from vibe_ade.runtime.backend import PTYBackend

DataCallback = Callable[["ShellSession", str], None]
ExitCallback = Callable[["ShellSession"], None]


class ShellSession:
    """Manage one shell PTY and its output reader thread.

    Output and exit notifications are passed to ``on_data`` / ``on_exit``
    from the reader thread; the registry marshals them onto the event loop.
    ``on_exit`` fires exactly once, whether the shell exited on its own or
    was stopped.
    """

    def __init__(
        self,
        pane_id: str,
        backend: PTYBackend,
        shell_exe: str,
        cwd: str,
        on_data: DataCallback,
        on_exit: ExitCallback,
        idle_sleep_s: float = 0.01,
    ) -> None:
        self.pane_id = pane_id
        self.shell_exe = shell_exe
        self.cwd = cwd
        self._backend: Optional[PTYBackend] = backend
        self._on_data = on_data
        self._on_exit = on_exit
        self._idle_sleep_s = idle_sleep_s
        self._running = False
        self._exit_lock = threading.Lock()
        self._exit_reported = False
        self._reader_thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        """Return True while the reader is active and the process alive."""
        return self._running

    def start(self) -> None:
        """Start the output reader thread."""
        if self._running:
            return
        self._running = True
        self._reader_thread = threading.Thread(
            target=self._read_loop,
            daemon=True,
            name=f"vibe-ade-pty-{self.pane_id}",
        )
        self._reader_thread.start()

    def _read_loop(self) -> None:
        try:
            while self._running:
                backend = self._backend
                if backend is None:
                    break
                try:
                    data = backend.read()
                except (OSError, ValueError) as exc:
                    logger.debug(f"[pty] read failed on {self.pane_id}: {exc}")
                    break
                if not self._running:
                    break
                if data:
                    self._on_data(self, data)
                    continue
                if not backend.is_alive():
                    break
                time.sleep(self._idle_sleep_s)
        finally:
            self._running = False
            self._report_exit()

    def write(self, data: str) -> None:
        """Send text to the shell's stdin."""
        if self._backend is None:
            return
        self._backend.write(data)

    def resize(self, cols: int, rows: int) -> None:
        if self._backend is not None:
            self._backend.resize(cols, rows)

    def stop(self) -> None:
        """Stop reader and close the PTY process."""
        self._running = False
        backend, self._backend = self._backend, None
        if backend is not None:
            try:
                backend.close()
            except OSError as exc:
                logger.warning(f"[pty] close failed on {self.pane_id}: {exc}")
        # The reader sees the cleared backend and exits on its own.
        self._reader_thread = None
        self._report_exit()

    def _report_exit(self) -> None:
        with self._exit_lock:
            if self._exit_reported:
                return
            self._exit_reported = True
        self._on_exit(self)
