"""Pane id -> live shell session registry."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from loguru import logger

from vibe_ade.bus.events import PtyDataEvent, PtyExitEvent
from vibe_ade.bus.queue import PaneEventBus
from vibe_ade.config.schema import Config
from vibe_ade.config.vault import SettingsVault
from vibe_ade.errors import SpawnFailure
from vibe_ade.runtime.backend import PTYBackend, build_backend
from vibe_ade.runtime.policy import PolicyDecision, evaluate, normalize_for_shell
from vibe_ade.runtime.session import ShellSession
from vibe_ade.runtime.shell import resolve_cwd, resolve_shell, spawn_env

INTERRUPT = "\x03"
LINE_TERMINATOR = "\r"

BackendFactory = Callable[..., PTYBackend]


class SessionRegistry:
    """Own every pane's shell process.

    All public methods and all map mutations run on the event-loop thread.
    Reader threads only reach the registry through ``_dispatch``, which
    hops onto the loop with ``call_soon_threadsafe``.
    """

    def __init__(
        self,
        bus: PaneEventBus,
        vault: SettingsVault,
        config: Config,
        backend_factory: BackendFactory = build_backend,
        shell_resolver: Callable[[], str] = resolve_shell,
    ) -> None:
        self._bus = bus
        self._vault = vault
        self._config = config
        self._backend_factory = backend_factory
        self._shell_resolver = shell_resolver
        self._sessions: dict[str, ShellSession] = {}
        self._loop: asyncio.AbstractEventLoop | None = None

    # ── Lifecycle ─────────────────────────────────────────────────────

    def create(self, pane_id: str) -> bool:
        """Spawn a shell for ``pane_id``. Returns False if one exists or spawn failed."""
        if pane_id in self._sessions:
            return False
        self._bind_loop()

        mode = self._vault.execution_mode
        cwd = resolve_cwd(mode, self._config.project_root)
        exe = self._shell_resolver()
        panes = self._config.panes
        try:
            backend = self._backend_factory(
                exe,
                cols=panes.default_cols,
                rows=panes.default_rows,
                cwd=cwd,
                env=spawn_env(mode, panes.terminal_name),
            )
        except (SpawnFailure, OSError) as exc:
            logger.error(f"Failed to start shell for {pane_id}: {exc}")
            self._bus.publish(PtyDataEvent(pane_id, f"\r\n[Vibe-ADE] Failed to start shell: {exc}\r\n"))
            return False

        session = ShellSession(
            pane_id=pane_id,
            backend=backend,
            shell_exe=exe,
            cwd=cwd,
            on_data=self._on_reader_data,
            on_exit=self._on_reader_exit,
        )
        self._sessions[pane_id] = session
        session.start()
        logger.info(f"Shell started for {pane_id}: {exe} (cwd={cwd}, mode={mode.value})")
        return True

    def destroy(self, pane_id: str) -> bool:
        """Kill the pane's process and forget it. Idempotent."""
        session = self._sessions.pop(pane_id, None)
        if session is None:
            return False
        session.stop()
        return True

    def restart(self, pane_id: str) -> bool:
        self.destroy(pane_id)
        return self.create(pane_id)

    def shutdown(self) -> None:
        """Destroy every session."""
        for pane_id in list(self._sessions):
            self.destroy(pane_id)

    # ── I/O ───────────────────────────────────────────────────────────

    def resize(self, pane_id: str, cols: int, rows: int) -> None:
        session = self._sessions.get(pane_id)
        if session is None:
            return
        try:
            session.resize(cols, rows)
        except OSError as exc:
            logger.warning(f"Resize failed on {pane_id}: {exc}")

    def write(self, pane_id: str, line: str) -> PolicyDecision:
        """Policy-check, normalize and submit one command line."""
        session = self._sessions.get(pane_id)
        if line == INTERRUPT:
            self._send(session, INTERRUPT)
            return PolicyDecision(line=line)

        mode = self._vault.execution_mode
        decision = evaluate(line, mode)
        if not decision.allowed:
            logger.warning(f"Blocked command in {mode.value} mode on {pane_id}: {decision.reason}")
            self._bus.publish(PtyDataEvent(pane_id, f"\r\n[Vibe-ADE:{mode.value}] {decision.reason}\r\n"))
            return decision

        if session is not None:
            normalized = normalize_for_shell(decision.line, session.shell_exe)
            self._send(session, f"{normalized}{LINE_TERMINATOR}")
        return decision

    def write_raw(self, pane_id: str, data: str) -> None:
        """Forward interactive input verbatim."""
        session = self._sessions.get(pane_id)
        if session is None:
            return
        self._send(session, data)
        logger.debug(f"Raw input forwarded to {pane_id} ({len(data)} chars)")

    # ── Introspection ─────────────────────────────────────────────────

    def get(self, pane_id: str) -> ShellSession | None:
        return self._sessions.get(pane_id)

    def has_session(self, pane_id: str) -> bool:
        return pane_id in self._sessions

    @property
    def pane_ids(self) -> list[str]:
        return list(self._sessions)

    # ── Reader-thread bridge ──────────────────────────────────────────

    def _on_reader_data(self, session: ShellSession, chunk: str) -> None:
        self._dispatch(self._deliver_data, session, chunk)

    def _on_reader_exit(self, session: ShellSession) -> None:
        self._dispatch(self._handle_exit, session)

    def _deliver_data(self, session: ShellSession, chunk: str) -> None:
        if self._sessions.get(session.pane_id) is not session:
            return
        self._bus.publish(PtyDataEvent(session.pane_id, chunk))

    def _handle_exit(self, session: ShellSession) -> None:
        # Compare handles, not pane ids: a fast restart can deliver the old
        # process's exit after the new one is registered.
        if self._sessions.get(session.pane_id) is not session:
            logger.debug(f"Ignoring stale exit for {session.pane_id}")
            return
        del self._sessions[session.pane_id]
        logger.info(f"Shell exited for {session.pane_id}")
        self._bus.publish(PtyExitEvent(session.pane_id))

    def _dispatch(self, fn: Callable[..., None], *args: Any) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            fn(*args)
            return
        try:
            loop.call_soon_threadsafe(fn, *args)
        except RuntimeError:
            logger.debug("Event loop closed; dropping pane notification")

    def _bind_loop(self) -> None:
        if self._loop is not None and not self._loop.is_closed():
            return
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None

    @staticmethod
    def _send(session: ShellSession | None, data: str) -> None:
        if session is None:
            return
        try:
            session.write(data)
        except OSError as exc:
            logger.warning(f"Write failed on {session.pane_id}: {exc}")
