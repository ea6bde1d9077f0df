"""Pane orchestrator: the one object the UI host and settings layer talk to."""

from __future__ import annotations

import asyncio
from pathlib import Path

from loguru import logger

from vibe_ade.agent.router import AgentOutcome, AgentRouter
from vibe_ade.agent.slash import AgentInput, parse_input_line
from vibe_ade.bus.queue import PaneEventBus
from vibe_ade.config.schema import AgentRoute, Config
from vibe_ade.config.vault import SettingsVault
from vibe_ade.providers.cloud import CloudBackendClient
from vibe_ade.providers.local import LocalBackendClient
from vibe_ade.runtime.policy import PolicyDecision
from vibe_ade.runtime.registry import SessionRegistry
from vibe_ade.session.layout import LayoutManager


class PaneOrchestrator:
    """Bind the session registry and agent router per pane id.

    Holds no pane state of its own beyond the layout and the agent tasks it
    scheduled; every call delegates.
    Must be driven from the event-loop thread.
    """

    def __init__(
        self,
        config: Config,
        vault: SettingsVault,
        bus: PaneEventBus,
        registry: SessionRegistry,
        router: AgentRouter,
        layout: LayoutManager | None = None,
    ) -> None:
        self.config = config
        self.vault = vault
        self.bus = bus
        self.registry = registry
        self.router = router
        self.layout = layout or LayoutManager(config.panes.layout_template)
        self._agent_tasks: set[asyncio.Task[AgentOutcome]] = set()

    @property
    def project_root(self) -> Path:
        return self.config.project_root

    @property
    def agent_tasks(self) -> set[asyncio.Task[AgentOutcome]]:
        """Agent runs scheduled by this orchestrator that have not finished yet."""
        return set(self._agent_tasks)

    # ── Pane lifecycle ────────────────────────────────────────────────

    def create_pane(self, pane_id: str) -> bool:
        return self.registry.create(pane_id)

    def destroy_pane(self, pane_id: str) -> None:
        self.router.cancel_silently(pane_id)
        destroyed = self.registry.destroy(pane_id)
        self.bus.close_channels(pane_id)
        if destroyed:
            logger.info(f"Pane {pane_id} destroyed")

    def restart_pane(self, pane_id: str) -> bool:
        logger.info(f"Restarting pane {pane_id}")
        return self.registry.restart(pane_id)

    def resize_pane(self, pane_id: str, cols: int, rows: int) -> None:
        self.registry.resize(pane_id, cols, rows)

    def apply_layout(self, template: int) -> list[str]:
        """Switch layout; create panes that appear, destroy panes that go away."""
        before = set(self.layout.pane_ids)
        pane_ids = self.layout.apply_template(template)
        for pane_id in sorted(before - set(pane_ids)):
            self.destroy_pane(pane_id)
        for pane_id in pane_ids:
            self.create_pane(pane_id)
        logger.info(f"Layout set to {template} panes")
        return pane_ids

    def shutdown(self) -> None:
        """Kill every shell and cancel every agent request."""
        self.router.shutdown()
        for task in list(self._agent_tasks):
            task.cancel()
        self.registry.shutdown()
        self.bus.close_all_channels()
        logger.info("All panes shut down")

    # ── Input ─────────────────────────────────────────────────────────

    def submit_line(self, pane_id: str, line: str) -> asyncio.Task[AgentOutcome] | PolicyDecision:
        """Slash commands start an agent task; anything else goes to the shell.

        Agent lines return the scheduled task (the router reports on the
        pane channel, awaiting is optional).
        """
        parsed = parse_input_line(line)
        if isinstance(parsed, AgentInput):
            return self.run_agent(pane_id, parsed.route, parsed.prompt)
        return self.registry.write(pane_id, parsed.line)

    def run_agent(self, pane_id: str, route: AgentRoute | str, prompt: str) -> asyncio.Task[AgentOutcome]:
        loop = asyncio.get_running_loop()
        task = loop.create_task(self.router.run(pane_id, route, prompt), name=f"agent:{pane_id}")
        self._agent_tasks.add(task)
        task.add_done_callback(self._agent_tasks.discard)
        return task

    def submit_raw_input(self, pane_id: str, data: str) -> None:
        self.registry.write_raw(pane_id, data)

    def cancel_agent(self, pane_id: str) -> bool:
        return self.router.cancel(pane_id)


def build_orchestrator(
    config: Config,
    vault: SettingsVault,
    bus: PaneEventBus | None = None,
) -> PaneOrchestrator:
    """Wire the default registry, backends and router."""
    bus = bus or PaneEventBus()
    backends = config.backends
    local = LocalBackendClient(
        vault,
        url=backends.local_url,
        timeout_s=backends.local_timeout_s,
        retry_backoff_s=backends.retry_backoff_s,
    )
    cloud = CloudBackendClient(
        vault,
        timeout_s=backends.cloud_timeout_s,
        retry_backoff_s=backends.retry_backoff_s,
        temperature=backends.temperature,
    )
    return PaneOrchestrator(
        config=config,
        vault=vault,
        bus=bus,
        registry=SessionRegistry(bus, vault, config),
        router=AgentRouter(bus, vault, local, cloud),
    )
