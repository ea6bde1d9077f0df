"""Agent router: one request per pane, cloud→local fallback, shaped output."""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Literal

from loguru import logger

from vibe_ade.agent.cancel import CancellationToken
from vibe_ade.agent.shaping import shape_response
from vibe_ade.bus.events import AgentChunkEvent, AgentRoutedEvent, PaneEvent
from vibe_ade.bus.queue import PaneEventBus
from vibe_ade.config.schema import AgentRoute, ExecutionMode
from vibe_ade.config.vault import SettingsVault
from vibe_ade.errors import BackendError, Cancelled
from vibe_ade.providers.base import BackendClient

OutcomeStatus = Literal["completed", "failed", "cancelled"]


@dataclass
class InFlightRequest:
    token: CancellationToken
    route: AgentRoute
    prompt: str
    request_id: int


@dataclass(frozen=True)
class AgentOutcome:
    """What happened to one ``run`` call. The pane channel already saw it all."""

    status: OutcomeStatus
    requested_route: AgentRoute
    effective_route: AgentRoute | None = None
    error: str | None = None


class AgentRouter:
    """Route prompts to the local or cloud backend, one in-flight request per pane.

    The in-flight map is only touched on the event-loop thread; registering
    a request and cancelling its predecessor happen in one synchronous step
    before the first ``await``.
    """

    def __init__(
        self,
        bus: PaneEventBus,
        vault: SettingsVault,
        local_client: BackendClient,
        cloud_client: BackendClient,
    ) -> None:
        self._bus = bus
        self._vault = vault
        self._clients = {AgentRoute.LOCAL: local_client, AgentRoute.CLOUD: cloud_client}
        self._in_flight: dict[str, InFlightRequest] = {}
        self._ids = itertools.count(1)

    # ── Public API ────────────────────────────────────────────────────

    async def run(self, pane_id: str, route: AgentRoute | str, prompt: str) -> AgentOutcome:
        route = AgentRoute(route)
        request = self._begin(pane_id, route, prompt)
        mode = self._vault.execution_mode

        try:
            self._emit_routed(pane_id, request, route)
            text, effective = await self._dispatch(pane_id, request, mode)
            request.token.raise_if_cancelled()

            model_name = self._clients[effective].model_name()
            for shaped in shape_response(text, mode, effective, model_name):
                self._emit(
                    request,
                    AgentChunkEvent(
                        pane_id=pane_id,
                        chunk=shaped.chunk,
                        done=shaped.done,
                        stream=shaped.stream,
                        request_id=request.request_id,
                    ),
                )
            return AgentOutcome(status="completed", requested_route=route, effective_route=effective)

        except Cancelled as exc:
            logger.info(f"Agent request {request.request_id} on {pane_id} cancelled")
            return AgentOutcome(status="cancelled", requested_route=route, error=str(exc))

        except BackendError as exc:
            logger.error(f"Agent run failed on {pane_id}: {exc}")
            return self._fail(pane_id, request, str(exc))

        except Exception as exc:
            logger.exception(f"Agent run failed on {pane_id}")
            return self._fail(pane_id, request, str(exc) or "Unknown agent error")

        finally:
            if self._in_flight.get(pane_id) is request:
                del self._in_flight[pane_id]

    def cancel(self, pane_id: str) -> bool:
        """Cancel the pane's request and close it with a terminal error chunk."""
        request = self._in_flight.pop(pane_id, None)
        if request is None:
            return False
        request.token.cancel()
        message = str(Cancelled())
        logger.info(f"Agent request {request.request_id} on {pane_id} cancelled by user")
        self._bus.publish(
            AgentChunkEvent(
                pane_id=pane_id,
                chunk="",
                done=True,
                error=message,
                request_id=request.request_id,
            )
        )
        return True

    def cancel_silently(self, pane_id: str) -> bool:
        """Cancel without emitting anything (pane teardown)."""
        request = self._in_flight.pop(pane_id, None)
        if request is None:
            return False
        request.token.cancel()
        return True

    def shutdown(self) -> None:
        for pane_id in list(self._in_flight):
            self.cancel_silently(pane_id)

    def in_flight(self, pane_id: str) -> InFlightRequest | None:
        return self._in_flight.get(pane_id)

    # ── Internals ─────────────────────────────────────────────────────

    def _begin(self, pane_id: str, route: AgentRoute, prompt: str) -> InFlightRequest:
        previous = self._in_flight.pop(pane_id, None)
        if previous is not None:
            previous.token.cancel()
            logger.debug(f"Superseded agent request {previous.request_id} on {pane_id}")
        request = InFlightRequest(
            token=CancellationToken(),
            route=route,
            prompt=prompt,
            request_id=next(self._ids),
        )
        self._in_flight[pane_id] = request
        return request

    async def _dispatch(
        self,
        pane_id: str,
        request: InFlightRequest,
        mode: ExecutionMode,
    ) -> tuple[str, AgentRoute]:
        local = self._clients[AgentRoute.LOCAL]
        if request.route is AgentRoute.LOCAL:
            return await local.complete(request.prompt, request.token, mode), AgentRoute.LOCAL

        try:
            text = await self._clients[AgentRoute.CLOUD].complete(request.prompt, request.token, mode)
            return text, AgentRoute.CLOUD
        except Cancelled:
            raise
        except BackendError as exc:
            if request.token.cancelled:
                raise Cancelled() from exc
            logger.warning(f"Cloud route failed on {pane_id}: {exc}; falling back to local")
            self._emit(
                request,
                AgentChunkEvent(
                    pane_id=pane_id,
                    chunk=f"Cloud route failed: {exc}\nFalling back to local model.\n",
                    stream="action",
                    request_id=request.request_id,
                ),
            )

        text = await local.complete(request.prompt, request.token, mode)
        self._emit_routed(pane_id, request, AgentRoute.LOCAL)
        return text, AgentRoute.LOCAL

    def _fail(self, pane_id: str, request: InFlightRequest, message: str) -> AgentOutcome:
        self._emit(
            request,
            AgentChunkEvent(
                pane_id=pane_id,
                chunk="",
                done=True,
                error=message,
                request_id=request.request_id,
            ),
        )
        return AgentOutcome(status="failed", requested_route=request.route, error=message)

    def _emit_routed(self, pane_id: str, request: InFlightRequest, route: AgentRoute) -> None:
        self._emit(
            request,
            AgentRoutedEvent(
                pane_id=pane_id,
                route=route.value,
                model="Local" if route is AgentRoute.LOCAL else "Cloud",
                model_name=self._clients[route].model_name(),
                request_id=request.request_id,
            ),
        )

    def _emit(self, request: InFlightRequest, event: PaneEvent) -> None:
        # Nothing leaves a request after its cancellation point.
        if request.token.cancelled:
            return
        self._bus.publish(event)
