"""Shared request/retry machinery for agent backends."""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from vibe_ade.agent.cancel import CancellationToken
from vibe_ade.config.schema import ExecutionMode
from vibe_ade.errors import BackendError, BackendTransient, Cancelled

MAX_ATTEMPTS = 2


def is_transient_status(status: int) -> bool:
    """408 / 429 / any 5xx count as transient failures."""
    return status in (408, 429) or status >= 500


@dataclass
class BackendRequest:
    """One fully-built HTTP POST."""

    url: str
    payload: dict[str, Any]
    headers: dict[str, str] = field(default_factory=lambda: {"Content-Type": "application/json"})


@dataclass
class HttpResponse:
    """Status plus decoded JSON body (None when the body is not JSON)."""

    status: int
    body: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class BackendClient(ABC):
    """One request/response cycle against a generation endpoint.

    ``complete`` makes at most two attempts: any failed request, whatever
    its status, gets one more try. The cancellation token is checked before
    each attempt and raced against the request itself, so a cancel never
    waits for the network and never triggers the retry.
    """

    name = "backend"
    label = "Backend"

    def __init__(self, timeout_s: float, retry_backoff_s: float = 0.25) -> None:
        self.timeout_s = float(timeout_s)
        self.retry_backoff_s = max(0.0, float(retry_backoff_s))

    # ── Subclass hooks ────────────────────────────────────────────────

    @abstractmethod
    def build_request(self, prompt: str, mode: ExecutionMode) -> BackendRequest:
        """Build the HTTP request (may raise MissingCredential)."""

    @abstractmethod
    def parse_response(self, body: Any) -> str:
        """Pull generated text out of the response body ("" when absent)."""

    @abstractmethod
    def model_name(self) -> str:
        """Configured model name for this backend."""

    # ── Public async interface ────────────────────────────────────────

    async def complete(
        self,
        prompt: str,
        token: CancellationToken,
        mode: ExecutionMode = ExecutionMode.SANDBOXED,
    ) -> str:
        request = self.build_request(prompt, mode)

        for attempt in range(1, MAX_ATTEMPTS + 1):
            token.raise_if_cancelled()
            try:
                response = await self._send(request, token)
                if response.ok:
                    return self.parse_response(response.body)
                raise self._status_error(response)
            except Cancelled:
                raise
            except BackendError as exc:
                if attempt >= MAX_ATTEMPTS:
                    raise
                logger.warning(f"[{self.name}] attempt {attempt} failed ({exc}); retrying")
                await self._backoff(token)

        raise BackendError(f"Unknown {self.name} agent error")

    # ── Transport ─────────────────────────────────────────────────────

    async def _send(self, request: BackendRequest, token: CancellationToken) -> HttpResponse:
        call = asyncio.ensure_future(
            asyncio.to_thread(self._post_json, request.url, request.payload, request.headers, self.timeout_s)
        )
        waiter = asyncio.ensure_future(token.wait())
        try:
            done, _ = await asyncio.wait({call, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            call.cancel()
            raise
        finally:
            waiter.cancel()

        if token.cancelled or call not in done:
            call.cancel()
            raise Cancelled()
        return call.result()

    def _post_json(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str],
        timeout_s: float,
    ) -> HttpResponse:
        """Blocking POST; runs in a worker thread."""
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        req = urllib.request.Request(url=url, data=body, headers=headers, method="POST")
        try:
            with urllib.request.urlopen(req, timeout=timeout_s) as resp:
                raw = resp.read().decode("utf-8", errors="ignore")
                return HttpResponse(status=resp.status, body=_loads(raw))
        except urllib.error.HTTPError as exc:
            raw = exc.read().decode("utf-8", errors="ignore")
            return HttpResponse(status=exc.code, body=_loads(raw))
        except urllib.error.URLError as exc:
            if isinstance(exc.reason, TimeoutError):
                raise BackendTransient(f"{self.label} request timed out after {timeout_s:.0f}s") from exc
            raise BackendTransient(f"{self.label} connection error: {exc.reason}") from exc
        except TimeoutError as exc:
            raise BackendTransient(f"{self.label} request timed out after {timeout_s:.0f}s") from exc
        except OSError as exc:
            raise BackendTransient(f"{self.label} connection error: {exc}") from exc

    async def _backoff(self, token: CancellationToken) -> None:
        if self.retry_backoff_s <= 0:
            return
        try:
            await asyncio.wait_for(token.wait(), timeout=self.retry_backoff_s)
        except asyncio.TimeoutError:
            return

    def _status_error(self, response: HttpResponse) -> BackendError:
        message = f"{self.label} error: {response.status}"
        detail = extract_error_message(response.body)
        if detail:
            message = f"{message} ({detail})"
        if is_transient_status(response.status):
            return BackendTransient(message, status=response.status)
        return BackendError(message, status=response.status)


def _loads(raw: str) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return None


def extract_error_message(body: Any) -> str:
    """Best-effort error text from OpenAI/Ollama-style error payloads."""
    if not isinstance(body, dict):
        return ""
    err = body.get("error")
    if isinstance(err, dict):
        message = err.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
        err_type = err.get("type")
        if isinstance(err_type, str) and err_type.strip():
            return err_type.strip()
        return ""
    if isinstance(err, str) and err.strip():
        return err.strip()
    return ""


def normalize_content(content: object) -> str:
    """Flatten string-or-parts message content into plain text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, str):
                parts.append(item)
                continue
            if isinstance(item, dict):
                text = item.get("text")
                if isinstance(text, str):
                    parts.append(text)
        return "".join(parts)
    return ""
