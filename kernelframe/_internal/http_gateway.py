"""
HTTP execution gateway.

Talks to a Livy-style REST statements service: one remote session per gateway,
one statement per submission, results polled until available.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import httpx

from ..config import SessionConfig, default_config
from ..errors import RemoteExecutionFailure, SessionConnectionError
from .gateway import Outcome, failure_outcome, printed_outcome, value_outcome

logger = logging.getLogger(__name__)

_DEAD_SESSION_STATES = frozenset({"error", "dead", "killed", "shutting_down"})


class StatementState:
    """States reported for a submitted statement."""

    WAITING = "waiting"
    RUNNING = "running"
    AVAILABLE = "available"
    ERROR = "error"
    CANCELLING = "cancelling"
    CANCELLED = "cancelled"


class HttpKernelGateway:
    """ExecutionGateway over HTTP using ``httpx.AsyncClient``."""

    def __init__(
        self,
        endpoint: str,
        *,
        kind: str = "eclair",
        timeout: float = 60.0,
        poll_interval: float = 0.2,
        startup_timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            endpoint: Base URL of the statements service.
            kind: Kernel kind requested for the remote session.
            timeout: Per-request timeout in seconds.
            poll_interval: Delay between state polls in seconds.
            startup_timeout: Maximum time to wait for the session to become idle.
            transport: Optional httpx transport (used by tests).
        """
        self.endpoint = endpoint.rstrip("/")
        self.kind = kind
        self.poll_interval = poll_interval
        self.startup_timeout = startup_timeout
        self.session_id: int | None = None
        self._client = httpx.AsyncClient(base_url=self.endpoint, timeout=timeout, transport=transport)

    @classmethod
    def from_config(cls, config: SessionConfig | None = None) -> HttpKernelGateway:
        config = config or default_config()
        return cls(
            config["endpoint"],
            kind=config["kind"],
            timeout=config["timeout"],
            poll_interval=config["poll_interval"],
            startup_timeout=config["startup_timeout"],
        )

    # Internal helpers
    def _error_detail(self, e: Exception) -> str:
        if isinstance(e, httpx.HTTPStatusError):
            try:
                body = e.response.json()
                return str(body.get("msg") or body.get("detail") or e)
            except Exception:
                return str(e)
        return str(e)

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        response = await self._client.request(method, url, **kwargs)
        response.raise_for_status()
        return dict(response.json())

    def _statements_url(self) -> str:
        if self.session_id is None:
            raise RuntimeError("Gateway is not connected; call connect() first")
        return f"/sessions/{self.session_id}/statements"

    # Session lifecycle
    async def connect(self) -> None:
        """Create the remote session and wait until it reports ``idle``."""
        try:
            body = await self._request("POST", "/sessions", json={"kind": self.kind})
            self.session_id = int(body["id"])
            logger.info("Remote session %s created at %s", self.session_id, self.endpoint)

            deadline = time.monotonic() + self.startup_timeout
            state = body.get("state")
            while state != "idle":
                if state in _DEAD_SESSION_STATES:
                    raise SessionConnectionError(
                        f"Remote session {self.session_id} entered state '{state}'"
                    )
                if time.monotonic() > deadline:
                    raise SessionConnectionError(
                        f"Remote session {self.session_id} not idle after {self.startup_timeout}s "
                        f"(last state: {state})"
                    )
                await asyncio.sleep(self.poll_interval)
                body = await self._request("GET", f"/sessions/{self.session_id}")
                state = body.get("state")
        except (httpx.HTTPStatusError, httpx.RequestError) as e:
            raise SessionConnectionError(f"Failed to start session: {self._error_detail(e)}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise SessionConnectionError(f"Malformed session response: {e}") from e

        logger.info("Remote session %s is idle", self.session_id)

    async def close(self) -> None:
        """Delete the remote session (best effort) and close the HTTP client."""
        try:
            if self.session_id is not None:
                try:
                    await self._client.delete(f"/sessions/{self.session_id}")
                except httpx.HTTPError as e:
                    logger.warning("Failed to delete session %s: %s", self.session_id, e)
                self.session_id = None
        finally:
            await self._client.aclose()

    # Statements
    async def submit(self, code: str) -> Outcome:
        url = self._statements_url()
        try:
            body = await self._request("POST", url, json={"code": code})
            statement_id = body["id"]
            while body.get("state") not in (StatementState.AVAILABLE, StatementState.CANCELLED, StatementState.ERROR):
                await asyncio.sleep(self.poll_interval)
                body = await self._request("GET", f"{url}/{statement_id}")
        except (httpx.HTTPStatusError, httpx.RequestError) as e:
            raise RemoteExecutionFailure(
                f"Failed to execute statement: {self._error_detail(e)}", code=code
            ) from e
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteExecutionFailure(f"Malformed statement response: {e}", code=code) from e

        return self._to_outcome(body)

    def _to_outcome(self, body: dict[str, Any]) -> Outcome:
        state = body.get("state")
        if state != StatementState.AVAILABLE:
            ename = "StatementError" if state == StatementState.ERROR else "Cancelled"
            return failure_outcome(f"Statement {body.get('id')} ended in state '{state}'", ename=ename)

        output = body.get("output") or {}
        if output.get("status") == "error":
            return failure_outcome(str(output.get("evalue", "")), ename=str(output.get("ename", "Error")))

        data = output.get("data") or {}
        binding = output.get("binding")
        if "application/json" in data:
            return value_outcome(data["application/json"], binding=binding)
        if "text/plain" in data:
            return value_outcome(data["text/plain"], binding=binding)
        return printed_outcome(str(output.get("stdout", "")))
