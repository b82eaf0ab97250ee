"""HTTP client for the external agent platform."""

from __future__ import annotations

import httpx

from cadence_common.logging import get_logger

from .errors import AgentUpdateError

log = get_logger(__name__)


def _error_detail(exc: httpx.HTTPError) -> tuple[str, int | None]:
    """Describe an httpx failure, preferring the platform's response body."""
    if isinstance(exc, httpx.HTTPStatusError):
        body = exc.response.text.strip()
        return body or f"HTTP {exc.response.status_code}", exc.response.status_code
    return str(exc) or type(exc).__name__, None


class AgentAPIClient:
    """Client for the agent platform's `/v3/agents` API.

    `transport` lets tests swap in an `httpx.MockTransport`.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/") + "/v3"
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def start(self) -> None:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = self._api_key
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if not self._client:
            raise RuntimeError("AgentAPIClient not started")
        return self._client

    async def get_agent(self, agent_id: str) -> dict:
        try:
            resp = await self.client.get(f"/agents/{agent_id}")
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPError as e:
            detail, status = _error_detail(e)
            raise AgentUpdateError(detail, "AgentAPIClient.get_agent()", agent_id, status) from e

    async def update_agent(self, agent_id: str, payload: dict) -> dict:
        """PATCH the agent with `payload`. Raises AgentUpdateError on any failure."""
        try:
            resp = await self.client.patch(f"/agents/{agent_id}", json={"agent": payload})
            resp.raise_for_status()
        except httpx.HTTPError as e:
            detail, status = _error_detail(e)
            log.warning("agent_update_failed", agent_id=agent_id, status=status, error=detail)
            raise AgentUpdateError(detail, "AgentAPIClient.update_agent()", agent_id, status) from e

        log.info("agent_updated", agent_id=agent_id)
        return resp.json() if resp.content else {}
