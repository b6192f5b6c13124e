"""REST execution engine client (n8n-style API) over httpx."""

from typing import Any

import httpx

from src.flowcheck.core.exceptions import EngineFault
from src.flowcheck.core.logging import get_logger
from src.flowcheck.engine.base import TRANSIENT_STATUS_CODES, EngineExecution, call_with_retries

logger = get_logger(__name__)

API_KEY_HEADER = "X-ENGINE-API-KEY"


class HttpExecutionEngine:
    """Talks to an engine exposing ``/workflows/{id}/execute`` style endpoints."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        backoff: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers[API_KEY_HEADER] = api_key
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff = backoff
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def _request(self, method: str, path: str, body: dict[str, Any] | None = None) -> Any:
        """Single attempt. Classifies failures as transient or final."""
        try:
            response = await self._client.request(method, path, json=body)
        except httpx.TransportError as e:
            raise EngineFault(f"Engine unreachable: {e!s}", transient=True) from e
        except httpx.RequestError as e:
            raise EngineFault(f"Engine request failed: {e!s}") from e

        if response.status_code in TRANSIENT_STATUS_CODES:
            raise EngineFault(
                f"Engine API error: {response.status_code} - {response.text}", transient=True
            )
        if response.is_error:
            raise EngineFault(f"Engine API error: {response.status_code} - {response.text}")

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise EngineFault("Engine returned a non-JSON response") from e

    async def _call(
        self, operation_name: str, method: str, path: str, body: dict[str, Any] | None = None
    ) -> Any:
        return await call_with_retries(
            lambda: self._request(method, path, body),
            operation_name=operation_name,
            timeout=self.timeout,
            max_retries=self.max_retries,
            backoff=self.backoff,
        )

    async def execute(self, engine_workflow_id: str, payload: dict[str, Any]) -> EngineExecution:
        data = await self._call(
            "execute", "POST", f"/workflows/{engine_workflow_id}/execute", {"data": payload}
        )
        if not isinstance(data, dict):
            raise EngineFault("Engine execute response is not an object")
        nested = data.get("data") if isinstance(data.get("data"), dict) else {}
        execution_id = data.get("id") or data.get("executionId") or nested.get("executionId")
        if not execution_id:
            raise EngineFault("Engine execute response has no execution id")
        logger.info(
            "Engine execution started",
            engine_workflow_id=engine_workflow_id,
            engine_execution_id=str(execution_id),
        )
        return EngineExecution(id=str(execution_id), status=str(data.get("status", "running")))

    async def run_step(
        self, engine_workflow_id: str, step: dict[str, Any], input_data: Any
    ) -> Any:
        data = await self._call(
            "run_step",
            "POST",
            f"/workflows/{engine_workflow_id}/steps/{step['id']}/test",
            {"data": input_data},
        )
        if isinstance(data, dict) and "output" in data:
            return data["output"]
        return data

    async def health_check(self) -> None:
        await self._call("health_check", "GET", "/workflows?limit=1")

    async def aclose(self) -> None:
        await self._client.aclose()
