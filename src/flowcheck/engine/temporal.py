"""Temporal-backed execution engine.

Each engine workflow id names a Temporal workflow type. A full execution is
started fire-and-forget; a step test runs the same workflow type in step mode
and waits for its result.
"""

from datetime import timedelta
from typing import Any
from uuid import uuid4

from temporalio.client import Client, WorkflowFailureError
from temporalio.exceptions import TemporalError
from temporalio.service import RPCError, RPCStatusCode

from src.flowcheck.core.exceptions import EngineFault
from src.flowcheck.core.logging import get_logger
from src.flowcheck.engine.base import EngineExecution, call_with_retries

logger = get_logger(__name__)

TRANSIENT_RPC_CODES = frozenset(
    {RPCStatusCode.UNAVAILABLE, RPCStatusCode.DEADLINE_EXCEEDED, RPCStatusCode.RESOURCE_EXHAUSTED}
)


class TemporalExecutionEngine:
    def __init__(
        self,
        host: str,
        namespace: str,
        task_queue: str,
        timeout: float = 30.0,
        max_retries: int = 3,
        backoff: float = 0.5,
        client: Client | None = None,
    ) -> None:
        self.host = host
        self.namespace = namespace
        self.task_queue = task_queue
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff = backoff
        self._client = client

    async def _get_client(self) -> Client:
        """Get or create Temporal client."""
        if self._client is None:
            try:
                self._client = await Client.connect(self.host, namespace=self.namespace)
            except RuntimeError as e:
                raise EngineFault(f"Temporal unreachable: {e!s}", transient=True) from e
        return self._client

    def _translate(self, e: RPCError) -> EngineFault:
        return EngineFault(f"Temporal error: {e.message}", transient=e.status in TRANSIENT_RPC_CODES)

    async def _call(self, operation_name: str, operation: Any) -> Any:
        return await call_with_retries(
            operation,
            operation_name=operation_name,
            timeout=self.timeout,
            max_retries=self.max_retries,
            backoff=self.backoff,
        )

    async def execute(self, engine_workflow_id: str, payload: dict[str, Any]) -> EngineExecution:
        workflow_run_id = f"{engine_workflow_id}-{payload.get('executionId') or uuid4()}"

        async def _start() -> EngineExecution:
            client = await self._get_client()
            try:
                handle = await client.start_workflow(
                    engine_workflow_id,
                    payload,
                    id=workflow_run_id,
                    task_queue=self.task_queue,
                )
            except RPCError as e:
                raise self._translate(e) from e
            except TemporalError as e:
                raise EngineFault(f"Temporal error: {e!s}") from e
            return EngineExecution(id=handle.id, status="running")

        execution = await self._call("execute", _start)
        logger.info(
            "Temporal workflow started",
            engine_workflow_id=engine_workflow_id,
            engine_execution_id=execution.id,
        )
        return execution

    async def run_step(
        self, engine_workflow_id: str, step: dict[str, Any], input_data: Any
    ) -> Any:
        async def _run() -> Any:
            client = await self._get_client()
            try:
                return await client.execute_workflow(
                    engine_workflow_id,
                    {"mode": "step_test", "step": step, "input": input_data},
                    id=f"{engine_workflow_id}-step-{step['id']}-{uuid4()}",
                    task_queue=self.task_queue,
                    execution_timeout=timedelta(seconds=self.timeout),
                )
            except RPCError as e:
                raise self._translate(e) from e
            except WorkflowFailureError as e:
                raise EngineFault(f"Step {step['id']} failed in engine: {e.cause!s}") from e
            except TemporalError as e:
                raise EngineFault(f"Temporal error: {e!s}") from e

        return await self._call("run_step", _run)

    async def health_check(self) -> None:
        client = await self._get_client()
        await client.service_client.check_health()

    async def aclose(self) -> None:
        """Drop the client reference. Temporal clients hold no resources to release."""
        self._client = None
