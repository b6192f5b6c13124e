"""Inbound webhook endpoints - trigger a workflow execution."""

import json
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Request

from src.flowcheck.api.dependencies import TriggerServiceDep, WebhookAuthenticatorDep
from src.flowcheck.core.exceptions import ValidationError
from src.flowcheck.core.rate_limit import limiter, webhook_rate_limit
from src.flowcheck.schemas.workflow import WebhookInfo, WebhookTriggerResponse

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


def parse_webhook_payload(raw_body: bytes) -> Any:
    """Decode the JSON body. An empty body is an empty object."""
    if not raw_body.strip():
        return {}
    try:
        return json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError("Request body is not valid JSON") from e


@router.post(
    "/{workflow_id}",
    response_model=WebhookTriggerResponse,
    summary="Trigger workflow",
    description=(
        "Trigger an active workflow. Authenticate with x-webhook-signature "
        "(HMAC-SHA256 of the raw body) or x-api-key."
    ),
    responses={
        200: {"description": "Execution recorded (and dispatched, if an engine is configured)"},
        400: {"description": "Workflow not active or body is not JSON"},
        401: {"description": "Invalid signature, invalid API key, or authentication required"},
        404: {"description": "Workflow not found"},
        500: {"description": "Engine failed; the execution was recorded as failed"},
    },
)
@limiter.limit(webhook_rate_limit)
async def trigger_workflow(
    request: Request,
    workflow_id: UUID,
    service: TriggerServiceDep,
    authenticator: WebhookAuthenticatorDep,
) -> WebhookTriggerResponse:
    raw_body = await request.body()
    auth_result = authenticator.authenticate(raw_body, request.headers)
    # The body is only decoded once the caller is known to be allowed in
    payload = parse_webhook_payload(raw_body) if auth_result.accepted else None

    execution = await service.trigger(workflow_id, payload, auth_result)
    if execution.engine_execution_id:
        message = "Workflow execution started"
    else:
        message = "Execution recorded; no execution engine configured"
    return WebhookTriggerResponse(
        execution_id=execution.id,
        engine_execution_id=execution.engine_execution_id,
        message=message,
    )


@router.get(
    "/{workflow_id}",
    response_model=WebhookInfo,
    summary="Webhook info",
    description="Check whether a workflow's webhook currently accepts deliveries.",
    responses={404: {"description": "Workflow not found"}},
)
async def get_webhook_info(workflow_id: UUID, service: TriggerServiceDep) -> WebhookInfo:
    return WebhookInfo(**await service.get_webhook_info(workflow_id))
