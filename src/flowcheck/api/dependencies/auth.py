"""Caller authentication dependencies.

Operators (test case and test run management) present ``X-Operator-Key``
when OPERATOR_API_KEY is configured. Engine callbacks are authenticated like
inbound webhooks, from the raw body.
"""

import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader

from src.flowcheck.api.dependencies.services import WebhookAuthenticatorDep
from src.flowcheck.core.config import get_settings
from src.flowcheck.core.exceptions import AuthenticationError
from src.flowcheck.services.webhook_auth import AuthResult

operator_key_header = APIKeyHeader(name="X-Operator-Key", auto_error=False)


async def require_operator_key(
    api_key: Annotated[str | None, Depends(operator_key_header)],
) -> None:
    """Reject the request unless it carries the configured operator key."""
    configured = get_settings().operator_api_key
    if not configured:
        return
    if api_key is None or not secrets.compare_digest(api_key, configured):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing operator API key",
        )


async def verify_engine_callback(
    request: Request,
    authenticator: WebhookAuthenticatorDep,
) -> AuthResult:
    """Authenticate a callback from the execution engine by its signature or API key."""
    raw_body = await request.body()
    result = authenticator.authenticate(raw_body, request.headers)
    if not result.accepted:
        raise AuthenticationError(
            "Callback authentication failed",
            reason=result.reason.value if result.reason else None,
        )
    return result


OperatorAccess = Depends(require_operator_key)
EngineCallback = Annotated[AuthResult, Depends(verify_engine_callback)]
