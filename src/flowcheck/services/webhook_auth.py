"""Inbound webhook authentication.

Decides whether a delivery may trigger a workflow, from the raw body bytes and
headers only. The body is never parsed here.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from src.flowcheck.core.config import Settings, get_settings
from src.flowcheck.core.logging import get_logger
from src.flowcheck.core.security import keys_match, verify_signature

logger = get_logger(__name__)

SIGNATURE_HEADER = "x-webhook-signature"
API_KEY_HEADER = "x-api-key"


class AuthOutcome(str, Enum):
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"
    ALLOWED_UNAUTHENTICATED = "allowed_unauthenticated"


class RejectReason(str, Enum):
    INVALID_SIGNATURE = "invalid_signature"
    INVALID_API_KEY = "invalid_api_key"
    AUTH_REQUIRED = "auth_required"


@dataclass(frozen=True)
class AuthResult:
    outcome: AuthOutcome
    reason: RejectReason | None = None
    method: str | None = None  # "signature", "api_key" or None

    @property
    def accepted(self) -> bool:
        return self.outcome != AuthOutcome.REJECTED

    @classmethod
    def rejected(cls, reason: RejectReason) -> "AuthResult":
        return cls(outcome=AuthOutcome.REJECTED, reason=reason)


class WebhookAuthenticator:
    """Checks a signature first, then an API key, then falls back on the auth mode.

    A present-but-wrong credential is always rejected, even in permissive mode.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def authenticate(self, raw_body: bytes, headers: Mapping[str, str]) -> AuthResult:
        signature = headers.get(SIGNATURE_HEADER)
        if signature is not None:
            secret = self.settings.webhook_secret
            if not secret:
                logger.warning("Signed webhook received but WEBHOOK_SECRET is not configured")
                return AuthResult.rejected(RejectReason.INVALID_SIGNATURE)
            if not verify_signature(raw_body, signature, secret):
                return AuthResult.rejected(RejectReason.INVALID_SIGNATURE)
            return AuthResult(outcome=AuthOutcome.AUTHENTICATED, method="signature")

        api_key = headers.get(API_KEY_HEADER)
        if api_key is not None:
            configured = self.settings.webhook_api_key
            if not configured or not keys_match(api_key, configured):
                return AuthResult.rejected(RejectReason.INVALID_API_KEY)
            return AuthResult(outcome=AuthOutcome.AUTHENTICATED, method="api_key")

        if self.settings.webhook_auth_mode == "permissive":
            logger.warning("Accepting unauthenticated webhook (permissive mode)")
            return AuthResult(outcome=AuthOutcome.ALLOWED_UNAUTHENTICATED)
        return AuthResult.rejected(RejectReason.AUTH_REQUIRED)


def authenticate(raw_body: bytes, headers: Mapping[str, str]) -> AuthResult:
    """Authenticate a delivery against the current settings."""
    return WebhookAuthenticator().authenticate(raw_body, headers)
