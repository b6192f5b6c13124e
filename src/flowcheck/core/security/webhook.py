"""HMAC-SHA256 webhook signatures and constant-time key comparison."""

import hashlib
import hmac

SIGNATURE_PREFIX = "sha256="


def compute_signature(body: bytes, secret: str) -> str:
    """Hex HMAC-SHA256 digest of the exact request bytes."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def sign_payload(body: bytes, secret: str, prefixed: bool = False) -> str:
    """Build a value suitable for the x-webhook-signature header."""
    digest = compute_signature(body, secret)
    return f"{SIGNATURE_PREFIX}{digest}" if prefixed else digest


def verify_signature(body: bytes, signature: str, secret: str) -> bool:
    """Check a signature header against the body.

    Accepts a bare hex digest or one prefixed with ``sha256=``. The comparison
    is constant-time.
    """
    candidate = signature.strip()
    if candidate.lower().startswith(SIGNATURE_PREFIX):
        candidate = candidate[len(SIGNATURE_PREFIX) :]
    expected = compute_signature(body, secret)
    return hmac.compare_digest(candidate.lower().encode("ascii", "replace"), expected.encode("ascii"))


def keys_match(provided: str, configured: str) -> bool:
    """Constant-time comparison of a presented API key with the configured one."""
    return hmac.compare_digest(provided.encode("utf-8"), configured.encode("utf-8"))
