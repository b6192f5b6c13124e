"""Security utilities - webhook signatures and shared-key comparison.

Re-exports all security-related functions for convenience.
"""

from src.flowcheck.core.security.webhook import (
    SIGNATURE_PREFIX,
    compute_signature,
    keys_match,
    sign_payload,
    verify_signature,
)

__all__ = [
    "SIGNATURE_PREFIX",
    "compute_signature",
    "keys_match",
    "sign_payload",
    "verify_signature",
]
