"""Tests for webhook signatures and key comparison."""

import pytest

from src.flowcheck.core.security import (
    compute_signature,
    keys_match,
    sign_payload,
    verify_signature,
)

pytestmark = pytest.mark.unit

SECRET = "s3cret"
BODY = b'{"order_id": 42}'


class TestSignatures:
    """HMAC-SHA256 over the exact body bytes."""

    def test_bare_hex_signature_verifies(self):
        assert verify_signature(BODY, compute_signature(BODY, SECRET), SECRET)

    def test_prefixed_signature_verifies(self):
        signature = sign_payload(BODY, SECRET, prefixed=True)
        assert signature.startswith("sha256=")
        assert verify_signature(BODY, signature, SECRET)

    def test_uppercase_hex_verifies(self):
        assert verify_signature(BODY, compute_signature(BODY, SECRET).upper(), SECRET)

    def test_wrong_secret_fails(self):
        assert not verify_signature(BODY, compute_signature(BODY, "other"), SECRET)

    def test_reformatted_body_fails(self):
        """Re-serializing JSON changes the bytes, so the signature no longer matches."""
        signature = compute_signature(BODY, SECRET)
        assert not verify_signature(b'{"order_id":42}', signature, SECRET)

    def test_garbage_signature_fails(self):
        assert not verify_signature(BODY, "not-a-signature-é", SECRET)
        assert not verify_signature(BODY, "", SECRET)


class TestKeysMatch:
    def test_equal_keys(self):
        assert keys_match("abc", "abc")

    def test_different_keys(self):
        assert not keys_match("abc", "abd")
        assert not keys_match("abc", "abcd")
