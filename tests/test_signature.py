"""
Tests for providers/signature.py
"""

import hashlib
import hmac

from providers.signature import compute_signature, is_timestamp_fresh, verify_signature

SECRET = "test-webhook-secret"
NOW = 1_700_000_000
BODY = '{"task_id": "task-1", "status": "DONE"}'


def sign(timestamp, body=BODY, secret=SECRET):
    return hmac.new(secret.encode(), f"{timestamp}.{body}".encode(), hashlib.sha256).hexdigest()


class TestComputeSignature:
    def test_matches_hmac_sha256(self):
        assert compute_signature(SECRET, str(NOW), BODY) == sign(NOW)

    def test_accepts_bytes_body(self):
        assert compute_signature(SECRET, str(NOW), BODY.encode()) == sign(NOW)


class TestTimestamp:
    def test_within_window(self):
        assert is_timestamp_fresh(str(NOW - 299), now=NOW)
        assert is_timestamp_fresh(str(NOW + 100), now=NOW)

    def test_outside_window(self):
        assert not is_timestamp_fresh(str(NOW - 301), now=NOW)
        assert not is_timestamp_fresh(str(NOW + 301), now=NOW)

    def test_not_numeric(self):
        assert not is_timestamp_fresh("yesterday", now=NOW)


class TestVerifySignature:
    def test_valid(self):
        assert verify_signature(SECRET, str(NOW), BODY, sign(NOW), now=NOW)

    def test_wrong_secret(self):
        assert not verify_signature(SECRET, str(NOW), BODY, sign(NOW, secret="other"), now=NOW)

    def test_tampered_body(self):
        assert not verify_signature(SECRET, str(NOW), BODY + " ", sign(NOW), now=NOW)

    def test_stale_timestamp_with_correct_signature(self):
        old = NOW - 600
        assert not verify_signature(SECRET, str(old), BODY, sign(old), now=NOW)

    def test_missing_headers(self):
        assert not verify_signature(SECRET, None, BODY, sign(NOW), now=NOW)
        assert not verify_signature(SECRET, str(NOW), BODY, "", now=NOW)

    def test_non_utf8_body_is_rejected(self):
        body = b"\xff\xfe{}"
        assert not verify_signature(SECRET, str(NOW), body, "abc", now=NOW)

    def test_non_utf8_body_with_valid_signature(self):
        body = b"\xff\xfe{}"
        signature = hmac.new(SECRET.encode(), str(NOW).encode() + b"." + body, hashlib.sha256).hexdigest()
        assert verify_signature(SECRET, str(NOW), body, signature, now=NOW)

    def test_non_ascii_signature_header(self):
        assert not verify_signature(SECRET, str(NOW), BODY, "서명", now=NOW)
