"""Webhook HMAC 서명 검증"""

import hashlib
import hmac
import time
from typing import Optional, Union

from app.config import DEFAULT_WEBHOOK_TOLERANCE_SECONDS


def _as_bytes(value: Union[str, bytes]) -> bytes:
    return bytes(value) if isinstance(value, (bytes, bytearray)) else value.encode("utf-8")


def compute_signature(secret: str, timestamp: str, raw_body: Union[str, bytes]) -> str:
    """HMAC-SHA256("{timestamp}.{raw_body}") hex digest (본문은 디코딩 없이 바이트 그대로)"""
    message = _as_bytes(timestamp) + b"." + _as_bytes(raw_body)
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def is_timestamp_fresh(
    timestamp: str,
    now: Optional[float] = None,
    tolerance: int = DEFAULT_WEBHOOK_TOLERANCE_SECONDS
) -> bool:
    """숫자가 아니거나 허용 범위(기본 300초)를 벗어나면 False"""
    try:
        sent_at = int(timestamp)
    except (TypeError, ValueError):
        return False
    current = time.time() if now is None else now
    return abs(current - sent_at) <= tolerance


def verify_signature(
    secret: str,
    timestamp: Optional[str],
    raw_body: Union[str, bytes],
    signature: Optional[str],
    now: Optional[float] = None,
    tolerance: int = DEFAULT_WEBHOOK_TOLERANCE_SECONDS
) -> bool:
    """
    서명 검증

    서명/타임스탬프 누락, 오래된 타임스탬프, 불일치 → False
    비교는 hmac.compare_digest (상수 시간)
    """
    if not signature or not timestamp:
        return False
    if not is_timestamp_fresh(timestamp, now=now, tolerance=tolerance):
        return False
    expected = compute_signature(secret, timestamp, raw_body)
    return hmac.compare_digest(expected.encode("ascii"), _as_bytes(signature))
