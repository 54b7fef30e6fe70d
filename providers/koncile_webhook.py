"""
Koncile AI Webhook 처리

서명 검증 → payload 파싱 → task_id/status에 따라 ExtractionService 호출
프레임워크 독립적 (api/webhooks.py가 FastAPI 응답으로 변환)
"""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

from app.config import Settings
from .signature import is_timestamp_fresh, verify_signature

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Koncile-Signature"
TIMESTAMP_HEADER = "X-Koncile-Timestamp"

STATUS_DONE = "DONE"
STATUS_FAILED = "FAILED"
DEFAULT_FAILURE_MESSAGE = "Extraction failed on provider side."


@dataclass
class WebhookResponse:
    """HTTP 응답 (상태 코드 + JSON body)"""
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)


def _header(headers: Mapping[str, str], name: str) -> str:
    """대소문자 구분 없는 헤더 조회"""
    value = headers.get(name)
    if value is None:
        lowered = name.lower()
        value = next((v for k, v in headers.items() if k.lower() == lowered), None)
    return value or ""


def _as_fields(value: Any) -> Dict[str, Any]:
    """객체가 아닌 필드 묶음(list, 문자열 등)은 빈 dict로 취급"""
    return value if isinstance(value, dict) else {}


class KoncileWebhookHandler:
    """
    Koncile AI webhook 수신기

    응답 규칙:
    - 서명 실패 → 403 {"error": "Invalid signature"}
    - task_id 누락 → 400 {"error": "Missing task_id"}
    - 그 외 → 200 {"message": "Webhook processed"} (매칭 기록이 없어도)
    """

    def __init__(self, service, settings: Settings):
        self.service = service
        self.settings = settings

    def verify(self, raw_body: Union[str, bytes], headers: Mapping[str, str], now: Optional[float] = None) -> bool:
        secret = self.settings.koncile_webhook_secret

        if not secret:
            if self.settings.is_production:
                logger.error("Koncile AI webhook secret not configured in production")
                return False

            logger.warning("Koncile AI webhook signature verification skipped - no secret configured")
            return True

        signature = _header(headers, SIGNATURE_HEADER)
        timestamp = _header(headers, TIMESTAMP_HEADER)

        if not signature or not timestamp:
            return False

        current = time.time() if now is None else now
        tolerance = self.settings.webhook_tolerance_seconds
        if not is_timestamp_fresh(timestamp, now=current, tolerance=tolerance):
            logger.warning("Koncile AI webhook timestamp too old (timestamp=%s)", timestamp)
            return False

        return verify_signature(secret, timestamp, raw_body, signature, now=current, tolerance=tolerance)

    def handle(self, raw_body: Union[str, bytes], headers: Mapping[str, str], now: Optional[float] = None) -> WebhookResponse:
        if not self.verify(raw_body, headers, now=now):
            logger.warning("Koncile AI webhook signature verification failed")
            return WebhookResponse(403, {"error": "Invalid signature"})

        try:
            payload = json.loads(raw_body or "{}")
        except ValueError:
            payload = None

        if not isinstance(payload, dict):
            logger.warning("Koncile AI webhook payload is not a JSON object")
            return WebhookResponse(400, {"error": "Invalid payload"})

        task_id = str(payload.get("task_id") or "")
        status = str(payload.get("status") or "")

        if not task_id:
            return WebhookResponse(400, {"error": "Missing task_id"})

        logger.info("Koncile AI webhook received (task_id=%s, status=%s)", task_id, status)

        if status == STATUS_DONE:
            self.service.complete_extraction(
                task_id,
                _as_fields(payload.get("General_fields")),
                _as_fields(payload.get("Line_fields")),
                payload,
            )
        elif status == STATUS_FAILED:
            self.service.fail_extraction_by_task_id(
                task_id,
                payload.get("error_message") or DEFAULT_FAILURE_MESSAGE,
            )
        else:
            logger.info("Koncile AI webhook status ignored (task_id=%s, status=%s)", task_id, status)

        return WebhookResponse(200, {"message": "Webhook processed"})
