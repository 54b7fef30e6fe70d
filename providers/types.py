"""Provider 공통 타입 정의"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ProviderStatus(str, Enum):
    """업로드 결과 상태 (Pending이면 webhook으로 결과가 도착함)"""

    PENDING = "pending"
    FAILED = "failed"


@dataclass
class ProviderResult:
    """Provider.upload()가 반환하는 표준 결과"""

    status: ProviderStatus
    message: str
    external_task_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def accepted(self) -> bool:
        """Pending이고 task id가 있을 때만 수락된 것으로 봄"""
        return self.status == ProviderStatus.PENDING and bool(self.external_task_id)

    @classmethod
    def pending(
        cls,
        external_task_id: str,
        message: str = "",
        data: Optional[Dict[str, Any]] = None,
    ) -> "ProviderResult":
        return cls(
            status=ProviderStatus.PENDING,
            message=message,
            external_task_id=external_task_id,
            data=data or {},
        )

    @classmethod
    def fail(cls, message: str, **data: Any) -> "ProviderResult":
        return cls(status=ProviderStatus.FAILED, message=message, data=data)


class DocumentExtractionError(RuntimeError):
    """문서 추출 전용 예외"""

    def __init__(self, message: str, *, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause

    def __str__(self) -> str:  # pragma: no cover - 단순 포맷터
        if self.cause:
            return f"{super().__str__()} (cause={self.cause})"
        return super().__str__()


class ProviderConfigurationError(DocumentExtractionError):
    """필수 설정 누락 (생성 시점에 즉시 실패)"""
