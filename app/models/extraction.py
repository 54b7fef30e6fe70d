"""
DocumentExtraction 모델 (SQLAlchemy ORM)

- ExtractionStatus: Pending | Completed | Failed
- 상태 전환: Pending(no task) → Pending(task) → (Completed | Failed)
             Pending(no task) → Failed
"""

from datetime import datetime, timezone
from enum import Enum
from sqlalchemy import Column, String, DateTime, JSON, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExtractionStatus(str, Enum):
    """추출 상태"""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = (ExtractionStatus.COMPLETED.value, ExtractionStatus.FAILED.value)


class DocumentExtraction(Base):
    """
    추출 요청 하나의 전체 생명주기를 추적

    metadata는 SQLAlchemy 예약어라서 속성명은 extraction_metadata,
    컬럼명은 metadata
    """
    __tablename__ = "document_extractions"

    id = Column(String, primary_key=True, index=True)  # UUID

    type = Column(String, nullable=False, index=True)
    filename = Column(String, nullable=False, index=True)

    # 완료 시에만 기록
    identifier = Column(String, default="", nullable=False)
    extracted_data = Column(JSON, default=dict, nullable=False)

    extraction_metadata = Column("metadata", JSON, default=dict, nullable=False)

    status = Column(String, default=ExtractionStatus.PENDING.value, nullable=False, index=True)
    error_message = Column(Text, nullable=True)

    # provider가 업로드를 수락하면 기록, webhook 매칭 키
    external_task_id = Column(String, nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return (
            f"<DocumentExtraction(id={self.id}, type={self.type}, "
            f"status={self.status}, task={self.external_task_id})>"
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def has_task(self) -> bool:
        return bool(self.external_task_id)

    def lifecycle_state(self) -> str:
        """pending_no_task | pending_with_task | completed | failed"""
        if self.status == ExtractionStatus.PENDING.value:
            return "pending_with_task" if self.has_task else "pending_no_task"
        return self.status

    def to_dict(self):
        """Dict 변환 (API 응답용)"""
        return {
            "id": self.id,
            "type": self.type,
            "filename": self.filename,
            "identifier": self.identifier,
            "extracted_data": self.extracted_data,
            "metadata": self.extraction_metadata,
            "status": self.status,
            "error_message": self.error_message,
            "external_task_id": self.external_task_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None
        }
