"""
DocumentExtraction Repository (SQLAlchemy 기반)

키 기반 저장소: create / update(id, fields) / findByField / findLatest
"""

from typing import Any, List, Optional
from sqlalchemy.orm import Session
from app.models import DocumentExtraction, ExtractionStatus

# 조회/갱신 가능한 필드 (metadata는 ORM 속성명으로 매핑)
_FIELD_ALIASES = {"metadata": "extraction_metadata"}


def _column(field: str):
    name = _FIELD_ALIASES.get(field, field)
    if name not in DocumentExtraction.__mapper__.column_attrs.keys():
        raise ValueError(f"Unknown extraction field: {field}")
    return getattr(DocumentExtraction, name)


class ExtractionRepository:
    """
    추출 기록 저장소

    update(id, ...)가 유일한 동기화 지점 (레코드 단위 원자적 갱신)
    """

    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, extraction: DocumentExtraction) -> DocumentExtraction:
        """기록 저장"""
        self.db.add(extraction)
        self.db.commit()
        self.db.refresh(extraction)
        return extraction

    def update(self, extraction_id: str, **fields: Any) -> Optional[DocumentExtraction]:
        """
        필드 갱신

        Args:
            extraction_id: 기록 ID
            **fields: 갱신할 필드 (metadata 키 허용)

        Returns:
            갱신된 기록 (없으면 None)
        """
        extraction = self.find_by_id(extraction_id)
        if extraction is None:
            return None

        for field, value in fields.items():
            if isinstance(value, ExtractionStatus):
                value = value.value
            setattr(extraction, _column(field).key, value)

        self.db.commit()
        self.db.refresh(extraction)
        return extraction

    def find_by_id(self, extraction_id: str) -> Optional[DocumentExtraction]:
        return self.db.query(DocumentExtraction).filter(DocumentExtraction.id == extraction_id).first()

    def find_by_field(self, field: str, value: Any) -> Optional[DocumentExtraction]:
        """필드 값이 일치하는 첫 번째 기록"""
        return self.db.query(DocumentExtraction).filter(_column(field) == value).first()

    def find_by_task_id(self, task_id: str) -> Optional[DocumentExtraction]:
        """external_task_id로 조회 (webhook 매칭용)"""
        if not task_id:
            return None
        return self.find_by_field("external_task_id", task_id)

    def find_latest(self, **filters: Any) -> Optional[DocumentExtraction]:
        """조건에 맞는 가장 최근 기록"""
        query = self.db.query(DocumentExtraction)
        for field, value in filters.items():
            query = query.filter(_column(field) == value)
        return query.order_by(DocumentExtraction.created_at.desc()).first()

    def find_all(
        self,
        status: Optional[ExtractionStatus] = None,
        document_type: Optional[str] = None
    ) -> List[DocumentExtraction]:
        """모든 기록 조회 (최신순)"""
        query = self.db.query(DocumentExtraction)
        if status is not None:
            query = query.filter(DocumentExtraction.status == ExtractionStatus(status).value)
        if document_type is not None:
            query = query.filter(DocumentExtraction.type == document_type)
        return query.order_by(DocumentExtraction.created_at.desc()).all()

    def find_by_status(self, status: ExtractionStatus) -> List[DocumentExtraction]:
        """상태별 조회"""
        return self.find_all(status=status)
