"""
Extraction Service (추출 생명주기 관리)

요청 생성/중복 확인 → provider 업로드 → webhook 결과 반영

상태 전환:
- Pending(no task) → Pending(task) → (Completed | Failed)
- Pending(no task) → Failed (파일 없음, 업로드 실패)
- Completed / Failed 이후 전환 없음
"""

import logging
import uuid
from pathlib import Path
from typing import List, Optional

from app.config import get_document_type, resolve_metadata
from app.models import DocumentExtraction, ExtractionStatus
from app.repositories import ExtractionRepository
from app.services.file_storage import FileStorage
from app.services.pending_extraction import PendingExtraction
from app.tasks.queue import ProcessExtractionTask, TaskQueue
from providers.base import DocumentExtractionProvider

logger = logging.getLogger(__name__)

UNEXPECTED_PROVIDER_RESPONSE = "Unexpected provider response."


class ExtractionService:
    """
    추출 오케스트레이터

    비즈니스 로직:
    - 중복 요청은 기존 기록 반환 (force=True면 항상 새 기록)
    - 새 기록은 Pending으로 저장 후 백그라운드 작업 예약
    - webhook 결과로 Completed / Failed 전환
    """

    def __init__(
        self,
        repository: ExtractionRepository,
        provider: Optional[DocumentExtractionProvider] = None,
        storage: Optional[FileStorage] = None,
        task_queue: Optional[TaskQueue] = None
    ):
        self.repo = repository
        self.provider = provider
        self.storage = storage
        self.task_queue = task_queue

    # ------------------------------------------------------------------
    # 요청
    # ------------------------------------------------------------------

    def request_extraction(
        self,
        document_type: str,
        filename: str,
        metadata: Optional[dict] = None,
        force: bool = False
    ) -> DocumentExtraction:
        """
        추출 요청 (기존 기록 조회 또는 새 기록 생성)

        Args:
            document_type: 문서 타입
            filename: 파일 저장소 키
            metadata: provider 전용 값 (template_id, folder_id, identifier_field)
            force: True면 기존 기록이 있어도 새로 생성

        Returns:
            기존 기록 (변경 없음) 또는 새 Pending 기록
        """
        if not force:
            existing = self.repo.find_latest(type=document_type, filename=filename)
            if existing:
                logger.debug(
                    "Returning existing extraction %s for %s/%s",
                    existing.id, document_type, filename,
                )
                return existing

        if self.task_queue is None:
            raise RuntimeError("ExtractionService needs a task queue to request extractions")

        extraction = DocumentExtraction(
            id=str(uuid.uuid4()),
            type=document_type,
            filename=filename,
            identifier="",
            extracted_data={},
            extraction_metadata=dict(metadata or {}),
            status=ExtractionStatus.PENDING.value,
        )
        extraction = self.repo.create(extraction)

        self.task_queue.schedule(ProcessExtractionTask(extraction_id=extraction.id))
        logger.info(
            "Document extraction requested (extraction_id=%s, type=%s, filename=%s, force=%s)",
            extraction.id, document_type, filename, force,
        )
        return extraction

    def extract(self, document_type: str, filename: str) -> PendingExtraction:
        """빌더 시작: service.extract(type, file).metadata({...}).force().submit()"""
        return PendingExtraction(self, document_type, filename)

    # ------------------------------------------------------------------
    # 처리 (백그라운드)
    # ------------------------------------------------------------------

    async def process_extraction(self, extraction: DocumentExtraction) -> None:
        """
        저장소에서 파일을 읽어 provider에 업로드하고 task id 저장

        어떤 예외도 호출자에게 전파하지 않음 (실패는 기록의 Failed 상태로 남김)
        """
        try:
            content = self.storage.get(extraction.filename) if self.storage else None

            if content is None:
                self.fail_extraction(extraction, f"File not found in storage: {extraction.filename}")
                return

            if self.provider is None:
                raise RuntimeError("No extraction provider configured")

            metadata = resolve_metadata(extraction.type, extraction.extraction_metadata)
            result = await self.provider.upload(
                content,
                extraction.type,
                metadata,
                filename=Path(extraction.filename).name,
            )

            if result.accepted:
                self.repo.update(extraction.id, external_task_id=result.external_task_id)
                logger.info(
                    "Document extraction submitted (extraction_id=%s, external_task_id=%s)",
                    extraction.id, result.external_task_id,
                )
            else:
                self.fail_extraction(extraction, result.message or UNEXPECTED_PROVIDER_RESPONSE)

        except Exception as e:
            logger.exception("Document extraction processing failed (extraction_id=%s)", extraction.id)
            self._record_failure(extraction, str(e) or type(e).__name__)

    def _record_failure(self, extraction: DocumentExtraction, message: str) -> None:
        """실패한 커밋이 남긴 세션 상태를 되돌린 뒤 Failed 기록 (여기서도 예외는 로그만)"""
        extraction_id = extraction.id
        try:
            self.repo.db.rollback()
            self.fail_extraction(extraction, message)
        except Exception:
            logger.exception("Could not record failure for extraction %s", extraction_id)

    # ------------------------------------------------------------------
    # 결과 반영 (webhook)
    # ------------------------------------------------------------------

    def complete_extraction(
        self,
        task_id: str,
        general_fields: dict,
        line_fields: dict,
        full_payload: Optional[dict] = None
    ) -> Optional[DocumentExtraction]:
        """
        task id로 기록을 찾아 Completed로 전환

        Returns:
            갱신된 기록 (매칭 기록이 없으면 None)
        """
        extraction = self.repo.find_by_task_id(task_id)

        if extraction is None:
            logger.warning("No extraction found for task ID %s", task_id)
            return None

        if extraction.is_terminal:
            logger.warning(
                "Ignoring completion for extraction %s already %s",
                extraction.id, extraction.status,
            )
            return extraction

        extracted_data = full_payload or {
            "general_fields": general_fields,
            "line_fields": line_fields,
        }

        extraction = self.repo.update(
            extraction.id,
            status=ExtractionStatus.COMPLETED,
            identifier=self.resolve_identifier(extraction, general_fields),
            extracted_data=extracted_data,
        )

        logger.info(
            "Document extraction completed (extraction_id=%s, external_task_id=%s)",
            extraction.id, task_id,
        )
        return extraction

    def fail_extraction(self, extraction: DocumentExtraction, message: str) -> DocumentExtraction:
        """기록을 Failed로 전환"""
        if extraction.is_terminal:
            logger.warning(
                "Ignoring failure for extraction %s already %s: %s",
                extraction.id, extraction.status, message,
            )
            return extraction

        updated = self.repo.update(
            extraction.id,
            status=ExtractionStatus.FAILED,
            error_message=message,
        )

        logger.error("Document extraction failed (extraction_id=%s): %s", extraction.id, message)
        return updated or extraction

    def fail_extraction_by_task_id(self, task_id: str, message: str) -> Optional[DocumentExtraction]:
        """task id로 기록을 찾아 Failed로 전환 (없으면 None)"""
        extraction = self.repo.find_by_task_id(task_id)

        if extraction is None:
            logger.warning("No extraction found for failure (task_id=%s): %s", task_id, message)
            return None

        return self.fail_extraction(extraction, message)

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------

    def get_extraction(self, extraction_id: str) -> Optional[DocumentExtraction]:
        return self.repo.find_by_id(extraction_id)

    def list_extractions(
        self,
        status: Optional[ExtractionStatus] = None,
        document_type: Optional[str] = None
    ) -> List[DocumentExtraction]:
        return self.repo.find_all(status=status, document_type=document_type)

    @staticmethod
    def resolve_identifier(extraction: DocumentExtraction, general_fields: dict) -> str:
        """
        metadata.identifier_field (없으면 타입 기본값) 필드의 value

        필드/키가 없으면 빈 문자열
        """
        metadata = extraction.extraction_metadata or {}
        field_name = metadata.get("identifier_field")

        if not field_name:
            type_config = get_document_type(extraction.type)
            field_name = type_config.identifier_field if type_config else None

        if not field_name:
            return ""

        if not isinstance(general_fields, dict):
            return ""

        field = general_fields.get(field_name)
        if not isinstance(field, dict) or field.get("value") is None:
            return ""

        return str(field["value"])
