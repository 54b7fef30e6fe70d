"""
ProcessExtractionTask 실행기

- 작업마다 DB 세션을 새로 열고 기록을 다시 읽음
- 이미 task id가 있거나 종료된 기록은 건너뜀 (중복 전달)
- 예외는 tenacity로 제한된 횟수만 재시도 (기본 3회, 30/60/120초)
- 재시도를 모두 소진하면 기록을 Failed로 남김
"""

import logging
from typing import Callable, Optional, Sequence

from sqlalchemy.orm import Session
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    stop_after_attempt,
    wait_chain,
    wait_fixed,
    wait_none,
)

from app.config import Settings
from app.repositories import ExtractionRepository
from app.services.extraction_service import ExtractionService
from app.services.file_storage import FileStorage
from app.tasks.queue import ProcessExtractionTask
from providers.base import DocumentExtractionProvider
from providers.types import ProviderConfigurationError

logger = logging.getLogger(__name__)


class ExtractionTaskRunner:
    """백그라운드 추출 작업 실행기"""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        provider_factory: Callable[[], DocumentExtractionProvider],
        storage: FileStorage,
        max_attempts: int = 3,
        backoff: Optional[Sequence[float]] = (30, 60, 120)
    ):
        self.session_factory = session_factory
        self.provider_factory = provider_factory
        self.storage = storage
        self.max_attempts = max(1, max_attempts)
        self.backoff = list(backoff or [])

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        session_factory: Callable[[], Session],
        provider_factory: Callable[[], DocumentExtractionProvider],
        storage: FileStorage
    ) -> "ExtractionTaskRunner":
        return cls(
            session_factory=session_factory,
            provider_factory=provider_factory,
            storage=storage,
            max_attempts=settings.task_max_attempts,
            backoff=settings.task_backoff,
        )

    def _wait_strategy(self):
        if not self.backoff:
            return wait_none()
        return wait_chain(*[wait_fixed(seconds) for seconds in self.backoff])

    async def run(self, task: ProcessExtractionTask) -> None:
        """작업 실행 (재시도 소진 시 Failed 기록 후 반환, 예외는 전파하지 않음)"""
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=self._wait_strategy(),
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    await self._run_once(task)
        except Exception as e:
            logger.exception(
                "Extraction task gave up after %d attempt(s) (extraction_id=%s)",
                self.max_attempts, task.extraction_id,
            )
            self._record_give_up(task, f"Extraction task gave up: {str(e) or type(e).__name__}")

    def _record_give_up(self, task: ProcessExtractionTask, message: str) -> None:
        """재시도 소진 후 새 세션으로 Failed 기록 (저장소에 닿지 않으면 로그만)"""
        try:
            db = self.session_factory()
        except Exception:
            logger.exception("Could not open a session to fail extraction %s", task.extraction_id)
            return

        try:
            repo = ExtractionRepository(db)
            extraction = repo.find_by_id(task.extraction_id)
            # task id가 붙은 기록은 webhook 결과를 기다림
            if extraction is not None and not extraction.has_task:
                ExtractionService(repo).fail_extraction(extraction, message)
        except Exception:
            logger.exception("Could not record give-up for extraction %s", task.extraction_id)
        finally:
            db.close()

    async def _run_once(self, task: ProcessExtractionTask) -> None:
        db = self.session_factory()
        try:
            repo = ExtractionRepository(db)
            extraction = repo.find_by_id(task.extraction_id)

            if extraction is None:
                logger.warning("Extraction %s not found, skipping task", task.extraction_id)
                return

            if extraction.is_terminal or extraction.has_task:
                logger.info(
                    "Extraction %s already %s, skipping duplicate task",
                    extraction.id, extraction.lifecycle_state(),
                )
                return

            service = ExtractionService(repo, storage=self.storage)

            try:
                service.provider = self.provider_factory()
            except ProviderConfigurationError as e:
                logger.error("Extraction provider misconfigured: %s", e)
                service.fail_extraction(extraction, str(e))
                return

            await service.process_extraction(extraction)
        finally:
            db.close()
