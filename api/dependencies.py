"""
FastAPI 의존성

테스트에서는 app.dependency_overrides로 교체
"""

from fastapi import BackgroundTasks, Depends
from sqlalchemy.orm import Session

from app import database
from app.config import Settings, get_settings
from app.repositories import ExtractionRepository
from app.services import ExtractionService, FileStorage, LocalFileStorage
from app.tasks import BackgroundTaskQueue
from app.tasks.runner import ExtractionTaskRunner
from providers import ProviderRegistry


def get_db():
    yield from database.get_db()


def get_app_settings() -> Settings:
    return get_settings()


def get_storage(settings: Settings = Depends(get_app_settings)) -> FileStorage:
    return LocalFileStorage(settings.storage_root)


def get_task_runner(
    settings: Settings = Depends(get_app_settings),
    storage: FileStorage = Depends(get_storage)
) -> ExtractionTaskRunner:
    """백그라운드 작업은 요청 세션이 아니라 자기 세션을 사용"""
    return ExtractionTaskRunner.from_settings(
        settings,
        session_factory=database.SessionLocal,
        provider_factory=lambda: ProviderRegistry.create(settings.default_provider, settings),
        storage=storage,
    )


def get_extraction_service(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_storage),
    runner: ExtractionTaskRunner = Depends(get_task_runner)
) -> ExtractionService:
    return ExtractionService(
        ExtractionRepository(db),
        storage=storage,
        task_queue=BackgroundTaskQueue(background_tasks, runner.run),
    )
