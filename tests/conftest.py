"""
Shared fixtures: in-memory SQLite, fake storage / provider, settings
"""

import sys
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import Settings, reset_settings
from app.models import Base, DocumentExtraction, ExtractionStatus
from app.repositories import ExtractionRepository
from app.services import ExtractionService, FileStorage
from app.tasks import InMemoryTaskQueue
from providers import DocumentExtractionProvider, ProviderResult


class FakeStorage(FileStorage):
    """dict 기반 파일 저장소"""

    def __init__(self, files=None):
        self.files = dict(files or {})

    def get(self, key):
        return self.files.get(key)

    def put(self, key, content):
        self.files[key] = content
        return key


class FakeProvider(DocumentExtractionProvider):
    """upload 호출을 기록하고 정해진 결과(또는 예외)를 반환"""

    def __init__(self, result=None, error=None):
        self.result = result or ProviderResult.pending("task-123", "File uploaded successfully.")
        self.error = error
        self.calls = []

    def name(self):
        return "fake"

    async def upload(self, content, document_type, metadata=None, filename=None):
        self.calls.append({
            "content": content,
            "document_type": document_type,
            "metadata": metadata,
            "filename": filename,
        })
        if self.error:
            raise self.error
        return self.result


@pytest.fixture(autouse=True)
def settings():
    test_settings = Settings(
        environment="testing",
        koncile_api_url="https://api.koncile.test",
        koncile_api_key="test-key",
        koncile_webhook_secret=None,
        task_max_attempts=3,
        task_backoff=[],
    )
    reset_settings(test_settings)
    yield test_settings
    reset_settings()


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def repo(db):
    return ExtractionRepository(db)


@pytest.fixture
def storage():
    return FakeStorage({"licenses/car.pdf": b"%PDF-1.4 fake"})


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def task_queue():
    return InMemoryTaskQueue()


@pytest.fixture
def service(repo, provider, storage, task_queue):
    return ExtractionService(repo, provider=provider, storage=storage, task_queue=task_queue)


@pytest.fixture
def make_extraction(repo):
    """
    기록 생성 헬퍼

    make_extraction(external_task_id="task-1", metadata={...}, age_seconds=10)
    """
    def _make(
        document_type="car_license",
        filename="licenses/car.pdf",
        metadata=None,
        status=ExtractionStatus.PENDING,
        external_task_id=None,
        error_message=None,
        age_seconds=0,
    ):
        extraction = DocumentExtraction(
            id=str(uuid.uuid4()),
            type=document_type,
            filename=filename,
            identifier="",
            extracted_data={},
            extraction_metadata=metadata if metadata is not None else {"identifier_field": "license_number"},
            status=ExtractionStatus(status).value,
            external_task_id=external_task_id,
            error_message=error_message,
            created_at=datetime.now(timezone.utc) - timedelta(seconds=age_seconds),
        )
        return repo.create(extraction)

    return _make


@pytest.fixture
def reload(db, repo):
    """다른 세션(API, 백그라운드 작업)이 갱신한 기록을 다시 읽기"""
    def _reload(extraction_id):
        db.expire_all()
        return repo.find_by_id(extraction_id)

    return _reload


@pytest.fixture
def client(session_factory, settings, storage, provider):
    from fastapi.testclient import TestClient

    from api.dependencies import get_app_settings, get_db, get_storage, get_task_runner
    from api.main import app
    from app.tasks.runner import ExtractionTaskRunner

    def override_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_app_settings] = lambda: settings
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_task_runner] = lambda: ExtractionTaskRunner(
        session_factory, lambda: provider, storage, max_attempts=1, backoff=[]
    )

    yield TestClient(app)

    app.dependency_overrides.clear()
