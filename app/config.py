"""
애플리케이션 설정

환경 변수(.env 포함)에서 읽어오는 런타임 설정과
문서 타입별 추출 설정 테이블 (type → template / folder / identifier field)
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from dotenv import load_dotenv

load_dotenv()


DEFAULT_WEBHOOK_TOLERANCE_SECONDS = 300


def _parse_backoff(raw: str) -> List[int]:
    """ "30,60,120" → [30, 60, 120] """
    return [int(part) for part in raw.split(",") if part.strip()]


@dataclass
class Settings:
    """런타임 설정"""
    environment: str = "development"
    database_url: str = "sqlite:///./extractions.db"
    storage_root: str = "uploads"
    default_provider: str = "koncile_ai"

    # Koncile AI
    koncile_api_url: Optional[str] = "https://api.koncile.ai"
    koncile_api_key: Optional[str] = None
    koncile_webhook_secret: Optional[str] = None
    koncile_timeout: float = 60.0

    # 백그라운드 작업 재시도 (시도 횟수, 대기 시간 초)
    task_max_attempts: int = 3
    task_backoff: List[int] = field(default_factory=lambda: [30, 60, 120])

    webhook_tolerance_seconds: int = DEFAULT_WEBHOOK_TOLERANCE_SECONDS
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            environment=os.getenv("APP_ENV", "development"),
            database_url=os.getenv("DATABASE_URL", "sqlite:///./extractions.db"),
            storage_root=os.getenv("DOCUMENT_STORAGE_ROOT", "uploads"),
            default_provider=os.getenv("EXTRACTION_PROVIDER", "koncile_ai"),
            koncile_api_url=os.getenv("KONCILE_AI_API_URL", "https://api.koncile.ai"),
            koncile_api_key=os.getenv("KONCILE_AI_API_KEY"),
            koncile_webhook_secret=os.getenv("KONCILE_AI_WEBHOOK_SECRET"),
            koncile_timeout=float(os.getenv("KONCILE_AI_TIMEOUT", "60")),
            task_max_attempts=int(os.getenv("EXTRACTION_TASK_MAX_ATTEMPTS", "3")),
            task_backoff=_parse_backoff(os.getenv("EXTRACTION_TASK_BACKOFF", "30,60,120")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """캐시된 Settings 반환 (최초 호출 시 환경 변수에서 생성)"""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings(settings: Optional[Settings] = None) -> None:
    """설정 캐시 초기화 (테스트용으로 직접 주입 가능)"""
    global _settings
    _settings = settings


# ============================================================================
# 문서 타입별 설정
# ============================================================================

@dataclass(frozen=True)
class DocumentTypeConfig:
    """문서 타입 하나에 대한 provider 설정"""
    template_id: Optional[str] = None
    folder_id: Optional[str] = None
    identifier_field: Optional[str] = None

    def as_metadata(self) -> Dict[str, str]:
        """비어있지 않은 값만 metadata 키로 변환"""
        values = {
            "template_id": self.template_id,
            "folder_id": self.folder_id,
            "identifier_field": self.identifier_field,
        }
        return {key: value for key, value in values.items() if value}


# 새 문서 타입은 코드 분기가 아니라 이 테이블에 추가
DOCUMENT_TYPES: Dict[str, DocumentTypeConfig] = {
    "car_license": DocumentTypeConfig(
        template_id=os.getenv("KONCILE_AI_CAR_LICENSE_TEMPLATE_ID"),
        folder_id=os.getenv("KONCILE_AI_CAR_LICENSE_FOLDER_ID"),
        identifier_field="license_number",
    ),
}


def register_document_type(document_type: str, config: DocumentTypeConfig) -> None:
    DOCUMENT_TYPES[document_type] = config


def get_document_type(document_type: str) -> Optional[DocumentTypeConfig]:
    return DOCUMENT_TYPES.get(document_type)


def resolve_metadata(document_type: str, metadata: Optional[dict] = None) -> dict:
    """
    타입 기본값 위에 요청 metadata를 덮어쓴 최종 metadata

    요청 metadata의 빈 값("", None)은 기본값을 덮어쓰지 않음
    """
    config = get_document_type(document_type)
    resolved = config.as_metadata() if config else {}
    for key, value in (metadata or {}).items():
        if value in ("", None) and key in resolved:
            continue
        resolved[key] = value
    return resolved
