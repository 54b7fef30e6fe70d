"""
Extraction Provider Plugin System

핵심 설계:
- provider 독립적 인터페이스 (DocumentExtractionProvider)
- 레지스트리로 이름 → provider 생성 (EXTRACTION_PROVIDER)
- 업로드 결과는 표준 ProviderResult로 정규화
"""

from .types import (
    ProviderStatus,
    ProviderResult,
    DocumentExtractionError,
    ProviderConfigurationError,
)
from .base import DocumentExtractionProvider
from .registry import ProviderRegistry
from .koncile_client import KoncileAiClient
from .koncile_webhook import KoncileWebhookHandler, WebhookResponse

ProviderRegistry.register("koncile_ai", KoncileAiClient.from_settings)

__all__ = [
    "ProviderStatus",
    "ProviderResult",
    "DocumentExtractionError",
    "ProviderConfigurationError",
    "DocumentExtractionProvider",
    "ProviderRegistry",
    "KoncileAiClient",
    "KoncileWebhookHandler",
    "WebhookResponse",
]
