"""
Provider Registry (플러그인 등록 시스템)

새로운 provider를 등록하고 이름으로 생성하는 중앙 레지스트리
"""

import logging
from typing import Callable, Dict, List

from app.config import Settings
from .base import DocumentExtractionProvider
from .types import ProviderConfigurationError

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[Settings], DocumentExtractionProvider]


class ProviderRegistry:
    """
    Provider 레지스트리

    플러그인 패턴: 새 provider 추가 시 register()만 호출하면 됨
    """

    _factories: Dict[str, ProviderFactory] = {}

    @classmethod
    def register(cls, name: str, factory: ProviderFactory):
        """
        새 provider 등록

        Args:
            name: provider 이름 (EXTRACTION_PROVIDER 값)
            factory: Settings를 받아 provider를 만드는 함수
        """
        cls._factories[name] = factory
        logger.debug("Provider registered: %s", name)

    @classmethod
    def create(cls, name: str, settings: Settings) -> DocumentExtractionProvider:
        """
        등록된 provider 생성

        Raises:
            ProviderConfigurationError: 등록되지 않은 이름 또는 설정 누락
        """
        factory = cls._factories.get(name)
        if factory is None:
            raise ProviderConfigurationError(f"Unknown extraction provider: {name}")
        return factory(settings)

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name in cls._factories

    @classmethod
    def list_registered(cls) -> List[str]:
        return sorted(cls._factories)
