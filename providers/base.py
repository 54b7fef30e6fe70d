"""
Extraction Provider Interface (추상화 계층)

모든 외부 추출 provider는 이 인터페이스를 구현해야 함
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from .types import ProviderResult

FileInput = Union[bytes, str, Path]


class DocumentExtractionProvider(ABC):
    """
    외부 추출 provider 추상 인터페이스

    upload()는 파일을 넘기고 바로 반환, 결과는 webhook으로 도착
    """

    @abstractmethod
    def name(self) -> str:
        """provider 이름"""
        pass

    @abstractmethod
    async def upload(
        self,
        content: FileInput,
        document_type: str,
        metadata: Optional[dict] = None,
        filename: Optional[str] = None
    ) -> ProviderResult:
        """
        파일 업로드

        Args:
            content: 파일 bytes 또는 경로
            document_type: 문서 타입 (예: car_license)
            metadata: provider 전용 값 (template_id, folder_id 등)
            filename: multipart 파일명 (bytes 입력 시)

        Returns:
            ProviderResult: Pending(task id 포함) 또는 Failed
        """
        pass
