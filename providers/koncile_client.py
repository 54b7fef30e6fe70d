"""
Koncile AI 비동기 클라이언트

파일 하나를 multipart로 업로드하고 task id를 돌려받음.
추출 결과는 나중에 webhook으로 도착 (providers/koncile_webhook.py)
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Callable, Optional, Tuple

import aiohttp

from app.config import Settings, get_settings
from .base import DocumentExtractionProvider, FileInput
from .types import ProviderConfigurationError, ProviderResult

logger = logging.getLogger(__name__)

UPLOAD_PATH = "/v1/upload_file/"
DEFAULT_UPLOAD_NAME = "document"


def classify_error_response(status_code: int, body: str) -> str:
    """HTTP 에러 응답 → 사용자용 메시지"""
    if status_code in (401, 403):
        return "Authentication failed with Koncile AI."
    if status_code in (400, 422):
        return f"Validation error from Koncile AI: {body}"
    if status_code >= 500:
        return "Koncile AI server error. Please try again later."
    return f"Unexpected response from Koncile AI (HTTP {status_code}): {body}"


class KoncileAiClient(DocumentExtractionProvider):
    """
    Koncile AI 업로드 클라이언트

    워크플로우:
    1. metadata 검증 (template_id 필수, 없으면 네트워크 호출 없이 Failed)
    2. multipart 업로드 (Bearer 인증, template_id/folder_id 쿼리 파라미터)
    3. 응답 분류 (task id → Pending, 나머지 → Failed)
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 60.0,
        session_factory: Optional[Callable[[], aiohttp.ClientSession]] = None,
        settings: Optional[Settings] = None
    ):
        # url/key를 모두 생략한 경우에만 설정에서 읽음 (settings 미지정 시 전역 설정)
        if api_url is None and api_key is None:
            source = settings or get_settings()
            api_url, api_key = source.koncile_api_url, source.koncile_api_key

        self.api_url = api_url
        self.api_key = api_key
        self.timeout = timeout

        missing = [name for name, value in (("url", self.api_url), ("key", self.api_key)) if not value]
        if missing:
            raise ProviderConfigurationError(
                f"Koncile AI config missing required key(s): {', '.join(missing)}"
            )

        self.base_url = self.api_url.rstrip("/")
        self.headers = {"Authorization": f"Bearer {self.api_key}"}
        self._session_factory = session_factory or self._default_session

    @classmethod
    def from_settings(cls, settings: Settings) -> "KoncileAiClient":
        """주어진 Settings만 사용 (전역 설정으로 대체하지 않음)"""
        return cls(timeout=settings.koncile_timeout, settings=settings)

    def name(self) -> str:
        return "koncile_ai"

    def _default_session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))

    async def upload(
        self,
        content: FileInput,
        document_type: str,
        metadata: Optional[dict] = None,
        filename: Optional[str] = None
    ) -> ProviderResult:
        metadata = metadata or {}

        template_id = metadata.get("template_id")
        if not template_id:
            logger.error("No template_id provided in metadata (document_type=%s)", document_type)
            return ProviderResult.fail(
                f"No template_id provided in metadata for document type: {document_type}"
            )

        folder_id = metadata.get("folder_id")

        try:
            payload, upload_name = self._read_content(content, filename)
        except OSError as e:
            logger.error("File not accessible for extraction (file=%s): %s", content, e)
            return ProviderResult.fail(f"File not accessible: {content}")

        params = {"template_id": str(template_id)}
        if folder_id:
            params["folder_id"] = str(folder_id)

        url = f"{self.base_url}{UPLOAD_PATH}"

        try:
            async with self._session_factory() as session:
                data = aiohttp.FormData()
                data.add_field("files", payload, filename=upload_name, content_type="application/octet-stream")

                async with session.post(url, params=params, headers=self.headers, data=data) as resp:
                    body = await resp.text()

                    if 200 <= resp.status < 300:
                        return self._handle_success(body, document_type, str(template_id))

                    return self._handle_error_response(resp.status, body, document_type)

        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.error(
                "Koncile AI upload exception (document_type=%s, file=%s): %s",
                document_type, upload_name, e,
            )
            return ProviderResult.fail(f"Network error: {e}")

    def _read_content(self, content: FileInput, filename: Optional[str]) -> Tuple[bytes, str]:
        """bytes는 그대로, 경로는 읽어서 반환"""
        if isinstance(content, (bytes, bytearray)):
            return bytes(content), filename or DEFAULT_UPLOAD_NAME

        path = Path(content)
        if not path.is_file():
            raise FileNotFoundError(f"Not a readable file: {path}")
        return path.read_bytes(), filename or path.name

    def _handle_success(self, body: str, document_type: str, template_id: str) -> ProviderResult:
        try:
            data = json.loads(body)
        except (TypeError, ValueError):
            data = None

        task_ids = data.get("task_ids") if isinstance(data, dict) else None
        if not task_ids or not isinstance(task_ids, list) or not task_ids[0]:
            # 업로드는 수락됐지만 매칭 키가 없으면 webhook을 연결할 수 없음
            logger.error(
                "Koncile AI accepted upload without task id (document_type=%s, body=%s)",
                document_type, body,
            )
            return ProviderResult.fail("Koncile AI accepted the upload but returned no task id.")

        logger.info(
            "Koncile AI file uploaded (document_type=%s, template_id=%s, task_ids=%s)",
            document_type, template_id, task_ids,
        )
        return ProviderResult.pending(str(task_ids[0]), "File uploaded successfully.", data=data)

    def _handle_error_response(self, status_code: int, body: str, document_type: str) -> ProviderResult:
        logger.error(
            "Koncile AI error response (document_type=%s, status_code=%s, body=%s)",
            document_type, status_code, body,
        )
        return ProviderResult.fail(classify_error_response(status_code, body), status_code=status_code)
