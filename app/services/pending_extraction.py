"""추출 요청 빌더"""

from typing import Callable, Optional


class PendingExtraction:
    """
    ExtractionService.request_extraction() 호출을 조립하는 빌더

    Usage:
        service.extract("car_license", "licenses/abc.pdf") \
            .metadata({"template_id": "tpl-1"}) \
            .force() \
            .submit()
    """

    def __init__(self, service, document_type: str, filename: str):
        self._service = service
        self._type = document_type
        self._filename = filename
        self._metadata: dict = {}
        self._force = False

    def metadata(self, metadata: dict) -> "PendingExtraction":
        self._metadata = dict(metadata)
        return self

    def force(self, force: bool = True) -> "PendingExtraction":
        self._force = force
        return self

    def when(
        self,
        condition,
        callback: Callable[["PendingExtraction"], Optional["PendingExtraction"]]
    ) -> "PendingExtraction":
        """condition이 참이면 callback(self) 적용"""
        if condition:
            callback(self)
        return self

    def submit(self):
        return self._service.request_extraction(
            self._type,
            self._filename,
            self._metadata,
            self._force,
        )
