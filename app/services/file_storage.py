"""
파일 저장소

추출 기록의 filename은 이 저장소의 키 (파일 내용 아님)
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class FileStorage(ABC):
    """키 → bytes 저장소 인터페이스"""

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """파일 내용 (없거나 읽을 수 없으면 None)"""
        pass

    @abstractmethod
    def put(self, key: str, content: bytes) -> str:
        """파일 저장 후 키 반환"""
        pass


class LocalFileStorage(FileStorage):
    """로컬 디렉토리 기반 저장소"""

    def __init__(self, root: str = "uploads"):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise ValueError(f"Storage key escapes root: {key}")
        return path

    def get(self, key: str) -> Optional[bytes]:
        try:
            path = self._path(key)
            if not path.is_file():
                return None
            return path.read_bytes()
        except (OSError, ValueError) as e:
            logger.warning("Failed to read %s from storage: %s", key, e)
            return None

    def put(self, key: str, content: bytes) -> str:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return key
