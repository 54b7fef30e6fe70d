"""로깅 설정"""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """루트 로거에 stdout 핸들러 설정 (여러 번 호출해도 핸들러는 하나)"""
    root = logging.getLogger()
    root.setLevel(level.upper())

    if not any(getattr(h, "_extraction_handler", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._extraction_handler = True
        root.addHandler(handler)
