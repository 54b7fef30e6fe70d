"""
Models package
"""

from .extraction import Base, DocumentExtraction, ExtractionStatus, TERMINAL_STATUSES

__all__ = ["Base", "DocumentExtraction", "ExtractionStatus", "TERMINAL_STATUSES"]
