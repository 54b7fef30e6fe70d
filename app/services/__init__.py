"""
Services package
"""

from .extraction_service import ExtractionService
from .file_storage import FileStorage, LocalFileStorage
from .pending_extraction import PendingExtraction

__all__ = ["ExtractionService", "FileStorage", "LocalFileStorage", "PendingExtraction"]
