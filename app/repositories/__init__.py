"""
Repositories package
"""

from .extraction_repository import ExtractionRepository

__all__ = ["ExtractionRepository"]
