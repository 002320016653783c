"""
Services package.
"""

from services.file_service import FileService

__all__ = ["FileService"]
