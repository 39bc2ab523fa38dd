"""
Abstract base class for file stores
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


class FileStoreError(Exception):
    """The backing storage refused an operation"""


@dataclass(frozen=True)
class StoredFile:
    """A file that has already been persisted by a file store"""
    path: str
    original_filename: str


class FileStore(ABC):
    """Abstract interface for durable binary storage addressed by reference"""

    @abstractmethod
    def save(self, data: bytes, original_filename: str, content_type: Optional[str] = None) -> StoredFile:
        """
        Persist file content.

        Args:
            data: File bytes
            original_filename: Name the client uploaded the file with
            content_type: Optional MIME type

        Returns:
            The stored file

        Raises:
            FileStoreError: if the content could not be stored
        """
        pass

    @abstractmethod
    def reference_for(self, stored: StoredFile) -> str:
        """
        Public reference (URL) recorded in the database for a stored file.
        """
        pass

    @abstractmethod
    def delete(self, reference: str) -> bool:
        """
        Delete a file by its public reference.

        Returns:
            True if a file was removed, False if there was nothing to remove

        Raises:
            FileStoreError: if the file exists but could not be removed
        """
        pass
