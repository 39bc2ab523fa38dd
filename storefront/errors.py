"""
Error kinds raised by the catalog write path.

Ownership mismatches are not errors: a write against a product the caller
does not own matches zero rows and is reported through the result objects.
"""
from dataclasses import dataclass, field
from typing import List


class CatalogError(Exception):
    """Base class for catalog errors"""


class UploadRejected(CatalogError):
    """An uploaded file failed validation and nothing from the batch was kept"""


@dataclass(frozen=True)
class FileCleanupFailure:
    reference: str
    error: str


@dataclass
class CleanupReport:
    """Outcome of a best-effort file cleanup"""
    attempted: List[str] = field(default_factory=list)
    failures: List[FileCleanupFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class TransactionFailed(CatalogError):
    """
    A product write was rolled back.

    The database error that caused the rollback is available as ``__cause__``.
    ``cleanup`` describes what happened to the files that the write would have
    referenced; failures there never replace the original error.
    """

    def __init__(self, operation: str, cleanup: CleanupReport):
        self.operation = operation
        self.cleanup = cleanup
        super().__init__(f"{operation} failed and was rolled back")
