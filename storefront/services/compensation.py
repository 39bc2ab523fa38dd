import logging
from typing import Iterable

from storefront.errors import CleanupReport, FileCleanupFailure
from storefront.services.file_stores.base import FileStore

logger = logging.getLogger(__name__)


def delete_files(file_store: FileStore, references: Iterable[str]) -> CleanupReport:
    """
    Best-effort removal of files that no committed row references.

    Every reference gets exactly one delete attempt; a failure is logged and
    recorded in the report and never stops the remaining deletions. Missing
    files are not failures. This function does not raise.
    """
    report = CleanupReport()
    for reference in references:
        report.attempted.append(reference)
        try:
            file_store.delete(reference)
        except Exception as e:
            logger.error(f"Failed to delete orphaned file {reference}: {e}", exc_info=True)
            report.failures.append(FileCleanupFailure(reference=reference, error=str(e)))

    if report.failures:
        logger.warning(
            f"File cleanup finished with {len(report.failures)} of {len(report.attempted)} deletions failing"
        )
    return report
