import os
import logging
from pathlib import Path
from typing import Iterable, Optional

from chatlog_translator.core.error_marker import ErrorMarker, report_failure
from chatlog_translator.core.errors import UnsafeNameError
from chatlog_translator.core.parser import is_log_file_name

logger = logging.getLogger(__name__)

INVALID_NAME_CHARS = '<>:"|?*'
PATH_SEPARATORS = ('/', '\\')


def validate_file_name(name: str):
    """
    Deletion safety policy. Raises UnsafeNameError if name must not be deleted.

    Only plain base names of chat logs pass; anything that could point
    outside the log folder or at another file is refused.
    """
    if not name:
        raise UnsafeNameError(name, "File name is empty.")
    if name in ('.', '..'):
        raise UnsafeNameError(name, "File name is only dot.")
    if any(sep in name for sep in PATH_SEPARATORS):
        raise UnsafeNameError(name, "File name contains a path separator.")
    if any(ch in name for ch in INVALID_NAME_CHARS):
        raise UnsafeNameError(name, "File name contains invalid characters.")
    if not is_log_file_name(os.path.basename(name)):
        raise UnsafeNameError(name, "File name does not match the chat log pattern.")


def is_safe_file_name(name: str) -> bool:
    try:
        validate_file_name(name)
    except UnsafeNameError:
        return False
    return True


class Cleaner:
    """
    Deletes consumed chat logs after a fully successful cycle, then clears
    the error marker.
    """

    def __init__(self, directory, error_marker: Optional[ErrorMarker] = None):
        self.directory = Path(directory)
        self.error_marker = error_marker

    def cleanup(self, files: Iterable[str]) -> int:
        """
        Delete files that pass the safety policy.
        Each name is validated again here; the scan-time check is not trusted
        since the folder may have changed in between.

        Returns:
            Number of files deleted.
        """
        logger.info("Translation successful. Cleaning up old files...")
        deleted = 0

        for name in files:
            try:
                validate_file_name(name)
            except UnsafeNameError as e:
                report_failure(logger, self.error_marker, f"Unsafe file skipped: {e}")
                continue

            path = self.directory / name
            try:
                path.unlink()
                deleted += 1
            except OSError as e:
                report_failure(logger, self.error_marker, f"Failed to delete: {path.name} {e}")

        if self.error_marker is not None:
            self.error_marker.clear()

        return deleted
