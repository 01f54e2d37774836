import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)

ERROR_MARKER_NAME = "translation_error.txt"


class ErrorMarker:
    """
    Side-channel file whose presence signals that the last cycle failed.

    The addon reads this file to show the player what went wrong, so it holds
    a timestamped message rather than a full log. By default every failure
    overwrites the previous one; with append=True messages accumulate.
    """

    def __init__(self, path, append: bool = False, clock: Callable[[], datetime] = datetime.now):
        self.path = Path(path)
        self.append = append
        self.clock = clock

    def record(self, message: str):
        line = f"{self.clock().strftime('%Y-%m-%d %H:%M:%S')}\t{message}\n"
        mode = 'a' if self.append else 'w'
        try:
            with open(self.path, mode, encoding='utf-8') as f:
                f.write(line)
        except OSError as e:
            # Nowhere else to surface this; the log still has it
            logger.error(f"Failed to write error marker {self.path}: {e}")

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> str:
        try:
            return self.path.read_text(encoding='utf-8')
        except OSError:
            return ""

    def clear(self):
        """Remove the marker if present (stale failure no longer applies)."""
        if not self.path.exists():
            return
        try:
            self.path.unlink()
            logger.info("Cleared error marker.")
        except OSError as e:
            logger.error(f"Failed to delete error marker: {e}")


def report_failure(log: logging.Logger, marker: Optional[ErrorMarker], message: str):
    """Log a recoverable failure and, if a marker is configured, record it there too."""
    log.error(message)
    if marker is not None:
        marker.record(message)
