import logging
from pathlib import Path
from typing import Iterable, List, Optional

from chatlog_translator.core.error_marker import ErrorMarker, report_failure
from chatlog_translator.core.parser import ChatRecord, LineParser

logger = logging.getLogger(__name__)


class LogReader:
    """
    Reads chat records out of candidate log files.
    Never modifies or deletes the files; that is the Cleaner's job once the
    batch has been translated and written.
    """

    def __init__(self, directory, error_marker: Optional[ErrorMarker] = None,
                 parser: Optional[LineParser] = None):
        self.directory = Path(directory)
        self.error_marker = error_marker
        self.parser = parser or LineParser()

    def read(self, files: Iterable[str]) -> List[ChatRecord]:
        """Collect records from files in the given order, then line order."""
        batch: List[ChatRecord] = []
        for name in files:
            batch.extend(self._read_file(self.directory / name))
        return batch

    def _read_file(self, path: Path) -> List[ChatRecord]:
        records = []
        try:
            # Split on '\n' only; a bare '\r' stays part of the text
            with open(path, 'r', encoding='utf-8', errors='replace', newline='\n') as f:
                for line in f:
                    record = self.parser.parse(line)
                    if record:
                        records.append(record)
        except OSError as e:
            # Skip this file only; the rest of the batch is still usable
            report_failure(logger, self.error_marker, f"Failed to open chatlog file. ({path.name}: {e})")
            return []

        logger.debug(f"Read {len(records)} records from {path.name}")
        return records
