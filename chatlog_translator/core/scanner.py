import os
import logging
from pathlib import Path
from typing import List, Optional

from chatlog_translator.core.error_marker import ErrorMarker, report_failure
from chatlog_translator.core.parser import is_log_file_name

logger = logging.getLogger(__name__)


class LogScanner:
    """
    Finds chat log files waiting to be translated.
    """

    def __init__(self, directory, error_marker: Optional[ErrorMarker] = None):
        self.directory = Path(directory)
        self.error_marker = error_marker

    def scan(self) -> List[str]:
        """
        List candidate log files in the watched directory.

        Returns:
            Base names matching chat<digits>.txt, plain string sorted.
            The addon does not zero-pad its counter, so "chat10.txt" sorts
            before "chat2.txt"; this is the order the files were always
            consumed in and is kept as is.
            Empty list if the directory cannot be read.
        """
        names = []
        try:
            with os.scandir(self.directory) as entries:
                for entry in entries:
                    try:
                        if entry.is_file() and is_log_file_name(entry.name):
                            names.append(entry.name)
                    except OSError:
                        continue
        except OSError as e:
            report_failure(logger, self.error_marker, f"could not find log folder. ({self.directory}: {e})")
            return []

        names.sort()
        return names
