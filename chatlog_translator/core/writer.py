import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from chatlog_translator.core.error_marker import ErrorMarker, report_failure
from chatlog_translator.core.parser import ChatRecord

logger = logging.getLogger(__name__)

TRANSLATED_LOG_PREFIX = "translatedChat"


class ResultWriter:
    """
    Appends translated rows to the day's output file
    (translatedChat<YYYYMMDD>.txt, next to the source logs).
    """

    def __init__(self, directory, error_marker: Optional[ErrorMarker] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.directory = Path(directory)
        self.error_marker = error_marker
        self.clock = clock

    def output_path(self) -> Path:
        return self.directory / f"{TRANSLATED_LOG_PREFIX}{self.clock().strftime('%Y%m%d')}.txt"

    def write(self, batch: List[ChatRecord], translated: List[str]) -> bool:
        """
        Append one row per record: timestamp, speaker, original, translated.

        Returns:
            True if every row was written. False if the inputs are misaligned
            (nothing written) or the file could not be written (rows already
            appended stay; the file is append-only).
        """
        if len(batch) != len(translated):
            report_failure(
                logger, self.error_marker,
                f"Translated result count mismatch ({len(translated)} for {len(batch)} messages). Nothing written."
            )
            return False

        out_file = self.output_path()
        try:
            with open(out_file, 'a', encoding='utf-8', newline='\n') as f:
                for record, text in zip(batch, translated):
                    f.write(f"{record.timestamp}\t{record.speaker}\t{record.text}\t{text}\n")
        except OSError as e:
            report_failure(logger, self.error_marker, f"Failed to write to translated log file. ({out_file.name}: {e})")
            return False

        logger.info(f"Wrote {len(batch)} translated rows to {out_file.name}")
        return True
