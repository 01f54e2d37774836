import logging
import threading
from enum import Enum
from typing import Callable, Optional

from chatlog_translator.core.cleaner import Cleaner
from chatlog_translator.core.error_marker import ErrorMarker, report_failure
from chatlog_translator.core.errors import ConfigError, ProviderError
from chatlog_translator.core.reader import LogReader
from chatlog_translator.core.scanner import LogScanner
from chatlog_translator.core.writer import ResultWriter
from chatlog_translator.services.options import ConfigProvider
from chatlog_translator.services.translator import TranslationService

logger = logging.getLogger(__name__)


class SupervisorState(Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    READING = "reading"
    TRANSLATING = "translating"
    WRITING_AND_CLEANING = "writing_and_cleaning"


class TickOutcome(Enum):
    NO_FILES = "no_files"
    EMPTY_BATCH = "empty_batch"
    CONFIG_FAILED = "config_failed"
    TRANSLATION_FAILED = "translation_failed"
    WRITE_FAILED = "write_failed"
    COMPLETED = "completed"
    # Loop exits
    HOST_EXITED = "host_exited"
    STOPPED = "stopped"


class PollingSupervisor:
    """
    Runs the scan -> read -> translate -> write -> clean cycle on a fixed
    interval for as long as the game client is running.

    Every failure inside a cycle is recovered at the tick boundary: the
    source files stay where they are and the next tick retries them. The
    loop only ends when the liveness probe reports the host is gone or
    stop() is called (the quit action).
    """

    def __init__(self, scanner: LogScanner, reader: LogReader,
                 config_provider: ConfigProvider, translator: TranslationService,
                 writer: ResultWriter, cleaner: Cleaner,
                 error_marker: Optional[ErrorMarker] = None,
                 liveness_probe: Callable[[], bool] = lambda: True,
                 interval: float = 5.0):
        self.scanner = scanner
        self.reader = reader
        self.config_provider = config_provider
        self.translator = translator
        self.writer = writer
        self.cleaner = cleaner
        self.error_marker = error_marker
        self.liveness_probe = liveness_probe
        self.interval = interval

        self.state = SupervisorState.IDLE
        self._stop_event = threading.Event()

    def stop(self):
        """Request shutdown. Safe to call from any thread."""
        self._stop_event.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def run(self) -> TickOutcome:
        """
        Poll until the host exits or stop() is called.

        Returns:
            TickOutcome.HOST_EXITED or TickOutcome.STOPPED.
        """
        logger.info(f"Polling every {self.interval}s.")
        while not self._stop_event.is_set():
            if not self.liveness_probe():
                logger.info("Host application is no longer running. Exiting.")
                return TickOutcome.HOST_EXITED

            try:
                self.tick()
            except Exception as e:
                # Unexpected bug in a stage; keep polling, files are untouched
                logger.exception("Unexpected error in translation cycle")
                if self.error_marker is not None:
                    self.error_marker.record(f"Unexpected error: {e}")
                self.state = SupervisorState.IDLE

            if self._stop_event.wait(self.interval):
                break

        logger.info("Polling stopped.")
        return TickOutcome.STOPPED

    def tick(self) -> TickOutcome:
        """Run one full cycle and return to IDLE."""
        logger.debug("Translator loop triggered.")
        try:
            return self._cycle()
        finally:
            self.state = SupervisorState.IDLE

    def _cycle(self) -> TickOutcome:
        self.state = SupervisorState.SCANNING
        files = self.scanner.scan()
        if not files:
            return TickOutcome.NO_FILES

        self.state = SupervisorState.READING
        batch = self.reader.read(files)
        if not batch:
            # Nothing to translate, so nothing is cleaned either
            return TickOutcome.EMPTY_BATCH
        logger.info(f"Read {len(batch)} messages from {len(files)} file(s).")

        try:
            config = self.config_provider.load()
        except ConfigError as e:
            report_failure(logger, self.error_marker, str(e))
            return TickOutcome.CONFIG_FAILED

        self.state = SupervisorState.TRANSLATING
        try:
            translated = self.translator.translate(batch, config)
        except ProviderError as e:
            report_failure(logger, self.error_marker, str(e))
            return TickOutcome.TRANSLATION_FAILED

        self.state = SupervisorState.WRITING_AND_CLEANING
        if not self.writer.write(batch, translated):
            return TickOutcome.WRITE_FAILED

        self.cleaner.cleanup(files)
        return TickOutcome.COMPLETED
