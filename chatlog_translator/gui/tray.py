import os
import sys
import logging

from PySide6.QtWidgets import QApplication, QSystemTrayIcon, QMenu, QMessageBox
from PySide6.QtCore import QObject, Signal, Slot, QThread, Qt
from PySide6.QtGui import QIcon, QAction

from chatlog_translator.core.supervisor import PollingSupervisor, TickOutcome
from chatlog_translator.utils.paths import resolve_app_path
from chatlog_translator.utils.settings import AppSettings
from chatlog_translator.version import __version__

logger = logging.getLogger(__name__)


class PollingWorker(QObject):
    """
    Runs the supervisor loop on the worker thread.
    Emits the loop's exit reason (TickOutcome value) when it returns.
    """
    finished = Signal(str)

    def __init__(self, supervisor: PollingSupervisor):
        super().__init__()
        self.supervisor = supervisor

    @Slot()
    def run(self):
        outcome = self.supervisor.run()
        self.finished.emit(outcome.value)


class TranslatorTrayApp(QObject):
    """
    Tray icon with a single Quit action, plus the polling thread.
    The two only share the supervisor's stop signal.
    """

    def __init__(self, settings: AppSettings, supervisor: PollingSupervisor):
        super().__init__()
        self.settings = settings
        self.supervisor = supervisor

        # Qt Application
        self.app = QApplication.instance() or QApplication(sys.argv)
        # Tray only, no windows
        self.app.setQuitOnLastWindowClosed(False)

        # Polling Thread
        self.thread = QThread()
        self.worker = PollingWorker(supervisor)
        self.worker.moveToThread(self.thread)
        self.thread.started.connect(self.worker.run)
        self.worker.finished.connect(self._on_polling_finished)

        self._setup_system_tray()

    def _load_icon(self) -> QIcon:
        path = resolve_app_path(self.settings.icon_path)
        if os.path.exists(path):
            return QIcon(path)

        logger.warning("Warning: failed to load icon.")
        # Fallback: Create a simple pixmap
        from PySide6.QtGui import QPixmap, QPainter, QColor
        pixmap = QPixmap(16, 16)
        pixmap.fill(Qt.GlobalColor.transparent)
        painter = QPainter(pixmap)
        painter.setBrush(QColor("cyan"))
        painter.setPen(Qt.PenStyle.NoPen)
        painter.drawEllipse(1, 1, 14, 14)
        painter.end()
        return QIcon(pixmap)

    def _setup_system_tray(self):
        self.tray_icon = QSystemTrayIcon(self.app)
        self.tray_icon.setIcon(self._load_icon())
        self.tray_icon.setToolTip("Ephinea ChatLogTranslator")

        self.tray_menu = QMenu()
        quit_action = QAction("Quit", self.tray_menu)
        quit_action.setToolTip("Quit the application")
        quit_action.triggered.connect(self.shutdown)
        self.tray_menu.addAction(quit_action)

        self.tray_icon.setContextMenu(self.tray_menu)
        self.tray_icon.show()

    @Slot(str)
    def _on_polling_finished(self, outcome: str):
        if outcome == TickOutcome.HOST_EXITED.value:
            self.shutdown()

    def shutdown(self):
        logger.info("Shutting down...")
        self.supervisor.stop()
        self.thread.quit()
        self.thread.wait()
        self.tray_icon.hide()
        self.app.quit()

    def run(self) -> int:
        logger.info(f"Application started... (v{__version__})")
        self.thread.start()
        return self.app.exec()


def warn_host_not_running():
    """One-time pre-flight message when the game is not up."""
    app = QApplication.instance() or QApplication(sys.argv)
    QMessageBox.warning(None, "Warning", "PSOBB is not running. Start the PSOBB first.")
    app.quit()
