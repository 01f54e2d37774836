import sys
import argparse
import logging
import logging.handlers
from pathlib import Path

from chatlog_translator.core.cleaner import Cleaner
from chatlog_translator.core.error_marker import ERROR_MARKER_NAME, ErrorMarker
from chatlog_translator.core.reader import LogReader
from chatlog_translator.core.scanner import LogScanner
from chatlog_translator.core.supervisor import PollingSupervisor
from chatlog_translator.core.writer import ResultWriter
from chatlog_translator.services.host import InstanceLock, WindowLivenessProbe
from chatlog_translator.services.options import YamlOptionsProvider
from chatlog_translator.services.translator import TranslationService
from chatlog_translator.utils.paths import resolve_app_path
from chatlog_translator.utils.settings import AppSettings, default_config_path, load_settings, save_settings
from chatlog_translator.version import __version__

INFO_LOG_NAME = "translation_info.txt"

logger = logging.getLogger(__name__)


# Setup Logging
def setup_logging(settings: AppSettings):
    root = logging.getLogger()
    root.setLevel(logging.INFO)

    # Console Handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    root.addHandler(console_handler)

    if not settings.info_log_enabled:
        return

    log_dir = Path(resolve_app_path(settings.log_path))
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        # File Handler (Rotating), next to the chat logs so the addon can show it
        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / INFO_LOG_NAME, maxBytes=1024*1024, backupCount=5, encoding='utf-8'
        )
    except OSError as e:
        logging.warning(f"Info log disabled: {e}")
        return

    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s\t%(name)s - %(levelname)s - %(message)s', datefmt='%Y-%m-%d %H:%M:%S'
    ))
    root.addHandler(file_handler)
    logging.info(f"Logging initialized. Log file: {log_dir / INFO_LOG_NAME}")


def build_supervisor(settings: AppSettings, liveness_probe=None) -> PollingSupervisor:
    """Wire the pipeline components for the configured log folder."""
    log_dir = Path(resolve_app_path(settings.log_path))
    marker = ErrorMarker(log_dir / ERROR_MARKER_NAME, append=settings.append_error_log)

    return PollingSupervisor(
        scanner=LogScanner(log_dir, marker),
        reader=LogReader(log_dir, marker),
        config_provider=YamlOptionsProvider(resolve_app_path(settings.options_path)),
        translator=TranslationService.from_settings(settings),
        writer=ResultWriter(log_dir, marker),
        cleaner=Cleaner(log_dir, marker),
        error_marker=marker,
        liveness_probe=liveness_probe or WindowLivenessProbe(settings.host_window_title),
        interval=settings.poll_interval,
    )


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Translate game chat logs in the background.")
    p.add_argument("--config", default=None, help=f"settings JSON path (default: ./{default_config_path().name})")
    p.add_argument("--once", action="store_true", help="run a single translation cycle and exit")
    p.add_argument("--no-tray", action="store_true", help="poll on the console without the tray icon")
    p.add_argument("--version", action="version", version=__version__)
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    config_path = Path(args.config) if args.config else default_config_path()
    settings = load_settings(config_path)
    if not config_path.exists():
        # First run: leave an editable copy of the defaults
        save_settings(settings, config_path)

    setup_logging(settings)
    headless = args.once or args.no_tray

    probe = WindowLivenessProbe(settings.host_window_title)
    if not probe.is_alive():
        if headless:
            logger.warning("Host application is not running.")
        else:
            from chatlog_translator.gui.tray import warn_host_not_running
            warn_host_not_running()
        return 1

    lock = InstanceLock(settings.instance_lock_name)
    if not lock.acquire():
        # Another instance already polls this folder
        return 0

    try:
        supervisor = build_supervisor(settings, probe)

        if args.once:
            outcome = supervisor.tick()
            logger.info(f"Cycle finished: {outcome.value}")
            return 0

        if args.no_tray:
            try:
                supervisor.run()
            except KeyboardInterrupt:
                supervisor.stop()
            return 0

        # Qt widgets are only needed for the tray
        from chatlog_translator.gui.tray import TranslatorTrayApp
        return TranslatorTrayApp(settings, supervisor).run()
    finally:
        lock.release()


if __name__ == "__main__":
    sys.exit(main())
