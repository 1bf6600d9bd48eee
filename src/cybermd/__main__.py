"""Main entry point for the CyberMD application."""

import asyncio
from datetime import datetime, timezone
import glob
import logging
from logging.handlers import RotatingFileHandler
import os
import sys
from types import TracebackType
from typing import Any, Dict

from qasync import QEventLoop, QApplication  # type: ignore[import-untyped]

from cybermd.main_window import MainWindow


LOG_DIR = os.path.expanduser("~/.cybermd/logs")

# Total log files kept across all sessions, each capped at LOG_FILE_BYTES
MAX_LOG_FILES = 50
LOG_FILE_BYTES = 1024 * 1024


def setup_logging(log_dir: str = LOG_DIR) -> str:
    """
    Send all logging to a new file for this session.

    Args:
        log_dir: Directory holding the log files

    Returns:
        Path of this session's log file
    """
    os.makedirs(log_dir, exist_ok=True)

    session = datetime.now(timezone.utc).strftime("%Y-%m-%d-%H-%M-%S-%f")[:23]
    log_path = os.path.join(log_dir, f"{session}.log")

    handler = RotatingFileHandler(
        log_path,
        maxBytes=LOG_FILE_BYTES,
        backupCount=MAX_LOG_FILES - 1,
        encoding='utf-8'
    )

    logging.basicConfig(
        level=logging.DEBUG,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[handler]
    )

    prune_logs(log_dir, MAX_LOG_FILES)
    return log_path


def prune_logs(log_dir: str, keep: int) -> None:
    """
    Delete the oldest log files so that at most `keep` remain.

    Args:
        log_dir: Directory holding the log files
        keep: Number of files to keep
    """
    logger = logging.getLogger("LogPruner")
    log_files = sorted(glob.glob(os.path.join(log_dir, "*.log*")), key=os.path.getctime)

    for stale in log_files[:max(0, len(log_files) - keep)]:
        try:
            os.remove(stale)

        except OSError as e:
            logger.debug("could not remove old log %s: %s", stale, e)


def install_global_exception_handler(loop: asyncio.AbstractEventLoop) -> None:
    """
    Log exceptions that would otherwise escape unseen.

    Covers both uncaught exceptions on the Qt side and failures in event loop
    callbacks and tasks, such as a reparse task whose exception was never retrieved.

    Args:
        loop: The application's event loop
    """
    logger = logging.getLogger('GlobalExceptionHandler')

    def handle_exception(
        exc_type: type[BaseException],
        exc_value: BaseException,
        exc_traceback: TracebackType | None
    ) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return

        logger.critical("Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback), stack_info=True)

    def handle_loop_exception(_loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
        exception = context.get("exception")
        exc_info = (type(exception), exception, exception.__traceback__) if exception is not None else None
        logger.error("Event loop error: %s", context.get("message", "unknown"), exc_info=exc_info)

    sys.excepthook = handle_exception
    loop.set_exception_handler(handle_loop_exception)


def main() -> int:
    """Main function to run the application."""
    setup_logging()

    app = QApplication(sys.argv)
    app.setApplicationName("CyberMD")

    # The Qt event loop doubles as the asyncio loop that schedules reparsing
    loop = QEventLoop(app)
    asyncio.set_event_loop(loop)
    install_global_exception_handler(loop)

    window = MainWindow()
    window.show()

    try:
        with loop:
            loop.run_forever()

    except KeyboardInterrupt:
        return 0

    return 0


if __name__ == "__main__":
    sys.exit(main())
