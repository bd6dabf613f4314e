"""
This module provides the reporting channels of a conversion run.

A run reports through a `ReportSink`: one line per job outcome (plus encoder
diagnostics for failures), progress updates of the form (current, total,
filename), and one final summary. The default `LoguruReportSink` sends all of
this to the application logger; a host with its own UI can pass a different
sink.

`ErrorLog` is a separate, optional plain-text file that collects the full
diagnostics of failed encoder runs, so they can be inspected after the console
output is gone.
"""

import threading
from pathlib import Path

from loguru import logger

from ..domain.models import RunSummary


class ReportSink:
    """
    Base class for run reporting channels.

    Implementations must be safe to call from several worker threads at once.
    The base implementation discards everything.
    """

    def append_line(self, text: str):
        pass

    def report_progress(self, current: int, total: int, filename: str):
        pass

    def show_summary(self, summary: RunSummary):
        pass


class LoguruReportSink(ReportSink):
    """Reports through loguru: job lines and progress at INFO, the summary at its level."""

    def append_line(self, text: str):
        logger.info(text)

    def report_progress(self, current: int, total: int, filename: str):
        logger.info(f"{current}/{total}: {filename}")

    def show_summary(self, summary: RunSummary):
        if summary.level == "warning":
            logger.warning(summary.message)
        elif summary.cancelled:
            logger.info(summary.message)
        else:
            logger.success(summary.message)


class ErrorLog:
    """
    Handles the writing of encoder failure diagnostics to a plain text file.

    Each failure is appended to the log file followed by a separator line,
    making the file a chronological record of what went wrong in a run.
    """

    DEFAULT_ERROR_FILENAME = "error.txt"

    # A decorative separator line used between entries.
    linesep_marker: str = "=" * 50

    def __init__(self, error_log_dir: Path, filename: str = DEFAULT_ERROR_FILENAME):
        """
        Initializes the ErrorLog instance and creates its directory.

        Args:
            error_log_dir: The directory where the error log file will be stored.
            filename: The name of the error log file (defaults to "error.txt").
        """
        self.log_dir = error_log_dir.resolve()
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.log_file_path = self.log_dir / filename
        # Workers fail concurrently; entries must not interleave.
        self._lock = threading.Lock()

    def write(self, *error_messages: str):
        """
        Appends one or more messages to the log file as a single entry.

        If writing fails (e.g., disk full, permissions), the messages are sent
        to the application logger instead so they are not lost.

        Args:
            *error_messages: The parts of the entry, one per line.
        """
        if not error_messages:
            return

        content_to_write = "\n".join(error_messages) + "\n" + self.linesep_marker + "\n"

        try:
            with self._lock, self.log_file_path.open("a", encoding="utf-8") as f:
                f.write(content_to_write)
        except OSError as e:
            logger.error(f"Failed to write to error log {self.log_file_path}: {e}")
            for msg in error_messages:
                logger.error(f"  - {msg}")
