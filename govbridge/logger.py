"""
GovBridge Logging
=================

Console logging through ``rich`` with highlighting for addresses, actions
set ids and lifecycle words, plus an optional rotating log file.

Usage:
    >>> from govbridge.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("ActionsSet #0 queued")
"""

import logging
import logging.handlers
import re
import sys
import threading
import time
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.highlighter import RegexHighlighter
from rich.logging import RichHandler
from rich.theme import Theme

from .constants import (
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_HIGHLIGHTING,
    LOG_DATE_FORMAT,
    LOG_FILE_OUTPUT,
    LOG_FORMAT,
    LOG_LEVEL,
    LOG_MAX_FILE_SIZE,
)

LOG_FILE_PATH = Path(__file__).parent.parent / "logs" / "govbridge.log"

GOVBRIDGE_THEME = Theme({
    "govbridge.address":     "cyan",
    "govbridge.actions_set": "bold magenta",
    "govbridge.lifecycle":   "bold white",
    "govbridge.rejected":    "bold red",
    "govbridge.level":       "bold green",
    "govbridge.warning":     "bold yellow",
    "govbridge.error":       "bold red",
    "govbridge.logger_name": "magenta",
    "govbridge.timestamp":   "bold cyan",
})


class GovBridgeHighlighter(RegexHighlighter):
    """Highlights the parts of executor log lines worth scanning for."""

    base_style = "govbridge."
    highlights = [
        r"(?P<timestamp>^\S+ UTC)",
        r"(?P<address>\b0x[0-9a-fA-F]{40}\b)",
        r"(?P<actions_set>ActionsSet #\d+)",
        r"(?P<lifecycle>\b(Queued|Executed|Canceled|Expired)\b)",
        r"(?P<rejected>\bREJECTED\b)",
        r"(?P<level>\b(DEBUG|INFO)\b)",
        r"(?P<warning>\bWARNING\b)",
        r"(?P<error>\b(ERROR|CRITICAL)\b)",
        r"-\s+\w+\s+-\s+(?P<logger_name>[\w.]+)(?=\s-\s)",
    ]


class SanitizingFormatter(logging.Formatter):
    """
    Strips ANSI escapes and control characters from formatted records.

    Signatures and revert reasons in log messages come from relayed
    payloads.
    """

    _ansi = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]|\x1b[@-Z\\-_]")
    _control = re.compile(r"[\x00-\x08\x0B-\x1F\x7F]")

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        return self._control.sub("", self._ansi.sub("", text))


def _checked_format(log_format: str) -> str:
    """Return *log_format* if it formats a record, else the default."""
    try:
        logging.Formatter(fmt=str(log_format)).format(logging.LogRecord(
            "govbridge", logging.INFO, "", 0, "check", (), None,
        ))
        return str(log_format)
    except (ValueError, KeyError, TypeError) as e:
        print(f"govbridge.logger: invalid LOG_FORMAT ({e}), using default", file=sys.stderr)
        return str(LOG_FORMAT.default())


def _checked_date_format(date_format: str) -> str:
    """Return *date_format* if it contains a strftime directive, else the default."""
    if date_format and re.search(r"%[a-zA-Z]", str(date_format)):
        return str(date_format)
    print("govbridge.logger: invalid LOG_DATE_FORMAT, using default", file=sys.stderr)
    return str(LOG_DATE_FORMAT.default())


class LogManager:
    """Configures the root logger exactly once per process."""

    _instance: Optional["LogManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "LogManager":
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._configured = False
        return cls._instance

    @property
    def is_configured(self) -> bool:
        return self._configured

    def configure(
        self,
        log_level: Optional[str] = None,
        log_file: Optional[Path] = None,
        file_output: Optional[bool] = None,
    ) -> None:
        """
        Install the console handler and, if enabled, the file handler.

        Args:
            log_level: DEBUG, INFO, ... (defaults to LOG_LEVEL)
            log_file: rotating log file (defaults to logs/govbridge.log)
            file_output: write the log file (defaults to LOG_FILE_OUTPUT)
        """
        with self._lock:
            if self._configured:
                return

            level = getattr(logging, str(log_level or LOG_LEVEL).upper(), logging.INFO)
            root = logging.getLogger()
            root.setLevel(level)
            root.handlers.clear()

            # timestamps in UTC so relayer hosts agree
            formatter = SanitizingFormatter(
                fmt=_checked_format(LOG_FORMAT),
                datefmt=_checked_date_format(LOG_DATE_FORMAT) + " UTC",
            )
            formatter.converter = time.gmtime

            if LOG_CONSOLE_HIGHLIGHTING:
                console = RichHandler(
                    console=Console(theme=GOVBRIDGE_THEME, highlight=False),
                    highlighter=GovBridgeHighlighter(),
                    keywords=[],
                    rich_tracebacks=True,
                    show_time=False,
                    show_level=False,
                    show_path=False,
                    markup=False,
                )
            else:
                console = logging.StreamHandler(sys.stdout)
            console.setLevel(level)
            console.setFormatter(formatter)
            root.addHandler(console)

            if file_output is None:
                file_output = bool(LOG_FILE_OUTPUT)
            if file_output:
                path = log_file or LOG_FILE_PATH
                path.parent.mkdir(parents=True, exist_ok=True)
                rotating = logging.handlers.RotatingFileHandler(
                    filename=str(path),
                    maxBytes=LOG_MAX_FILE_SIZE,
                    backupCount=LOG_BACKUP_COUNT,
                    encoding="utf-8",
                )
                rotating.setLevel(level)
                rotating.setFormatter(formatter)
                root.addHandler(rotating)

            self._configured = True

    def get_logger(self, name: str) -> logging.Logger:
        if not self._configured:
            self.configure()
        return logging.getLogger(name)


_manager = LogManager()


def get_logger(name: str) -> logging.Logger:
    """Module logger; configures logging on first use."""
    return _manager.get_logger(name)
