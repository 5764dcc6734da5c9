"""
VSR Logging System
==================

Process-wide logging setup for the voter stake registry. Builds on the
standard `logging` module, with `rich` for highlighted console output and a
rotating file handler for persistent logs.

Usage:
    >>> from vsr.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Deposit entry #0 funded with 1000")
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
    LOG_LEVEL,
    LOG_FORMAT,
    LOG_DATE_FORMAT,
    LOG_MAX_FILE_SIZE,
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_HIGHLIGHTING,
    LOG_FILE_ENABLED,
)


PROJECT_ROOT = Path(__file__).parent.parent
LOG_FILE_PATH = PROJECT_ROOT / "logs" / "vsr.log"

VSR_THEME = Theme(
    {
        "vsr.address":        "cyan",
        "vsr.amount":         "bold cyan",
        "vsr.entry":          "bold magenta",
        "vsr.error":          "bold red",
        "vsr.level_critical": "bold red reverse",
        "vsr.level_debug":    "bold dim",
        "vsr.level_error":    "bold red",
        "vsr.level_info":     "bold green",
        "vsr.level_warning":  "bold yellow",
        "vsr.lockup_kind":    "bold yellow",
        "vsr.logger_name":    "magenta",
        "vsr.timestamp":      "bold cyan",
    }
)


class LogManager:
    """
    Singleton owning the root logger configuration.

    The first call to :meth:`configure` wins; later calls are ignored so that
    importing modules in any order yields the same handlers.
    """

    _instance: Optional["LogManager"] = None
    _lock: threading.Lock = threading.Lock()

    def __new__(cls) -> "LogManager":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if self._initialized:
            return
        self._configured = False
        self._initialized = True

    @staticmethod
    def _warn(message: str) -> None:
        print(
            f"{time.strftime(str(LOG_DATE_FORMAT.default()))} - vsr.logger - {message}",
            file=sys.stderr,
        )

    @staticmethod
    def validate_log_format(log_format: str) -> str:
        """
        Return ``log_format`` if it formats a dummy record cleanly, otherwise
        the default ``LOG_FORMAT``.
        """
        if not log_format:
            return str(LOG_FORMAT.default())

        log_format = str(log_format)
        specifier = r"\([a-zA-Z_][a-zA-Z0-9_]*\)[a-zA-Z]"

        try:
            for match in re.finditer(specifier, log_format):
                if match.start() == 0 or log_format[match.start() - 1] != "%":
                    raise ValueError("Malformed format specifier.")

            record = logging.LogRecord(
                name="vsr", level=logging.INFO, pathname="", lineno=0,
                msg="probe", args=(), exc_info=None,
            )
            output = logging.Formatter(fmt=log_format).format(record)
            if re.search(specifier, output):
                raise ValueError("Format specifiers not properly processed.")
        except (ValueError, KeyError, TypeError) as e:
            LogManager._warn(f"Invalid log format: {e}. Using default.")
            return str(LOG_FORMAT.default())

        return log_format

    @staticmethod
    def validate_date_format(date_format: str) -> str:
        """Accept only strftime directives and plain separators."""
        if not date_format:
            return str(LOG_DATE_FORMAT.default())

        date_format = str(date_format)
        pattern = re.compile(
            r"^(?=.*%(?!%)(?:[EO])?(?:[-_0^#])*(?:[A-DF-HIM-NPR-VW-Za-hj-lm-npr-uw-z]))"
            r"(?:%%|%(?:[EO])?(?:[-_0^#])*(?:[A-DF-HIM-NPR-VW-Za-hj-lm-npr-uw-z])|[0-9 \t:\-\/\.,TZ+])+$"
        )
        if not pattern.match(date_format):
            LogManager._warn("Invalid date format. Using default.")
            return str(LOG_DATE_FORMAT.default())
        return date_format

    def configure(
        self,
        log_level: Optional[str] = None,
        log_file: Optional[Path] = None,
        console_output: bool = True,
        file_output: Optional[bool] = None,
    ) -> None:
        """
        Configure the root logger.

        Args:
            log_level: Logging level name. Defaults to ``LOG_LEVEL`` from the environment.
            log_file: Path of the rotating log file. Defaults to ``logs/vsr.log``.
            console_output: Attach a console handler.
            file_output: Attach the rotating file handler. Defaults to ``LOG_FILE_ENABLED``.
        """
        with self._lock:
            if self._configured:
                return

            level_name = str(log_level or LOG_LEVEL).upper()
            numeric_level = getattr(logging, level_name, logging.INFO)

            root_logger = logging.getLogger()
            root_logger.setLevel(numeric_level)
            root_logger.handlers.clear()

            log_format = self.validate_log_format(LOG_FORMAT)
            date_format = self.validate_date_format(LOG_DATE_FORMAT)

            # Timestamps are always UTC
            formatter = TerminalSafeFormatter(fmt=log_format, datefmt=date_format + " UTC")
            formatter.converter = time.gmtime

            if console_output:
                if LOG_CONSOLE_HIGHLIGHTING:
                    handler = RichHandler(
                        console=Console(theme=VSR_THEME, highlight=False),
                        highlighter=VSRLogHighlighter(),
                        keywords=[],
                        rich_tracebacks=True,
                        omit_repeated_times=False,
                        show_path=False,
                        show_time=False,
                        show_level=False,
                        markup=False,
                    )
                else:
                    handler = logging.StreamHandler(sys.stdout)
                handler.setLevel(numeric_level)
                handler.setFormatter(formatter)
                root_logger.addHandler(handler)

            if file_output is None:
                file_output = bool(LOG_FILE_ENABLED)

            if file_output:
                log_file_path = Path(log_file or LOG_FILE_PATH)
                log_file_path.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.handlers.RotatingFileHandler(
                    filename=str(log_file_path),
                    maxBytes=LOG_MAX_FILE_SIZE,
                    backupCount=LOG_BACKUP_COUNT,
                    encoding="utf-8",
                )
                file_handler.setLevel(numeric_level)
                file_handler.setFormatter(formatter)
                root_logger.addHandler(file_handler)

            self._configured = True

    def reset(self) -> None:
        """Forget the current configuration so :meth:`configure` applies again."""
        with self._lock:
            self._configured = False

    def get_logger(self, name: str) -> logging.Logger:
        if not self._configured:
            self.configure()
        return logging.getLogger(name)

    @property
    def is_configured(self) -> bool:
        return self._configured


class TerminalSafeFormatter(logging.Formatter):
    """
    Formatter that strips ANSI escape sequences and control characters.

    Identities and memo-like strings reach the log verbatim, so anything that
    could rewrite the terminal or forge extra log lines is removed.
    """

    _ansi_escape_re = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]|\x1b[@-Z\\-_]")
    _control_chars_re = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")

    @classmethod
    def sanitize(cls, text: str) -> str:
        if not text:
            return text
        text = cls._ansi_escape_re.sub("", text)
        text = text.replace("\r", "")
        return cls._control_chars_re.sub("", text)

    def format(self, record: logging.LogRecord) -> str:
        return self.sanitize(super().format(record))


class VSRLogHighlighter(RegexHighlighter):
    """Highlights levels, deposit entry indexes, lockup kinds and amounts."""

    base_style = "vsr."
    highlights = [
        r"(?P<timestamp>^(.*?)UTC)",
        r"(?P<level_critical>\bCRITICAL\b)",
        r"(?P<level_debug>\bDEBUG\b)",
        r"(?P<level_error>\bERROR\b)",
        r"(?P<level_info>\bINFO\b)",
        r"(?P<level_warning>\bWARNING\b)",
        r"\-\s+\w+\s+-\s+(?P<logger_name>[\w.]+)(?=\s-\s)",
        r"(?P<entry>#\d+)",
        r"(?P<lockup_kind>\b(NONE|DAILY|MONTHLY|CLIFF|CONSTANT)\b)",
        r"(?P<amount>(?<![\w#.])\d+(?![\w.]))",
        r"(?P<address>\b[0-9a-f]{16,64}\b)",
        r"(?P<error>\b\w+Error\b)",
    ]


_manager = LogManager()


def get_logger(name: str) -> logging.Logger:
    """Return a logger from the shared, lazily configured, log manager."""
    return _manager.get_logger(name)


def reconfigure(
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None,
    file_output: Optional[bool] = None,
) -> None:
    """Drop the import-time handlers and configure again with explicit settings."""
    _manager.reset()
    _manager.configure(log_level=log_level, log_file=log_file, file_output=file_output)


_manager.configure()
