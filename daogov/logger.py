"""
daogov logging

Every module logs through the ``daogov`` logger, which gets a rich console
handler (governance theme) and, optionally, a rotating file. Settings come
from the environment at import and can be replaced later from the
``[logging]`` section of daogov.toml.

    >>> from daogov.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Proposal #1: open → passed")
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
    LOG_FILE_OUTPUT,
)


# Define log file location relative to the project root
PROJECT_ROOT = Path(__file__).parent.parent
LOG_FILE_PATH = PROJECT_ROOT / "logs" / "daogov.log"


class LogManager:
    """
    Process-wide owner of the ``daogov`` logger handlers.

    ``configure`` runs once; ``reconfigure`` drops the current handlers and
    applies new settings, e.g. those loaded from daogov.toml.
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
    def validate_log_format(log_format: str) -> str:
        """
        Return *log_format*, or the default format when it would not render
        a sample record cleanly.
        """
        if not log_format:
            return str(LOG_FORMAT.default())

        log_format = str(log_format)
        format_specifier_pattern = r"\([a-zA-Z_][a-zA-Z0-9_]*\)[a-zA-Z]"
        try:
            for match in re.finditer(format_specifier_pattern, log_format):
                start_pos = match.start()
                if start_pos == 0 or log_format[start_pos - 1] != "%":
                    raise ValueError("Malformed format specifier.")

            formatter = logging.Formatter(fmt=log_format)
            record = logging.LogRecord(
                name="test", level=logging.INFO, pathname="", lineno=0,
                msg="test", args=(), exc_info=None,
            )
            formatted_output = formatter.format(record)
            if re.search(format_specifier_pattern, formatted_output):
                raise ValueError("Format specifiers not properly processed.")
        except (ValueError, KeyError, TypeError) as e:
            print(
                f"{time.strftime('%Y-%m-%d %H:%M:%S')} - daogov.logger - "
                f"Validation Error: {e}. Using default.",
                file=sys.stderr,
            )
            return str(LOG_FORMAT.default())
        return log_format


    def configure(
        self,
        log_level: Optional[str] = None,
        log_file: Optional[Path] = None,
        console_output: bool = True,
        file_output: Optional[bool] = None,
    ) -> None:
        """
        Install handlers on the ``daogov`` logger. Unset arguments fall back
        to the DAOGOV_LOG_* environment settings. No-op once configured.
        """
        with self._lock:
            if self._configured:
                return
            self._install(log_level, log_file, console_output, file_output)


    def reconfigure(
        self,
        log_level: Optional[str] = None,
        log_file: Optional[Path] = None,
        console_output: bool = True,
        file_output: Optional[bool] = None,
    ) -> None:
        """Replace the current handlers with ones built from new settings."""
        with self._lock:
            package_logger = logging.getLogger("daogov")
            for handler in list(package_logger.handlers):
                package_logger.removeHandler(handler)
                handler.close()
            self._configured = False
            self._install(log_level, log_file, console_output, file_output)


    def _install(
        self,
        log_level: Optional[str],
        log_file: Optional[Path],
        console_output: bool,
        file_output: Optional[bool],
    ) -> None:
        level_str = log_level or LOG_LEVEL
        numeric_level = getattr(logging, str(level_str).upper(), logging.INFO)

        package_logger = logging.getLogger("daogov")
        package_logger.setLevel(numeric_level)
        package_logger.handlers.clear()

        log_format = self.validate_log_format(LOG_FORMAT)
        date_format = str(LOG_DATE_FORMAT) or str(LOG_DATE_FORMAT.default())

        # UTC keeps timestamps comparable across hosts
        formatter = TerminalSafeFormatter(fmt=log_format, datefmt=date_format + " UTC")
        formatter.converter = time.gmtime

        if console_output:
            if LOG_CONSOLE_HIGHLIGHTING:
                daogov_theme = Theme(
                    {
                        "daogov.arrow":           "bold yellow",
                        "daogov.level_critical":  "bold red reverse",
                        "daogov.level_debug":     "bold dim",
                        "daogov.level_error":     "bold red",
                        "daogov.level_info":      "bold green",
                        "daogov.level_warning":   "bold yellow",
                        "daogov.logger_name":     "magenta",
                        "daogov.proposal_id":     "bold cyan",
                        "daogov.status_good":     "bold green",
                        "daogov.status_bad":      "bold red",
                        "daogov.status_pending":  "bold yellow",
                        "daogov.timestamp":       "bold cyan",
                    }
                )

                console = Console(theme=daogov_theme, highlight=False, stderr=True)

                rich_handler = RichHandler(
                    console=console,
                    highlighter=GovernanceLogHighlighter(),
                    keywords=[],
                    rich_tracebacks=True,
                    omit_repeated_times=False,
                    show_path=False,
                    show_time=False,
                    show_level=False,
                    markup=False,
                )
                rich_handler.setLevel(numeric_level)
                rich_handler.setFormatter(formatter)
                package_logger.addHandler(rich_handler)
            else:
                console_handler = logging.StreamHandler(sys.stderr)
                console_handler.setLevel(numeric_level)
                console_handler.setFormatter(formatter)
                package_logger.addHandler(console_handler)

        if file_output is None:
            file_output = bool(LOG_FILE_OUTPUT)

        if file_output:
            log_file_path = log_file or LOG_FILE_PATH
            log_file_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                filename=str(log_file_path),
                maxBytes=LOG_MAX_FILE_SIZE,
                backupCount=LOG_BACKUP_COUNT,
                encoding="utf-8",
            )
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(formatter)
            package_logger.addHandler(file_handler)

        self._configured = True


    def get_logger(self, name: str) -> logging.Logger:
        if not self._configured:
            self.configure()
        return logging.getLogger(name)


    @property
    def is_configured(self) -> bool:
        return self._configured


class TerminalSafeFormatter(logging.Formatter):
    """
    Strips ANSI escapes and control characters from rendered records.
    Titles, rationales and voter addresses are caller supplied (CWE-117).
    """

    # Matches ANSI CSI sequences (colors, cursor moves) and single ESC chars
    _ansi_escape_re = re.compile(
        r"\x1b\[[0-?]*[ -/]*[@-~]"
        r"|\x1b[@-Z\\-_]"
    )
    # Matches control chars (0x00-0x1F) excluding Tab and Newline
    _control_chars_re = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
    _carriage_return_re = re.compile(r"\r")


    @classmethod
    def sanitize(cls, text: str) -> str:
        if not text:
            return text
        text = cls._ansi_escape_re.sub("", text)
        text = cls._carriage_return_re.sub("", text)
        text = cls._control_chars_re.sub("", text)
        return text


    def format(self, record: logging.LogRecord) -> str:
        return self.sanitize(super().format(record))


class GovernanceLogHighlighter(RegexHighlighter):
    """Colours proposal ids, status names and transition arrows."""

    base_style = "daogov."
    highlights = [
        r"(?P<arrow>(\-\->)|(<--)|(→))",
        r"(?P<level_critical>\bCRITICAL\b)",
        r"(?P<level_debug>\bDEBUG\b)",
        r"(?P<level_error>\bERROR\b)",
        r"(?P<level_info>\bINFO\b)",
        r"(?P<level_warning>\bWARNING\b)",
        r"\-\s+\w+\s+-\s+(?P<logger_name>[\w.]+)(?=\s-\s)",
        r"(?P<proposal_id>#\d+)",
        r"(?P<status_good>\b(passed|executed)\b)",
        r"(?P<status_bad>\b(rejected|closed|vetoed|execution_failed)\b)",
        r"(?P<status_pending>\b(open|veto_timelock)\b)",
        r"(?P<timestamp>^(.*?)UTC)",
    ]


_manager = LogManager()

def get_logger(name: str) -> logging.Logger:
    """Return *name*'s logger, configuring the package logger on first use."""
    return _manager.get_logger(name)
