"""
StakePool Logging

Every module logs through ``get_logger(__name__)``, i.e. a child of the
``stakepool`` logger. Importing the package attaches only a ``NullHandler``
so a host application's logging setup is left alone. Console and file output
are switched on explicitly with ``configure_logging`` (the CLI does this):

    >>> from stakepool.logger import configure_logging, get_logger
    >>> configure_logging("DEBUG")
    >>> get_logger("stakepool.staking.engine").info("Staked: 0xA1.. 100")
"""

import logging
import logging.handlers
import re
import threading
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

LOGGER_NAME = "stakepool"
LOG_FILE_PATH = Path.cwd() / "logs" / "stakepool.log"

STAKEPOOL_THEME = Theme(
    {
        "stakepool.address": "cyan",
        "stakepool.amount":  "bold white",
        "stakepool.arrow":   "bold yellow",
        "stakepool.event":   "bold magenta",
        "stakepool.warning": "bold yellow",
    }
)

_lock = threading.Lock()
_configured = False

logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())


class TerminalSafeFormatter(logging.Formatter):
    """Strips ANSI escapes and control characters from caller-supplied text."""

    _ansi_escape_re = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]|\x1b[@-Z\\-_]")
    _control_chars_re = re.compile(r"[\x00-\x08\x0B-\x1F\x7F]")

    @classmethod
    def sanitize(cls, text: str) -> str:
        if not text:
            return text
        return cls._control_chars_re.sub("", cls._ansi_escape_re.sub("", text))

    def format(self, record: logging.LogRecord) -> str:
        return self.sanitize(super().format(record))


class StakePoolLogHighlighter(RegexHighlighter):
    """Colors addresses, amounts, transfer arrows and pool event names."""

    base_style = "stakepool."
    highlights = [
        r"(?P<address>\b0x[0-9a-fA-F]{8,}\b)",
        r"(?P<amount>(?<![\w.])\d+(?![\w.]))",
        r"(?P<arrow>→)",
        r"(?P<event>\b(Staked|Withdrawn|RewardClaimed|RewardsFunded|RewardRateUpdated)\b)",
        r"(?P<warning>\b(underfunded|exhausted)\b)",
    ]


def _level(name: Optional[str]) -> int:
    return getattr(logging, str(name or LOG_LEVEL).upper(), logging.INFO)


def configure_logging(
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None,
    file_output: Optional[bool] = None,
) -> logging.Logger:
    """
    Attach console (and optionally rotating file) handlers to the
    ``stakepool`` logger. Later calls only adjust the level.

    Args:
        log_level: DEBUG, INFO, ... (defaults to ``LOG_LEVEL`` from ``.env``)
        log_file: File path for rotating output (defaults to ``./logs/stakepool.log``)
        file_output: Enable file output (defaults to ``LOG_FILE_OUTPUT``)
    """
    global _configured

    pkg = logging.getLogger(LOGGER_NAME)
    level = _level(log_level)
    with _lock:
        if _configured:
            set_log_level(logging.getLevelName(level))
            return pkg

        formatter = TerminalSafeFormatter(fmt=str(LOG_FORMAT), datefmt=str(LOG_DATE_FORMAT))

        if LOG_CONSOLE_HIGHLIGHTING:
            console = RichHandler(
                console=Console(theme=STAKEPOOL_THEME, highlight=False, stderr=True),
                highlighter=StakePoolLogHighlighter(),
                show_time=False,
                show_level=False,
                show_path=False,
                markup=False,
            )
        else:
            console = logging.StreamHandler()
        console.setFormatter(formatter)
        pkg.addHandler(console)

        if LOG_FILE_OUTPUT if file_output is None else file_output:
            path = Path(log_file or LOG_FILE_PATH)
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                filename=str(path),
                maxBytes=LOG_MAX_FILE_SIZE,
                backupCount=LOG_BACKUP_COUNT,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            pkg.addHandler(file_handler)

        # Our handlers print; don't echo through the host's root logger too.
        pkg.propagate = False
        _configured = True

    set_log_level(logging.getLevelName(level))
    return pkg


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_log_level(log_level: str) -> None:
    """Adjust the ``stakepool`` logger and its handlers."""
    level = _level(log_level)
    pkg = logging.getLogger(LOGGER_NAME)
    pkg.setLevel(level)
    for handler in pkg.handlers:
        handler.setLevel(level)
