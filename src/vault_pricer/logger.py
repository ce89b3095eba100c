"""Logging configuration for vault-pricer.

Logs always go to stderr so that command output on stdout stays parseable.
"""

import logging
import sys
from typing import TextIO

# Define TRACE level (lower than DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# Third-party loggers that drown price resolution logs at DEBUG
NOISY_LOGGERS = ("web3", "urllib3", "backoff")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Log formatter that colors the level name with ANSI escape codes."""

    COLORS = {
        "TRACE": "\033[90m",  # Dark gray
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"

    def __init__(self, *args, use_color: bool = True, **kwargs):
        super().__init__(*args, **kwargs)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        color = self.COLORS.get(levelname)
        if not self.use_color or color is None:
            return super().format(record)

        record.levelname = f"{color}{self.BOLD}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def resolve_level(log_level: str) -> int:
    """Map a level name, including TRACE, to its numeric value (INFO if unknown)."""
    name = log_level.upper()
    if name == "TRACE":
        return TRACE
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def quiet_noisy_loggers(level: int) -> None:
    """Keep web3/urllib3/backoff at WARNING unless tracing."""
    noisy_level = TRACE if level <= TRACE else max(level, logging.WARNING)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)


def setup_logging(log_level: str = "INFO", stream: TextIO | None = None) -> None:
    """Configure root logging for the CLI.

    Colors are only used when ``stream`` is a terminal.
    """
    stream = stream or sys.stderr
    level = resolve_level(log_level)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        ColoredFormatter(
            fmt=LOG_FORMAT,
            datefmt=DATE_FORMAT,
            use_color=hasattr(stream, "isatty") and stream.isatty(),
        )
    )

    logging.basicConfig(level=level, handlers=[handler], force=True)
    quiet_noisy_loggers(level)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module.

    Args:
        name: Usually __name__ of the calling module

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
