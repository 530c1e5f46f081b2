"""
Rich-based logging for pidebug

Log records go to stderr through a RichHandler (and optionally a plain
file); user-facing command output uses the stdout console. Records from
a live session carry the connection name as a ``[name]:`` prefix.
"""
import sys
import logging
from typing import Optional
from pathlib import Path

from rich.logging import RichHandler
from rich.console import Console


_stdout_console = Console(file=sys.stdout)
_stderr_console = Console(file=sys.stderr)

# Third-party loggers kept at WARNING unless pidebug itself logs at DEBUG
NOISY_LOGGERS = ("paramiko", "httpx", "httpcore")

FILE_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _parse_level(level: str) -> int:
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    rich_tracebacks: bool = True,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Logging level name; unknown names fall back to INFO
        log_file: Also append plain-text records to this file
        rich_tracebacks: Render exception tracebacks with rich
    """
    log_level = _parse_level(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = RichHandler(
        console=_stderr_console,
        show_path=False,
        rich_tracebacks=rich_tracebacks,
        markup=False,
    )
    console_handler.setLevel(log_level)
    root_logger.addHandler(console_handler)

    library_level = log_level if log_level <= logging.DEBUG else max(log_level, logging.WARNING)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Module logger, usually ``get_logger(__name__)``"""
    return logging.getLogger(name)


class HostLogger(logging.LoggerAdapter):
    """Prefixes every message with the connection name, e.g. ``[pi@raspberry]: ...``"""

    def process(self, msg, kwargs):
        return f"[{self.extra['host']}]: {msg}", kwargs


def get_host_logger(name: str, host: str) -> HostLogger:
    """Logger that tags its records with a connection name"""
    return HostLogger(logging.getLogger(name), {"host": host})


def get_stdout_console() -> Console:
    """Console for command results"""
    return _stdout_console


def get_stderr_console() -> Console:
    """Console shared by log records and error messages"""
    return _stderr_console
