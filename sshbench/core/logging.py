"""
Logging and console output for sshbench

Log records go to stderr through rich; user-facing tables and notices use
the stdout console. Both consoles resolve their stream on every write, so
output can be captured by test runners that swap sys.stdout.
"""
import logging
from typing import Optional
from pathlib import Path

from rich.logging import RichHandler
from rich.console import Console
from rich.traceback import install as install_traceback

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Libraries that are chatty at INFO about SSH negotiation
NOISY_LOGGERS = ("paramiko",)

_stdout_console = Console()
_stderr_console = Console(stderr=True)

install_traceback(console=_stderr_console, show_locals=False, width=120)


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """
    Route the root logger to a rich handler on stderr.

    Args:
        level: name of a logging level; unknown names fall back to INFO
        log_file: also append plain-text records here
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()

    root.addHandler(RichHandler(
        console=_stderr_console,
        level=log_level,
        show_path=log_level <= logging.DEBUG,
        rich_tracebacks=True,
        markup=False,
    ))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setLevel(log_level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def get_stdout_console() -> Console:
    """Console for tables, listings and notices"""
    return _stdout_console


def get_stderr_console() -> Console:
    return _stderr_console
