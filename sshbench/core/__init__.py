"""
Core infrastructure layer
"""
from .client import RemoteClient, ClientConfig
from .constants import *
from .exceptions import *
from .logging import setup_logging, get_logger, get_stdout_console, get_stderr_console
from .interfaces import SessionRepository, ChannelFactory, SurfaceProvider
from .telemetry import Telemetry, get_telemetry
from .paths import (
    normalize_remote_path,
    join_remote,
    parent_remote,
    basename_remote,
    is_root,
)

__all__ = [
    "RemoteClient",
    "ClientConfig",
    "setup_logging",
    "get_logger",
    "get_stdout_console",
    "get_stderr_console",
    "SessionRepository",
    "ChannelFactory",
    "SurfaceProvider",
    "Telemetry",
    "get_telemetry",
    "normalize_remote_path",
    "join_remote",
    "parent_remote",
    "basename_remote",
    "is_root",
]
