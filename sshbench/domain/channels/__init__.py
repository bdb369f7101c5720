"""
Control and file channels
"""
from .base import BaseChannel
from .control import ControlChannel, CommandResult
from .files import FileChannel
from .factory import ParamikoChannelFactory

__all__ = [
    "BaseChannel",
    "ControlChannel",
    "CommandResult",
    "FileChannel",
    "ParamikoChannelFactory",
]
