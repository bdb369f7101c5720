"""
Terminal attachment: surfaces, command lines and the shell host
"""
from .surface import DetachedSurface, StaticSurface, DeferredSurface
from .command import TerminalSettings, ShellInvocation, ShellCommandBuilder
from .host import ShellHost

__all__ = [
    "DetachedSurface",
    "StaticSurface",
    "DeferredSurface",
    "TerminalSettings",
    "ShellInvocation",
    "ShellCommandBuilder",
    "ShellHost",
]
