"""
Configuration adapters
"""
from .loader import ConfigLoader, WorkbenchConfig

__all__ = ["ConfigLoader", "WorkbenchConfig"]
