"""
Workbench domain: per-session tabs and their registry
"""
from .models import ConnectionState, TabSettings, STATUS_DISCONNECTED
from .tab import Tab, log_notice
from .registry import Workbench

__all__ = [
    "ConnectionState",
    "TabSettings",
    "STATUS_DISCONNECTED",
    "Tab",
    "log_notice",
    "Workbench",
]
