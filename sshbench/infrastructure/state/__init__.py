"""
State storage implementations
"""
from .session_store import JsonSessionStore, default_sessions

__all__ = ["JsonSessionStore", "default_sessions"]
