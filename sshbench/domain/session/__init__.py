"""
Session domain
"""
from .models import SessionRecord, FileEntry, RemoteAttributes, Notice

__all__ = [
    "SessionRecord",
    "FileEntry",
    "RemoteAttributes",
    "Notice",
]
