"""
Transfer domain
"""
from .models import ArchiveFormat, ArchiveKind, PendingTransfer, CleanupResult
from .archiver import LocalArchiver
from .pipeline import TransferPipeline

__all__ = [
    "ArchiveFormat",
    "ArchiveKind",
    "PendingTransfer",
    "CleanupResult",
    "LocalArchiver",
    "TransferPipeline",
]
