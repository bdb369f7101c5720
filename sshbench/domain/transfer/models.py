"""
Transfer data models
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, Any

from ...core.exceptions import UnsupportedArchiveError


class ArchiveFormat(str, Enum):
    """Formats offered when compressing a remote entry"""
    ZIP = "zip"
    TAR_GZ = "tar.gz"

    @property
    def suffix(self) -> str:
        return f".{self.value}"

    @classmethod
    def parse(cls, value: str) -> "ArchiveFormat":
        try:
            return cls((value or "").strip().lower().lstrip("."))
        except ValueError:
            raise UnsupportedArchiveError(
                f"Unsupported archive format: {value!r} (expected zip or tar.gz)"
            ) from None


class ArchiveKind(str, Enum):
    """Archive types recognized for extraction, by file name suffix"""
    ZIP = ".zip"
    TAR_GZ = ".tar.gz"
    TGZ = ".tgz"
    TAR = ".tar"

    @classmethod
    def detect(cls, filename: str) -> Optional["ArchiveKind"]:
        lowered = filename.lower()
        # .tar.gz must be tested before .tar would ever match
        for kind in (cls.TAR_GZ, cls.TGZ, cls.ZIP, cls.TAR):
            if lowered.endswith(kind.value):
                return kind
        return None


@dataclass
class PendingTransfer:
    """Temporary artifacts of one folder transfer; both must be removed"""
    local_archive_path: Path
    remote_archive_path: str
    source_path: str
    destination_path: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "local_archive_path": str(self.local_archive_path),
            "remote_archive_path": self.remote_archive_path,
            "source_path": self.source_path,
            "destination_path": self.destination_path,
        }


@dataclass
class CleanupResult:
    """Outcome of one best-effort cleanup step; logged, never raised"""
    step: str
    target: str
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None
