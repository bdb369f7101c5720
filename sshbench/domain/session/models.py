"""
Session domain models
"""
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Optional, Dict, Any

from ...core.constants import (
    DEFAULT_SSH_PORT,
    REMOTE_ROOT,
    PARENT_ENTRY,
    EMPTY_FIELD,
    MODIFIED_FORMAT,
)
from ...core.exceptions import AuthConfigError


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


@dataclass
class SessionRecord:
    """Saved host profile: identity, credentials and last-used remote path"""
    name: str
    host: str
    username: str
    port: int = DEFAULT_SSH_PORT
    password: Optional[str] = None
    private_key_path: Optional[str] = None
    private_key_passphrase: Optional[str] = None
    remote_path: str = REMOTE_ROOT

    @property
    def has_password(self) -> bool:
        return not _blank(self.password)

    @property
    def has_private_key(self) -> bool:
        return not _blank(self.private_key_path)

    @property
    def target(self) -> str:
        """ssh-style ``user@host``"""
        return f"{self.username}@{self.host}"

    def validate_auth(self) -> None:
        """
        Ensure at least one credential is configured.

        Raises:
            AuthConfigError: If neither password nor private key is set
        """
        if not self.has_password and not self.has_private_key:
            raise AuthConfigError(
                f"Session '{self.name}' has no password and no private key set"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "name": self.name,
            "host": self.host,
            "port": self.port,
            "username": self.username,
            "password": self.password,
            "private_key_path": self.private_key_path,
            "private_key_passphrase": self.private_key_passphrase,
            "remote_path": self.remote_path,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionRecord":
        """Create from dictionary, ignoring unknown keys"""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values["port"] = int(values.get("port") or DEFAULT_SSH_PORT)
        values["remote_path"] = values.get("remote_path") or REMOTE_ROOT
        return cls(**values)


@dataclass
class RemoteAttributes:
    """Subset of remote stat information the workbench relies on"""
    is_directory: bool
    size_bytes: Optional[int] = None
    modified_at: Optional[datetime] = None


@dataclass
class FileEntry:
    """One row of a remote directory listing"""
    name: str
    is_directory: bool
    size_bytes: Optional[int] = None
    modified_at: Optional[datetime] = None

    @property
    def is_parent(self) -> bool:
        return self.name == PARENT_ENTRY

    @property
    def size_text(self) -> str:
        if self.is_directory or self.size_bytes is None:
            return EMPTY_FIELD
        return str(self.size_bytes)

    @property
    def modified_text(self) -> str:
        if self.modified_at is None:
            return EMPTY_FIELD
        return self.modified_at.strftime(MODIFIED_FORMAT)

    def sort_key(self) -> tuple:
        """Parent first, then directories, then files; by name within a group"""
        group = 0 if self.is_parent else (1 if self.is_directory else 2)
        return (group, self.name.casefold(), self.name)

    @classmethod
    def parent(cls) -> "FileEntry":
        """Synthetic ``..`` entry shown below the root"""
        return cls(name=PARENT_ENTRY, is_directory=True)

    def to_row(self) -> tuple:
        return (self.name, self.size_text, self.modified_text)


@dataclass
class Notice:
    """User-facing message emitted by a tab"""
    level: str  # info, warning or error
    message: str
    session: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
