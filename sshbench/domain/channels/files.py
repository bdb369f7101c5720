"""
File channel: SFTP listing and whole-file transfers
"""
import socket
import stat
from datetime import datetime
from typing import BinaryIO, List, Optional

import paramiko

from ...core.exceptions import ListError, RemoteAttributeError, TransferError
from ...core.logging import get_logger
from ...core.paths import join_remote
from ..session.models import FileEntry, RemoteAttributes
from .base import BaseChannel

logger = get_logger(__name__)

_IO_ERRORS = (IOError, OSError, paramiko.SSHException, socket.error)


def _timestamp(value: Optional[float]) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(value)
    except (OverflowError, OSError, ValueError):
        return None


def _attributes(attr: paramiko.SFTPAttributes) -> RemoteAttributes:
    return RemoteAttributes(
        is_directory=stat.S_ISDIR(attr.st_mode or 0),
        size_bytes=attr.st_size,
        modified_at=_timestamp(attr.st_mtime),
    )


class FileChannel(BaseChannel):
    """SFTP session for directory listings, uploads, downloads and renames"""

    kind = "file"

    def _sftp(self) -> paramiko.SFTPClient:
        return self._require_client().open_sftp()

    def list(self, path: str) -> List[FileEntry]:
        """
        List a remote directory.

        The remote side's ``.`` and ``..`` entries are dropped. Symlinks are
        resolved so that links to directories list as directories.

        Raises:
            ListError: If the path is missing or unreadable
        """
        try:
            sftp = self._sftp()
            attrs = sftp.listdir_attr(path)
        except _IO_ERRORS as e:
            raise ListError(f"Cannot list {path}: {e}") from e

        entries: List[FileEntry] = []
        for attr in attrs:
            if attr.filename in (".", ".."):
                continue
            info = _attributes(attr)
            if stat.S_ISLNK(attr.st_mode or 0):
                try:
                    info = _attributes(sftp.stat(join_remote(path, attr.filename)))
                except _IO_ERRORS:
                    # dangling link, keep the link's own attributes
                    pass
            entries.append(
                FileEntry(
                    name=attr.filename,
                    is_directory=info.is_directory,
                    size_bytes=info.size_bytes,
                    modified_at=info.modified_at,
                )
            )
        return entries

    def get_attributes(self, path: str) -> RemoteAttributes:
        """
        Raises:
            RemoteAttributeError: If the path is missing or forbidden
        """
        try:
            return _attributes(self._sftp().stat(path))
        except _IO_ERRORS as e:
            raise RemoteAttributeError(f"Cannot stat {path}: {e}") from e

    def home(self) -> str:
        """Directory the SFTP server starts in (normally $HOME)"""
        try:
            return self._sftp().normalize(".")
        except _IO_ERRORS as e:
            raise RemoteAttributeError(f"Cannot resolve home directory: {e}") from e

    def upload(self, stream: BinaryIO, remote_path: str) -> int:
        """Write a local stream to a remote file; returns bytes written"""
        try:
            attrs = self._sftp().putfo(stream, remote_path)
        except _IO_ERRORS as e:
            raise TransferError(f"Upload to {remote_path} failed: {e}") from e
        return attrs.st_size or 0

    def download(self, remote_path: str, stream: BinaryIO) -> int:
        """Copy a remote file into a local stream; returns bytes read"""
        try:
            return self._sftp().getfo(remote_path, stream)
        except _IO_ERRORS as e:
            raise TransferError(f"Download of {remote_path} failed: {e}") from e

    def rename(self, old_path: str, new_path: str) -> None:
        try:
            self._sftp().rename(old_path, new_path)
        except _IO_ERRORS as e:
            raise TransferError(f"Rename {old_path} -> {new_path} failed: {e}") from e
