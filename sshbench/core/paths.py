"""
Remote path helpers

Remote hosts are always POSIX, so these use ``posixpath`` regardless of the
local platform. Every helper returns an absolute, normalized path without a
trailing slash (except the root itself).
"""
import posixpath

from .constants import REMOTE_ROOT


def normalize_remote_path(path: str) -> str:
    """
    Normalize a user-supplied remote path.

    Blank input means the root; relative input is anchored at the root.
    Surrounding whitespace is kept, since it is legal in remote names.
    """
    path = path or ""
    if not path.strip():
        return REMOTE_ROOT
    if not path.startswith("/"):
        path = "/" + path
    normalized = posixpath.normpath(path)
    # normpath keeps a POSIX-significant leading "//"
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    return normalized


def join_remote(base: str, name: str) -> str:
    """Join an entry name onto a remote directory"""
    return normalize_remote_path(posixpath.join(normalize_remote_path(base), name))


def parent_remote(path: str) -> str:
    """Parent directory of a remote path; the root is its own parent"""
    return normalize_remote_path(posixpath.dirname(normalize_remote_path(path)))


def basename_remote(path: str) -> str:
    """Final component of a remote path (empty for the root)"""
    return posixpath.basename(normalize_remote_path(path))


def is_root(path: str) -> bool:
    return normalize_remote_path(path) == REMOTE_ROOT


def operand(name: str) -> str:
    """Entry name safe to pass after command options (``-x`` becomes ``./-x``)"""
    return "./" + name if name.startswith("-") else name
