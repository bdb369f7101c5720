"""
SFTP file channel: listing filters, symlink resolution and error mapping
"""
import io
import stat
from datetime import datetime

import paramiko
import pytest

from sshbench.core.exceptions import ConnectError, ListError, RemoteAttributeError, TransferError
from sshbench.domain.channels import FileChannel
from sshbench.domain.session.models import SessionRecord

MTIME = 1704103200


def attr(name, mode, size=0, mtime=MTIME):
    a = paramiko.SFTPAttributes()
    a.filename = name
    a.st_mode = mode
    a.st_size = size
    a.st_mtime = mtime
    return a


class FakeSFTP:
    def __init__(self):
        self.listing = {}
        self.stats = {}
        self.contents = {}
        self.error = None
        self.renamed = []

    def _check(self):
        if self.error is not None:
            raise self.error

    def listdir_attr(self, path):
        self._check()
        if path not in self.listing:
            raise IOError(2, "No such file")
        return self.listing[path]

    def stat(self, path):
        self._check()
        if path not in self.stats:
            raise IOError(2, "No such file")
        return self.stats[path]

    def normalize(self, path):
        self._check()
        return "/home/u"

    def getfo(self, path, stream):
        self._check()
        data = self.contents[path]
        stream.write(data)
        return len(data)

    def putfo(self, stream, path):
        self._check()
        self.contents[path] = stream.read()
        return attr(path, stat.S_IFREG | 0o644, size=len(self.contents[path]))

    def rename(self, old, new):
        self._check()
        self.renamed.append((old, new))


class FakeRemoteClient:
    is_connected = True

    def __init__(self, sftp):
        self.sftp = sftp

    def open_sftp(self):
        return self.sftp

    def close(self):
        pass


@pytest.fixture
def sftp():
    return FakeSFTP()


@pytest.fixture
def channel(sftp):
    files = FileChannel(SessionRecord(name="s", host="h", username="u", password="p"))
    files._client = FakeRemoteClient(sftp)
    return files


def test_list_drops_dot_entries(channel, sftp):
    sftp.listing["/srv"] = [
        attr(".", stat.S_IFDIR | 0o755),
        attr("..", stat.S_IFDIR | 0o755),
        attr("data", stat.S_IFDIR | 0o755, size=4096),
        attr("notes.txt", stat.S_IFREG | 0o644, size=12),
    ]

    entries = channel.list("/srv")

    assert [(e.name, e.is_directory, e.size_bytes) for e in entries] == [
        ("data", True, 4096),
        ("notes.txt", False, 12),
    ]
    assert entries[1].modified_at == datetime.fromtimestamp(MTIME)


def test_symlink_to_directory_lists_as_directory(channel, sftp):
    sftp.listing["/srv"] = [
        attr("current", stat.S_IFLNK | 0o777, size=11),
        attr("broken", stat.S_IFLNK | 0o777, size=7),
    ]
    sftp.stats["/srv/current"] = attr("current", stat.S_IFDIR | 0o755, size=4096)

    entries = {e.name: e for e in channel.list("/srv")}

    assert entries["current"].is_directory
    assert entries["current"].size_bytes == 4096
    # dangling link keeps its own attributes
    assert not entries["broken"].is_directory
    assert entries["broken"].size_bytes == 7


def test_list_failure_is_wrapped(channel):
    with pytest.raises(ListError, match="/missing") as info:
        channel.list("/missing")

    assert isinstance(info.value.__cause__, IOError)


def test_get_attributes(channel, sftp):
    sftp.stats["/srv/a.bin"] = attr("a.bin", stat.S_IFREG | 0o600, size=3)

    attrs = channel.get_attributes("/srv/a.bin")

    assert not attrs.is_directory
    assert attrs.size_bytes == 3
    with pytest.raises(RemoteAttributeError):
        channel.get_attributes("/srv/gone")


def test_home(channel, sftp):
    assert channel.home() == "/home/u"

    sftp.error = paramiko.SSHException("channel closed")
    with pytest.raises(RemoteAttributeError):
        channel.home()


def test_whole_file_transfers(channel, sftp):
    assert channel.upload(io.BytesIO(b"hello"), "/srv/hello.txt") == 5

    out = io.BytesIO()
    assert channel.download("/srv/hello.txt", out) == 5
    assert out.getvalue() == b"hello"

    channel.rename("/srv/hello.txt", "/srv/hi.txt")
    assert sftp.renamed == [("/srv/hello.txt", "/srv/hi.txt")]


@pytest.mark.parametrize("call", [
    lambda c: c.upload(io.BytesIO(b"x"), "/srv/x"),
    lambda c: c.download("/srv/x", io.BytesIO()),
    lambda c: c.rename("/srv/x", "/srv/y"),
])
def test_transfer_failures_are_wrapped(channel, sftp, call):
    error = IOError(13, "Permission denied")
    sftp.error = error

    with pytest.raises(TransferError) as info:
        call(channel)

    assert info.value.__cause__ is error


def test_unconnected_channel_refuses_listing():
    channel = FileChannel(SessionRecord(name="s", host="h", username="u", password="p"))

    with pytest.raises(ConnectError):
        channel.list("/")
