"""
Shared fakes: in-memory channels, scriptable surfaces and child processes
"""
import asyncio
import subprocess
import threading
from datetime import datetime
from typing import Callable, Dict, List, Optional

import pytest

from sshbench.core.exceptions import (
    ConnectError,
    ListError,
    RemoteAttributeError,
    TransferError,
    CommandError,
)
from sshbench.core.interfaces import ChannelFactory, SurfaceProvider
from sshbench.domain.channels.control import CommandResult
from sshbench.domain.session.models import SessionRecord, FileEntry, RemoteAttributes


# ----------------------------------------------------------------------
# Channels
# ----------------------------------------------------------------------

class FakeControlChannel:
    """Records commands; responses come from ``responder(command)``"""

    def __init__(self, factory: "FakeChannelFactory"):
        self.factory = factory
        self.connected = False

    @property
    def is_connected(self) -> bool:
        return self.connected

    def connect(self) -> None:
        if self.factory.control_connect_error is not None:
            raise self.factory.control_connect_error
        self.connected = True

    def disconnect(self) -> None:
        self.connected = False

    def run(self, command: str) -> CommandResult:
        if not self.connected:
            raise ConnectError("control channel is not connected")
        self.factory.commands.append(command)
        return self.factory.responder(command)

    def run_checked(self, command: str) -> CommandResult:
        result = self.run(command)
        if not result.success:
            raise CommandError(command, result.exit_code, result.stderr)
        return result

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, *exc) -> None:
        self.disconnect()


class FakeFileChannel:
    """
    In-memory remote tree.

    ``tree`` maps a directory path to its entries; ``blobs`` maps a file
    path to its bytes.
    """

    def __init__(self, factory: "FakeChannelFactory"):
        self.factory = factory
        self.connected = False
        self.disconnects = 0
        self.list_calls: List[str] = []
        self.renames: List[tuple] = []

    @property
    def is_connected(self) -> bool:
        return self.connected

    def connect(self) -> None:
        if self.factory.gate is not None:
            self.factory.gate.wait(timeout=5)
        if self.factory.files_connect_error is not None:
            raise self.factory.files_connect_error
        self.connected = True

    def disconnect(self) -> None:
        self.disconnects += 1
        self.connected = False

    def list(self, path: str) -> List[FileEntry]:
        self.list_calls.append(path)
        if path not in self.factory.tree:
            raise ListError(f"Cannot list {path}: No such file")
        return list(self.factory.tree[path])

    def get_attributes(self, path: str) -> RemoteAttributes:
        if path in self.factory.tree:
            return RemoteAttributes(is_directory=True)
        if path in self.factory.blobs:
            return RemoteAttributes(is_directory=False, size_bytes=len(self.factory.blobs[path]))
        raise RemoteAttributeError(f"Cannot stat {path}")

    def upload(self, stream, remote_path: str) -> int:
        data = stream.read()
        self.factory.blobs[remote_path] = data
        return len(data)

    def download(self, remote_path: str, stream) -> int:
        if self.factory.download_error is not None:
            raise self.factory.download_error
        if remote_path not in self.factory.blobs:
            raise TransferError(f"Download of {remote_path} failed")
        data = self.factory.blobs[remote_path]
        stream.write(data)
        return len(data)

    def home(self) -> str:
        return self.factory.home

    def rename(self, old_path: str, new_path: str) -> None:
        self.renames.append((old_path, new_path))


def ok(stdout: str = "") -> CommandResult:
    return CommandResult(exit_code=0, stdout=stdout, stderr="")


def failed(stderr: str = "boom", code: int = 1) -> CommandResult:
    return CommandResult(exit_code=code, stdout="", stderr=stderr)


class FakeChannelFactory(ChannelFactory):
    def __init__(self):
        self.tree: Dict[str, List[FileEntry]] = {"/": []}
        self.blobs: Dict[str, bytes] = {}
        self.commands: List[str] = []
        self.responder: Callable[[str], CommandResult] = lambda command: ok()
        self.files_connect_error: Optional[Exception] = None
        self.control_connect_error: Optional[Exception] = None
        self.download_error: Optional[Exception] = None
        self.gate: Optional[threading.Event] = None
        self.file_channels: List[FakeFileChannel] = []
        self.home = "/home/u"

    def control(self, session: SessionRecord) -> FakeControlChannel:
        return FakeControlChannel(self)

    def files(self, session: SessionRecord) -> FakeFileChannel:
        channel = FakeFileChannel(self)
        self.file_channels.append(channel)
        return channel


# ----------------------------------------------------------------------
# Surfaces and processes
# ----------------------------------------------------------------------

class CountingSurface(SurfaceProvider):
    """Becomes ready on the ``ready_on``-th check (never when None)"""

    def __init__(self, ready_on: Optional[int] = 1, identifier: str = "0x2a00007"):
        self.ready_on = ready_on
        self.calls = 0
        self._identifier = identifier

    def ready(self) -> bool:
        self.calls += 1
        return self.ready_on is not None and self.calls >= self.ready_on

    @property
    def identifier(self) -> Optional[str]:
        return self._identifier


class FakeProcess:
    """Child process whose exit is driven by the test"""

    _next_pid = 4000

    def __init__(self, argv, env=None, ignore_term: bool = False):
        FakeProcess._next_pid += 1
        self.pid = FakeProcess._next_pid
        self.argv = argv
        self.env = env
        self.returncode: Optional[int] = None
        self.ignore_term = ignore_term
        self.terminated = False
        self.killed = False
        self._exited = threading.Event()

    def finish(self, code: int = 0) -> None:
        if self.returncode is None:
            self.returncode = code
        self._exited.set()

    def poll(self) -> Optional[int]:
        return self.returncode

    def wait(self, timeout: Optional[float] = None) -> int:
        if not self._exited.wait(timeout):
            raise subprocess.TimeoutExpired(self.argv, timeout)
        return self.returncode

    def terminate(self) -> None:
        self.terminated = True
        if not self.ignore_term:
            self.finish(-15)

    def kill(self) -> None:
        self.killed = True
        self.finish(-9)


class FakePopen:
    """Callable standing in for subprocess.Popen"""

    def __init__(self, error: Optional[Exception] = None, ignore_term: bool = False):
        self.error = error
        self.ignore_term = ignore_term
        self.processes: List[FakeProcess] = []

    def __call__(self, argv, env=None, **kwargs) -> FakeProcess:
        if self.error is not None:
            raise self.error
        process = FakeProcess(argv, env, ignore_term=self.ignore_term)
        self.processes.append(process)
        return process

    @property
    def last(self) -> FakeProcess:
        return self.processes[-1]

    def release_all(self) -> None:
        for process in self.processes:
            process.finish(0)


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


# ----------------------------------------------------------------------
# Fixtures
# ----------------------------------------------------------------------

@pytest.fixture
def session() -> SessionRecord:
    return SessionRecord(name="web", host="h", username="u", password="p", remote_path="/")


@pytest.fixture
def factory() -> FakeChannelFactory:
    return FakeChannelFactory()


@pytest.fixture
def home_tree(factory: FakeChannelFactory) -> FakeChannelFactory:
    """``/home/u`` holding ``a.txt`` (120 bytes) and ``docs/``"""
    mtime = datetime(2024, 1, 1, 10, 0)
    factory.tree.update({
        "/": [FileEntry("home", True, 4096, mtime)],
        "/home": [FileEntry("u", True, 4096, mtime)],
        "/home/u": [
            FileEntry("a.txt", False, 120, mtime),
            FileEntry("docs", True, 4096, mtime),
        ],
        "/home/u/docs": [],
    })
    factory.blobs["/home/u/a.txt"] = b"x" * 120
    return factory


@pytest.fixture
def popen() -> FakePopen:
    fake = FakePopen()
    yield fake
    fake.release_all()
