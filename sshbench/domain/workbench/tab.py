"""
Per-session connection state: shell host, file channel and current path
"""
import asyncio
import functools
import os
import posixpath
import tempfile
from concurrent.futures import Executor
from pathlib import Path
from typing import Any, Callable, List, Optional

from ...core.constants import REMOTE_ROOT, PARENT_ENTRY
from ...core.exceptions import (
    AuthConfigError,
    TransferError,
    UnsupportedArchiveError,
    WorkbenchError,
)
from ...core.interfaces import ChannelFactory, SurfaceProvider
from ...core.logging import get_logger
from ...core.paths import normalize_remote_path, join_remote, parent_remote, is_root
from ...core.telemetry import Telemetry, get_telemetry
from ..channels.files import FileChannel
from ..session.models import SessionRecord, FileEntry, Notice
from ..terminal.command import ShellCommandBuilder
from ..terminal.host import ShellHost
from ..terminal.surface import DetachedSurface
from ..transfer.archiver import LocalArchiver
from ..transfer.pipeline import TransferPipeline
from .models import ConnectionState, TabSettings, STATUS_DISCONNECTED

logger = get_logger(__name__)

NoticeListener = Callable[[Notice], None]


def log_notice(notice: Notice) -> None:
    """Default listener: route notices to the log"""
    level = {"info": 20, "warning": 30, "error": 40}.get(notice.level, 20)
    logger.log(level, "[%s] %s", notice.session, notice.message)


class Tab:
    """
    One open session.

    State machine::

        IDLE -> CONNECTING -> CONNECTED -> DISCONNECTING -> IDLE
        CONNECTING -> IDLE        (connect failure, rolled back)
        CONNECTED -> IDLE         (shell exited)

    All methods run on the event loop. Blocking channel calls are pushed
    to ``executor`` and their results applied back on the loop, so tab
    fields are only ever written from the loop thread.
    """

    def __init__(
        self,
        session: SessionRecord,
        channel_factory: ChannelFactory,
        surface: Optional[SurfaceProvider] = None,
        settings: Optional[TabSettings] = None,
        executor: Optional[Executor] = None,
        listener: Optional[NoticeListener] = None,
        on_change: Optional[Callable[["Tab"], None]] = None,
        shell_host: Optional[ShellHost] = None,
        archiver: Optional[LocalArchiver] = None,
        telemetry: Optional[Telemetry] = None,
    ):
        self.session = session
        self.channel_factory = channel_factory
        self.surface = surface or DetachedSurface()
        self.settings = settings or TabSettings()
        self.listener = listener or log_notice
        self.on_change = on_change
        self.archiver = archiver or LocalArchiver()
        self.telemetry = telemetry or get_telemetry()
        self._executor = executor

        if shell_host is None:
            shell_host = ShellHost(
                builder=ShellCommandBuilder(self.settings.terminal),
                max_attempts=self.settings.surface_attempts,
                stop_timeout=self.settings.stop_timeout,
                retry_delay=self.settings.surface_retry_delay,
            )
        shell_host.on_exit = self._on_shell_exit
        shell_host.on_warning = functools.partial(self._notify, "warning")
        self.shell_host = shell_host

        self.state = ConnectionState.IDLE
        self.status = STATUS_DISCONNECTED
        self.file_channel: Optional[FileChannel] = None
        self.current_path = REMOTE_ROOT
        self.listing: List[FileEntry] = []
        # Pending or finished shell attach of the latest connect
        self.attach: Optional[asyncio.Future] = None
        # Invalidates an in-flight connect when bumped
        self._connect_token = 0

    @property
    def name(self) -> str:
        return self.session.name

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED and self.file_channel is not None

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    async def _io(self, func: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(func, *args))

    def _notify(self, level: str, message: str) -> None:
        self.listener(Notice(level=level, message=message, session=self.name))

    def _changed(self) -> None:
        if self.on_change:
            self.on_change(self)

    def _set_state(self, state: ConnectionState, status: str) -> None:
        self.state = state
        self.status = status
        logger.debug("Tab '%s' -> %s", self.name, state.value)
        self._changed()

    def _reset_to_idle(self) -> None:
        self.listing = []
        self._set_state(ConnectionState.IDLE, STATUS_DISCONNECTED)

    def _close_channel(self) -> None:
        channel, self.file_channel = self.file_channel, None
        if channel is None:
            return
        try:
            channel.disconnect()
        except Exception as e:
            logger.warning("File channel close failed for '%s': %s", self.name, e)

    def _stop_shell(self) -> None:
        try:
            self.shell_host.stop()
        except Exception as e:
            logger.warning("Shell stop failed for '%s': %s", self.name, e)

    def pipeline(self) -> TransferPipeline:
        """Transfer pipeline bound to this tab's live file channel"""
        if self.file_channel is None:
            raise TransferError(f"Session '{self.name}' is not connected")
        return TransferPipeline(
            control_factory=lambda: self.channel_factory.control(self.session),
            file_channel=self.file_channel,
            archiver=self.archiver,
            remote_temp_dir=self.settings.remote_temp_dir,
            local_temp_dir=self.settings.local_temp_dir,
            telemetry=self.telemetry,
        )

    # ------------------------------------------------------------------
    # Connect / disconnect
    # ------------------------------------------------------------------

    async def connect(self) -> bool:
        """
        Attach the shell and open the file channel.

        Returns:
            True when connected; False if another connect is in flight or
            the attempt was superseded by a disconnect

        Raises:
            AuthConfigError: Session has no credential; nothing is started
            ConnectError: File channel failed; everything is rolled back
        """
        if self.state is ConnectionState.CONNECTING:
            self._notify("warning", "Connect already in progress")
            return False

        try:
            self.session.validate_auth()
        except AuthConfigError as e:
            self._notify("error", f"Connect failed: {e}")
            raise

        if self.state is not ConnectionState.IDLE:
            await self.disconnect()

        self._connect_token += 1
        token = self._connect_token
        self._set_state(ConnectionState.CONNECTING, f"connecting to {self.session.host}")

        if self.settings.attach_shell:
            attach = self.attach = self.shell_host.start(self.session, self.surface)
            attach.add_done_callback(self._on_attach_done)

        channel = self.channel_factory.files(self.session)
        try:
            with self.telemetry.measure("tab.connect", {"session": self.name}):
                await self._io(channel.connect)
        except Exception as e:
            self._stop_shell()
            try:
                channel.disconnect()
            except Exception as close_error:
                logger.debug("Ignoring close failure after failed connect: %s", close_error)
            if token == self._connect_token:
                self._reset_to_idle()
            self._notify("error", f"Connect failed: {e}")
            raise

        if token != self._connect_token:
            # disconnect() or a shell exit ran while the channel was opening
            channel.disconnect()
            self._stop_shell()
            return False

        self.file_channel = channel
        self.current_path = REMOTE_ROOT
        self._set_state(ConnectionState.CONNECTED, f"connected to {self.session.host}")
        self.telemetry.record_event("tab.connected", {"session": self.name})
        await self.refresh()
        return True

    def _on_attach_done(self, future: asyncio.Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is None:
            logger.debug("Shell for '%s' attached (pid %s)", self.name, future.result())
            return
        self._notify("warning", f"Terminal start failed: {error}")

    def _on_shell_exit(self, code: int) -> None:
        if self.state is ConnectionState.CONNECTING:
            self._connect_token += 1
            self._reset_to_idle()
            self._notify("info", f"Shell exited with status {code} while connecting")
            return
        if self.state is not ConnectionState.CONNECTED:
            return
        self._close_channel()
        self._reset_to_idle()
        self.telemetry.record_event("tab.shell_exited", {"session": self.name, "status": code})
        self._notify("info", f"Shell exited with status {code}; session disconnected")

    async def disconnect(self) -> None:
        """Tear down shell and file channel; always ends disconnected"""
        self._connect_token += 1
        if self.state in (ConnectionState.CONNECTED, ConnectionState.CONNECTING):
            self._set_state(ConnectionState.DISCONNECTING, "disconnecting")

        self._stop_shell()
        channel, self.file_channel = self.file_channel, None
        if channel is not None:
            try:
                await self._io(channel.disconnect)
            except Exception as e:
                logger.warning("File channel close failed for '%s': %s", self.name, e)

        self._reset_to_idle()

    # ------------------------------------------------------------------
    # Listing and navigation
    # ------------------------------------------------------------------

    async def _load(self, path: str) -> bool:
        if not self.is_connected:
            return False
        path = normalize_remote_path(path)
        channel = self.file_channel
        try:
            entries = await self._io(channel.list, path)
        except WorkbenchError as e:
            self._notify("error", f"Refresh failed: {e}")
            return False
        if channel is not self.file_channel:
            return False

        rows = sorted(entries, key=FileEntry.sort_key)
        if not is_root(path):
            rows.insert(0, FileEntry.parent())
        self.current_path = path
        self.listing = rows
        self._changed()
        return True

    async def refresh(self) -> bool:
        """Re-list the current path; no-op unless connected"""
        return await self._load(self.current_path)

    async def navigate(self, path: str) -> bool:
        """List ``path`` and make it current; on failure nothing changes"""
        return await self._load(path)

    async def go_up(self) -> bool:
        return await self._load(parent_remote(self.current_path))

    async def navigate_home(self) -> bool:
        """List the directory the SFTP server starts in"""
        if not self.is_connected:
            return False
        try:
            home = await self._io(self.file_channel.home)
        except WorkbenchError as e:
            self._notify("error", f"Refresh failed: {e}")
            return False
        return await self._load(home)

    async def activate(self, name: str) -> bool:
        """
        Open a listing entry: ``..`` goes up, directories are entered and
        files open in the remote editor. Entries that cannot be stat'ed are
        skipped silently.
        """
        if not self.is_connected:
            return False
        if name == PARENT_ENTRY:
            return await self.go_up()

        path = join_remote(self.current_path, name)
        try:
            attrs = await self._io(self.file_channel.get_attributes, path)
        except WorkbenchError as e:
            logger.debug("Skipping %s: %s", path, e)
            return False
        if attrs.is_directory:
            return await self.navigate(path)
        return self.open_in_editor(name)

    def open_in_editor(self, name: str) -> bool:
        path = join_remote(self.current_path, name)
        try:
            self.shell_host.open_editor(self.session, path)
        except WorkbenchError as e:
            self._notify("error", f"Open failed: {e}")
            return False
        return True

    def _remote_pwd(self) -> str:
        with self.channel_factory.control(self.session) as control:
            return control.run_checked("pwd").stdout.rstrip("\r\n")

    async def sync(self) -> bool:
        """Pull the remote working directory into the current path"""
        if not self.is_connected:
            return False
        try:
            pwd = await self._io(self._remote_pwd)
        except WorkbenchError as e:
            self._notify("error", f"Sync failed: {e}")
            return False
        if not pwd:
            self._notify("error", "Sync failed: remote pwd returned nothing")
            return False
        return await self._load(pwd)

    # ------------------------------------------------------------------
    # Entry operations
    # ------------------------------------------------------------------

    async def _perform(self, label: str, func: Callable[..., Any], *args: Any, refresh: bool = True) -> bool:
        if not self.is_connected:
            return False
        try:
            await self._io(func, *args)
        except UnsupportedArchiveError as e:
            self._notify("info", str(e))
            return False
        except (WorkbenchError, OSError) as e:
            self._notify("error", f"{label} failed: {e}")
            return False
        if refresh:
            await self.refresh()
        return True

    def _entry_path(self, name: str) -> Optional[str]:
        # Names are used verbatim: "docs " and "docs" are different entries
        if not name or not name.strip() or name in (".", PARENT_ENTRY) or "/" in name:
            return None
        return join_remote(self.current_path, name)

    def _listed_as_directory(self, name: str) -> Optional[bool]:
        for entry in self.listing:
            if entry.name == name:
                return entry.is_directory
        return None

    async def rename(self, name: str, new_name: str) -> bool:
        if not self.is_connected:
            return False
        old_path = self._entry_path(name)
        new_path = self._entry_path(new_name)
        if old_path is None or new_path is None:
            self._notify("warning", f"Invalid name for rename: {new_name!r}")
            return False
        if old_path == new_path:
            return False
        return await self._perform("Rename", self.file_channel.rename, old_path, new_path)

    async def delete(self, name: str) -> bool:
        path = self._entry_path(name)
        if path is None or not self.is_connected:
            return False
        return await self._perform("Delete", self.pipeline().delete, path)

    async def compress(self, name: str, fmt: str = "zip") -> bool:
        path = self._entry_path(name)
        if path is None or not self.is_connected:
            return False
        return await self._perform("Compress", self.pipeline().compress, path, fmt)

    async def extract(self, name: str) -> bool:
        path = self._entry_path(name)
        if path is None or not self.is_connected:
            return False
        return await self._perform("Extract", self.pipeline().extract, path)

    async def download(self, name: str, local_dest: os.PathLike) -> bool:
        """
        Download a file to ``local_dest`` (a file path or an existing
        directory), or a directory tree into the ``local_dest`` directory.
        """
        path = self._entry_path(name)
        if path is None or not self.is_connected:
            return False
        return await self._perform(
            "Download",
            download_entry,
            self.file_channel,
            self.pipeline(),
            path,
            self._listed_as_directory(name),
            Path(local_dest).expanduser(),
            refresh=False,
        )

    async def upload_file(self, local_path: os.PathLike) -> bool:
        if not self.is_connected:
            return False
        local_path = Path(local_path).expanduser()
        return await self._perform(
            "Upload", upload_file, self.file_channel, local_path, join_remote(self.current_path, local_path.name)
        )

    async def upload_folder(self, local_dir: os.PathLike) -> bool:
        if not self.is_connected:
            return False
        return await self._perform(
            "Upload", self.pipeline().upload_folder, Path(local_dir), self.current_path
        )


# ----------------------------------------------------------------------
# Worker-thread transfers
#
# These run on the executor with the channel and pipeline captured on the
# loop, so a disconnect mid-transfer cannot swap them out underneath.
# ----------------------------------------------------------------------

def download_entry(
    channel: FileChannel,
    pipeline: TransferPipeline,
    remote_path: str,
    is_directory: Optional[bool],
    local_dest: Path,
) -> None:
    if is_directory is None:
        is_directory = channel.get_attributes(remote_path).is_directory
    if is_directory:
        pipeline.download_folder(remote_path, local_dest)
        return
    name = posixpath.basename(remote_path)
    download_file(channel, remote_path, local_dest / name if local_dest.is_dir() else local_dest)


def download_file(channel: FileChannel, remote_path: str, target: Path) -> None:
    """Fetch into a sibling temp file and move it over ``target`` only once complete"""
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}-", suffix=".part")
    try:
        with os.fdopen(fd, "wb") as fh:
            channel.download(remote_path, fh)
        os.replace(tmp_name, target)
    except Exception:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def upload_file(channel: FileChannel, local_path: Path, remote_path: str) -> None:
    with open(local_path, "rb") as fh:
        channel.upload(fh, remote_path)
