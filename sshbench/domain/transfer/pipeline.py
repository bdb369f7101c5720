"""
Archive-based folder transfers and remote compress/extract
"""
import posixpath
import shlex
import tempfile
import uuid
from pathlib import Path
from typing import Callable, List, Optional

from ...core.constants import DEFAULT_REMOTE_TEMP_DIR, REMOTE_ARCHIVE_PREFIX
from ...core.exceptions import TransferError, UnsupportedArchiveError
from ...core.logging import get_logger
from ...core.paths import normalize_remote_path, join_remote, parent_remote, basename_remote, is_root, operand
from ...core.telemetry import Telemetry, get_telemetry
from ..channels.control import ControlChannel
from ..channels.files import FileChannel
from .archiver import LocalArchiver
from .models import ArchiveFormat, ArchiveKind, CleanupResult, PendingTransfer

logger = get_logger(__name__)

q = shlex.quote


class TransferPipeline:
    """
    Moves directory trees through temporary tarballs.

    Folder download: remote tar -> SFTP download -> local extract.
    Folder upload: local tar -> SFTP upload -> remote extract.

    Both temporary archives are removed on every exit path. Cleanup is
    best-effort: failures are logged and never mask the primary outcome.
    """

    def __init__(
        self,
        control_factory: Callable[[], ControlChannel],
        file_channel: FileChannel,
        archiver: Optional[LocalArchiver] = None,
        remote_temp_dir: str = DEFAULT_REMOTE_TEMP_DIR,
        local_temp_dir: Optional[Path] = None,
        telemetry: Optional[Telemetry] = None,
    ):
        """
        Args:
            control_factory: Returns a new, unconnected control channel
            file_channel: Connected file channel of the owning tab
            archiver: Local tar wrapper
            remote_temp_dir: Remote directory for temporary archives
            local_temp_dir: Local directory for temporary archives
            telemetry: Event recorder (global one by default)
        """
        self.control_factory = control_factory
        self.files = file_channel
        self.archiver = archiver or LocalArchiver()
        self.remote_temp_dir = normalize_remote_path(remote_temp_dir)
        self.local_temp_dir = Path(local_temp_dir or tempfile.gettempdir())
        self.telemetry = telemetry or get_telemetry()
        self.last_cleanup: List[CleanupResult] = []

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _pending(self, name: str, source: str, destination: str) -> PendingTransfer:
        token = uuid.uuid4().hex
        self.local_temp_dir.mkdir(parents=True, exist_ok=True)
        return PendingTransfer(
            local_archive_path=self.local_temp_dir / f"{name}-{token}.tar.gz",
            remote_archive_path=join_remote(
                self.remote_temp_dir, f"{REMOTE_ARCHIVE_PREFIX}-{token}.tar.gz"
            ),
            source_path=source,
            destination_path=destination,
        )

    def _remove_remote(self, control: ControlChannel, path: str) -> CleanupResult:
        result = CleanupResult(step="remote-archive", target=path)
        try:
            if not control.is_connected:
                control.connect()
            outcome = control.run(f"rm -f {q(path)}")
            if not outcome.success:
                result.error = outcome.stderr.strip() or f"exit status {outcome.exit_code}"
        except Exception as e:
            result.error = str(e)
        return result

    def _remove_local(self, path: Path) -> CleanupResult:
        result = CleanupResult(step="local-archive", target=str(path))
        try:
            Path(path).unlink(missing_ok=True)
        except OSError as e:
            result.error = str(e)
        return result

    def _cleanup(self, pending: PendingTransfer, control: ControlChannel) -> None:
        results = [
            self._remove_remote(control, pending.remote_archive_path),
            self._remove_local(pending.local_archive_path),
        ]
        for result in results:
            if result.ok:
                logger.debug("Removed %s %s", result.step, result.target)
            else:
                logger.warning("Cleanup of %s %s failed: %s", result.step, result.target, result.error)
        self.last_cleanup = results

    def _run_remote(self, command: str) -> None:
        with self.control_factory() as control:
            control.run_checked(command)

    # ------------------------------------------------------------------
    # Folder transfers
    # ------------------------------------------------------------------

    def download_folder(self, remote_dir: str, local_dest: Path) -> Path:
        """
        Download a remote directory tree into ``local_dest``.

        Returns:
            Local path of the downloaded directory

        Raises:
            ConnectError, CommandError, TransferError: On primary failures
        """
        remote_dir = normalize_remote_path(remote_dir)
        if is_root(remote_dir):
            raise TransferError("Cannot download the remote root as a folder")
        name = basename_remote(remote_dir)
        local_dest = Path(local_dest).expanduser()
        pending = self._pending(name, remote_dir, str(local_dest))

        control = self.control_factory()
        try:
            with self.telemetry.measure("transfer.folder_download", {"source": remote_dir}):
                control.connect()
                control.run_checked(
                    f"tar -czf {q(pending.remote_archive_path)} "
                    f"-C {q(parent_remote(remote_dir))} {q(operand(name))}"
                )
                with open(pending.local_archive_path, "wb") as fh:
                    self.files.download(pending.remote_archive_path, fh)
                self.archiver.extract(pending.local_archive_path, local_dest)
        finally:
            self._cleanup(pending, control)
            control.disconnect()

        logger.info("Downloaded %s to %s", remote_dir, local_dest)
        return local_dest / name

    def upload_folder(self, local_dir: Path, remote_dest: str) -> str:
        """
        Upload a local directory tree into ``remote_dest``.

        Returns:
            Remote path of the uploaded directory
        """
        local_dir = Path(local_dir).expanduser().resolve()
        if not local_dir.is_dir():
            raise TransferError(f"Not a local directory: {local_dir}")
        remote_dest = normalize_remote_path(remote_dest)
        pending = self._pending(local_dir.name, str(local_dir), remote_dest)

        control = self.control_factory()
        try:
            with self.telemetry.measure("transfer.folder_upload", {"destination": remote_dest}):
                self.archiver.create(local_dir, pending.local_archive_path)
                with open(pending.local_archive_path, "rb") as fh:
                    self.files.upload(fh, pending.remote_archive_path)
                control.connect()
                control.run_checked(
                    f"tar -xzf {q(pending.remote_archive_path)} -C {q(remote_dest)}"
                )
        finally:
            self._cleanup(pending, control)
            control.disconnect()

        logger.info("Uploaded %s to %s", local_dir, remote_dest)
        return join_remote(remote_dest, local_dir.name)

    # ------------------------------------------------------------------
    # Single entry operations
    # ------------------------------------------------------------------

    def compress(self, remote_path: str, fmt: str) -> str:
        """
        Compress an entry next to itself as ``<name>.zip`` or ``<name>.tar.gz``.

        Returns:
            Remote path of the archive
        """
        archive_format = ArchiveFormat.parse(fmt)
        remote_path = normalize_remote_path(remote_path)
        parent = parent_remote(remote_path)
        name = basename_remote(remote_path)
        archive_name = name + archive_format.suffix

        if archive_format is ArchiveFormat.TAR_GZ:
            command = f"tar -czf {q(join_remote(parent, archive_name))} -C {q(parent)} {q(operand(name))}"
        else:
            command = f"cd {q(parent)} && zip -r {q(operand(archive_name))} {q(operand(name))}"

        self._run_remote(command)
        return join_remote(parent, archive_name)

    def extract(self, remote_path: str) -> str:
        """
        Extract an archive into the directory that contains it.

        Returns:
            Remote directory extracted into

        Raises:
            UnsupportedArchiveError: If the suffix is not recognized
        """
        remote_path = normalize_remote_path(remote_path)
        kind = ArchiveKind.detect(posixpath.basename(remote_path))
        if kind is None:
            raise UnsupportedArchiveError(
                f"Unsupported archive type: {basename_remote(remote_path)}"
            )
        target = parent_remote(remote_path)

        if kind is ArchiveKind.ZIP:
            command = f"unzip -o {q(remote_path)} -d {q(target)}"
        elif kind is ArchiveKind.TAR:
            command = f"tar -xf {q(remote_path)} -C {q(target)}"
        else:
            command = f"tar -xzf {q(remote_path)} -C {q(target)}"

        self._run_remote(command)
        return target

    def delete(self, remote_path: str) -> None:
        """Recursively delete a remote entry"""
        remote_path = normalize_remote_path(remote_path)
        if is_root(remote_path):
            raise TransferError("Refusing to delete the remote root")
        self._run_remote(f"rm -rf {q(remote_path)}")
