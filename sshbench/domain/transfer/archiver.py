"""
Local archiving through the system tar binary
"""
import shlex
import subprocess
from pathlib import Path
from typing import Callable, List

from ...core.exceptions import CommandError, TransferError
from ...core.logging import get_logger
from ...core.paths import operand

logger = get_logger(__name__)


class LocalArchiver:
    """Creates and extracts gzip'd tarballs on the local machine"""

    def __init__(
        self,
        tar_binary: str = "tar",
        run: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ):
        self.tar_binary = tar_binary
        self._run = run

    def _exec(self, argv: List[str]) -> None:
        logger.debug("local $ %s", shlex.join(argv))
        try:
            result = self._run(argv, capture_output=True, text=True)
        except OSError as e:
            raise TransferError(f"Failed to run {argv[0]}: {e}") from e
        if result.returncode != 0:
            raise CommandError(shlex.join(argv), result.returncode, result.stderr or "")

    def create(self, source_dir: Path, archive: Path) -> None:
        """Archive ``source_dir`` so that it extracts as ``<name>/...``"""
        source_dir = Path(source_dir)
        self._exec([
            self.tar_binary, "-czf", str(archive),
            "-C", str(source_dir.parent), operand(source_dir.name),
        ])

    def extract(self, archive: Path, destination: Path) -> None:
        destination = Path(destination)
        destination.mkdir(parents=True, exist_ok=True)
        self._exec([self.tar_binary, "-xzf", str(archive), "-C", str(destination)])
