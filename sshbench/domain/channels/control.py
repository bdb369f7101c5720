"""
Remote control channel: one-shot remote commands
"""
from dataclasses import dataclass

from ...core.exceptions import CommandError
from ...core.logging import get_logger
from .base import BaseChannel

logger = get_logger(__name__)


@dataclass
class CommandResult:
    """Command execution result"""
    exit_code: int
    stdout: str
    stderr: str
    success: bool = True

    def __post_init__(self):
        self.success = self.exit_code == 0

    def __str__(self) -> str:
        if self.success:
            return self.stdout
        return f"Error (exit code {self.exit_code}): {self.stderr}"


class ControlChannel(BaseChannel):
    """
    Executes remote commands, each in a fresh exec session.

    Callers must ``shlex.quote`` every path they interpolate into a command.
    """

    kind = "control"

    def run(self, command: str) -> CommandResult:
        """Run a command and capture its output and exit status"""
        logger.debug("[%s] $ %s", self.session.name, command)
        out, err, code = self._require_client().exec_with_code(command)
        return CommandResult(exit_code=code, stdout=out, stderr=err)

    def run_checked(self, command: str) -> CommandResult:
        """
        Run a command, raising on a non-zero exit status.

        Raises:
            CommandError: If the command fails
        """
        result = self.run(command)
        if not result.success:
            raise CommandError(command, result.exit_code, result.stderr)
        return result
