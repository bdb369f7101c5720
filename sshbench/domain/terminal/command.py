"""
Command lines for the embedded shell and the remote editor
"""
import os
import shlex
import shutil
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from ...core.constants import (
    DEFAULT_SSH_PORT,
    DEFAULT_SSH_BINARY,
    DEFAULT_PASSWORD_HELPER,
    PASSWORD_HELPER_ENV,
    DEFAULT_TERMINAL,
    DEFAULT_TERMINAL_FONT,
    DEFAULT_TERMINAL_FONT_SIZE,
    DEFAULT_EDITOR,
)
from ..session.models import SessionRecord


@dataclass
class TerminalSettings:
    """External binaries and terminal appearance"""
    terminal: str = DEFAULT_TERMINAL
    font: str = DEFAULT_TERMINAL_FONT
    font_size: int = DEFAULT_TERMINAL_FONT_SIZE
    ssh_binary: str = DEFAULT_SSH_BINARY
    password_helper: str = DEFAULT_PASSWORD_HELPER
    editor: str = DEFAULT_EDITOR


@dataclass
class ShellInvocation:
    """Argument vector plus extra environment for one child process"""
    argv: List[str]
    env: Dict[str, str] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return shlex.join(self.argv)


class ShellCommandBuilder:
    """
    Builds terminal invocations running ``ssh`` to a session's host.

    Password sessions are wrapped in the password helper (``sshpass -e``)
    when it is installed; the password is passed through the environment,
    never on the command line. Without the helper the invocation still
    works and ssh prompts for the password itself.
    """

    def __init__(
        self,
        settings: Optional[TerminalSettings] = None,
        which: Callable[[str], Optional[str]] = shutil.which,
    ):
        self.settings = settings or TerminalSettings()
        self._which = which

    def ssh_args(self, session: SessionRecord, tty: bool = False) -> List[str]:
        args = [self.settings.ssh_binary]
        if tty:
            args.append("-t")
        if session.port != DEFAULT_SSH_PORT:
            args += ["-p", str(session.port)]
        if session.has_private_key:
            args += ["-i", os.path.expanduser(session.private_key_path)]
        args.append(session.target)
        return args

    def _terminal_args(self, surface_id: Optional[str]) -> List[str]:
        s = self.settings
        args = [s.terminal]
        if surface_id:
            args += ["-into", str(surface_id)]
        args += ["-fa", s.font, "-fs", str(s.font_size)]
        return args

    def _password_prefix(self, session: SessionRecord) -> ShellInvocation:
        if session.has_private_key or not session.has_password:
            return ShellInvocation(argv=[])
        helper = self._which(self.settings.password_helper)
        if helper is None:
            return ShellInvocation(
                argv=[],
                warnings=[
                    f"{self.settings.password_helper} is not installed; "
                    f"the shell for '{session.name}' will prompt for the password"
                ],
            )
        return ShellInvocation(
            argv=[helper, "-e"],
            env={PASSWORD_HELPER_ENV: session.password},
        )

    def _wrap(self, session: SessionRecord, surface_id: Optional[str], remote: List[str]) -> ShellInvocation:
        prefix = self._password_prefix(session)
        argv = self._terminal_args(surface_id) + ["-e"] + prefix.argv + remote
        return ShellInvocation(argv=argv, env=prefix.env, warnings=prefix.warnings)

    def shell(self, session: SessionRecord, surface_id: Optional[str] = None) -> ShellInvocation:
        """Interactive login shell, embedded into ``surface_id`` when given"""
        return self._wrap(session, surface_id, self.ssh_args(session))

    def editor(self, session: SessionRecord, remote_path: str) -> ShellInvocation:
        """Separate terminal window editing one remote file"""
        remote = self.ssh_args(session, tty=True)
        remote += [self.settings.editor, shlex.quote(remote_path)]
        return self._wrap(session, None, remote)
