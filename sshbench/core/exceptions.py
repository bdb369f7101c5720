"""
Unified exception definitions
"""


class WorkbenchError(Exception):
    """Base exception class"""
    pass


class ConfigError(WorkbenchError):
    """Configuration error"""
    pass


class AuthConfigError(ConfigError):
    """Neither a password nor a private key is configured for the session"""
    pass


class SessionNotFoundError(ConfigError):
    """No saved session with the requested name"""
    pass


class ConnectError(WorkbenchError):
    """Network or handshake failure while opening a channel"""
    pass


class AuthError(ConnectError):
    """Credentials were rejected by the server"""
    pass


class ListError(WorkbenchError):
    """Remote directory could not be listed"""
    pass


class RemoteAttributeError(WorkbenchError):
    """Remote path attributes could not be read"""
    pass


class TransferError(WorkbenchError):
    """Transfer error"""
    pass


class CommandError(TransferError):
    """Remote or local command exited with a non-zero status"""

    def __init__(self, command: str, exit_status: int, stderr: str = ""):
        self.command = command
        self.exit_status = exit_status
        self.stderr = stderr
        detail = stderr.strip() or f"exit status {exit_status}"
        super().__init__(f"Command failed ({command}): {detail}")


class SurfaceNotReadyError(WorkbenchError):
    """Display surface never became ready within the allowed attempts"""
    pass


class ShellStartError(WorkbenchError):
    """Terminal process could not be spawned"""
    pass


class UnsupportedArchiveError(WorkbenchError):
    """Archive type is not recognized (informational, not fatal)"""
    pass
