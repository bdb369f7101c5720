from __future__ import annotations

import socket
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import paramiko

from .constants import DEFAULT_SSH_PORT, DEFAULT_SSH_TIMEOUT
from .exceptions import AuthConfigError, AuthError, ConnectError
from .logging import get_logger

logger = get_logger(__name__)

# Tried in order when the key type is not known up front
_KEY_CLASSES = (paramiko.Ed25519Key, paramiko.ECDSAKey, paramiko.RSAKey)


@dataclass
class ClientConfig:
    host: str
    user: str
    port: int = DEFAULT_SSH_PORT
    password: Optional[str] = None
    key_path: Optional[str] = None
    key_passphrase: Optional[str] = None
    timeout: int = DEFAULT_SSH_TIMEOUT


class RemoteClient:
    """
    Thin wrapper around :class:`paramiko.SSHClient`.

    - keeps host / user / port explicitly (paramiko no longer does)
    - private key takes precedence over password, as in the session editor
    - maps paramiko failures onto the workbench exception taxonomy
    - exec / sftp helpers, usable as a context manager
    """

    def __init__(
        self,
        host: str,
        user: str,
        port: int = DEFAULT_SSH_PORT,
        password: Optional[str] = None,
        key_path: Optional[str] = None,
        key_passphrase: Optional[str] = None,
        timeout: int = DEFAULT_SSH_TIMEOUT,
    ) -> None:
        self.config = ClientConfig(
            host=host,
            user=user,
            port=port,
            password=password,
            key_path=key_path,
            key_passphrase=key_passphrase,
            timeout=timeout,
        )
        self.client: Optional[paramiko.SSHClient] = None
        self._sftp: Optional[paramiko.SFTPClient] = None

    # --------------------
    # Connection management
    # --------------------
    @property
    def is_connected(self) -> bool:
        if self.client is None:
            return False
        transport = self.client.get_transport()
        return transport is not None and transport.is_active()

    def connect(self) -> None:
        cfg = self.config
        auth: dict = {}
        if cfg.key_path:
            auth["pkey"] = self._load_private_key(cfg.key_path, cfg.key_passphrase)
        elif cfg.password:
            auth["password"] = cfg.password
        else:
            raise AuthConfigError(
                f"No password and no private key set for {cfg.user}@{cfg.host}"
            )

        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            client.connect(
                hostname=cfg.host,
                port=cfg.port,
                username=cfg.user,
                timeout=cfg.timeout,
                allow_agent=False,
                look_for_keys=False,
                **auth,
            )
        except paramiko.AuthenticationException as e:
            client.close()
            raise AuthError(f"Authentication failed for {cfg.user}@{cfg.host}: {e}") from e
        except (paramiko.SSHException, socket.error) as e:
            client.close()
            raise ConnectError(f"Failed to connect to {cfg.host}:{cfg.port}: {e}") from e

        self.client = client
        logger.debug("Connected to %s@%s:%s", cfg.user, cfg.host, cfg.port)

    def close(self) -> None:
        """Close SFTP and SSH; safe to call repeatedly or before connect"""
        if self._sftp is not None:
            try:
                self._sftp.close()
            except Exception as e:
                logger.debug("Ignoring SFTP close failure: %s", e)
            self._sftp = None
        if self.client is not None:
            self.client.close()
            self.client = None

    # --------------------
    # Load private key
    # --------------------
    def _load_private_key(self, path: str, passphrase: Optional[str]) -> paramiko.PKey:
        """Probe Ed25519, ECDSA and RSA in turn"""
        p = Path(path).expanduser()
        if not p.is_file():
            raise AuthError(f"Private key not found: {p}")

        last_error: Optional[Exception] = None
        for key_class in _KEY_CLASSES:
            try:
                return key_class.from_private_key_file(str(p), password=passphrase or None)
            except paramiko.PasswordRequiredException as e:
                raise AuthError(f"Private key {p} requires a passphrase") from e
            except (paramiko.SSHException, ValueError) as e:
                last_error = e
        raise AuthError(f"Failed to load private key at {p}: {last_error}") from last_error

    # --------------------
    # Helpers
    # --------------------
    def _require_client(self) -> paramiko.SSHClient:
        if self.client is None:
            raise ConnectError(f"Not connected to {self.config.host}")
        return self.client

    def exec_with_code(self, cmd: str) -> Tuple[str, str, int]:
        """Run a command and return (stdout, stderr, exit_code)"""
        try:
            stdin, stdout, stderr = self._require_client().exec_command(cmd)
            out = stdout.read().decode("utf-8", errors="replace")
            err = stderr.read().decode("utf-8", errors="replace")
            exit_code = stdout.channel.recv_exit_status()
        except (paramiko.SSHException, socket.error) as e:
            raise ConnectError(f"Failed to run command on {self.config.host}: {e}") from e
        return out, err, exit_code

    def open_sftp(self) -> paramiko.SFTPClient:
        """Return an SFTP client, reusing the open one"""
        if self._sftp is None or self._sftp.get_channel() is None:
            try:
                self._sftp = self._require_client().open_sftp()
            except (paramiko.SSHException, socket.error) as e:
                raise ConnectError(f"Failed to open SFTP on {self.config.host}: {e}") from e
        return self._sftp

    # --------------------
    # Context manager
    # --------------------
    def __enter__(self) -> RemoteClient:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
