"""
Shared connection handling for control and file channels
"""
from typing import Optional

from ...core.client import RemoteClient
from ...core.constants import DEFAULT_SSH_TIMEOUT
from ...core.exceptions import ConnectError
from ...core.logging import get_logger
from ..session.models import SessionRecord

logger = get_logger(__name__)


class BaseChannel:
    """
    One authenticated SSH connection bound to a session record.

    ``disconnect`` is idempotent and safe on a channel that never connected.
    Used as a context manager the channel connects on enter and always
    disconnects on exit.
    """

    kind = "channel"

    def __init__(self, session: SessionRecord, timeout: int = DEFAULT_SSH_TIMEOUT):
        self.session = session
        self.timeout = timeout
        self._client: Optional[RemoteClient] = None

    @property
    def is_connected(self) -> bool:
        return self._client is not None and self._client.is_connected

    def connect(self) -> None:
        """
        Open the connection.

        Raises:
            AuthConfigError: If the session has no credential configured
            AuthError: If the server rejects the credentials
            ConnectError: On network or handshake failure
        """
        self.session.validate_auth()
        if self._client is not None:
            self.disconnect()

        s = self.session
        client = RemoteClient(
            host=s.host,
            user=s.username,
            port=s.port,
            password=s.password if s.has_password else None,
            key_path=s.private_key_path if s.has_private_key else None,
            key_passphrase=s.private_key_passphrase,
            timeout=self.timeout,
        )
        client.connect()
        self._client = client
        logger.debug("%s channel open for session '%s'", self.kind, s.name)

    def disconnect(self) -> None:
        client, self._client = self._client, None
        if client is None:
            return
        try:
            client.close()
        except Exception as e:
            logger.debug("Ignoring %s channel close failure: %s", self.kind, e)

    def _require_client(self) -> RemoteClient:
        if self._client is None:
            raise ConnectError(f"{self.kind} channel for '{self.session.name}' is not connected")
        return self._client

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.disconnect()
