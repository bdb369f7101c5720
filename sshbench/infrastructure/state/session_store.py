"""
File-based session list storage
"""
import json
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from ...core.constants import (
    DEFAULT_SESSIONS_FILE,
    DEFAULT_SESSION_NAME,
    DEFAULT_SESSION_HOST,
    DEFAULT_SESSION_USER,
    REMOTE_ROOT,
)
from ...core.exceptions import ConfigError
from ...core.interfaces import SessionRepository
from ...core.logging import get_logger
from ...domain.session.models import SessionRecord

logger = get_logger(__name__)


def default_sessions() -> List[SessionRecord]:
    """Placeholder list written on first run"""
    return [
        SessionRecord(
            name=DEFAULT_SESSION_NAME,
            host=DEFAULT_SESSION_HOST,
            username=DEFAULT_SESSION_USER,
            remote_path=REMOTE_ROOT,
        )
    ]


class JsonSessionStore(SessionRepository):
    """
    Stores the ordered session list as one JSON document::

        {"sessions": [{"name": ..., "host": ..., ...}, ...]}

    Writes go through a temporary file in the same directory followed by
    ``os.replace`` so a crash never leaves a truncated file behind.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path or DEFAULT_SESSIONS_FILE).expanduser()

    def load(self) -> List[SessionRecord]:
        """
        Load saved sessions, seeding the default list if no file exists.

        Raises:
            ConfigError: If the file exists but cannot be parsed
        """
        if not self.path.exists():
            sessions = default_sessions()
            self.save(sessions)
            logger.info("Created session list at %s", self.path)
            return sessions

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigError(f"Cannot read session list {self.path}: {e}") from e

        entries = data.get("sessions", []) if isinstance(data, dict) else data
        if not isinstance(entries, list):
            raise ConfigError(f"Malformed session list in {self.path}")

        sessions = []
        for entry in entries:
            try:
                sessions.append(SessionRecord.from_dict(entry))
            except (TypeError, ValueError) as e:
                logger.warning("Skipping malformed session entry %r: %s", entry, e)
        return sessions

    def save(self, sessions: List[SessionRecord]) -> None:
        """Overwrite the stored list atomically"""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps({"sessions": [s.to_dict() for s in sessions]}, indent=2)

        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".sessions-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise ConfigError(f"Cannot write session list {self.path}: {e}") from e
