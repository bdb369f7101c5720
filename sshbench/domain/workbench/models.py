"""
Workbench domain models
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, Any

from ...core.constants import (
    DEFAULT_SURFACE_ATTEMPTS,
    DEFAULT_STOP_TIMEOUT,
    DEFAULT_REMOTE_TEMP_DIR,
)
from ..terminal.command import TerminalSettings


class ConnectionState(str, Enum):
    """Lifecycle of one session's connection"""
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTING = "disconnecting"


STATUS_DISCONNECTED = "disconnected"


@dataclass
class TabSettings:
    """Per-tab behaviour shared by every session of a workbench"""
    terminal: TerminalSettings = field(default_factory=TerminalSettings)
    surface_attempts: int = DEFAULT_SURFACE_ATTEMPTS
    surface_retry_delay: float = 0.0
    stop_timeout: float = DEFAULT_STOP_TIMEOUT
    remote_temp_dir: str = DEFAULT_REMOTE_TEMP_DIR
    local_temp_dir: Optional[Path] = None
    # False for file-only tabs (no terminal is launched on connect)
    attach_shell: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "terminal": dict(self.terminal.__dict__),
            "surface_attempts": self.surface_attempts,
            "surface_retry_delay": self.surface_retry_delay,
            "stop_timeout": self.stop_timeout,
            "remote_temp_dir": self.remote_temp_dir,
            "local_temp_dir": str(self.local_temp_dir) if self.local_temp_dir else None,
            "attach_shell": self.attach_shell,
        }
