"""
Core interfaces for dependency injection
"""
from abc import ABC, abstractmethod
from typing import Any, List, Optional


class SessionRepository(ABC):
    """Saved session list storage interface"""

    @abstractmethod
    def load(self) -> List[Any]:
        """Load the ordered list of session records"""
        pass

    @abstractmethod
    def save(self, sessions: List[Any]) -> None:
        """Overwrite the stored list of session records"""
        pass


class ChannelFactory(ABC):
    """Creates unconnected control and file channels for a session"""

    @abstractmethod
    def control(self, session: Any) -> Any:
        """Create a remote control channel"""
        pass

    @abstractmethod
    def files(self, session: Any) -> Any:
        """Create a file channel"""
        pass


class SurfaceProvider(ABC):
    """Display surface an interactive shell attaches into"""

    @abstractmethod
    def ready(self) -> bool:
        """Whether the surface is realized and can accept an embedded shell"""
        pass

    @property
    @abstractmethod
    def identifier(self) -> Optional[str]:
        """
        Stable embed target (e.g. an X11 window id) once ready.

        ``None`` means the terminal opens its own top-level window.
        """
        pass
