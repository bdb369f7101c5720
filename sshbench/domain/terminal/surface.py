"""
Display surfaces the shell host can attach a terminal to
"""
from typing import Optional

from ...core.interfaces import SurfaceProvider


class DetachedSurface(SurfaceProvider):
    """Always ready; the terminal opens its own top-level window"""

    def ready(self) -> bool:
        return True

    @property
    def identifier(self) -> Optional[str]:
        return None


class StaticSurface(SurfaceProvider):
    """Embed target whose window id is already known"""

    def __init__(self, identifier: str):
        self._identifier = str(identifier)

    def ready(self) -> bool:
        return bool(self._identifier) and self._identifier != "0"

    @property
    def identifier(self) -> Optional[str]:
        return self._identifier


class DeferredSurface(SurfaceProvider):
    """
    Embed target realized later by the GUI toolkit.

    The toolkit calls :meth:`realize` once the widget has a window id;
    until then the shell host keeps polling :meth:`ready`.
    """

    def __init__(self):
        self._identifier: Optional[str] = None

    def realize(self, identifier: str) -> None:
        self._identifier = str(identifier)

    def unrealize(self) -> None:
        self._identifier = None

    def ready(self) -> bool:
        return self._identifier is not None

    @property
    def identifier(self) -> Optional[str]:
        return self._identifier
