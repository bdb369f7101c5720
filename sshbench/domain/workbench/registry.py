"""
Workbench: registry of open tabs keyed by session name
"""
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, Optional

from ...core.constants import DEFAULT_WORKERS
from ...core.exceptions import SessionNotFoundError
from ...core.interfaces import ChannelFactory, SurfaceProvider
from ...core.logging import get_logger
from ..channels.factory import ParamikoChannelFactory
from ..session.models import SessionRecord
from .models import TabSettings
from .tab import Tab, NoticeListener

logger = get_logger(__name__)


class Workbench:
    """
    Owns one Tab per opened session and the I/O executor they share.

    The session list is a snapshot; the workbench never edits or saves it.
    """

    def __init__(
        self,
        sessions: Iterable[SessionRecord],
        channel_factory: Optional[ChannelFactory] = None,
        settings: Optional[TabSettings] = None,
        listener: Optional[NoticeListener] = None,
        workers: int = DEFAULT_WORKERS,
        tab_factory: Optional[Callable[..., Tab]] = None,
    ):
        self._sessions: Dict[str, SessionRecord] = {s.name: s for s in sessions}
        self.channel_factory = channel_factory or ParamikoChannelFactory()
        self.settings = settings or TabSettings()
        self.listener = listener
        self._tab_factory = tab_factory or Tab
        self._tabs: Dict[str, Tab] = {}
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sshbench-io")

    @property
    def session_names(self) -> List[str]:
        return list(self._sessions)

    @property
    def tabs(self) -> List[Tab]:
        return list(self._tabs.values())

    def session(self, name: str) -> SessionRecord:
        try:
            return self._sessions[name]
        except KeyError:
            raise SessionNotFoundError(f"No saved session named '{name}'") from None

    def tab(self, name: str, surface: Optional[SurfaceProvider] = None) -> Tab:
        """Return the tab for ``name``, creating it on first use"""
        tab = self._tabs.get(name)
        if tab is None:
            tab = self._tab_factory(
                self.session(name),
                self.channel_factory,
                surface=surface,
                settings=self.settings,
                executor=self._executor,
                listener=self.listener,
            )
            self._tabs[name] = tab
            logger.debug("Opened tab '%s'", name)
        elif surface is not None:
            tab.surface = surface
        return tab

    async def connect(self, name: str, surface: Optional[SurfaceProvider] = None) -> Tab:
        tab = self.tab(name, surface)
        await tab.connect()
        return tab

    async def close(self, name: str) -> None:
        """Disconnect and forget the tab for ``name``; unknown tabs are ignored"""
        tab = self._tabs.pop(name, None)
        if tab is not None:
            await tab.disconnect()
            logger.debug("Closed tab '%s'", name)

    async def shutdown(self) -> None:
        for name in list(self._tabs):
            await self.close(name)
        self._executor.shutdown(wait=True)
