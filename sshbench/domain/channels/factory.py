"""
Channel factory implementation
"""
from ...core.constants import DEFAULT_SSH_TIMEOUT
from ...core.interfaces import ChannelFactory
from ..session.models import SessionRecord
from .control import ControlChannel
from .files import FileChannel


class ParamikoChannelFactory(ChannelFactory):
    """Creates paramiko-backed channels; channels are returned unconnected"""

    def __init__(self, timeout: int = DEFAULT_SSH_TIMEOUT):
        self.timeout = timeout

    def control(self, session: SessionRecord) -> ControlChannel:
        return ControlChannel(session, timeout=self.timeout)

    def files(self, session: SessionRecord) -> FileChannel:
        return FileChannel(session, timeout=self.timeout)
