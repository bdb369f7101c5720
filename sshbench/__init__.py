"""
sshbench - remote session workbench

Per saved host profile it keeps:
- An interactive ssh shell attached to a display surface
- An SFTP file channel synchronized to one current remote path
- Folder upload/download through temporary tarballs
- Remote compress, extract, rename and delete
"""

__version__ = "0.1.0"

# Export core components
from .core import (
    RemoteClient,
    ClientConfig,
    WorkbenchError,
)

# Export domain models
from .domain.session import (
    SessionRecord,
    FileEntry,
    Notice,
)

from .domain.workbench import (
    ConnectionState,
    TabSettings,
    Tab,
    Workbench,
)

from .domain.transfer import (
    ArchiveFormat,
    TransferPipeline,
)

__all__ = [
    # Version
    "__version__",
    # Client
    "RemoteClient",
    "ClientConfig",
    "WorkbenchError",
    # Session models
    "SessionRecord",
    "FileEntry",
    "Notice",
    # Workbench
    "ConnectionState",
    "TabSettings",
    "Tab",
    "Workbench",
    # Transfers
    "ArchiveFormat",
    "TransferPipeline",
]
