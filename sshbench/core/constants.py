"""
Project constants definitions
"""

# ============================================================
# Local State
# ============================================================

DEFAULT_SESSIONS_FILE = "~/.config/sshbench/sessions.json"
DEFAULT_CONFIG_FILE = "~/.config/sshbench/config.toml"

# ============================================================
# Connection Defaults
# ============================================================

DEFAULT_SSH_PORT = 22
DEFAULT_SSH_TIMEOUT = 10
DEFAULT_SSH_BINARY = "ssh"
DEFAULT_PASSWORD_HELPER = "sshpass"
PASSWORD_HELPER_ENV = "SSHPASS"

# ============================================================
# Terminal / Shell Host
# ============================================================

DEFAULT_TERMINAL = "xterm"
DEFAULT_TERMINAL_FONT = "Monospace"
DEFAULT_TERMINAL_FONT_SIZE = 11
DEFAULT_EDITOR = "nano"

# Reschedules after the first attach attempt
DEFAULT_SURFACE_ATTEMPTS = 5
DEFAULT_STOP_TIMEOUT = 2.0

# ============================================================
# Transfer
# ============================================================

DEFAULT_REMOTE_TEMP_DIR = "/tmp"
REMOTE_ARCHIVE_PREFIX = "sshbench"
DEFAULT_WORKERS = 4

# ============================================================
# Remote Paths / Listing
# ============================================================

REMOTE_ROOT = "/"
PARENT_ENTRY = ".."
EMPTY_FIELD = "-"
MODIFIED_FORMAT = "%Y-%m-%d %H:%M"

# ============================================================
# Default Session (seeded into an empty store)
# ============================================================

DEFAULT_SESSION_NAME = "My Server"
DEFAULT_SESSION_HOST = "server.com"
DEFAULT_SESSION_USER = "user"
