"""
Configuration loader with priority: CLI > env > TOML > defaults
"""
import os
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, Any, Optional, List

from ...core.constants import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_SESSIONS_FILE,
    DEFAULT_TERMINAL,
    DEFAULT_TERMINAL_FONT,
    DEFAULT_TERMINAL_FONT_SIZE,
    DEFAULT_SSH_BINARY,
    DEFAULT_PASSWORD_HELPER,
    DEFAULT_EDITOR,
    DEFAULT_SURFACE_ATTEMPTS,
    DEFAULT_STOP_TIMEOUT,
    DEFAULT_SSH_TIMEOUT,
    DEFAULT_REMOTE_TEMP_DIR,
    DEFAULT_WORKERS,
)
from ...core.exceptions import ConfigError
from ...domain.terminal.command import TerminalSettings
from ...domain.workbench.models import TabSettings


@dataclass
class WorkbenchConfig:
    """Resolved workbench configuration"""
    sessions_file: str = DEFAULT_SESSIONS_FILE
    terminal: str = DEFAULT_TERMINAL
    terminal_font: str = DEFAULT_TERMINAL_FONT
    terminal_font_size: int = DEFAULT_TERMINAL_FONT_SIZE
    ssh_binary: str = DEFAULT_SSH_BINARY
    password_helper: str = DEFAULT_PASSWORD_HELPER
    editor: str = DEFAULT_EDITOR
    surface_attempts: int = DEFAULT_SURFACE_ATTEMPTS
    stop_timeout: float = DEFAULT_STOP_TIMEOUT
    connect_timeout: int = DEFAULT_SSH_TIMEOUT
    remote_temp_dir: str = DEFAULT_REMOTE_TEMP_DIR
    local_temp_dir: Optional[str] = None
    workers: int = DEFAULT_WORKERS
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkbenchConfig":
        """
        Build from a merged config dictionary.

        Raises:
            ConfigError: On unknown keys or values of the wrong type
        """
        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(data) - set(known))
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

        values = {}
        for key, value in data.items():
            default = known[key].default
            if value is None or default is None:
                values[key] = value
                continue
            if isinstance(default, str):
                values[key] = str(value)
                continue
            try:
                values[key] = type(default)(value)
            except (TypeError, ValueError) as e:
                raise ConfigError(f"Invalid value for {key}: {value!r}") from e
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def terminal_settings(self) -> TerminalSettings:
        return TerminalSettings(
            terminal=self.terminal,
            font=self.terminal_font,
            font_size=self.terminal_font_size,
            ssh_binary=self.ssh_binary,
            password_helper=self.password_helper,
            editor=self.editor,
        )

    def to_tab_settings(self) -> TabSettings:
        return TabSettings(
            terminal=self.terminal_settings(),
            surface_attempts=self.surface_attempts,
            stop_timeout=self.stop_timeout,
            remote_temp_dir=self.remote_temp_dir,
            local_temp_dir=Path(self.local_temp_dir).expanduser() if self.local_temp_dir else None,
        )


class ConfigLoader:
    """Builds a WorkbenchConfig from defaults, a TOML file, the environment and CLI flags"""

    def __init__(self, env_prefix: str = "SSHBENCH_"):
        self._env_prefix = env_prefix

    def load_toml(self, path: Path) -> Dict[str, Any]:
        """Read a TOML file; a missing or malformed file is a ConfigError"""
        path = Path(path).expanduser()
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            return tomllib.loads(path.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(f"Failed to parse TOML configuration: {e}") from e

    def load_env(self, environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """Load ``SSHBENCH_<FIELD>`` variables for every config field"""
        environ = os.environ if environ is None else environ
        config = {}
        for f in fields(WorkbenchConfig):
            value = environ.get(self._env_prefix + f.name.upper())
            if value:
                config[f.name] = self._convert_value(value)
        return config

    def _convert_value(self, value: str) -> Any:
        """Environment values are strings; numeric-looking ones become int or float"""
        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    def merge_configs(self, *configs: Dict[str, Any]) -> Dict[str, Any]:
        """Overlay flat config dicts left to right, so the last one wins"""
        result: Dict[str, Any] = {}
        for config in configs:
            result.update(config)
        return result

    def load(
        self,
        toml_path: Optional[Path] = None,
        cli_overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
    ) -> WorkbenchConfig:
        """
        Load configuration with priority: CLI > env > TOML > defaults

        Args:
            toml_path: Path to TOML configuration file; the default location
                is read only if it exists
            cli_overrides: CLI parameter overrides (``None`` values ignored)
            use_env: Whether to load from environment variables

        Returns:
            Resolved configuration
        """
        configs: List[Dict[str, Any]] = []

        # 1. TOML file
        if toml_path is not None:
            configs.append(self.load_toml(toml_path))
        else:
            default_path = Path(DEFAULT_CONFIG_FILE).expanduser()
            if default_path.exists():
                configs.append(self.load_toml(default_path))

        # 2. Environment variables
        if use_env:
            env_config = self.load_env()
            if env_config:
                configs.append(env_config)

        # 3. CLI overrides (highest priority)
        if cli_overrides:
            configs.append({k: v for k, v in cli_overrides.items() if v is not None})

        return WorkbenchConfig.from_dict(self.merge_configs(*configs))
