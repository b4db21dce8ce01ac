"""
Runtime configuration for the syncwatch daemon.

Resolution order (later wins):
1. Defaults derived from XDG directories
2. Optional config file (YAML; JSON works too since it is valid YAML)
3. SYNCWATCH_* environment variables
4. Explicit overrides passed to load_config() (usually CLI flags)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from syncwatch.ignore_defaults import DEFAULT_IGNORE_PATTERNS

APP_DIR_NAME = "syncwatch"

# Debounce timing is fixed, not externally tunable
DEFAULT_DEBOUNCE_WINDOW = 0.3
DEFAULT_TICK_INTERVAL = 0.2


class ConfigError(Exception):
    """Raised when a config file cannot be read or parsed."""


@dataclass
class SyncConfig:
    """Resolved daemon configuration."""

    app_name: str = APP_DIR_NAME
    config_dir: Optional[Path] = None
    data_dir: Optional[Path] = None
    runtime_dir: Optional[Path] = None
    socket_path: Optional[Path] = None
    sync_root: Optional[Path] = None
    ignore_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS))
    event_log_size: int = 20
    sync_queue_size: int = 1024
    log_level: str = "info"
    database_path: Optional[Path] = None
    log_file_path: Optional[Path] = None
    log_backup_count: int = 7
    config_file: Optional[Path] = None
    debounce_window: float = DEFAULT_DEBOUNCE_WINDOW
    tick_interval: float = DEFAULT_TICK_INTERVAL

    def reserved_paths(self) -> list[Path]:
        """Operational files that live under the data dir and must never be synced."""
        return [p for p in (self.log_file_path, self.database_path, self.socket_path) if p]


def default_config() -> SyncConfig:
    """Build the default config from XDG directories."""
    home = Path.home()
    config_home = Path(os.environ.get("XDG_CONFIG_HOME") or home / ".config")
    data_home = Path(os.environ.get("XDG_DATA_HOME") or home / ".local" / "share")
    runtime_dir = Path(os.environ.get("XDG_RUNTIME_DIR") or home / ".cache")

    data_dir = data_home / APP_DIR_NAME
    return SyncConfig(
        config_dir=config_home / APP_DIR_NAME,
        data_dir=data_dir,
        runtime_dir=runtime_dir,
        socket_path=runtime_dir / APP_DIR_NAME / "daemon.sock",
        sync_root=data_dir / "sync",
        database_path=data_dir / "syncwatch.db",
        log_file_path=data_dir / "logs" / "daemon.log",
    )


_PATH_KEYS = (
    "config_dir",
    "data_dir",
    "runtime_dir",
    "socket_path",
    "sync_root",
    "database_path",
    "log_file_path",
)
_INT_KEYS = ("event_log_size", "sync_queue_size", "log_backup_count")


def apply_config_file(cfg: SyncConfig, path: Path) -> None:
    """
    Overlay values from a config file onto cfg.

    Only non-empty strings, non-empty lists and positive integers override.
    Unknown keys are ignored.

    Raises:
        ConfigError: If the file is unreadable or not a mapping
    """
    try:
        raw = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e

    if raw is None:
        return
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    data: dict[str, Any] = raw
    if data.get("app_name"):
        cfg.app_name = str(data["app_name"])
    if data.get("log_level"):
        cfg.log_level = str(data["log_level"])
    for key in _PATH_KEYS:
        if data.get(key):
            setattr(cfg, key, Path(str(data[key])).expanduser())
    for key in _INT_KEYS:
        value = data.get(key)
        if isinstance(value, int) and not isinstance(value, bool) and value > 0:
            setattr(cfg, key, value)
    patterns = data.get("ignore_patterns")
    if isinstance(patterns, list) and patterns:
        cfg.ignore_patterns = [str(p) for p in patterns]


def _positive_int(value: str) -> Optional[int]:
    try:
        number = int(value)
    except ValueError:
        return None
    return number if number > 0 else None


def split_list(value: str) -> list[str]:
    """Split a comma-separated list, dropping empty entries."""
    return [item for item in value.split(",") if item]


def apply_env(cfg: SyncConfig, environ: Optional[dict[str, str]] = None) -> None:
    """Overlay SYNCWATCH_* environment variables onto cfg."""
    env = os.environ if environ is None else environ

    if env.get("SYNCWATCH_LOG_LEVEL"):
        cfg.log_level = env["SYNCWATCH_LOG_LEVEL"]
    if env.get("SYNCWATCH_LOG_FILE"):
        cfg.log_file_path = Path(env["SYNCWATCH_LOG_FILE"])
    if env.get("SYNCWATCH_SOCKET_PATH"):
        cfg.socket_path = Path(env["SYNCWATCH_SOCKET_PATH"])
    if env.get("SYNCWATCH_SYNC_ROOT"):
        cfg.sync_root = Path(env["SYNCWATCH_SYNC_ROOT"])
    if env.get("SYNCWATCH_IGNORE_PATTERNS"):
        cfg.ignore_patterns = split_list(env["SYNCWATCH_IGNORE_PATTERNS"])

    for var, attr in (
        ("SYNCWATCH_LOG_BACKUPS", "log_backup_count"),
        ("SYNCWATCH_EVENT_LOG_SIZE", "event_log_size"),
        ("SYNCWATCH_SYNC_QUEUE_SIZE", "sync_queue_size"),
    ):
        if env.get(var):
            number = _positive_int(env[var])
            if number is not None:
                setattr(cfg, attr, number)


def load_config(
    config_path: Optional[Path] = None,
    log_level: Optional[str] = None,
    socket_path: Optional[Path] = None,
    environ: Optional[dict[str, str]] = None,
) -> SyncConfig:
    """
    Resolve the daemon configuration.

    Args:
        config_path: Optional YAML/JSON config file
        log_level: Explicit log level override
        socket_path: Explicit control socket override
        environ: Environment mapping (defaults to os.environ)

    Raises:
        ConfigError: If config_path is given but unreadable or invalid
    """
    cfg = default_config()

    if config_path:
        apply_config_file(cfg, Path(config_path))
        cfg.config_file = Path(config_path)

    apply_env(cfg, environ)

    if log_level:
        cfg.log_level = log_level
    if socket_path:
        cfg.socket_path = Path(socket_path)

    return cfg
