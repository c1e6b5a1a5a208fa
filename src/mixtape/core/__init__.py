"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Key/value storage (SQLite)
- Logging and user output (Loguru)
- Shared exceptions
"""

from .config import (
    Config,
    load_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    get_database_path,
    get_log_file_path,
    create_default_config,
    ensure_directories,
)
from .exceptions import (
    MixtapeError,
    StorageError,
    InvalidTrackInputError,
    PlaybackError,
    BackendLoadError,
    RuntimeBootstrapError,
)
from .output import log, setup_loguru
from .storage import SqliteStorage

__all__ = [
    # Config
    "Config",
    "load_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "get_database_path",
    "get_log_file_path",
    "create_default_config",
    "ensure_directories",
    # Exceptions
    "MixtapeError",
    "StorageError",
    "InvalidTrackInputError",
    "PlaybackError",
    "BackendLoadError",
    "RuntimeBootstrapError",
    # Output
    "log",
    "setup_loguru",
    # Storage
    "SqliteStorage",
]
