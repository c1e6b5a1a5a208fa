"""
Configuration management for Mixtape
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass
class StorageConfig:
    """Configuration for playlist persistence."""

    database_path: Optional[str] = None  # default: <data dir>/mixtape.db
    storage_key: str = "playlist_v4"
    legacy_keys: List[str] = field(
        default_factory=lambda: ["playlist_v3", "playlist_v2"]
    )


@dataclass
class PlayerConfig:
    """Configuration for the direct media player (mpv)."""

    mpv_socket_path: Optional[str] = None
    volume: int = 50
    poll_interval_ms: int = 500

    def validate(self) -> None:
        """Validate player configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if not 0 <= self.volume <= 100:
            raise ValueError(f"volume must be between 0 and 100, got {self.volume}")
        if self.poll_interval_ms <= 0:
            raise ValueError(
                f"poll_interval_ms must be positive, got {self.poll_interval_ms}"
            )


@dataclass
class EmbedConfig:
    """Configuration for the embedded video backend."""

    enabled: bool = True
    ytdl_format: str = "bestaudio/best"


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = None  # default: <data dir>/mixtape.log
    console_output: bool = False


@dataclass
class NotificationsConfig:
    """Configuration for desktop notifications."""

    enabled: bool = True
    show_errors: bool = True


@dataclass
class Config:
    """Main configuration object."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    player: PlayerConfig = field(default_factory=PlayerConfig)
    embed: EmbedConfig = field(default_factory=EmbedConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "mixtape"
    return Path.home() / ".config" / "mixtape"


def _find_project_config() -> Optional[Path]:
    """Find config.toml in project root by looking for pyproject.toml.

    Used during development so the project's config is picked up no matter
    which directory the app is started from.
    """
    current = Path(__file__).resolve().parent
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            config_path = parent / "config.toml"
            return config_path if config_path.exists() else None
    return None


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Project root (detected via pyproject.toml) - for development
    2. Current working directory
    3. XDG_CONFIG_HOME/mixtape (or ~/.config/mixtape)
    """
    project_config = _find_project_config()
    if project_config:
        return project_config

    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "mixtape"
    return Path.home() / ".local" / "share" / "mixtape"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# Mixtape Configuration

[storage]
# SQLite file holding the playlist (default: ~/.local/share/mixtape/mixtape.db)
# database_path = "/path/to/mixtape.db"

# Key the playlist is stored under
storage_key = "playlist_v4"

# Older keys read once and migrated forward, in priority order
legacy_keys = ["playlist_v3", "playlist_v2"]

[player]
# Path for the mpv socket (auto-detected if not specified)
# mpv_socket_path = "/tmp/mixtape-mpv.sock"

# Default volume (0-100)
volume = 50

# How often video playback position is polled, in milliseconds
poll_interval_ms = 500

[embed]
# Enable video tracks (requires mpv with yt-dlp)
enabled = true

# yt-dlp format selector used by mpv for video tracks
ytdl_format = "bestaudio/best"

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/mixtape/mixtape.log)
# log_file = "/path/to/custom/mixtape.log"

# Also output logs to console (useful for debugging)
console_output = false

[notifications]
# Enable desktop notifications
enabled = true

# Show error notifications
show_errors = true
""".strip()


def parse_config(toml_data: dict) -> Config:
    """Build a Config from parsed TOML data, falling back to defaults per key."""
    config = Config()

    if "storage" in toml_data:
        storage_data = toml_data["storage"]
        database_path = storage_data.get("database_path")
        if database_path:
            database_path = str(Path(database_path).expanduser())
        config.storage = StorageConfig(
            database_path=database_path,
            storage_key=storage_data.get("storage_key", config.storage.storage_key),
            legacy_keys=list(
                storage_data.get("legacy_keys", config.storage.legacy_keys)
            ),
        )

    if "player" in toml_data:
        player_data = toml_data["player"]
        config.player = PlayerConfig(
            mpv_socket_path=player_data.get("mpv_socket_path"),
            volume=player_data.get("volume", config.player.volume),
            poll_interval_ms=player_data.get(
                "poll_interval_ms", config.player.poll_interval_ms
            ),
        )
        try:
            config.player.validate()
        except ValueError as e:
            print(f"Warning: Invalid player configuration: {e}")
            print("Using default player configuration.")
            config.player = PlayerConfig()

    if "embed" in toml_data:
        embed_data = toml_data["embed"]
        config.embed = EmbedConfig(
            enabled=embed_data.get("enabled", config.embed.enabled),
            ytdl_format=embed_data.get("ytdl_format", config.embed.ytdl_format),
        )

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        if log_file:
            log_file = str(Path(log_file).expanduser())
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level).upper(),
            log_file=log_file,
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )

    if "notifications" in toml_data:
        notifications_data = toml_data["notifications"]
        config.notifications = NotificationsConfig(
            enabled=notifications_data.get("enabled", config.notifications.enabled),
            show_errors=notifications_data.get(
                "show_errors", config.notifications.show_errors
            ),
        )

    return config


def apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides.

    - MIXTAPE_DB_PATH
    - MIXTAPE_LOG_LEVEL
    """
    db_path = os.environ.get("MIXTAPE_DB_PATH")
    if db_path:
        config.storage.database_path = str(Path(db_path).expanduser())

    log_level = os.environ.get("MIXTAPE_LOG_LEVEL")
    if log_level:
        config.logging.level = log_level.upper()

    return config


def load_config() -> Config:
    """Load configuration from file or create default."""
    # Load .env file from config directory if it exists
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        print(f"Created default configuration at: {config_path}")
        return apply_env_overrides(Config())

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        print(f"Error loading configuration from {config_path}: {e}")
        print("Using default configuration.")
        return apply_env_overrides(Config())

    return apply_env_overrides(parse_config(toml_data))


def get_database_path(config: Config) -> Path:
    """Resolve the SQLite file used for playlist storage."""
    if config.storage.database_path:
        return Path(config.storage.database_path)
    return get_data_dir() / "mixtape.db"


def get_log_file_path(config: Config) -> Path:
    """Resolve the log file path."""
    if config.logging.log_file:
        return Path(config.logging.log_file)
    return get_data_dir() / "mixtape.log"


def ensure_directories() -> None:
    """Ensure all necessary directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
