"""Tests for configuration loading."""

import tomllib

import pytest

from mixtape.core import config as config_module
from mixtape.core.config import (
    Config,
    apply_env_overrides,
    create_default_config,
    get_database_path,
    get_log_file_path,
    parse_config,
)


class TestParseConfig:
    """Tests for parse_config."""

    def test_default_config_round_trips(self) -> None:
        """Test the generated default file parses to the default Config."""
        parsed = parse_config(tomllib.loads(create_default_config()))
        assert parsed == Config()

    def test_empty_document_uses_defaults(self) -> None:
        assert parse_config({}) == Config()

    def test_partial_sections(self) -> None:
        """Test unspecified keys keep their defaults."""
        parsed = parse_config(
            {
                "storage": {"storage_key": "mixes"},
                "embed": {"enabled": False},
                "logging": {"level": "debug"},
            }
        )

        assert parsed.storage.storage_key == "mixes"
        assert parsed.storage.legacy_keys == ["playlist_v3", "playlist_v2"]
        assert parsed.embed.enabled is False
        assert parsed.embed.ytdl_format == "bestaudio/best"
        assert parsed.logging.level == "DEBUG"

    def test_invalid_player_section_falls_back(self) -> None:
        """Test an invalid volume resets the player section to defaults."""
        parsed = parse_config({"player": {"volume": 250, "poll_interval_ms": 250}})
        assert parsed.player.volume == 50
        assert parsed.player.poll_interval_ms == 500


class TestEnvOverrides:
    """Tests for apply_env_overrides."""

    def test_overrides(self, monkeypatch, tmp_path) -> None:
        monkeypatch.setenv("MIXTAPE_DB_PATH", str(tmp_path / "other.db"))
        monkeypatch.setenv("MIXTAPE_LOG_LEVEL", "warning")

        config = apply_env_overrides(Config())

        assert config.storage.database_path == str(tmp_path / "other.db")
        assert config.logging.level == "WARNING"

    def test_no_overrides(self, monkeypatch) -> None:
        monkeypatch.delenv("MIXTAPE_DB_PATH", raising=False)
        monkeypatch.delenv("MIXTAPE_LOG_LEVEL", raising=False)
        assert apply_env_overrides(Config()) == Config()


class TestPaths:
    """Tests for path resolution."""

    def test_default_paths_use_data_dir(self, monkeypatch, tmp_path) -> None:
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
        config = Config()

        assert get_database_path(config) == tmp_path / "mixtape" / "mixtape.db"
        assert get_log_file_path(config) == tmp_path / "mixtape" / "mixtape.log"

    def test_explicit_paths(self, tmp_path) -> None:
        config = Config()
        config.storage.database_path = str(tmp_path / "x.db")
        config.logging.log_file = str(tmp_path / "x.log")

        assert get_database_path(config) == tmp_path / "x.db"
        assert get_log_file_path(config) == tmp_path / "x.log"


class TestLoadConfig:
    """Tests for load_config."""

    @pytest.fixture
    def config_dir(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        monkeypatch.delenv("MIXTAPE_DB_PATH", raising=False)
        monkeypatch.delenv("MIXTAPE_LOG_LEVEL", raising=False)
        monkeypatch.setattr(config_module, "_find_project_config", lambda: None)
        monkeypatch.chdir(tmp_path)
        return tmp_path / "mixtape"

    def test_writes_default_file(self, config_dir) -> None:
        """Test a missing config file is created with defaults."""
        config = config_module.load_config()

        assert config == Config()
        assert (config_dir / "config.toml").exists()

    def test_reads_existing_file(self, config_dir) -> None:
        config_dir.mkdir(parents=True)
        (config_dir / "config.toml").write_text('[player]\nvolume = 80\n')

        assert config_module.load_config().player.volume == 80

    def test_malformed_file_uses_defaults(self, config_dir) -> None:
        config_dir.mkdir(parents=True)
        (config_dir / "config.toml").write_text("[player\nvolume = ")

        assert config_module.load_config() == Config()
