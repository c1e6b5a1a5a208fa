"""Tests for the mixtape command-line entry point."""

from unittest.mock import patch

import pytest

from mixtape import cli
from mixtape.core.config import Config
from mixtape.core.storage import SqliteStorage


@pytest.fixture
def storage(tmp_path) -> SqliteStorage:
    return SqliteStorage(tmp_path / "mixtape.db")


def run(argv, storage) -> int:
    args = cli.build_parser().parse_args(argv)
    with patch("mixtape.commands.playlist.log"):
        return cli.run_command(args, Config(), storage)


def test_parser_subcommands():
    """Test the parser accepts every playlist subcommand."""
    parser = cli.build_parser()

    assert parser.parse_args([]).subcommand is None
    assert parser.parse_args(["remove", "2"]).position == 2
    args = parser.parse_args(["add-url", "https://x.test/a.mp3", "--source", "jukehost"])
    assert args.source == "jukehost"
    assert parser.parse_args(["add-video", "https://youtu.be/a", "--lookup-title"]).lookup_title


def test_add_video_help_asks_for_link(capsys):
    """Test add-video only advertises YouTube links as input."""
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["add-video", "--help"])

    output = capsys.readouterr().out
    assert "YouTube link" in output
    assert "video ID" not in output


def test_add_list_remove(storage, capsys):
    """Test playlist edits persist between invocations."""
    assert run(["--no-prompt", "add-video", "https://youtu.be/dQw4w9WgXcQ"], storage) == 0
    assert run(["--no-prompt", "add-url", "https://x.test/set.mp3"], storage) == 0

    assert run(["list"], storage) == 0
    output = capsys.readouterr().out
    assert "YouTube - dQw4w9WgXcQ" in output
    assert "set.mp3" in output

    assert run(["remove", "1"], storage) == 0
    assert run(["clear"], storage) == 0
    assert storage.get_item("playlist_v4") == "[]"


def test_main_reports_errors(monkeypatch, capsys):
    """Test MixtapeErrors exit with status 1 and a message."""
    from mixtape.core.exceptions import StorageError

    def broken_setup(config):
        raise StorageError("database is locked")

    monkeypatch.setattr(cli, "load_config", lambda: Config())
    monkeypatch.setattr(cli, "setup", broken_setup)

    with pytest.raises(SystemExit) as exc_info:
        cli.main(["list"])

    assert exc_info.value.code == 1
    assert "database is locked" in capsys.readouterr().err
