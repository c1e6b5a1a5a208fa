"""
Mixtape CLI - Entry point

Playlist editing subcommands run once and exit; with no subcommand (or with
`play`) the interactive player starts.
"""

import argparse
import sys
from typing import List, Optional

from loguru import logger

from mixtape.core.config import (
    Config,
    ensure_directories,
    get_database_path,
    get_log_file_path,
    load_config,
)
from mixtape.core.exceptions import MixtapeError
from mixtape.core.output import setup_loguru
from mixtape.core.storage import SqliteStorage
from mixtape.domain.library.intake import ask_name_interactively
from mixtape.domain.library.store import TrackStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mixtape",
        description="Mixtape - a playlist player for local files, MP3 links and YouTube videos",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--no-prompt",
        action="store_true",
        help="Accept suggested track names without asking",
    )

    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")

    subparsers.add_parser("list", help="Show the playlist")
    subparsers.add_parser("play", help="Start the interactive player (default)")

    files_parser = subparsers.add_parser("add-file", help="Add local audio files")
    files_parser.add_argument("paths", nargs="+", help="Audio files to add")

    url_parser = subparsers.add_parser("add-url", help="Add an MP3 link")
    url_parser.add_argument("url", help="http(s) link ending in .mp3")
    url_parser.add_argument("--name", help="Track name (default: taken from the link)")
    url_parser.add_argument(
        "--source",
        default="manual",
        help="Where the link came from (e.g. jukehost)",
    )

    video_parser = subparsers.add_parser("add-video", help="Add a YouTube video")
    video_parser.add_argument("link", help="YouTube link")
    video_parser.add_argument("--name", help="Track name")
    video_parser.add_argument(
        "--lookup-title",
        action="store_true",
        help="Fetch the video title with yt-dlp to suggest a name",
    )

    remove_parser = subparsers.add_parser("remove", help="Remove a track")
    remove_parser.add_argument("position", type=int, help="1-based playlist position")

    subparsers.add_parser("clear", help="Remove every track")

    return parser


def setup(config: Config) -> SqliteStorage:
    """Prepare directories, logging and storage."""
    ensure_directories()
    setup_loguru(
        get_log_file_path(config),
        level=config.logging.level,
        console_output=config.logging.console_output,
    )
    storage = SqliteStorage(get_database_path(config))
    storage.init_storage()
    return storage


def run_command(args: argparse.Namespace, config: Config, storage: SqliteStorage) -> int:
    from mixtape.commands import playlist

    if args.subcommand in (None, "play"):
        from mixtape.commands.player import run_player_session
        from mixtape.domain.playback.controller import PlaybackController
        from mixtape.notifications import make_error_notifier

        controller = PlaybackController.from_config(
            config, storage, notify=make_error_notifier(config.notifications)
        )
        return run_player_session(controller)

    store = TrackStore(
        storage,
        storage_key=config.storage.storage_key,
        legacy_keys=config.storage.legacy_keys,
    )
    store.load()
    ask = None if args.no_prompt else ask_name_interactively

    if args.subcommand == "list":
        return playlist.handle_list(store)
    elif args.subcommand == "add-file":
        return playlist.handle_add_files(store, args.paths, ask=ask)
    elif args.subcommand == "add-url":
        return playlist.handle_add_url(
            store, args.url, name=args.name, source_tag=args.source, ask=ask
        )
    elif args.subcommand == "add-video":
        return playlist.handle_add_video(
            store, args.link, name=args.name, lookup_title=args.lookup_title, ask=ask
        )
    elif args.subcommand == "remove":
        return playlist.handle_remove(store, args.position)
    elif args.subcommand == "clear":
        return playlist.handle_clear(store)

    return 1


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the mixtape command."""
    args = build_parser().parse_args(argv)
    config = load_config()

    try:
        storage = setup(config)
        sys.exit(run_command(args, config, storage))
    except MixtapeError as e:
        logger.exception("Command failed")
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
