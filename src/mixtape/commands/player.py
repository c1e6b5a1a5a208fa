"""
Interactive player session for Mixtape.

The playback controller runs its control loop on a background thread; this
module reads commands on the main thread and hands them over with submit().
"""

import shlex
from typing import List, Optional, Tuple

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.styles import Style

from mixtape.domain.library.models import Track
from mixtape.domain.playback.controller import PlaybackController
from mixtape.domain.playback.state import PlaybackStatus, TransportState, format_time

PLAYER_COMMANDS = [
    "toggle",
    "next",
    "prev",
    "seek",
    "select",
    "remove",
    "clear",
    "status",
    "list",
    "help",
    "quit",
]

HELP_TEXT = """Commands:
  toggle (or p)     play/pause
  next (or n)       next track
  prev (or b)       previous track
  seek <percent>    jump to a position, e.g. seek 50
  select <n>        play track n
  remove            remove the current track
  clear             remove every track
  status            show what is playing
  list              show the playlist
  quit (or q)       leave the player"""


def describe_state(state: TransportState, track: Optional[Track]) -> str:
    """One-line summary of the transport state."""
    if track is None:
        return "Playlist is empty." if state.current_index < 0 else "Nothing selected."

    if state.status == PlaybackStatus.LOADING:
        icon = "…"
    elif state.is_playing:
        icon = "▶"
    else:
        icon = "⏸"

    return (
        f"{icon} Playing: {track.name}  "
        f"{format_time(state.elapsed_seconds)} / {format_time(state.duration_seconds)} "
        f"({state.position_ratio:.0%})"
    )


def parse_player_command(text: str) -> Tuple[str, List[str]]:
    """Split user input into (command, args)."""
    try:
        parts = shlex.split(text.strip())
    except ValueError:
        parts = text.strip().split()
    if not parts:
        return "", []
    return parts[0].lower(), parts[1:]


def execute_player_command(
    controller: PlaybackController, command: str, args: List[str]
) -> bool:
    """Run one player command.

    Returns:
        False when the session should end
    """
    if command in ("quit", "exit", "q"):
        return False

    if command in ("toggle", "play", "pause", "p"):
        controller.submit(controller.toggle_play_pause)
    elif command in ("next", "n"):
        controller.submit(controller.next)
    elif command in ("prev", "previous", "b"):
        controller.submit(controller.previous)
    elif command == "seek":
        try:
            percent = float(args[0])
        except (IndexError, ValueError):
            print("Usage: seek <percent>")
            return True
        controller.submit(controller.seek, percent / 100.0)
    elif command == "select":
        try:
            position = int(args[0])
        except (IndexError, ValueError):
            print("Usage: select <n>")
            return True
        controller.submit(controller.select_and_load, position - 1, True)
    elif command == "remove":
        controller.submit(controller.remove_current)
    elif command == "clear":
        controller.submit(controller.clear_all)
    elif command == "status":
        print(describe_state(controller.state, controller.current_track))
    elif command == "list":
        current = controller.state.current_index
        for index, track in enumerate(controller.tracks):
            marker = "→" if index == current else " "
            print(f"{marker} {index + 1:>3}. {track.name}")
    elif command == "help":
        print(HELP_TEXT)
    elif command:
        print(f"Unknown command: {command}. Type 'help' for commands.")

    return True


def run_player_session(controller: PlaybackController) -> int:
    """Run the interactive player until the user quits."""
    last_shown: Tuple[int, PlaybackStatus, bool] = (-2, PlaybackStatus.NO_SELECTION, False)

    def on_state(state: TransportState) -> None:
        nonlocal last_shown
        key = (state.current_index, state.status, state.is_playing)
        if key == last_shown:
            return
        last_shown = key
        print(describe_state(state, controller.current_track))

    controller.subscribe(on_state)
    controller.init()
    controller.start_loop()

    prompt_style = Style.from_dict({"prompt": "#00aa00 bold"})
    session = PromptSession(
        completer=WordCompleter(PLAYER_COMMANDS),
        style=prompt_style,
    )

    print("Type 'help' for commands, 'quit' to leave.")
    try:
        with patch_stdout():
            while True:
                try:
                    text = session.prompt("mixtape> ")
                except (EOFError, KeyboardInterrupt):
                    break
                command, args = parse_player_command(text)
                if not execute_player_command(controller, command, args):
                    break
    finally:
        controller.shutdown()

    return 0
