"""
Playlist command handlers for Mixtape.

Handles: list, add-file, add-url, add-video, remove, clear
"""

from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from mixtape.core.exceptions import InvalidTrackInputError
from mixtape.core.output import log
from mixtape.domain.library import intake
from mixtape.domain.library.intake import NamePrompt
from mixtape.domain.library.models import track_label
from mixtape.domain.library.store import TrackStore


def handle_list(store: TrackStore, console: Optional[Console] = None) -> int:
    """Print the playlist as a table."""
    console = console or Console()
    tracks = store.tracks

    if not tracks:
        console.print("Playlist is empty. Add tracks with add-file, add-url or add-video.")
        return 0

    table = Table(title=f"Playlist ({len(tracks)} tracks)")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Source", style="cyan")
    table.add_column("Name")

    for index, track in enumerate(tracks, start=1):
        table.add_row(str(index), track_label(track), track.name or f"Track {index}")

    console.print(table)
    return 0


def handle_add_files(
    store: TrackStore, paths: List[str], ask: Optional[NamePrompt] = None
) -> int:
    """Add local audio files. Non-audio files are skipped."""
    added = 0
    for raw_path in paths:
        path = Path(raw_path).expanduser()
        if intake.guess_audio_mime(path) is None:
            log(f"⚠ Skipping non-audio file: {path.name}", level="warning")
            continue

        name = intake.resolve_prompt_name(
            intake.guess_local_name(path), f"Name for {path.name}:", ask
        )
        try:
            if store.add(intake.local_track_input(path, name)):
                added += 1
                log(f"✅ Added: {name}")
        except InvalidTrackInputError as e:
            log(f"❌ {e}", level="error")

    log(f"Playlist now has {len(store)} tracks")
    return 0 if added else 1


def handle_add_url(
    store: TrackStore,
    url: str,
    name: Optional[str] = None,
    source_tag: str = "manual",
    ask: Optional[NamePrompt] = None,
) -> int:
    """Add an MP3 link."""
    try:
        url = intake.validate_remote_audio_url(url)
    except InvalidTrackInputError as e:
        log(f"❌ {e}", level="error")
        return 1

    guess = (name or "").strip() or intake.extract_name_from_url(url)
    final_name = intake.resolve_prompt_name(guess, "Name for this link:", ask)

    if not store.add(intake.remote_track_input(url, final_name, source_tag=source_tag)):
        log("❌ Could not add the link", level="error")
        return 1

    log(f"✅ MP3 link added to the playlist: {final_name}")
    return 0


def handle_add_video(
    store: TrackStore,
    link: str,
    name: Optional[str] = None,
    lookup_title: bool = False,
    ask: Optional[NamePrompt] = None,
) -> int:
    """Add a YouTube link."""
    link = (link or "").strip()
    if not link:
        log("❌ A YouTube link is required.", level="error")
        return 1

    video_id = intake.parse_video_id(link)
    if not video_id:
        log("❌ Enter a valid YouTube link.", level="error")
        return 1

    guess = (name or "").strip()
    if not guess and lookup_title:
        guess = intake.fetch_video_title(video_id)
    guess = guess or intake.default_video_name(video_id)

    final_name = intake.resolve_prompt_name(guess, "Name for this video:", ask)
    if not store.add(intake.video_track_input(link, final_name)):
        log("❌ Could not add the video", level="error")
        return 1

    log(f"✅ Video added to the playlist: {final_name}")
    return 0


def handle_remove(store: TrackStore, position: int) -> int:
    """Remove a track by its 1-based position."""
    track = store.get(position - 1)
    if track is None or not store.remove_at(position - 1):
        log(f"❌ No track at position {position}", level="error")
        return 1
    log(f"🗑 Removed: {track.name}")
    return 0


def handle_clear(store: TrackStore) -> int:
    store.clear()
    log("🗑 Playlist cleared")
    return 0
