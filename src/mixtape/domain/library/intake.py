"""
Track intake helpers.

Turns user input (local files, MP3 links, video links) into raw track records
accepted by the track store, and provides the name guessing and prompting
used while adding tracks.
"""

import base64
import mimetypes
import random
import re
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple
from urllib.parse import parse_qs, unquote, unquote_to_bytes, urlsplit

from loguru import logger
from mutagen import File as MutagenFile
from mutagen import MutagenError

from mixtape.core.exceptions import InvalidTrackInputError

from .models import TrackType

REMOTE_AUDIO_URL_PATTERN = re.compile(r"^https?://.+\.mp3(\?.*)?$", re.IGNORECASE)

# File names some hosts hand out for every download; not worth keeping as a name
GENERIC_NAME_PATTERN = re.compile(r"^track-\d+\.mp3$", re.IGNORECASE)

VIDEO_HOSTS = {"youtube.com", "m.youtube.com", "music.youtube.com"}

NamePrompt = Callable[[str, str], Optional[str]]


def parse_video_id(text: Any) -> str:
    """Extract a YouTube video ID from a link.

    Supported forms:
    - youtu.be/<id>
    - youtube.com/watch?v=<id> (also m. and music. hosts)
    - youtube.com/shorts/<id>
    - youtube.com/embed/<id>

    Returns:
        Video ID, or "" when the link is not one of the forms above
    """
    try:
        url = urlsplit(str(text or "").strip())
        host = url.hostname or ""
    except ValueError:
        return ""

    if not url.scheme or not host:
        return ""

    host = host.removeprefix("www.")
    path = url.path

    if host == "youtu.be":
        return path[1:]

    if host in VIDEO_HOSTS:
        if path == "/watch":
            return parse_qs(url.query).get("v", [""])[0]
        if path.startswith("/shorts/") or path.startswith("/embed/"):
            return path.split("/")[2]

    return ""


def extract_name_from_url(url_text: Any) -> str:
    """Return the decoded file name at the end of a URL's path, or ""."""
    if not url_text or not isinstance(url_text, str):
        return ""
    try:
        url = urlsplit(url_text.strip())
    except ValueError:
        return ""
    if not url.scheme or not url.netloc:
        return ""
    return unquote(url.path.split("/")[-1]).strip()


def is_remote_audio_url(url: str) -> bool:
    """Check whether url is an http(s) link to an .mp3 file."""
    return bool(REMOTE_AUDIO_URL_PATTERN.match(url or ""))


def validate_remote_audio_url(url: str) -> str:
    """Validate an MP3 link entered by the user.

    Returns:
        The stripped URL

    Raises:
        InvalidTrackInputError: With a message suitable for showing to the user
    """
    url = (url or "").strip()
    if not url:
        raise InvalidTrackInputError("An MP3 link is required.")
    if not is_remote_audio_url(url):
        raise InvalidTrackInputError("The link must be http/https and end in .mp3.")
    return url


def resolve_prompt_name(
    name_guess: Optional[str], question: str, ask: Optional[NamePrompt] = None
) -> str:
    """Decide the display name for a new track.

    A usable guess is kept as is. Otherwise the user is asked (with the guess as
    default); an empty answer falls back to the guess, then to a random name.

    Args:
        name_guess: Name derived from the input (file name, URL, tag)
        question: Prompt text
        ask: Prompt callable taking (question, default), returns the answer or None
    """
    cleaned = (name_guess or "").strip()
    if cleaned and not GENERIC_NAME_PATTERN.match(cleaned):
        return cleaned

    answer = ask(question, cleaned) if ask else None
    final_name = (answer or "").strip()
    return final_name or cleaned or f"Track {random.randint(0, 999)}"


def ask_name_interactively(question: str, default: str) -> Optional[str]:
    """Prompt for a track name on the terminal."""
    from prompt_toolkit import prompt

    try:
        return prompt(f"{question} ", default=default)
    except (EOFError, KeyboardInterrupt):
        return None


def guess_audio_mime(path: Path) -> Optional[str]:
    """Return the audio MIME type of path, or None if it is not an audio file."""
    mime, _ = mimetypes.guess_type(path.name)
    if mime and mime.startswith("audio/"):
        return mime
    return None


def encode_local_file(path: Path) -> str:
    """Read an audio file into a self-contained data: URL.

    Raises:
        InvalidTrackInputError: If the file is missing or not audio
    """
    path = Path(path).expanduser()
    mime = guess_audio_mime(path)
    if mime is None:
        raise InvalidTrackInputError(f"Not an audio file: {path.name}")
    try:
        payload = path.read_bytes()
    except OSError as e:
        raise InvalidTrackInputError(f"Cannot read {path}: {e}") from e
    return f"data:{mime};base64,{base64.b64encode(payload).decode('ascii')}"


def decode_data_url(data_url: str) -> Tuple[str, bytes]:
    """Split a data: URL into (mime type, raw bytes).

    Raises:
        ValueError: If data_url is not a data: URL
    """
    if not data_url.startswith("data:") or "," not in data_url:
        raise ValueError("Not a data: URL")

    header, payload = data_url[5:].split(",", 1)
    parts = header.split(";")
    mime = parts[0] or "text/plain"

    if "base64" in parts[1:]:
        return mime, base64.b64decode(payload)
    return mime, unquote_to_bytes(payload)


def _get_tag_value(audio_file: Any, tag_names: list[str]) -> Optional[str]:
    """Get tag value, trying multiple possible tag names."""
    for tag_name in tag_names:
        try:
            value = audio_file.get(tag_name)
        except (KeyError, ValueError):
            continue
        if value:
            if isinstance(value, list):
                return str(value[0])
            return str(value)
    return None


def guess_local_name(path: Path) -> str:
    """Guess a display name for a local file from its tags, else its file name."""
    path = Path(path)
    try:
        audio_file = MutagenFile(path)
    except (MutagenError, OSError) as e:
        logger.debug(f"Could not read tags from {path}: {e}")
        audio_file = None

    if audio_file is not None:
        title = _get_tag_value(audio_file, ["TIT2", "\xa9nam", "TITLE", "title"])
        artist = _get_tag_value(audio_file, ["TPE1", "\xa9ART", "ARTIST", "artist"])
        if title and artist:
            return f"{artist} - {title}"
        if title:
            return title

    return path.name


def default_video_name(video_id: str) -> str:
    """Name suggested for a video track before the user confirms it."""
    return f"YouTube - {video_id}"


def fetch_video_title(video_id: str) -> str:
    """Look up a video's title with yt-dlp (metadata only, nothing downloaded).

    Returns:
        The title, or "" if the lookup fails
    """
    import yt_dlp

    ydl_opts = {
        "quiet": True,
        "no_warnings": True,
        "skip_download": True,
    }
    url = f"https://www.youtube.com/watch?v={video_id}"

    try:
        with yt_dlp.YoutubeDL(ydl_opts) as ydl:
            info = ydl.extract_info(url, download=False)
    except yt_dlp.utils.DownloadError as e:
        logger.warning(f"Title lookup failed for {video_id}: {e}")
        return ""

    return (info or {}).get("title") or ""


def local_track_input(path: Path, name: str) -> Dict[str, Any]:
    """Raw record for a local audio file."""
    return {
        "type": TrackType.DIRECT_LOCAL.value,
        "name": name,
        "dataPayload": encode_local_file(path),
    }


def remote_track_input(url: str, name: str, source_tag: str = "manual") -> Dict[str, Any]:
    """Raw record for an MP3 link. The link is validated first."""
    return {
        "type": TrackType.DIRECT_REMOTE.value,
        "name": name,
        "remoteUrl": validate_remote_audio_url(url),
        "sourceTag": source_tag,
    }


def video_track_input(link: str, name: str) -> Dict[str, Any]:
    """Raw record for a video link.

    Raises:
        InvalidTrackInputError: If no video ID can be extracted
    """
    video_id = parse_video_id(link)
    if not video_id:
        raise InvalidTrackInputError("Enter a valid YouTube link.")
    return {
        "type": TrackType.EMBEDDED_VIDEO.value,
        "name": name,
        "externalId": video_id,
        "originalUrl": link.strip(),
    }
