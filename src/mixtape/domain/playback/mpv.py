"""
MPV integration with JSON IPC for Mixtape.

One-shot commands and property reads each open a short-lived connection to
the mpv socket. Property observation uses a dedicated connection read by a
background thread, which turns mpv events into callbacks.
"""

import json
import mimetypes
import os
import socket
import subprocess
import tempfile
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence

from loguru import logger

from mixtape.core.exceptions import BackendLoadError
from mixtape.domain.library.intake import decode_data_url

from .media import MediaElement

MpvEventHandler = Callable[[Dict[str, Any]], None]


def check_mpv_available() -> bool:
    """Check if MPV is available on the system."""
    try:
        result = subprocess.run(
            ["mpv", "--version"], capture_output=True, text=True, timeout=5
        )
        return result.returncode == 0
    except (subprocess.SubprocessError, FileNotFoundError, OSError):
        return False


def default_socket_path(label: str) -> str:
    """Per-process socket path for an mpv instance."""
    return str(Path(tempfile.gettempdir()) / f"mixtape-{label}-{os.getpid()}.sock")


class MpvProcess:
    """An idle, audio-only mpv process controlled over its IPC socket."""

    def __init__(
        self,
        socket_path: Optional[str] = None,
        volume: int = 50,
        extra_args: Sequence[str] = (),
        label: str = "direct",
    ):
        self.socket_path = socket_path or default_socket_path(label)
        self.volume = volume
        self.extra_args = list(extra_args)
        self.label = label
        self.process: Optional[subprocess.Popen] = None
        self._observer: Optional[threading.Thread] = None
        self._observing = False

    def start(self, timeout: float = 5.0) -> bool:
        """Start mpv and wait for its socket to accept commands."""
        logger.info(f"Starting mpv ({self.label}) with socket: {self.socket_path}")

        try:
            if os.path.exists(self.socket_path):
                logger.debug(f"Removing existing socket: {self.socket_path}")
                os.unlink(self.socket_path)

            cmd = [
                "mpv",
                "--idle=yes",
                "--no-video",
                "--no-terminal",
                f"--input-ipc-server={self.socket_path}",
                f"--volume={self.volume}",
                "--load-scripts=no",
                *self.extra_args,
            ]

            self.process = subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
            )

            start_time = time.time()
            while not os.path.exists(self.socket_path):
                if time.time() - start_time > timeout:
                    logger.error(f"mpv socket creation timeout after {timeout}s")
                    self.process.kill()
                    return False
                time.sleep(0.1)

            if self.get_property("idle-active") is None:
                logger.error("mpv socket connection test failed")
                self.process.kill()
                return False

            logger.info(f"mpv ({self.label}) started successfully")
            return True

        except (subprocess.SubprocessError, OSError) as e:
            logger.error(f"Failed to start mpv: {e}")
            return False

    def stop(self) -> None:
        """Stop the observer, kill mpv and remove its socket."""
        self._observing = False

        if self.process:
            try:
                self.process.kill()
                self.process.wait(timeout=2.0)
            except (OSError, subprocess.TimeoutExpired) as e:
                logger.warning(f"mpv ({self.label}) did not exit cleanly: {e}")
            self.process = None

        if os.path.exists(self.socket_path):
            try:
                os.unlink(self.socket_path)
            except OSError:
                pass

    def is_running(self) -> bool:
        """Check if the mpv process is alive and its socket exists."""
        if not self.process or self.process.poll() is not None:
            return False
        return os.path.exists(self.socket_path)

    def _request(self, command: list) -> Optional[Dict[str, Any]]:
        if not os.path.exists(self.socket_path):
            return None

        try:
            with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
                sock.settimeout(2.0)
                sock.connect(self.socket_path)
                sock.sendall((json.dumps({"command": command}) + "\n").encode("utf-8"))

                # Skip asynchronous events that may precede the reply
                buffer = b""
                while True:
                    chunk = sock.recv(4096)
                    if not chunk:
                        return None
                    buffer += chunk
                    while b"\n" in buffer:
                        line, buffer = buffer.split(b"\n", 1)
                        message = json.loads(line.decode("utf-8"))
                        if "event" not in message:
                            return message

        except (socket.error, OSError, json.JSONDecodeError, UnicodeDecodeError):
            return None

    def send_command(self, *args: Any) -> bool:
        """Send a JSON IPC command. True if mpv reported success."""
        response = self._request(list(args))
        return bool(response) and response.get("error") == "success"

    def get_property(self, name: str) -> Any:
        """Get a property value from mpv (None if unavailable)."""
        response = self._request(["get_property", name])
        if response and response.get("error") == "success":
            return response.get("data")
        return None

    def set_property(self, name: str, value: Any) -> bool:
        return self.send_command("set_property", name, value)

    def observe(self, properties: Sequence[str], handler: MpvEventHandler) -> None:
        """Watch properties and forward every mpv event to handler.

        The handler runs on the observer thread.
        """
        if self._observing:
            return
        self._observing = True
        self._observer = threading.Thread(
            target=self._observe_loop,
            args=(list(properties), handler),
            name=f"mpv-observer-{self.label}",
            daemon=True,
        )
        # Observer output goes to the log file only
        self._observer.silent_logging = True
        self._observer.start()

    def _observe_loop(self, properties: list, handler: MpvEventHandler) -> None:
        try:
            with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
                sock.connect(self.socket_path)
                sock.settimeout(1.0)
                for observe_id, name in enumerate(properties, start=1):
                    request = {"command": ["observe_property", observe_id, name]}
                    sock.sendall((json.dumps(request) + "\n").encode("utf-8"))

                buffer = b""
                while self._observing:
                    try:
                        chunk = sock.recv(4096)
                    except socket.timeout:
                        continue
                    if not chunk:
                        break
                    buffer += chunk
                    while b"\n" in buffer:
                        line, buffer = buffer.split(b"\n", 1)
                        if not line.strip():
                            continue
                        try:
                            message = json.loads(line.decode("utf-8"))
                        except (json.JSONDecodeError, UnicodeDecodeError):
                            logger.debug(f"Skipping unreadable mpv message: {line[:100]!r}")
                            continue
                        if "event" in message:
                            handler(message)
        except OSError as e:
            if self._observing:
                logger.warning(f"mpv ({self.label}) observer stopped: {e}")
        finally:
            self._observing = False


class MpvMediaElement(MediaElement):
    """Media element backed by an mpv process.

    Position, duration and pause state are pushed by mpv and cached here.
    data: URLs are written to a temporary file before loading.
    """

    OBSERVED_PROPERTIES = ("time-pos", "duration", "pause")

    def __init__(self, process: MpvProcess):
        super().__init__()
        self.process = process
        self._time_pos = 0.0
        self._duration: Optional[float] = None
        self._paused = True
        self._temp_file: Optional[Path] = None

    def _ensure_started(self) -> None:
        if self.process.is_running():
            return
        if not self.process.start():
            raise BackendLoadError("mpv could not be started. Is it installed?")
        self.process.observe(self.OBSERVED_PROPERTIES, self._handle_event)

    def _materialize(self, source: str) -> str:
        """Return something mpv can open: data: URLs become a temp file."""
        if not source.startswith("data:"):
            return source

        try:
            mime, payload = decode_data_url(source)
        except ValueError as e:
            raise BackendLoadError(f"Unreadable local track payload: {e}") from e

        self._discard_temp_file()
        suffix = mimetypes.guess_extension(mime) or ".bin"
        with tempfile.NamedTemporaryFile(prefix="mixtape-", suffix=suffix, delete=False) as f:
            f.write(payload)
            self._temp_file = Path(f.name)
        return str(self._temp_file)

    def _discard_temp_file(self) -> None:
        if self._temp_file is not None:
            try:
                self._temp_file.unlink()
            except OSError:
                pass
            self._temp_file = None

    def set_source(self, source: str) -> None:
        self._ensure_started()
        target = self._materialize(source)
        self._time_pos = 0.0
        self._duration = None

        # Load paused; play() starts output
        self.process.set_property("pause", True)
        if not self.process.send_command("loadfile", target, "replace"):
            raise BackendLoadError(f"mpv refused to load {source[:80]}")

    def play(self) -> None:
        # mpv confirms through the observed pause property
        if self.process.is_running() and self.process.set_property("pause", False):
            self._paused = False

    def pause(self) -> None:
        if self.process.is_running() and self.process.set_property("pause", True):
            self._paused = True

    def stop(self) -> None:
        if self.process.is_running():
            self.process.send_command("stop")
        self._time_pos = 0.0
        self._duration = None
        self._paused = True

    def seek(self, seconds: float) -> None:
        if self.process.is_running():
            self.process.send_command("seek", seconds, "absolute")

    @property
    def current_time(self) -> float:
        return self._time_pos

    @property
    def duration(self) -> Optional[float]:
        return self._duration

    @property
    def paused(self) -> bool:
        return self._paused

    def close(self) -> None:
        self.process.stop()
        self._discard_temp_file()

    def _handle_event(self, message: Dict[str, Any]) -> None:
        event = message.get("event")

        if event == "property-change":
            name = message.get("name")
            data = message.get("data")
            if name == "time-pos":
                self._time_pos = data if isinstance(data, (int, float)) else 0.0
                self._notify_time_update(self._time_pos, self._duration)
            elif name == "duration":
                self._duration = data if isinstance(data, (int, float)) else None
            elif name == "pause" and isinstance(data, bool):
                self._paused = data
                if data:
                    self._notify_pause()
                else:
                    self._notify_play()

        elif event == "end-file" and message.get("reason") == "eof":
            self._paused = True
            self._notify_ended()
