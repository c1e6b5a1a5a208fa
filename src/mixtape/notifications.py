"""Desktop notification helpers for Mixtape."""

import shutil
import subprocess
from typing import Callable, Literal

from mixtape.core.config import NotificationsConfig
from mixtape.core.output import log


def notify(
    title: str, message: str, urgency: Literal["low", "normal", "critical"] = "normal"
) -> None:
    """
    Show a desktop notification using notify-send.

    Args:
        title: Notification title
        message: Notification message body
        urgency: Urgency level ('low', 'normal', 'critical')

    Note:
        Silently skips notification if notify-send is not available.
    """
    if not shutil.which("notify-send"):
        return

    try:
        subprocess.run(
            [
                "notify-send",
                "--urgency",
                urgency,
                "--app-name",
                "Mixtape",
                title,
                message,
            ],
            check=False,
            timeout=2.0,
            capture_output=True,
        )
    except (subprocess.TimeoutExpired, OSError):
        # Notifications are best effort
        pass


def notify_error(message: str) -> None:
    """Show an error notification with X mark."""
    notify("✗ Mixtape", message, urgency="critical")


def make_error_notifier(config: NotificationsConfig) -> Callable[[str], None]:
    """Build the failure reporter handed to the playback controller.

    Failures are always logged and printed; a desktop notification is shown
    when enabled in the configuration.
    """

    def report(message: str) -> None:
        log(f"❌ {message}", level="error")
        if config.enabled and config.show_errors:
            notify_error(message)

    return report
