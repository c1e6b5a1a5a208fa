"""Shared fixtures for Mixtape tests."""

from typing import Any, Dict, List, Optional

import pytest


class MemoryStorage:
    """In-memory stand-in for SqliteStorage."""

    def __init__(self, items: Optional[Dict[str, str]] = None):
        self.items: Dict[str, str] = dict(items or {})
        self.writes: List[str] = []

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value
        self.writes.append(key)


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def local_record() -> Dict[str, Any]:
    return {
        "id": "local-1",
        "type": "direct_local",
        "name": "Morning Song",
        "dataPayload": "data:audio/mpeg;base64,SUQzAwAAAAAA",
    }


@pytest.fixture
def remote_record() -> Dict[str, Any]:
    return {
        "id": "remote-1",
        "type": "direct_remote",
        "name": "Live Set",
        "remoteUrl": "https://jukehost.co.uk/api/audio/live-set.mp3",
        "sourceTag": "jukehost",
    }


@pytest.fixture
def video_record() -> Dict[str, Any]:
    return {
        "id": "video-1",
        "type": "embedded_video",
        "name": "Never Gonna Give You Up",
        "externalId": "dQw4w9WgXcQ",
        "originalUrl": "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
    }
