"""Shared test fixtures for drawvault."""

from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import AsyncMock, MagicMock

from drawvault.config.models import StoreSettings
from drawvault.store.fs import LocalFileSystem
from drawvault.store.store import DocumentStore
from drawvault.vcs.base import VersionControlBridge
from drawvault.vcs.models import HistoryEntry, KeyPair


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: float = 0, seconds: float = 0) -> None:
        self.now += timedelta(minutes=minutes, seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sample_history():
    return [
        HistoryEntry(commit_id="b" * 40, message="Auto-commit", timestamp=1714568400, author="Ada"),
        HistoryEntry(commit_id="a" * 40, message="first sketch", timestamp=1714564800, author="Ada"),
    ]


@pytest.fixture
def mock_bridge(sample_history, clock):
    bridge = MagicMock(spec=VersionControlBridge)
    bridge.init_repository = AsyncMock(return_value="Git repository initialized successfully")
    bridge.commit = AsyncMock(return_value="c" * 40)
    # HEAD committed "just now", so the auto-commit window opens at clock start.
    bridge.latest_commit = AsyncMock(
        return_value=HistoryEntry(
            commit_id="c" * 40, message="init", timestamp=int(clock.now.timestamp()), author="Ada"
        )
    )
    bridge.list_history = AsyncMock(return_value=sample_history)
    bridge.restore = AsyncMock(return_value="Version restored successfully")
    bridge.set_identity = AsyncMock(return_value="Git identity updated")
    bridge.set_remote = AsyncMock(return_value="Git remote updated")
    bridge.test_connection = AsyncMock(return_value=True)
    bridge.generate_key_pair = AsyncMock(
        return_value=KeyPair(
            public_key="ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAI ada@example.com",
            key_path="/home/ada/.drawvault/keys/id_ed25519",
        )
    )
    bridge.push = AsyncMock(return_value="Changes pushed successfully")
    return bridge


@pytest.fixture
def root(tmp_path):
    return tmp_path / "drawings"


@pytest.fixture
def local_fs(tmp_path):
    """A LocalFileSystem over a populated directory."""
    base = tmp_path / "tree"
    (base / "archive" / "2023").mkdir(parents=True)
    (base / "notes").mkdir()
    (base / "notes" / "idea.drawing").write_text("[]")
    (base / "archive" / "2023" / "old.drawing").write_text("[]")
    (base / "todo.drawing").write_text("[]")
    (base / ".git").mkdir()
    (base / ".git" / "HEAD").write_text("ref: refs/heads/master\n")
    (base / ".drawvault.json").write_text("{}")
    (base / "notes" / ".scratch").write_text("hidden")
    return LocalFileSystem(base)


@pytest.fixture
async def store(root, mock_bridge, clock):
    s = DocumentStore(root, mock_bridge, clock=clock)
    await s.initialize()
    return s


@pytest.fixture
def sample_settings():
    return StoreSettings()
