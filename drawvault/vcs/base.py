"""Abstract version-control interface for drawvault."""

from abc import ABC, abstractmethod

from drawvault.vcs.models import HistoryEntry, KeyPair

ALL_PATHS = "*"


class VersionControlBridge(ABC):
    """Abstract base class for version-control backends.

    Paths are relative to the managed root, which is also the repository
    root. Every method raises VersionControlError on failure.
    """

    @abstractmethod
    async def init_repository(self) -> str:
        """Initialize the repository. Calling it on an existing repository is not an error."""
        ...

    @abstractmethod
    async def commit(self, path: str, message: str) -> str:
        """Record a commit and return its id.

        Args:
            path: A single root-relative path, or ``ALL_PATHS`` to stage the
                whole working tree (additions, changes and removals).
            message: Commit message.
        """
        ...

    @abstractmethod
    async def list_history(self, path: str) -> list[HistoryEntry]:
        """List commits that touched ``path``, newest first."""
        ...

    @abstractmethod
    async def latest_commit(self) -> HistoryEntry | None:
        """The commit HEAD points at, or None when nothing has been committed."""
        ...

    @abstractmethod
    async def restore(self, path: str, commit_id: str) -> str:
        """Write the content ``path`` had at ``commit_id`` back to the working tree."""
        ...

    @abstractmethod
    async def set_identity(self, username: str, email: str) -> str:
        ...

    @abstractmethod
    async def set_remote(self, url: str) -> str:
        ...

    @abstractmethod
    async def test_connection(self, url: str, username: str, email: str) -> bool:
        """Check that ``url`` is reachable as a git remote."""
        ...

    @abstractmethod
    async def generate_key_pair(self, email: str) -> KeyPair:
        ...

    @abstractmethod
    async def push(self) -> str:
        """Push the current branch to the configured remote."""
        ...
