"""Local git backend built on dulwich."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from dulwich import porcelain
from dulwich.object_store import tree_lookup_path
from dulwich.repo import Repo

from drawvault.config.models import VCSConfig
from drawvault.errors import VersionControlError
from drawvault.paths import is_hidden
from drawvault.vcs.base import ALL_PATHS, VersionControlBridge
from drawvault.vcs.keys import generate_ed25519_key_pair
from drawvault.vcs.models import HistoryEntry, KeyPair

logger = logging.getLogger(__name__)

T = TypeVar("T")

_REMOTE = b"origin"


class GitBridge(VersionControlBridge):
    """Git implementation of VersionControlBridge using dulwich.

    dulwich is synchronous, so every call runs in a worker thread via
    asyncio.to_thread() and the event loop stays free for read-only queries.
    Hidden files (leading ".") are never staged by a whole-tree commit.
    """

    def __init__(self, repo_path: Path, config: VCSConfig | None = None) -> None:
        self.repo_path = Path(repo_path).expanduser().resolve()
        self.config = config or VCSConfig()

    async def _run(self, operation: str, fn: Callable[[], T]) -> T:
        try:
            return await asyncio.to_thread(fn)
        except VersionControlError:
            raise
        except Exception as e:
            raise VersionControlError(operation, e) from e

    def _open(self) -> Repo:
        return Repo(str(self.repo_path))

    # -- repository ---------------------------------------------------------

    async def init_repository(self) -> str:
        def _sync() -> str:
            if not self.repo_path.is_dir():
                raise VersionControlError("init", f"directory {self.repo_path} does not exist")
            if (self.repo_path / ".git").exists():
                return "Git repository already initialized"
            porcelain.init(str(self.repo_path)).close()
            logger.info("initialized git repository at %s", self.repo_path)
            return "Git repository initialized successfully"

        return await self._run("init", _sync)

    async def commit(self, path: str, message: str) -> str:
        def _sync() -> str:
            with self._open() as repo:
                if path == ALL_PATHS:
                    self._stage_all(repo)
                else:
                    self._stage_path(repo, path)
                author = self._signature(repo)
                sha = porcelain.commit(repo, message=message, author=author, committer=author)
            commit_id = sha.decode("ascii")
            logger.info("committed %s (%s): %s", path, commit_id[:8], message)
            return commit_id

        return await self._run("commit", _sync)

    async def list_history(self, path: str) -> list[HistoryEntry]:
        def _sync() -> list[HistoryEntry]:
            with self._open() as repo:
                try:
                    head = repo.head()
                except KeyError:
                    return []
                walker = repo.get_walker(include=[head], paths=[path.encode("utf-8")])
                return [_history_entry(entry.commit) for entry in walker]

        return await self._run("log", _sync)

    async def latest_commit(self) -> HistoryEntry | None:
        def _sync() -> HistoryEntry | None:
            with self._open() as repo:
                try:
                    head = repo.head()
                except KeyError:
                    return None
                return _history_entry(repo[head])

        return await self._run("log", _sync)

    async def restore(self, path: str, commit_id: str) -> str:
        def _sync() -> str:
            with self._open() as repo:
                try:
                    commit = repo[commit_id.encode("ascii")]
                except KeyError:
                    raise VersionControlError("restore", f"unknown commit {commit_id}")
                try:
                    _mode, sha = tree_lookup_path(repo.__getitem__, commit.tree, path.encode("utf-8"))
                except KeyError:
                    raise VersionControlError("restore", f"{path} not found in commit {commit_id}")
                content = repo[sha].data
            target = self.repo_path / path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
            logger.info("restored %s to %s", path, commit_id[:8])
            return "Version restored successfully"

        return await self._run("restore", _sync)

    # -- identity & remote --------------------------------------------------

    async def set_identity(self, username: str, email: str) -> str:
        def _sync() -> str:
            with self._open() as repo:
                config = repo.get_config()
                config.set((b"user",), b"name", username.encode("utf-8"))
                config.set((b"user",), b"email", email.encode("utf-8"))
                config.write_to_path()
            return "Git identity updated"

        return await self._run("config", _sync)

    async def set_remote(self, url: str) -> str:
        def _sync() -> str:
            with self._open() as repo:
                config = repo.get_config()
                section = (b"remote", _REMOTE)
                config.set(section, b"url", url.encode("utf-8"))
                config.set(section, b"fetch", b"+refs/heads/*:refs/remotes/origin/*")
                config.write_to_path()
            return "Git remote updated"

        return await self._run("remote", _sync)

    async def test_connection(self, url: str, username: str, email: str) -> bool:
        def _sync() -> bool:
            if not url:
                raise VersionControlError("ls-remote", "remote URL is empty")
            porcelain.ls_remote(url)
            logger.info("remote %s reachable (as %s <%s>)", url, username, email)
            return True

        return await self._run("ls-remote", _sync)

    async def generate_key_pair(self, email: str) -> KeyPair:
        key_dir = Path(self.config.key_dir)
        return await self._run("keygen", lambda: generate_ed25519_key_pair(key_dir, email))

    async def push(self) -> str:
        def _sync() -> str:
            with self._open() as repo:
                try:
                    repo.get_config().get((b"remote", _REMOTE), b"url")
                except KeyError:
                    raise VersionControlError("push", "no remote configured")
                porcelain.push(repo, _REMOTE.decode("ascii"))
            return "Changes pushed successfully"

        return await self._run("push", _sync)

    # -- helpers ------------------------------------------------------------

    def _signature(self, repo: Repo) -> str:
        """Return "Name <email>" from repo config, falling back to VCSConfig."""
        config = repo.get_config_stack()
        try:
            name = config.get((b"user",), b"name").decode("utf-8")
        except KeyError:
            name = self.config.author_name
        try:
            email = config.get((b"user",), b"email").decode("utf-8")
        except KeyError:
            email = self.config.author_email
        return f"{name or self.config.author_name} <{email or self.config.author_email}>"

    def _working_files(self) -> set[str]:
        """Root-relative posix paths of every non-hidden file in the work tree."""
        found: set[str] = set()
        for dirpath, dirnames, filenames in os.walk(self.repo_path):
            dirnames[:] = [d for d in dirnames if not is_hidden(d)]
            for filename in filenames:
                if is_hidden(filename):
                    continue
                full = Path(dirpath) / filename
                found.add(full.relative_to(self.repo_path).as_posix())
        return found

    def _stage_all(self, repo: Repo) -> None:
        present = self._working_files()
        index = repo.open_index()
        tracked = {p.decode("utf-8") for p in index}
        gone = [p for p in tracked if p not in present and not _has_hidden_segment(p)]
        if gone:
            for p in gone:
                del index[p.encode("utf-8")]
            index.write()
        if present:
            porcelain.add(repo, paths=[str(self.repo_path / p) for p in sorted(present)])

    def _stage_path(self, repo: Repo, path: str) -> None:
        full = self.repo_path / path
        if full.is_dir():
            prefix = path.rstrip("/") + "/"
            present = [p for p in self._working_files() if p.startswith(prefix)]
            if present:
                porcelain.add(repo, paths=[str(self.repo_path / p) for p in present])
            return
        if full.exists():
            porcelain.add(repo, paths=[str(full)])
            return
        index = repo.open_index()
        key = path.encode("utf-8")
        if key in index:
            del index[key]
            index.write()


def _has_hidden_segment(path: str) -> bool:
    return any(is_hidden(part) for part in path.split("/"))


def _history_entry(commit) -> HistoryEntry:
    author = commit.author.decode("utf-8", "replace")
    name = author.split(" <", 1)[0] or "Unknown"
    return HistoryEntry(
        commit_id=commit.id.decode("ascii"),
        message=commit.message.decode("utf-8", "replace").strip(),
        timestamp=commit.commit_time,
        author=name,
    )
