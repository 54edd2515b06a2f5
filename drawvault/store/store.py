"""DocumentStore: the single coordination point for tree, disk and git."""

from __future__ import annotations

import asyncio
import functools
import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from drawvault.config.models import AutoCommitConfig, GitConfig, StoreSettings, Theme
from drawvault.config.settings import SETTINGS_FILE_NAME, SettingsStore
from drawvault.errors import (
    CollisionError,
    FilesystemError,
    InvalidMoveError,
    NotFoundError,
    StoreError,
    VersionControlError,
)
from drawvault.paths import ensure_extension, is_within, join, split, to_path, validate_name
from drawvault.store.fs import FileSystem, LocalFileSystem
from drawvault.store.models import DocumentEntry, Payload
from drawvault.store.scheduler import AutoCommitScheduler, Clock
from drawvault.store.tree import TreeModel, walk_entries
from drawvault.vcs.base import ALL_PATHS, VersionControlBridge
from drawvault.vcs.models import HistoryEntry, KeyPair

logger = logging.getLogger(__name__)

SWITCH_COMMIT_MESSAGE = "updated before switching"


def _serialized(operation: str):
    """Run the wrapped coroutine under the store lock; log and re-raise StoreError."""

    def decorator(fn):
        @functools.wraps(fn)
        async def wrapper(self: DocumentStore, *args, **kwargs):
            async with self._lock:
                try:
                    return await fn(self, *args, **kwargs)
                except StoreError as e:
                    logger.warning("%s failed: %s", operation, e)
                    raise

        return wrapper

    return decorator


def _encode_payload(payload: Payload) -> str:
    return json.dumps(payload)


def _decode_payload(text: str) -> Payload:
    if not text.strip():
        return []
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError("document is not a JSON array of elements")
    return data


class DocumentStore:
    """Owns the tree model for one managed root and sequences every change.

    Mutating operations are serialized by an asyncio.Lock and either complete
    or leave the model as it was. Bridge calls run off the event loop, so the
    read-only accessors (``entries``, ``current_entry``, ``current_payload``,
    ``pending_changes``, ``settings``) keep answering from memory while a
    commit or restore is in flight.
    """

    def __init__(
        self,
        root: Path,
        bridge: VersionControlBridge,
        fs: FileSystem | None = None,
        settings_store: SettingsStore | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.root = Path(root).expanduser()
        self.bridge = bridge
        self.fs = fs or LocalFileSystem(self.root)
        self.settings_store = settings_store or SettingsStore(self.root)
        self.settings = StoreSettings()
        self.tree = TreeModel()
        self.scheduler = AutoCommitScheduler(self.settings.auto_commit_config, clock)
        self.ready = False
        self._lock = asyncio.Lock()

    # -- read-only state ------------------------------------------------------

    @property
    def entries(self) -> list[DocumentEntry]:
        return self.tree.ordered()

    @property
    def current_entry(self) -> DocumentEntry | None:
        return self.tree.current_entry

    @property
    def current_payload(self) -> Payload:
        return self.tree.current_payload

    @property
    def pending_changes(self) -> bool:
        return self.scheduler.pending_changes

    # -- lifecycle --------------------------------------------------------------

    async def initialize(self) -> None:
        """Prepare root, repository and settings, then load the tree.

        Every step logs its own failure and the next one still runs; the
        store is marked ready regardless so local editing stays possible.
        """
        async with self._lock:
            try:
                self.fs.make_dir("")
            except StoreError as e:
                logger.error("could not create managed root %s: %s", self.root, e)

            try:
                logger.info(await self.bridge.init_repository())
            except VersionControlError as e:
                logger.error("repository init failed: %s", e)

            try:
                self.settings = self.settings_store.load()
            except (ValueError, OSError) as e:
                logger.error("failed to load settings, using defaults: %s", e)
                self.settings = StoreSettings()
            self.scheduler.policy = self.settings.auto_commit_config

            # The window runs from the last commit on disk, not from process start.
            try:
                head = await self.bridge.latest_commit()
            except VersionControlError as e:
                logger.warning("last commit unknown, auto-commit window starts now: %s", e)
            else:
                self.scheduler.resume(
                    datetime.fromtimestamp(head.timestamp, tz=timezone.utc) if head else None
                )

            git = self.settings.git_config
            if git.username and git.email:
                try:
                    await self.bridge.set_identity(git.username, git.email)
                except VersionControlError as e:
                    logger.warning("could not apply git identity: %s", e)

            self.ready = True

            try:
                self._reload()
            except StoreError as e:
                logger.error("failed to load tree: %s", e)

    @_serialized("reload")
    async def reload_tree(self) -> list[DocumentEntry]:
        self._reload()
        return self.entries

    def _reload(self) -> None:
        self.tree.replace_all(walk_entries(self.fs))
        logger.debug("tree loaded: %d entries", len(self.tree))

    # -- create -----------------------------------------------------------------

    @_serialized("create document")
    async def create_document(self, name: str, parent_path: str | None = None) -> DocumentEntry:
        """Create an empty drawing and make it the open document. Does not commit."""
        parent_path = to_path(split(parent_path))
        file_name = ensure_extension(validate_name(name))
        self.tree.require_folder(parent_path)
        if self.tree.name_taken(file_name, parent_path):
            raise CollisionError(file_name, parent_path)

        entry = DocumentEntry.under(parent_path, file_name)
        await self._commit_before_switch()
        self.fs.write_text(entry.path, _encode_payload([]))
        self.tree.add(entry)
        self.tree.current_entry = entry
        self.tree.current_payload = []
        self.scheduler.discard()
        logger.info("created document %s", entry.path)
        return entry

    @_serialized("create folder")
    async def create_folder(self, name: str, parent_path: str | None = None) -> DocumentEntry:
        parent_path = to_path(split(parent_path))
        folder_name = validate_name(name)
        self.tree.require_folder(parent_path)
        if self.tree.name_taken(folder_name, parent_path, folders_only=True):
            raise CollisionError(folder_name, parent_path)

        entry = DocumentEntry.under(parent_path, folder_name, is_folder=True)
        self.fs.make_dir(entry.path, parents=True)
        self.tree.add(entry)
        # Downstream state depends on a fresh walk after folder creation.
        self._reload()
        logger.info("created folder %s", entry.path)
        return self.tree.get(entry.path) or entry

    # -- open / edit ------------------------------------------------------------

    @_serialized("open document")
    async def open_document(self, entry: DocumentEntry) -> Payload:
        target = self.tree.require(entry)
        if target.is_folder:
            raise NotFoundError(target.path, "is a folder, not a document")
        payload = self._read_payload(target.path)
        await self._commit_before_switch()
        self.tree.current_entry = target
        self.tree.current_payload = payload
        self.scheduler.discard()
        logger.debug("opened %s (%d elements)", target.path, len(payload))
        return payload

    @_serialized("write")
    async def write_payload(self, payload: Payload) -> str | None:
        """Save the open document; returns the commit id when an auto-commit ran."""
        current = self.tree.current_entry
        if current is None:
            raise NotFoundError(None, "no document is open")
        self.fs.write_text(current.path, _encode_payload(payload))
        self.tree.current_payload = list(payload)
        self.scheduler.mark_dirty()
        if self.scheduler.is_due():
            return await self._commit(current.path, self.settings.auto_commit_config.message)
        return None

    async def _commit_before_switch(self) -> None:
        current = self.tree.current_entry
        if current is None or not self.scheduler.pending_changes:
            return
        if self.scheduler.is_due():
            await self._commit(current.path, SWITCH_COMMIT_MESSAGE)

    # -- structure ----------------------------------------------------------------

    @_serialized("rename")
    async def rename_entry(self, entry: DocumentEntry, new_name: str) -> DocumentEntry:
        """Rename in place; a folder's descendants are prefix-rewritten.

        The open document keeps its loaded payload and only its path changes.
        """
        source = self.tree.require(entry)
        name = validate_name(new_name)
        if not source.is_folder:
            name = ensure_extension(name)
        if name == source.name:
            return source
        if self.tree.name_taken(name, source.parent_path, exclude=source.path):
            raise CollisionError(name, source.parent_path)

        self.fs.rename(source.path, join(source.parent_path, name))
        renamed = self.tree.relocate(source.path, source.parent_path, name)[source.path]
        logger.info("renamed %s -> %s", source.path, renamed.path)
        await self._commit(ALL_PATHS, f"Renamed {source.name} to {name}")
        return renamed

    @_serialized("move")
    async def move_entry(self, entry: DocumentEntry, target_folder: str | None) -> DocumentEntry:
        """Move ``entry`` into ``target_folder`` (``None`` for the root).

        Validation happens before any I/O; the model is only rewritten after
        the physical move succeeded.
        """
        source = self.tree.require(entry)
        target = to_path(split(target_folder))
        if source.is_folder and target is not None and is_within(target, source.path):
            raise InvalidMoveError(source.path, target)
        self.tree.require_folder(target)
        if split(source.parent_path) == split(target):
            return source
        if self.tree.name_taken(source.name, target):
            raise CollisionError(source.name, target)

        self.fs.rename(source.path, join(target, source.name))
        moved = self.tree.relocate(source.path, target, source.name)[source.path]
        logger.info("moved %s -> %s", source.path, moved.path)
        await self._commit(ALL_PATHS, f"Moved {source.name} to {target or 'root'}")
        return moved

    @_serialized("delete")
    async def delete_entry(self, entry: DocumentEntry) -> list[DocumentEntry]:
        """Remove an entry (and a folder's whole subtree) from disk and model.

        When the open document is among the removed entries, the first
        remaining document is opened instead, or nothing when none is left.
        """
        target = self.tree.require(entry)
        self.fs.remove(target.path, recursive=target.is_folder)
        removed = self.tree.remove_subtree(target.path)

        current = self.tree.current_entry
        if current is not None and any(e.path == current.path for e in removed):
            self.scheduler.discard()
            self.tree.current_entry = None
            self.tree.current_payload = []
            replacement = self.tree.first_document()
            if replacement is not None:
                try:
                    self.tree.current_payload = self._read_payload(replacement.path)
                    self.tree.current_entry = replacement
                except StoreError as e:
                    logger.warning("could not open %s after delete: %s", replacement.path, e)

        logger.info("deleted %s (%d entries)", target.path, len(removed))
        await self._commit(ALL_PATHS, f"Deleted {target.name}")
        return removed

    # -- history ----------------------------------------------------------------

    @_serialized("restore")
    async def restore_version(self, commit_id: str) -> Payload:
        """Restore the open document to ``commit_id`` and re-read it from disk."""
        current = self.tree.current_entry
        if current is None:
            raise NotFoundError(None, "no document is open")
        await self.bridge.restore(current.path, commit_id)
        payload = self._read_payload(current.path)
        self.tree.current_payload = payload
        self.scheduler.mark_dirty()
        logger.info("restored %s to %s", current.path, commit_id)
        return payload

    @_serialized("commit")
    async def commit_changes(self, message: str) -> str:
        """Manual commit of the open document, or of everything when none is open."""
        if not message.strip():
            raise ValueError("Commit message cannot be empty")
        current = self.tree.current_entry
        return await self._commit(current.path if current else ALL_PATHS, message.strip())

    async def list_history(self, entry: DocumentEntry | None = None) -> list[HistoryEntry]:
        """Commits touching ``entry`` (default: the open document), newest first.

        History is advisory: bridge failures are logged and yield [].
        """
        target = entry or self.tree.current_entry
        if target is None:
            return []
        try:
            return await self.bridge.list_history(target.path)
        except VersionControlError as e:
            logger.warning("history for %s unavailable: %s", target.path, e)
            return []

    async def _commit(self, path: str, message: str) -> str:
        self.scheduler.begin_commit()
        try:
            commit_id = await self.bridge.commit(path, message)
        except VersionControlError:
            self.scheduler.finish_commit(success=False)
            raise
        self.scheduler.finish_commit()
        return commit_id

    # -- settings ---------------------------------------------------------------

    @_serialized("update git config")
    async def update_git_config(self, git_config: GitConfig) -> StoreSettings:
        if git_config.username and git_config.email:
            await self.bridge.set_identity(git_config.username, git_config.email)
        if git_config.remote_url:
            await self.bridge.set_remote(git_config.remote_url)
        return self._save_settings(git_config=git_config)

    @_serialized("update auto-commit config")
    async def update_auto_commit_config(self, config: AutoCommitConfig) -> StoreSettings:
        settings = self._save_settings(auto_commit_config=config)
        self.scheduler.update_policy(settings.auto_commit_config)
        return settings

    @_serialized("set theme")
    async def set_theme(self, theme: Theme) -> StoreSettings:
        return self._save_settings(theme=theme)

    @_serialized("toggle theme")
    async def toggle_theme(self) -> Theme:
        theme = "dark" if self.settings.theme == "light" else "light"
        return self._save_settings(theme=theme).theme

    def _save_settings(self, **changes) -> StoreSettings:
        settings = StoreSettings.model_validate({**dict(self.settings), **changes})
        try:
            self.settings_store.save(settings)
        except OSError as e:
            raise FilesystemError("write", SETTINGS_FILE_NAME, e) from e
        self.settings = settings
        return settings

    # -- remote -----------------------------------------------------------------

    async def test_connection(self, git_config: GitConfig | None = None) -> bool:
        cfg = git_config or self.settings.git_config
        return await self.bridge.test_connection(cfg.remote_url, cfg.username, cfg.email)

    @_serialized("generate key pair")
    async def generate_key_pair(self, email: str | None = None) -> KeyPair:
        """Generate an SSH key pair and remember its path in the git settings."""
        email = email or self.settings.git_config.email
        if not email:
            raise ValueError("An email address is required to label the key")
        key = await self.bridge.generate_key_pair(email)
        git = self.settings.git_config.model_copy(update={"ssh_key_path": key.key_path})
        self._save_settings(git_config=git)
        return key

    @_serialized("push")
    async def push(self) -> str:
        return await self.bridge.push()

    # -- helpers ----------------------------------------------------------------

    def _read_payload(self, path: str) -> Payload:
        text = self.fs.read_text(path)
        try:
            return _decode_payload(text)
        except ValueError as e:
            raise FilesystemError("decode", path, e) from e
