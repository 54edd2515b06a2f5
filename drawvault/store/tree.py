"""In-memory tree of documents and folders under the managed root."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Iterator

from drawvault.errors import CollisionError, NotFoundError
from drawvault.paths import ROOT, Segments, is_hidden, join, parent_of, rebase, split
from drawvault.store.fs import FileSystem
from drawvault.store.models import DocumentEntry, Payload

logger = logging.getLogger(__name__)


class TreeModel:
    """Entries keyed by segment tuple, with a parent -> children index.

    Subtree queries walk the children index instead of scanning every entry.
    The model also carries the open document and its payload.
    """

    def __init__(self, entries: Iterable[DocumentEntry] = ()) -> None:
        self._entries: dict[Segments, DocumentEntry] = {}
        self._children: dict[Segments, set[Segments]] = defaultdict(set)
        self.current_entry: DocumentEntry | None = None
        self.current_payload: Payload = []
        for entry in entries:
            self.add(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[DocumentEntry]:
        return iter(list(self._entries.values()))

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and split(path) in self._entries

    # -- lookups --------------------------------------------------------------

    def get(self, path: str | None) -> DocumentEntry | None:
        return self._entries.get(split(path))

    def require(self, entry: DocumentEntry) -> DocumentEntry:
        """Return the live entry at ``entry.path``; NotFoundError if it is stale."""
        live = self.get(entry.path)
        if live is None or live.is_folder != entry.is_folder:
            raise NotFoundError(entry.path, "entry is no longer in the tree")
        return live

    def require_folder(self, path: str | None) -> None:
        """Raise NotFoundError unless ``path`` is the root or an existing folder."""
        if path is None:
            return
        live = self.get(path)
        if live is None or not live.is_folder:
            raise NotFoundError(path, "folder does not exist")

    def children_of(self, parent_path: str | None) -> list[DocumentEntry]:
        keys = self._children.get(split(parent_path), ())
        return sorted((self._entries[k] for k in keys), key=DocumentEntry.sort_key)

    def descendants_of(self, path: str) -> list[DocumentEntry]:
        """Strict descendants of ``path``, parents before children."""
        found: list[DocumentEntry] = []
        stack = [split(path)]
        while stack:
            key = stack.pop()
            for child in self._children.get(key, ()):
                found.append(self._entries[child])
                stack.append(child)
        return found

    def subtree(self, path: str) -> list[DocumentEntry]:
        """The entry at ``path`` followed by all of its descendants."""
        root = self.get(path)
        if root is None:
            return []
        return [root, *self.descendants_of(path)]

    def name_taken(
        self,
        name: str,
        parent_path: str | None,
        *,
        folders_only: bool = False,
        exclude: str | None = None,
    ) -> bool:
        """Case-insensitive existence check within one parent scope."""
        wanted = name.lower()
        for child in self.children_of(parent_path):
            if exclude is not None and child.path == exclude:
                continue
            if folders_only and not child.is_folder:
                continue
            if child.name.lower() == wanted:
                return True
        return False

    def ordered(self) -> list[DocumentEntry]:
        """Every entry in render order: depth-first, folders before documents."""
        out: list[DocumentEntry] = []

        def _visit(parent: str | None) -> None:
            for child in self.children_of(parent):
                out.append(child)
                if child.is_folder:
                    _visit(child.path)

        _visit(None)
        return out

    def first_document(self) -> DocumentEntry | None:
        for entry in self.ordered():
            if not entry.is_folder:
                return entry
        return None

    # -- mutation ---------------------------------------------------------------

    def add(self, entry: DocumentEntry) -> DocumentEntry:
        key = split(entry.path)
        if key in self._entries:
            raise CollisionError(entry.name, entry.parent_path)
        parent = key[:-1]
        if parent != ROOT:
            parent_entry = self._entries.get(parent)
            if parent_entry is None or not parent_entry.is_folder:
                raise NotFoundError(entry.parent_path, "parent folder is not in the tree")
        self._entries[key] = entry
        self._children[parent].add(key)
        return entry

    def remove_subtree(self, path: str) -> list[DocumentEntry]:
        """Drop ``path`` and its descendants; returns the removed entries."""
        removed = self.subtree(path)
        for entry in reversed(removed):
            key = entry.segments
            del self._entries[key]
            self._children.pop(key, None)
            self._children[key[:-1]].discard(key)
        return removed

    def relocate(
        self, path: str, new_parent: str | None, new_name: str
    ) -> dict[str, DocumentEntry]:
        """Move the subtree at ``path`` to ``new_parent/new_name``.

        The top entry takes ``new_parent`` directly; descendants have their
        ``path`` and ``parent_path`` prefix-rewritten. Returns a mapping of old
        path -> new entry for every relocated entry.
        """
        source = self.get(path)
        if source is None:
            raise NotFoundError(path)
        new_top = join(new_parent, new_name)

        moved = self.subtree(path)
        self.remove_subtree(path)

        mapping: dict[str, DocumentEntry] = {}
        for entry in moved:
            if entry.path == source.path:
                updated = DocumentEntry.under(new_parent, new_name, entry.is_folder)
            else:
                new_path = rebase(entry.path, source.path, new_top)
                updated = DocumentEntry(
                    name=entry.name,
                    path=new_path,
                    is_folder=entry.is_folder,
                    parent_path=parent_of(new_path),
                )
            self.add(updated)
            mapping[entry.path] = updated

        if self.current_entry is not None and self.current_entry.path in mapping:
            self.current_entry = mapping[self.current_entry.path]
        return mapping

    def replace_all(self, entries: Iterable[DocumentEntry]) -> None:
        """Swap the entry set; the open document is kept only if still present."""
        fresh = TreeModel(entries)
        self._entries = fresh._entries
        self._children = fresh._children
        if self.current_entry is not None:
            live = self.get(self.current_entry.path)
            if live is None or live.is_folder:
                self.current_entry = None
                self.current_payload = []


def walk_entries(fs: FileSystem) -> list[DocumentEntry]:
    """Depth-first walk of the managed root, skipping hidden names at every depth."""
    entries: list[DocumentEntry] = []

    def _walk(parent: str | None) -> None:
        for child in fs.list_dir(parent):
            if is_hidden(child.name):
                continue
            entry = DocumentEntry.under(parent, child.name, child.is_dir)
            entries.append(entry)
            if child.is_dir:
                _walk(entry.path)

    _walk(None)
    logger.debug("walked %d entries", len(entries))
    return entries
