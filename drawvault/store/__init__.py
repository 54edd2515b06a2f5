"""Versioned hierarchical document store."""

from drawvault.store.fs import FileSystem, ListingEntry, LocalFileSystem
from drawvault.store.models import DocumentEntry, Payload
from drawvault.store.scheduler import AutoCommitScheduler, CommitState
from drawvault.store.store import DocumentStore
from drawvault.store.tree import TreeModel, walk_entries

__all__ = [
    "AutoCommitScheduler",
    "CommitState",
    "DocumentEntry",
    "DocumentStore",
    "FileSystem",
    "ListingEntry",
    "LocalFileSystem",
    "Payload",
    "TreeModel",
    "walk_entries",
]
