"""drawvault - drawings in a folder tree, versioned with git."""

from drawvault.config import DrawVaultConfig, StoreSettings, load_config
from drawvault.errors import (
    CollisionError,
    FilesystemError,
    InvalidMoveError,
    InvalidNameError,
    NotFoundError,
    StoreError,
    VersionControlError,
)
from drawvault.store import DocumentEntry, DocumentStore
from drawvault.vcs import GitBridge, VersionControlBridge, create_bridge

__version__ = "0.1.0"

__all__ = [
    "CollisionError",
    "DocumentEntry",
    "DocumentStore",
    "DrawVaultConfig",
    "FilesystemError",
    "GitBridge",
    "InvalidMoveError",
    "InvalidNameError",
    "NotFoundError",
    "StoreError",
    "StoreSettings",
    "VersionControlBridge",
    "VersionControlError",
    "create_bridge",
    "load_config",
]
