"""Exception taxonomy for the document store."""

from __future__ import annotations


class StoreError(Exception):
    """Base class for every error raised by the document store."""


class CollisionError(StoreError):
    """A name is already taken in the target scope."""

    def __init__(self, name: str, scope: str | None = None) -> None:
        self.name = name
        self.scope = scope
        where = f"'{scope}'" if scope else "root"
        super().__init__(f"An entry named '{name}' already exists in {where}")


class InvalidMoveError(StoreError):
    """A folder was asked to move into itself or one of its descendants."""

    def __init__(self, source: str, target: str | None) -> None:
        self.source = source
        self.target = target
        super().__init__(f"Cannot move '{source}' into '{target}'")


class NotFoundError(StoreError):
    """The referenced entry is no longer part of the tree."""

    def __init__(self, path: str | None, detail: str = "not found") -> None:
        self.path = path
        super().__init__(f"'{path}': {detail}" if path else detail)


class InvalidNameError(StoreError, ValueError):
    """A user-supplied entry name cannot be used on disk."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        super().__init__(f"Invalid name '{name}': {reason}")


class FilesystemError(StoreError):
    """Wraps an OSError raised while touching the managed directory."""

    def __init__(self, operation: str, path: str, cause: Exception) -> None:
        self.operation = operation
        self.path = path
        super().__init__(f"{operation} '{path}' failed: {cause}")
        self.__cause__ = cause


class VersionControlError(StoreError):
    """Wraps a failure reported by the version-control bridge."""

    def __init__(self, operation: str, cause: Exception | str) -> None:
        self.operation = operation
        super().__init__(f"git {operation} failed: {cause}")
        if isinstance(cause, Exception):
            self.__cause__ = cause
