"""Pydantic models for tree entries."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from drawvault.paths import Segments, join, split

# The open document's element records; opaque to the store.
Payload = list[dict[str, Any]]


class DocumentEntry(BaseModel):
    """A document or folder under the managed root."""

    model_config = ConfigDict(frozen=True)

    name: str
    path: str = Field(description="Root-relative, slash-separated (e.g. archive/notes/x.drawing)")
    is_folder: bool = False
    parent_path: str | None = Field(default=None, description="None for entries directly under the root")

    @model_validator(mode="after")
    def _path_matches_parent(self) -> DocumentEntry:
        if self.path != join(self.parent_path, self.name):
            raise ValueError(
                f"path {self.path!r} does not match parent {self.parent_path!r} + name {self.name!r}"
            )
        return self

    @classmethod
    def under(cls, parent_path: str | None, name: str, is_folder: bool = False) -> DocumentEntry:
        return cls(name=name, path=join(parent_path, name), is_folder=is_folder, parent_path=parent_path)

    @property
    def segments(self) -> Segments:
        return split(self.path)

    def sort_key(self) -> tuple[int, str, str]:
        """Folders first, then case-insensitive name."""
        return (0 if self.is_folder else 1, self.name.lower(), self.name)
