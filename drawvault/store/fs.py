"""Filesystem primitives consumed by the store."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from drawvault.errors import FilesystemError
from drawvault.paths import split

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListingEntry:
    """One child of a listed directory."""

    name: str
    is_dir: bool


@runtime_checkable
class FileSystem(Protocol):
    """Root-relative file operations. ``None`` or ``""`` addresses the root."""

    def list_dir(self, path: str | None) -> list[ListingEntry]: ...

    def read_text(self, path: str) -> str: ...

    def write_text(self, path: str, content: str) -> None: ...

    def make_dir(self, path: str, parents: bool = True) -> None: ...

    def rename(self, src: str, dst: str) -> None: ...

    def remove(self, path: str, recursive: bool = False) -> None: ...

    def exists(self, path: str) -> bool: ...


class LocalFileSystem:
    """FileSystem over a real directory.

    Paths are resolved under ``root`` segment by segment, so ``..`` can never
    escape it. OSError is re-raised as FilesystemError.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def resolve(self, path: str | None) -> Path:
        segments = split(path)
        if any(s in (".", "..") for s in segments):
            raise FilesystemError("resolve", path or "", ValueError("path escapes the managed root"))
        return self.root.joinpath(*segments)

    def list_dir(self, path: str | None) -> list[ListingEntry]:
        target = self.resolve(path)
        try:
            children = list(target.iterdir())
        except OSError as e:
            raise FilesystemError("list", path or "", e) from e
        # Symlinked directories are listed as plain entries so walks cannot loop.
        return [
            ListingEntry(name=child.name, is_dir=child.is_dir() and not child.is_symlink())
            for child in children
        ]

    def read_text(self, path: str) -> str:
        try:
            return self.resolve(path).read_text(encoding="utf-8")
        except OSError as e:
            raise FilesystemError("read", path, e) from e

    def write_text(self, path: str, content: str) -> None:
        dest = self.resolve(path)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_text(content, encoding="utf-8")
        except OSError as e:
            raise FilesystemError("write", path, e) from e
        logger.debug("wrote %s (%d bytes)", path, len(content))

    def make_dir(self, path: str, parents: bool = True) -> None:
        try:
            self.resolve(path).mkdir(parents=parents, exist_ok=True)
        except OSError as e:
            raise FilesystemError("mkdir", path, e) from e

    def rename(self, src: str, dst: str) -> None:
        source = self.resolve(src)
        target = self.resolve(dst)
        try:
            # os.rename silently replaces files on POSIX; only a case-only
            # rename of the same file may see the target already present.
            if target.exists() and not source.samefile(target):
                raise FileExistsError(f"{dst} already exists")
            target.parent.mkdir(parents=True, exist_ok=True)
            source.rename(target)
        except OSError as e:
            raise FilesystemError("rename", src, e) from e
        logger.debug("renamed %s -> %s", src, dst)

    def remove(self, path: str, recursive: bool = False) -> None:
        target = self.resolve(path)
        try:
            if target.is_dir() and not target.is_symlink():
                if recursive:
                    shutil.rmtree(target)
                else:
                    target.rmdir()
            else:
                target.unlink()
        except OSError as e:
            raise FilesystemError("remove", path, e) from e
        logger.debug("removed %s", path)

    def exists(self, path: str) -> bool:
        return self.resolve(path).exists()
