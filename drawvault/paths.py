"""Root-relative path helpers.

Entry paths are slash-separated strings relative to the managed root
(``archive/notes/x.drawing``); the root itself is ``None``. Internally paths
are compared as segment tuples so ancestor tests are structural: ``notes`` is
never treated as an ancestor of ``notes2``.
"""

from __future__ import annotations

from drawvault.errors import InvalidNameError

SEPARATOR = "/"
HIDDEN_PREFIX = "."
DOCUMENT_EXTENSION = ".drawing"

Segments = tuple[str, ...]

ROOT: Segments = ()


def split(path: str | None) -> Segments:
    """Split a root-relative path into segments. ``None`` and ``""`` are the root."""
    if not path:
        return ROOT
    return tuple(part for part in path.split(SEPARATOR) if part)


def to_path(segments: Segments) -> str | None:
    """Inverse of :func:`split`. The root maps to ``None``."""
    if not segments:
        return None
    return SEPARATOR.join(segments)


def join(parent: str | None, name: str) -> str:
    """Join a parent path (or root) with a child name."""
    return SEPARATOR.join(split(parent) + (name,))


def parent_of(path: str) -> str | None:
    return to_path(split(path)[:-1])


def is_within(path: str | None, ancestor: str | None, *, strict: bool = False) -> bool:
    """True when ``path`` equals ``ancestor`` or lies below it.

    With ``strict=True`` the path itself does not count.
    """
    target = split(path)
    prefix = split(ancestor)
    if len(target) < len(prefix) or target[: len(prefix)] != prefix:
        return False
    return not strict or len(target) > len(prefix)


def rebase(path: str, old_prefix: str, new_prefix: str) -> str:
    """Replace the ``old_prefix`` ancestor of ``path`` with ``new_prefix``.

    Raises ValueError when ``path`` is not inside ``old_prefix``.
    """
    if not is_within(path, old_prefix):
        raise ValueError(f"'{path}' is not inside '{old_prefix}'")
    tail = split(path)[len(split(old_prefix)):]
    return SEPARATOR.join(split(new_prefix) + tail)


def is_hidden(name: str) -> bool:
    return name.startswith(HIDDEN_PREFIX)


def ensure_extension(name: str) -> str:
    """Append the document extension unless it is already there."""
    return name if name.endswith(DOCUMENT_EXTENSION) else f"{name}{DOCUMENT_EXTENSION}"


def validate_name(name: str) -> str:
    """Strip and check a single path segment typed by the user.

    Raises InvalidNameError for empty names, names containing a separator,
    dot segments and hidden names.
    """
    cleaned = name.strip()
    if not cleaned:
        raise InvalidNameError(name, "name is empty")
    if SEPARATOR in cleaned or "\\" in cleaned:
        raise InvalidNameError(name, "name must not contain path separators")
    if cleaned in (".", ".."):
        raise InvalidNameError(name, "reserved name")
    if is_hidden(cleaned):
        raise InvalidNameError(name, f"names starting with '{HIDDEN_PREFIX}' are reserved")
    return cleaned
