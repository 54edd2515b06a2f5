"""Tests for drawvault.paths: segment handling, ancestry and name rules."""

import pytest

from drawvault.errors import InvalidNameError
from drawvault.paths import (
    ROOT,
    ensure_extension,
    is_hidden,
    is_within,
    join,
    parent_of,
    rebase,
    split,
    to_path,
    validate_name,
)


# ── split / join ────────────────────────────────────────────────────


class TestSplitJoin:
    def test_root_spellings(self):
        assert split(None) == ROOT
        assert split("") == ROOT
        assert to_path(ROOT) is None

    def test_split_ignores_stray_separators(self):
        assert split("/archive//notes/") == ("archive", "notes")

    def test_join_at_root(self):
        assert join(None, "a.drawing") == "a.drawing"

    def test_join_nested(self):
        assert join("archive/notes", "x.drawing") == "archive/notes/x.drawing"

    def test_parent_of(self):
        assert parent_of("archive/notes/x.drawing") == "archive/notes"
        assert parent_of("x.drawing") is None


# ── is_within / rebase ──────────────────────────────────────────────


class TestAncestry:
    def test_path_is_within_itself(self):
        assert is_within("notes", "notes") is True
        assert is_within("notes", "notes", strict=True) is False

    def test_descendant(self):
        assert is_within("notes/sub/x.drawing", "notes", strict=True) is True

    def test_prefix_sibling_is_not_descendant(self):
        # "notes2" shares a string prefix with "notes" but is a sibling
        assert is_within("notes2", "notes") is False
        assert is_within("notes2/x.drawing", "notes") is False

    def test_everything_is_within_root(self):
        assert is_within("a/b", None) is True

    def test_rebase_subtree_path(self):
        assert rebase("notes/sub/x.drawing", "notes", "archive/notes") == "archive/notes/sub/x.drawing"

    def test_rebase_to_root_level(self):
        assert rebase("archive/notes/x.drawing", "archive/notes", "notes") == "notes/x.drawing"

    def test_rebase_rejects_outside_path(self):
        with pytest.raises(ValueError):
            rebase("notes2/x.drawing", "notes", "archive/notes")


# ── names ───────────────────────────────────────────────────────────


class TestNames:
    def test_extension_appended_once(self):
        assert ensure_extension("a") == "a.drawing"
        assert ensure_extension("a.drawing") == "a.drawing"

    def test_hidden(self):
        assert is_hidden(".drawvault.json") is True
        assert is_hidden("notes") is False

    def test_validate_strips_whitespace(self):
        assert validate_name("  plan  ") == "plan"

    @pytest.mark.parametrize("bad", ["", "   ", "a/b", "a\\b", ".", "..", ".secret"])
    def test_validate_rejects(self, bad):
        with pytest.raises(InvalidNameError):
            validate_name(bad)

    def test_invalid_name_is_value_error(self):
        with pytest.raises(ValueError):
            validate_name("")
