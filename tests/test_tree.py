"""Tests for drawvault.store.tree and drawvault.store.models."""

import pytest
from pydantic import ValidationError

from drawvault.errors import CollisionError, NotFoundError
from drawvault.store.models import DocumentEntry
from drawvault.store.tree import TreeModel, walk_entries


def folder(parent, name):
    return DocumentEntry.under(parent, name, is_folder=True)


def doc(parent, name):
    return DocumentEntry.under(parent, name)


@pytest.fixture
def tree():
    return TreeModel([
        folder(None, "notes"),
        folder(None, "notes2"),
        folder("notes", "sub"),
        doc("notes", "idea.drawing"),
        doc("notes/sub", "deep.drawing"),
        doc("notes2", "other.drawing"),
        doc(None, "Zebra.drawing"),
        doc(None, "apple.drawing"),
    ])


# ── DocumentEntry ───────────────────────────────────────────────────


class TestDocumentEntry:
    def test_under_builds_path(self):
        entry = doc("archive/notes", "x.drawing")
        assert entry.path == "archive/notes/x.drawing"
        assert entry.parent_path == "archive/notes"
        assert entry.segments == ("archive", "notes", "x.drawing")

    def test_mismatched_path_rejected(self):
        with pytest.raises(ValidationError):
            DocumentEntry(name="x.drawing", path="other/x.drawing", parent_path="notes")

    def test_entries_are_frozen(self):
        entry = doc(None, "a.drawing")
        with pytest.raises(ValidationError):
            entry.name = "b.drawing"


# ── lookups ─────────────────────────────────────────────────────────


class TestLookups:
    def test_children_sorted_folders_first(self, tree):
        names = [e.name for e in tree.children_of(None)]
        assert names == ["notes", "notes2", "apple.drawing", "Zebra.drawing"]

    def test_descendants_exclude_prefix_sibling(self, tree):
        paths = {e.path for e in tree.descendants_of("notes")}
        assert paths == {"notes/sub", "notes/idea.drawing", "notes/sub/deep.drawing"}

    def test_subtree_starts_with_root(self, tree):
        subtree = tree.subtree("notes/sub")
        assert [e.path for e in subtree] == ["notes/sub", "notes/sub/deep.drawing"]

    def test_subtree_of_missing_path_is_empty(self, tree):
        assert tree.subtree("missing") == []

    def test_name_taken_is_case_insensitive(self, tree):
        assert tree.name_taken("ZEBRA.drawing", None) is True
        assert tree.name_taken("zebra2.drawing", None) is False

    def test_name_taken_folders_only(self, tree):
        assert tree.name_taken("apple.drawing", None, folders_only=True) is False
        assert tree.name_taken("NOTES", None, folders_only=True) is True

    def test_name_taken_exclude(self, tree):
        assert tree.name_taken("apple.drawing", None, exclude="apple.drawing") is False

    def test_require_stale_entry(self, tree):
        with pytest.raises(NotFoundError):
            tree.require(doc(None, "gone.drawing"))

    def test_require_kind_mismatch(self, tree):
        with pytest.raises(NotFoundError):
            tree.require(doc(None, "notes"))

    def test_require_folder(self, tree):
        tree.require_folder(None)
        tree.require_folder("notes/sub")
        with pytest.raises(NotFoundError):
            tree.require_folder("apple.drawing")

    def test_ordered_is_depth_first(self, tree):
        assert [e.path for e in tree.ordered()] == [
            "notes",
            "notes/sub",
            "notes/sub/deep.drawing",
            "notes/idea.drawing",
            "notes2",
            "notes2/other.drawing",
            "apple.drawing",
            "Zebra.drawing",
        ]

    def test_first_document(self, tree):
        assert tree.first_document().path == "notes/sub/deep.drawing"
        assert TreeModel().first_document() is None

    def test_contains(self, tree):
        assert "notes/idea.drawing" in tree
        assert "notes/nothing" not in tree


# ── mutation ────────────────────────────────────────────────────────


class TestMutation:
    def test_add_duplicate(self, tree):
        with pytest.raises(CollisionError):
            tree.add(doc(None, "apple.drawing"))

    def test_add_without_parent(self, tree):
        with pytest.raises(NotFoundError):
            tree.add(doc("missing", "x.drawing"))

    def test_remove_subtree_leaves_prefix_sibling(self, tree):
        removed = tree.remove_subtree("notes")
        assert {e.path for e in removed} == {
            "notes", "notes/sub", "notes/idea.drawing", "notes/sub/deep.drawing",
        }
        assert "notes2" in tree
        assert "notes2/other.drawing" in tree
        assert [e.name for e in tree.children_of(None)] == ["notes2", "apple.drawing", "Zebra.drawing"]

    def test_relocate_rewrites_descendants(self, tree):
        tree.current_entry = tree.get("notes/sub/deep.drawing")
        mapping = tree.relocate("notes", "notes2", "notes")

        moved = tree.get("notes2/notes/sub/deep.drawing")
        assert moved.parent_path == "notes2/notes/sub"
        assert tree.get("notes2/notes").parent_path == "notes2"
        assert mapping["notes/idea.drawing"].path == "notes2/notes/idea.drawing"
        assert "notes" not in tree
        assert tree.current_entry == moved

    def test_relocate_to_root(self, tree):
        tree.relocate("notes/sub", None, "sub")
        top = tree.get("sub")
        assert top.parent_path is None
        assert tree.get("sub/deep.drawing").parent_path == "sub"

    def test_relocate_missing(self, tree):
        with pytest.raises(NotFoundError):
            tree.relocate("nope", None, "nope")

    def test_replace_all_keeps_live_current(self, tree):
        tree.current_entry = tree.get("apple.drawing")
        tree.current_payload = [{"id": "1"}]
        tree.replace_all([doc(None, "apple.drawing")])
        assert tree.current_entry.path == "apple.drawing"
        assert tree.current_payload == [{"id": "1"}]

    def test_replace_all_drops_missing_current(self, tree):
        tree.current_entry = tree.get("apple.drawing")
        tree.current_payload = [{"id": "1"}]
        tree.replace_all([folder(None, "notes")])
        assert tree.current_entry is None
        assert tree.current_payload == []


# ── walk_entries ────────────────────────────────────────────────────


class TestWalkEntries:
    def test_walk_skips_hidden(self, local_fs):
        paths = {e.path for e in walk_entries(local_fs)}
        assert paths == {
            "archive",
            "archive/2023",
            "archive/2023/old.drawing",
            "notes",
            "notes/idea.drawing",
            "todo.drawing",
        }

    def test_walk_sets_parent_paths(self, local_fs):
        by_path = {e.path: e for e in walk_entries(local_fs)}
        assert by_path["archive/2023/old.drawing"].parent_path == "archive/2023"
        assert by_path["archive"].parent_path is None
        assert by_path["archive/2023"].is_folder is True

    def test_walk_feeds_tree(self, local_fs):
        tree = TreeModel(walk_entries(local_fs))
        assert len(tree) == 6
