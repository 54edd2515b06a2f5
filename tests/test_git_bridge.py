"""Tests for drawvault.vcs.git: GitBridge against a real dulwich repository."""

import pytest
from dulwich.object_store import tree_lookup_path
from dulwich.repo import Repo

from drawvault.config.models import DrawVaultConfig, VCSConfig
from drawvault.errors import VersionControlError
from drawvault.vcs import create_bridge
from drawvault.vcs.git import GitBridge


@pytest.fixture
def work(tmp_path):
    path = tmp_path / "drawings"
    path.mkdir()
    return path


@pytest.fixture
async def bridge(work, tmp_path):
    b = GitBridge(work, VCSConfig(author_name="Tester", author_email="t@example.com",
                                  key_dir=str(tmp_path / "keys")))
    await b.init_repository()
    return b


def head_has(work, path):
    with Repo(str(work)) as repo:
        tree = repo[repo.head()].tree
        try:
            tree_lookup_path(repo.__getitem__, tree, path.encode())
        except KeyError:
            return False
        return True


# ── repository ──────────────────────────────────────────────────────


class TestInit:
    async def test_init_creates_repo(self, work):
        b = GitBridge(work)
        assert await b.init_repository() == "Git repository initialized successfully"
        assert (work / ".git").is_dir()

    async def test_init_is_idempotent(self, bridge):
        assert await bridge.init_repository() == "Git repository already initialized"

    async def test_init_missing_directory(self, tmp_path):
        with pytest.raises(VersionControlError):
            await GitBridge(tmp_path / "nope").init_repository()

    def test_factory(self, work):
        assert isinstance(create_bridge(DrawVaultConfig().vcs, work), GitBridge)

    def test_factory_unknown_provider(self, work):
        config = VCSConfig.model_construct(provider="svn")
        with pytest.raises(ValueError, match="svn"):
            create_bridge(config, work)


# ── commit / history ────────────────────────────────────────────────


class TestCommitAndHistory:
    async def test_history_newest_first(self, bridge, work):
        (work / "a.drawing").write_text("[]")
        first = await bridge.commit("a.drawing", "first")
        (work / "a.drawing").write_text('[{"id": "1"}]')
        second = await bridge.commit("a.drawing", "second")

        history = await bridge.list_history("a.drawing")
        assert [h.commit_id for h in history] == [second, first]
        assert [h.message for h in history] == ["second", "first"]
        assert history[0].author == "Tester"

    async def test_history_scoped_to_path(self, bridge, work):
        (work / "a.drawing").write_text("[]")
        (work / "b.drawing").write_text("[]")
        await bridge.commit("a.drawing", "only a")
        await bridge.commit("b.drawing", "only b")
        assert [h.message for h in await bridge.list_history("a.drawing")] == ["only a"]

    async def test_history_empty_repo(self, bridge):
        assert await bridge.list_history("a.drawing") == []

    async def test_latest_commit_empty_repo(self, bridge):
        assert await bridge.latest_commit() is None

    async def test_latest_commit_is_head(self, bridge, work):
        (work / "a.drawing").write_text("[]")
        await bridge.commit("a.drawing", "first")
        (work / "b.drawing").write_text("[]")
        second = await bridge.commit("b.drawing", "second")
        head = await bridge.latest_commit()
        assert head.commit_id == second
        assert head.message == "second"
        assert head.timestamp > 0

    async def test_commit_all_skips_hidden(self, bridge, work):
        (work / "notes").mkdir()
        (work / "notes" / "x.drawing").write_text("[]")
        (work / ".drawvault.json").write_text("{}")
        await bridge.commit("*", "everything")
        assert head_has(work, "notes/x.drawing")
        assert not head_has(work, ".drawvault.json")

    async def test_commit_all_records_moves_and_deletes(self, bridge, work):
        (work / "notes").mkdir()
        (work / "notes" / "x.drawing").write_text("[]")
        (work / "old.drawing").write_text("[]")
        await bridge.commit("*", "initial")

        (work / "archive").mkdir()
        (work / "notes").rename(work / "archive" / "notes")
        (work / "old.drawing").unlink()
        await bridge.commit("*", "Moved notes to archive")

        assert head_has(work, "archive/notes/x.drawing")
        assert not head_has(work, "notes/x.drawing")
        assert not head_has(work, "old.drawing")

    async def test_identity_used_for_commits(self, bridge, work):
        await bridge.set_identity("Ada", "ada@example.com")
        (work / "a.drawing").write_text("[]")
        await bridge.commit("a.drawing", "by ada")
        history = await bridge.list_history("a.drawing")
        assert history[0].author == "Ada"

    async def test_commit_without_repository(self, work):
        with pytest.raises(VersionControlError):
            await GitBridge(work).commit("*", "nothing here")


# ── restore ─────────────────────────────────────────────────────────


class TestRestore:
    async def test_restore_writes_old_content(self, bridge, work):
        (work / "a.drawing").write_text('[{"id": "v1"}]')
        first = await bridge.commit("a.drawing", "v1")
        (work / "a.drawing").write_text('[{"id": "v2"}]')
        await bridge.commit("a.drawing", "v2")

        await bridge.restore("a.drawing", first)
        assert (work / "a.drawing").read_text() == '[{"id": "v1"}]'

    async def test_restore_unknown_commit(self, bridge, work):
        (work / "a.drawing").write_text("[]")
        await bridge.commit("a.drawing", "v1")
        with pytest.raises(VersionControlError):
            await bridge.restore("a.drawing", "0" * 40)

    async def test_restore_path_missing_in_commit(self, bridge, work):
        (work / "a.drawing").write_text("[]")
        sha = await bridge.commit("a.drawing", "v1")
        with pytest.raises(VersionControlError):
            await bridge.restore("b.drawing", sha)


# ── remote ──────────────────────────────────────────────────────────


class TestRemote:
    async def test_set_remote_writes_config(self, bridge, work):
        await bridge.set_remote("git@example.com:ada/drawings.git")
        with Repo(str(work)) as repo:
            url = repo.get_config().get((b"remote", b"origin"), b"url")
        assert url == b"git@example.com:ada/drawings.git"

    async def test_empty_url_connection(self, bridge):
        with pytest.raises(VersionControlError):
            await bridge.test_connection("", "Ada", "ada@example.com")

    async def test_push_without_remote(self, bridge):
        with pytest.raises(VersionControlError, match="no remote"):
            await bridge.push()

    async def test_generate_key_pair(self, bridge, tmp_path):
        key = await bridge.generate_key_pair("ada@example.com")
        assert key.key_path == str(tmp_path / "keys" / "id_ed25519")
        assert key.public_key.endswith("ada@example.com")
