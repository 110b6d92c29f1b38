"""Tests for GitObjectStore against a real repository."""

import subprocess
from datetime import datetime
from unittest.mock import patch

import pytest

from releasegit.domain import ArchiveEntry, Signature, TagRef, TreeEntry
from releasegit.errors import DuplicateTagError, StoreWriteError
from releasegit.infra.git_store import GitObjectStore
from releasegit.infra.memory_store import MemoryObjectStore
from releasegit.infra.catalog import StaticReleaseCatalog
from releasegit.services.history_updater import HistoryUpdater
from releasegit.services.tree_builder import build_tree

from conftest import make_entries, make_release, requires_git

pytestmark = requires_git

SIG = Signature("Datomic", "info@datomic.com", datetime(2013, 1, 1))


@pytest.fixture
def git_store(tmp_path, monkeypatch):
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("HOME", str(tmp_path))
    return GitObjectStore.init(str(tmp_path / "repo"))


def git(store, *args):
    return subprocess.run(
        ["git", *args], cwd=store.path, capture_output=True, text=True, check=True
    ).stdout.strip()


class TestObjects:

    def test_ids_match_memory_store(self, git_store):
        memory = MemoryObjectStore()
        entries = make_entries("1.0")

        tree = build_tree(entries, git_store)
        assert tree == build_tree(entries, memory)

        commit = git_store.write_commit(tree, [], SIG, SIG, "Datomic 1.0")
        assert commit == memory.write_commit(tree, [], SIG, SIG, "Datomic 1.0")

    def test_tree_contents(self, git_store):
        tree = build_tree(make_entries("1.0"), git_store)
        listing = git(git_store, "ls-tree", "-r", tree)
        assert "100755 blob" in listing and "\tbin/run" in listing
        assert "100644 blob" in listing and "\tlib/app-1.0.jar" in listing

    def test_commit_roundtrip(self, git_store):
        tree = git_store.write_tree({})
        root = git_store.write_commit(tree, [], SIG, SIG, "Datomic 1.0")
        child = git_store.write_commit(tree, [root], SIG, SIG, "Datomic 1.1")

        info = git_store.read_commit(child)
        assert info.parents == (root,)
        assert info.message == "Datomic 1.1"
        assert info.author == "Datomic <info@datomic.com> 1356998400 +0000"
        assert git(git_store, "log", "-1", "--format=%aI", child) == "2013-01-01T00:00:00+00:00"


class TestRefs:

    def test_write_tag_once(self, git_store):
        commit = git_store.write_commit(git_store.write_tree({}), [], SIG, SIG, "m")
        git_store.write_tag("v1.0", commit)
        assert git_store.has_tag("v1.0")
        with pytest.raises(DuplicateTagError):
            git_store.write_tag("v1.0", commit)

    def test_find_tags_peels_annotated(self, git_store):
        commit = git_store.write_commit(git_store.write_tree({}), [], SIG, SIG, "m")
        git(git_store, "tag", "-a", "-m", "annotated", "v0.9", commit)
        git_store.write_tag("v1.0", commit)

        assert git_store.find_tags() == [TagRef("v0.9", commit), TagRef("v1.0", commit)]
        assert git_store.find_tags("v1*") == [TagRef("v1.0", commit)]

    def test_update_ref_force(self, git_store):
        tree = git_store.write_tree({})
        first = git_store.write_commit(tree, [], SIG, SIG, "1")
        second = git_store.write_commit(tree, [first], SIG, SIG, "2")

        assert git_store.read_ref("latest") is None
        git_store.update_ref("latest", second)
        git_store.update_ref("latest", first)
        assert git_store.read_ref("latest") == first
        assert git(git_store, "rev-parse", "refs/heads/latest") == first

    def test_invalid_object_rejected(self, git_store):
        with pytest.raises(StoreWriteError):
            git_store.write_tree({"x": TreeEntry("0" * 40, 0o100644)})

    def test_timeout_is_store_error(self, git_store):
        with patch("releasegit.infra.git_store.subprocess.run",
                   side_effect=subprocess.TimeoutExpired("git", 1)):
            with pytest.raises(StoreWriteError):
                git_store.write_blob(b"x")


class TestEndToEnd:

    def test_run_twice(self, git_store, fetcher, reader):
        catalog = StaticReleaseCatalog([make_release("1.1", 2), make_release("1.0", 1)])

        head = HistoryUpdater(git_store, fetcher, reader).run(catalog)
        objects = git_store.object_count()

        assert git(git_store, "rev-list", "--count", "latest") == "2"
        assert git(git_store, "log", "--format=%s", "latest") == "Datomic 1.1\nDatomic 1.0"
        assert git(git_store, "rev-parse", "v1.1") == head

        again = HistoryUpdater(git_store, fetcher, reader).run(
            StaticReleaseCatalog([make_release("1.1", 2), make_release("1.0", 1)])
        )
        assert again == head
        assert git_store.object_count() == objects
        assert fetcher.fetched == ["app-1.0.zip", "app-1.1.zip"]

    def test_archive_with_ignored_owner_metadata(self, git_store):
        entry = ArchiveEntry("a", b"x", 0o644, mod_time=datetime(2001, 1, 1))
        other = ArchiveEntry("a", b"x", 0o644, mod_time=datetime(2020, 1, 1))
        assert build_tree([entry], git_store) == build_tree([other], git_store)
