"""Tests for the domain layer."""

import stat
from datetime import datetime, timedelta, timezone

import pytest

from releasegit.domain import ArchiveEntry, Release, Signature, TreeEntry, MODE_TREE, qualify_ref


class TestRelease:
    """Tests for Release domain object."""

    def _release(self, version="1.0"):
        return Release(version, f"app-{version}.zip", f"http://h/app-{version}.zip", datetime(2013, 1, 1))

    def test_tag_name(self):
        assert self._release("0.8.3862").tag_name() == "v0.8.3862"
        assert self._release("1.0").tag_name(prefix="release-") == "release-1.0"

    def test_identity_is_version(self):
        a = self._release("1.0")
        b = Release("1.0", "other.zip", "http://other", datetime(2020, 1, 1))
        assert a == b
        assert hash(a) == hash(b)
        assert a != self._release("1.1")

    def test_resolve_once(self):
        release = self._release()
        assert not release.is_resolved
        release.resolve("abc")
        assert release.resolved_commit == "abc"
        with pytest.raises(ValueError):
            release.resolve("def")
        with pytest.raises(ValueError):
            release.resolve("abc")
        assert release.resolved_commit == "abc"

    def test_matches_tag_exactly(self):
        release = self._release("1.0")
        assert release.matches_tag("v1.0")
        assert release.matches_tag("1.0")
        assert not release.matches_tag("v1.0.1")
        assert not release.matches_tag("v11.0")

    def test_to_dict(self):
        d = self._release("1.0").to_dict()
        assert d['version'] == "1.0"
        assert d['published_at'] == "2013-01-01T00:00:00"
        assert d['resolved_commit'] is None


class TestArchiveEntry:
    """Mode composition for tree entries."""

    def test_regular_file_mode_644(self):
        entry = ArchiveEntry("a.txt", b"", 0o644)
        assert entry.tree_mode == stat.S_IFREG | 0o644 == 0o100644

    def test_regular_file_mode_755(self):
        entry = ArchiveEntry("bin/run", b"", 0o755)
        assert entry.tree_mode == 0o100755

    def test_type_bits_are_not_duplicated(self):
        entry = ArchiveEntry("a.txt", b"", stat.S_IFREG | 0o600)
        assert entry.is_regular
        assert entry.tree_mode == 0o100600

    def test_symlink_is_not_regular(self):
        entry = ArchiveEntry("link", b"target", stat.S_IFLNK | 0o777)
        assert not entry.is_regular


class TestSignature:
    """Git date formatting."""

    def test_naive_time_is_utc(self):
        sig = Signature("Datomic", "info@datomic.com", datetime(2013, 1, 1))
        assert sig.git_date == "1356998400 +0000"
        assert sig.to_git() == "Datomic <info@datomic.com> 1356998400 +0000"

    def test_offset(self):
        tz = timezone(timedelta(hours=-5, minutes=-30))
        sig = Signature("a", "b", datetime(2013, 1, 1, tzinfo=tz))
        assert sig.offset == "-0530"
        assert sig.timestamp == 1356998400 + 5 * 3600 + 30 * 60


def test_tree_entry_type():
    assert TreeEntry("0" * 40, MODE_TREE).object_type == "tree"
    assert TreeEntry("0" * 40, 0o100644).object_type == "blob"


def test_qualify_ref():
    assert qualify_ref("latest") == "refs/heads/latest"
    assert qualify_ref("refs/heads/latest") == "refs/heads/latest"
