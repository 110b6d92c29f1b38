"""Tests for CommitChainBuilder."""

import pytest

from releasegit.errors import ArchiveFetchError, DuplicateTagError, RunCancelled
from releasegit.services.cancellation import CancellationToken
from releasegit.services.chain_builder import CommitChainBuilder

from conftest import make_release


def _builder(store, fetcher, reader, **kwargs):
    return CommitChainBuilder(store, fetcher, reader, **kwargs)


class TestBuildChain:

    def test_linear_chain(self, store, fetcher, reader):
        releases = [make_release("1.0", 1), make_release("1.1", 2), make_release("1.2", 3)]
        head = _builder(store, fetcher, reader).build_chain(releases)

        assert head == releases[-1].resolved_commit
        assert store.read_commit(releases[0].resolved_commit).parents == ()
        for older, newer in zip(releases, releases[1:]):
            assert store.read_commit(newer.resolved_commit).parents == (older.resolved_commit,)

    def test_commit_metadata(self, store, fetcher, reader, releases):
        _builder(store, fetcher, reader).build_chain(releases)
        info = store.read_commit(releases[0].resolved_commit)

        assert info.message == "Datomic 1.0"
        assert info.author == "Datomic <info@datomic.com> 1356998400 +0000"
        assert info.committer == info.author

    def test_tags_created(self, store, fetcher, reader, releases):
        _builder(store, fetcher, reader).build_chain(releases)
        tags = {t.name: t.target for t in store.find_tags()}
        assert tags == {"v1.0": releases[0].resolved_commit, "v1.1": releases[1].resolved_commit}

    def test_custom_identity(self, store, fetcher, reader, releases):
        builder = _builder(
            store, fetcher, reader,
            author_name="Cognitect",
            author_email="dev@example.com",
            message_template="Release {version}",
            tag_prefix="release-"
        )
        builder.build_chain(releases)
        info = store.read_commit(releases[1].resolved_commit)
        assert info.message == "Release 1.1"
        assert info.author.startswith("Cognitect <dev@example.com> ")
        assert store.has_tag("release-1.1")

    def test_empty_list_returns_parent(self, store, fetcher, reader):
        assert _builder(store, fetcher, reader).build_chain([]) is None
        assert _builder(store, fetcher, reader).build_chain([], parent="abc") == "abc"


class TestResolvedReleases:

    def test_resolved_release_writes_nothing(self, store, fetcher, reader):
        resolved = make_release("1.0", 1, resolved="c" * 40)
        builder = _builder(store, fetcher, reader)

        assert builder.build_commit(resolved, None) == "c" * 40
        assert store.writes == 0
        assert fetcher.fetched == []
        assert builder.skipped == 1

    def test_resolved_commit_becomes_parent(self, store, fetcher, reader):
        releases = [make_release("1.0", 1, resolved="c" * 40), make_release("1.1", 2)]
        _builder(store, fetcher, reader).build_chain(releases)
        assert store.read_commit(releases[1].resolved_commit).parents == ("c" * 40,)
        assert fetcher.fetched == ["app-1.1.zip"]


class TestFailures:

    def test_duplicate_tag_leaks_nothing(self, store, fetcher, reader):
        store.write_tag("v1.0", "d" * 40)
        writes = store.writes
        objects = dict(store.objects)

        with pytest.raises(DuplicateTagError):
            _builder(store, fetcher, reader).build_commit(make_release("1.0", 1), None)

        assert store.writes == writes
        assert store.objects == objects
        assert fetcher.fetched == []

    def test_fetch_error_aborts_fold(self, store, reader):
        class FailingFetcher:
            def fetch(self, url, filename):
                if filename == "app-1.1.zip":
                    raise ArchiveFetchError("boom", url, filename)
                return filename

        releases = [make_release("1.0", 1), make_release("1.1", 2), make_release("1.2", 3)]
        with pytest.raises(ArchiveFetchError):
            _builder(store, FailingFetcher(), reader).build_chain(releases)

        assert releases[0].is_resolved
        assert not releases[1].is_resolved
        assert not releases[2].is_resolved
        assert [t.name for t in store.find_tags()] == ["v1.0"]

    def test_cancelled_before_next_release(self, store, fetcher, reader, releases):
        token = CancellationToken()
        builder = _builder(store, fetcher, reader, cancel_token=token)
        builder.build_commit(releases[0], None)
        token.cancel()

        with pytest.raises(RunCancelled):
            builder.build_commit(releases[1], releases[0].resolved_commit)
        assert not releases[1].is_resolved
        assert fetcher.fetched == ["app-1.0.zip"]

    def test_cancel_does_not_block_resolved(self, store, fetcher, reader):
        token = CancellationToken()
        token.cancel()
        builder = _builder(store, fetcher, reader, cancel_token=token)
        assert builder.build_commit(make_release("1.0", 1, resolved="c" * 40), None) == "c" * 40
