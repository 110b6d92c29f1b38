"""
Commit chain service for releasegit.

Folds an ordered release list into a linear commit chain. For each release:
- Resolved (tag already exists): reuse its commit, write nothing
- Unresolved: fetch archive, build tree, write commit, write tag

The commit of release i is the sole parent of the commit of release i+1.
Any error aborts the remaining releases; finished ones stay tagged.
"""

import logging
from typing import Iterable, Optional

from ..domain.objects import Signature
from ..domain.release import Release
from ..domain.store import ContentStore
from ..errors import DuplicateTagError
from ..infra.archive_reader import ZipArchiveReader
from ..infra.fetcher import ArchiveFetcher
from .cancellation import CancellationToken
from .tree_builder import TreeBuilder

logger = logging.getLogger(__name__)

DEFAULT_AUTHOR_NAME = "Datomic"
DEFAULT_AUTHOR_EMAIL = "info@datomic.com"
DEFAULT_MESSAGE_TEMPLATE = "Datomic {version}"


class CommitChainBuilder:
    """
    Builds one commit and one tag per release, oldest first.

    Example:
        builder = CommitChainBuilder(store, fetcher, ZipArchiveReader())
        head = builder.build_chain(releases)
    """

    def __init__(
        self,
        store: ContentStore,
        fetcher: ArchiveFetcher,
        reader: Optional[ZipArchiveReader] = None,
        tree_builder: Optional[TreeBuilder] = None,
        author_name: str = DEFAULT_AUTHOR_NAME,
        author_email: str = DEFAULT_AUTHOR_EMAIL,
        message_template: str = DEFAULT_MESSAGE_TEMPLATE,
        tag_prefix: str = "v",
        cancel_token: Optional[CancellationToken] = None
    ):
        """
        Initialize CommitChainBuilder.

        Args:
            store: Store receiving trees, commits and tags
            fetcher: Supplies local archive paths
            reader: Enumerates archive entries (ZipArchiveReader if None)
            tree_builder: TreeBuilder over the same store (created if None)
            author_name: Author and committer name
            author_email: Author and committer email
            message_template: Commit message, formatted with {version}
            tag_prefix: Prefix of release tag names
            cancel_token: Checked before each release is built
        """
        self.store = store
        self.fetcher = fetcher
        self.reader = reader or ZipArchiveReader()
        self.tree_builder = tree_builder or TreeBuilder(store)
        self.author_name = author_name
        self.author_email = author_email
        self.message_template = message_template
        self.tag_prefix = tag_prefix
        self.cancel_token = cancel_token
        self.built = 0
        self.skipped = 0

    def message_for(self, release: Release) -> str:
        return self.message_template.format(version=release.version)

    def signature_for(self, release: Release) -> Signature:
        return Signature(self.author_name, self.author_email, release.published_at)

    def build_commit(self, release: Release, parent: Optional[str]) -> str:
        """
        Return the commit for a release, building it if unresolved.

        Raises:
            RunCancelled: If the cancel token fired before the build started
            DuplicateTagError: If the release's tag exists but was not pre-resolved
            ArchiveFetchError, ArchiveReadError, StoreWriteError: Propagated
        """
        if release.resolved_commit is not None:
            logger.debug(f"Release {release.version} already at {release.resolved_commit}")
            self.skipped += 1
            return release.resolved_commit

        if self.cancel_token is not None:
            self.cancel_token.check()

        tag = release.tag_name(self.tag_prefix)
        if self.store.has_tag(tag):
            # Checked before any write so a collision leaves no objects behind
            raise DuplicateTagError(tag)

        logger.info(f"Building commit {release.filename} {parent or '(root)'}")
        archive = self.fetcher.fetch(release.archive_url, release.filename)

        logger.info(f"Building tree {release.filename}")
        tree = self.tree_builder.build(self.reader.entries(archive))
        logger.info(f"tree {release.filename} {tree}")

        signature = self.signature_for(release)
        commit = self.store.write_commit(
            tree=tree,
            parents=[parent] if parent else [],
            author=signature,
            committer=signature,
            message=self.message_for(release)
        )
        logger.info(f"commit {release.filename} {commit}")

        self.store.write_tag(tag, commit)
        logger.info(f"tag {tag} {commit}")

        release.resolve(commit)
        self.built += 1
        return commit

    def build_chain(
        self,
        releases: Iterable[Release],
        parent: Optional[str] = None
    ) -> Optional[str]:
        """
        Fold build_commit over releases in order.

        Args:
            releases: Releases, oldest first
            parent: Commit preceding the first release, if any

        Returns:
            Commit id of the last release, or parent if releases is empty
        """
        for release in releases:
            parent = self.build_commit(release, parent)
        return parent
