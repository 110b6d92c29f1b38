"""
History update service for releasegit.

Top-level orchestration of one run:
1. Read the release list from the catalog
2. Order it oldest first
3. Pre-resolve releases whose tag already exists
4. Prefetch archives of unresolved releases
5. Build the commit chain
6. Force-update the "latest" reference to the newest commit
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from packaging.version import InvalidVersion, Version

from ..domain.objects import TagRef
from ..domain.release import Release
from ..domain.store import ContentStore, qualify_ref
from ..errors import CatalogError
from ..infra.archive_reader import ZipArchiveReader
from ..infra.catalog import ReleaseCatalog
from ..infra.fetcher import ArchiveFetcher
from .cancellation import CancellationToken
from .chain_builder import CommitChainBuilder

logger = logging.getLogger(__name__)

ORDERS = ("published", "version")


def _published_utc(release: Release) -> datetime:
    # naive times are UTC, as for commit signatures
    published = release.published_at
    if published.tzinfo is None:
        return published.replace(tzinfo=timezone.utc)
    return published


def order_releases(releases: Iterable[Release], order: str = "published") -> List[Release]:
    """
    Return releases oldest first.

    "published" sorts by publication time. The catalog lists newest first,
    so the list is reversed before a stable sort: releases published at the
    same instant keep their oldest-first catalog position.
    "version" sorts by version number.

    Raises:
        CatalogError: For an unknown order or an unparseable version
    """
    releases = list(releases)
    if order == "published":
        return sorted(reversed(releases), key=_published_utc)
    if order == "version":
        try:
            return sorted(releases, key=lambda r: Version(r.version))
        except InvalidVersion as e:
            raise CatalogError(f"Cannot order releases by version: {e}") from e
    raise CatalogError(f"Unknown release order {order!r}, expected one of {', '.join(ORDERS)}")


def pre_resolve(releases: Iterable[Release], tags: Iterable[TagRef], prefix: str = "v") -> int:
    """
    Point releases at the commits of their existing tags.

    A tag marks a release when its name is exactly prefix + version or the
    bare version. Releases that are already resolved are left alone.

    Returns:
        Number of releases resolved by this call
    """
    by_name = {tag.name: tag for tag in tags}
    resolved = 0
    for release in releases:
        if release.is_resolved:
            continue
        tag = by_name.get(release.tag_name(prefix)) or by_name.get(release.version)
        if tag is not None:
            release.resolve(tag.target)
            resolved += 1
    return resolved


def check_unique_versions(releases: Iterable[Release]) -> None:
    seen = set()
    for release in releases:
        if release.version in seen:
            raise CatalogError(f"Release {release.version} listed more than once")
        seen.add(release.version)


class HistoryUpdater:
    """
    Runs a full history update against one store.

    Example:
        updater = HistoryUpdater(GitObjectStore("."), ArchiveFetcher())
        head = updater.run(HtmlReleaseCatalog(url))
    """

    def __init__(
        self,
        store: ContentStore,
        fetcher: ArchiveFetcher,
        reader: Optional[ZipArchiveReader] = None,
        chain_builder: Optional[CommitChainBuilder] = None,
        latest_ref: str = "latest",
        tag_prefix: str = "v",
        order: str = "published",
        cancel_token: Optional[CancellationToken] = None,
        **chain_options
    ):
        """
        Initialize HistoryUpdater.

        Args:
            store: Store receiving all objects and refs
            fetcher: Archive fetcher (prefetch pool is used when enabled)
            reader: Archive reader (ZipArchiveReader if None)
            chain_builder: Preconfigured CommitChainBuilder (created if None)
            latest_ref: Reference repointed at the newest commit
            tag_prefix: Prefix of release tag names
            order: "published" or "version"
            cancel_token: Checked before each release is built
            **chain_options: Passed to CommitChainBuilder (author_name, ...)
        """
        self.store = store
        self.fetcher = fetcher
        self.latest_ref = latest_ref
        self.tag_prefix = tag_prefix
        self.order = order
        self.chain_builder = chain_builder or CommitChainBuilder(
            store,
            fetcher,
            reader,
            tag_prefix=tag_prefix,
            cancel_token=cancel_token,
            **chain_options
        )

    def plan(self, catalog: ReleaseCatalog) -> List[Release]:
        """
        Ordered, pre-resolved release list. Writes nothing.

        Raises:
            CatalogError: If the catalog is empty or lists a version twice
        """
        releases = catalog.list()
        if not releases:
            raise CatalogError("Catalog returned no releases")
        check_unique_versions(releases)

        ordered = order_releases(releases, self.order)
        resolved = pre_resolve(ordered, self.store.find_tags(), self.tag_prefix)
        logger.info(f"{len(ordered)} releases, {resolved} already tagged")
        return ordered

    def run(self, catalog: ReleaseCatalog) -> str:
        """
        Bring the store's history up to date with the catalog.

        Returns:
            Commit id of the newest release, which "latest" now points at
        """
        releases = self.plan(catalog)

        pending = [release for release in releases if not release.is_resolved]
        if pending:
            self.fetcher.prefetch(pending)

        head = self.chain_builder.build_chain(releases)

        self.store.update_ref(self.latest_ref, head, force=True)
        logger.info(f"{qualify_ref(self.latest_ref)} {head}")
        return head


def update_history(
    catalog: ReleaseCatalog,
    store: ContentStore,
    fetcher: ArchiveFetcher,
    reader: Optional[ZipArchiveReader] = None,
    **options
) -> str:
    """Run a history update. See HistoryUpdater.run."""
    return HistoryUpdater(store, fetcher, reader, **options).run(catalog)
