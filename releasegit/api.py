"""
High-level API for releasegit.

Builds the catalog, fetcher, store and updater from a configuration dict,
so commands and scripts share one wiring.

Quick Start:
    import releasegit

    head = releasegit.update("/path/to/repo")
    print(head)
"""

from typing import Any, Dict, Optional

from .config import load_config
from .infra.archive_reader import ZipArchiveReader
from .infra.catalog import HtmlReleaseCatalog
from .infra.fetcher import ArchiveFetcher
from .infra.git_store import GitObjectStore
from .errors import StoreReadError
from .services.cancellation import CancellationToken
from .services.history_updater import HistoryUpdater


def create_catalog(config: Dict[str, Any], url: Optional[str] = None) -> HtmlReleaseCatalog:
    settings = config.get("catalog", {})
    return HtmlReleaseCatalog(
        url or settings.get("url"),
        timeout=settings.get("timeout_seconds", 30),
        columns=settings.get("columns"),
        user_agent=config.get("fetch", {}).get("user_agent"),
    )


def create_fetcher(
    config: Dict[str, Any],
    cache_dir: Optional[str] = None,
    max_workers: Optional[int] = None
) -> ArchiveFetcher:
    settings = config.get("fetch", {})
    return ArchiveFetcher(
        cache_dir=cache_dir or settings.get("cache_dir") or None,
        timeout=settings.get("timeout_seconds", 300),
        max_workers=settings.get("max_workers", 2) if max_workers is None else max_workers,
        chunk_size=settings.get("chunk_size", 64 * 1024),
        user_agent=settings.get("user_agent"),
    )


def open_store(path: str, init: bool = False) -> GitObjectStore:
    """
    Open the git repository at path.

    Raises:
        StoreReadError: If path is not a repository and init is False
    """
    if init:
        return GitObjectStore.init(path)
    store = GitObjectStore(path)
    if not store.is_repository():
        raise StoreReadError(f"Not a git repository: {store.path} (use --init to create one)")
    return store


def create_updater(
    store,
    fetcher: ArchiveFetcher,
    config: Dict[str, Any],
    order: Optional[str] = None,
    latest_ref: Optional[str] = None,
    cancel_token: Optional[CancellationToken] = None
) -> HistoryUpdater:
    history = config.get("history", {})
    return HistoryUpdater(
        store,
        fetcher,
        ZipArchiveReader(),
        latest_ref=latest_ref or history.get("latest_ref", "latest"),
        tag_prefix=history.get("tag_prefix", "v"),
        order=order or config.get("catalog", {}).get("order", "published"),
        cancel_token=cancel_token,
        author_name=history.get("author_name", "Datomic"),
        author_email=history.get("author_email", "info@datomic.com"),
        message_template=history.get("message_template", "Datomic {version}"),
    )


def update(
    repository: Optional[str] = None,
    config: Optional[Dict[str, Any]] = None,
    init: bool = False
) -> str:
    """
    Run a full history update with configured collaborators.

    Returns:
        Commit id the "latest" reference now points at
    """
    config = config or load_config()
    store = open_store(repository or config.get("history", {}).get("repository", "."), init=init)
    deadline = config.get("history", {}).get("deadline_seconds") or None
    with create_fetcher(config) as fetcher:
        updater = create_updater(store, fetcher, config, cancel_token=CancellationToken(deadline))
        return updater.run(create_catalog(config))
