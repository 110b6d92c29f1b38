"""
releasegit - Git history for software published only as release archives.

Each release on a download page becomes one commit whose tree is exactly
the archive's files. Commits are chained oldest to newest, tagged
v<version>, and a "latest" branch points at the newest one. Re-running
skips every release whose tag already exists.

Quick Start:
    import releasegit

    # Update the repository configured in ~/.releasegit/config.json
    head = releasegit.update()

    # Or wire the pieces yourself
    from releasegit import (
        GitObjectStore, ArchiveFetcher, HtmlReleaseCatalog, HistoryUpdater,
    )
    store = GitObjectStore("/path/to/repo")
    with ArchiveFetcher(max_workers=2) as fetcher:
        head = HistoryUpdater(store, fetcher).run(
            HtmlReleaseCatalog("http://downloads.datomic.com/free.html")
        )

Domain Objects:
    Release - One published archive
    ArchiveEntry - One file read from an archive

Services:
    TreeBuilder - Archive entries to tree object
    CommitChainBuilder - Releases to tagged linear commits
    HistoryUpdater - Catalog to updated "latest" reference
"""

__version__ = "0.1.0"

# High-level API
from .api import update

# Domain objects
from .domain import (
    Release,
    ArchiveEntry,
    TreeEntry,
    Signature,
    TagRef,
    CommitInfo,
    ContentStore,
)

# Infrastructure
from .infra import (
    GitObjectStore,
    MemoryObjectStore,
    ReleaseCatalog,
    HtmlReleaseCatalog,
    StaticReleaseCatalog,
    ArchiveFetcher,
    ZipArchiveReader,
)

# Services
from .services import (
    CancellationToken,
    TreeBuilder,
    CommitChainBuilder,
    HistoryUpdater,
    update_history,
)

# Errors
from .errors import (
    ReleaseGitError,
    CatalogError,
    ArchiveFetchError,
    ArchiveReadError,
    UnsupportedEntryKind,
    StoreError,
    StoreReadError,
    StoreWriteError,
    DuplicateTagError,
    RunCancelled,
)

# Configuration
from .config import load_config, save_config

__all__ = [
    "__version__",
    "update",
    "Release",
    "ArchiveEntry",
    "TreeEntry",
    "Signature",
    "TagRef",
    "CommitInfo",
    "ContentStore",
    "GitObjectStore",
    "MemoryObjectStore",
    "ReleaseCatalog",
    "HtmlReleaseCatalog",
    "StaticReleaseCatalog",
    "ArchiveFetcher",
    "ZipArchiveReader",
    "CancellationToken",
    "TreeBuilder",
    "CommitChainBuilder",
    "HistoryUpdater",
    "update_history",
    "ReleaseGitError",
    "CatalogError",
    "ArchiveFetchError",
    "ArchiveReadError",
    "UnsupportedEntryKind",
    "StoreError",
    "StoreReadError",
    "StoreWriteError",
    "DuplicateTagError",
    "RunCancelled",
    "load_config",
    "save_config",
]
