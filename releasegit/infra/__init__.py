"""
Infrastructure layer for releasegit.

Contains abstractions for external systems:
- GitObjectStore: Git object database via plumbing commands
- MemoryObjectStore: In-process store with git-compatible ids
- HtmlReleaseCatalog: Release list scraped from a download page
- ArchiveFetcher: Archive download with an on-disk cache
- ZipArchiveReader: Zip member enumeration

These provide clean interfaces that can be mocked for testing.
"""

from .git_store import GitObjectStore
from .memory_store import MemoryObjectStore
from .catalog import ReleaseCatalog, HtmlReleaseCatalog, StaticReleaseCatalog
from .fetcher import ArchiveFetcher
from .archive_reader import ZipArchiveReader

__all__ = [
    'GitObjectStore',
    'MemoryObjectStore',
    'ReleaseCatalog',
    'HtmlReleaseCatalog',
    'StaticReleaseCatalog',
    'ArchiveFetcher',
    'ZipArchiveReader',
]
