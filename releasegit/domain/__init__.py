"""
Domain layer for releasegit.

Contains pure domain objects with no I/O or side effects:
- Release: One published archive of the upstream project
- ArchiveEntry, TreeEntry, Signature, TagRef, CommitInfo: object model values
- ContentStore: The contract every object store implements
"""

from .release import Release
from .objects import (
    ArchiveEntry,
    TreeEntry,
    Signature,
    TagRef,
    CommitInfo,
    MODE_TREE,
    MODE_REGULAR,
    DEFAULT_PERMISSIONS,
)
from .store import ContentStore, qualify_ref

__all__ = [
    'Release',
    'ArchiveEntry',
    'TreeEntry',
    'Signature',
    'TagRef',
    'CommitInfo',
    'MODE_TREE',
    'MODE_REGULAR',
    'DEFAULT_PERMISSIONS',
    'ContentStore',
    'qualify_ref',
]
