"""
Tree building service for releasegit.

Turns a flat stream of archive entries into one hierarchical tree:
- One blob per file, written as the entry is consumed
- One tree per directory level, including the root
- Paths are sorted before assembly, so entry order never changes the id
"""

import logging
from typing import Dict, Iterable, List, Tuple

from ..domain.objects import ArchiveEntry, MODE_TREE, TreeEntry
from ..domain.store import ContentStore
from ..errors import ArchiveReadError, StoreError, UnsupportedEntryKind

logger = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    """
    Canonical archive-relative path.

    Raises:
        ArchiveReadError: For empty, "." or ".." segments
    """
    stripped = path.lstrip('/')
    while stripped.startswith('./'):
        stripped = stripped[2:].lstrip('/')

    segments = stripped.split('/')
    for segment in segments:
        if segment in ('', '.', '..'):
            raise ArchiveReadError(f"Invalid path in archive: {path!r}")
    return '/'.join(segments)


class TreeBuilder:
    """
    Builds a tree object from archive entries.

    Example:
        builder = TreeBuilder(store)
        tree = builder.build(reader.entries(archive_path))
    """

    def __init__(self, store: ContentStore):
        self.store = store

    def build(self, entries: Iterable[ArchiveEntry]) -> str:
        """
        Write blobs and trees for entries and return the root tree id.

        The iterable is drained exactly once.

        Raises:
            ArchiveReadError: If the entries cannot be drained or conflict
            UnsupportedEntryKind: For non-regular members
            StoreWriteError: If the store rejects a write
        """
        index = self._index(entries)
        tree = self._write_level(sorted(index.items()))
        logger.debug(f"Built tree {tree} from {len(index)} files")
        return tree

    build_tree = build

    def _index(self, entries: Iterable[ArchiveEntry]) -> Dict[str, TreeEntry]:
        index: Dict[str, TreeEntry] = {}
        iterator = iter(entries)
        while True:
            try:
                entry = next(iterator)
            except StopIteration:
                break
            except (ArchiveReadError, StoreError):
                raise
            except Exception as e:
                raise ArchiveReadError(f"Archive entry stream failed: {e}") from e

            if not entry.is_regular:
                raise UnsupportedEntryKind(entry.path, entry.permission_bits)

            path = normalize_path(entry.path)
            if path in index:
                raise ArchiveReadError(f"Duplicate path in archive: {path!r}")

            index[path] = TreeEntry(
                oid=self.store.write_blob(entry.content),
                mode=entry.tree_mode
            )
        return index

    def _write_level(self, items: List[Tuple[str, TreeEntry]]) -> str:
        """Write one directory from sorted (relative path, entry) pairs."""
        level: Dict[str, TreeEntry] = {}
        groups: Dict[str, List[Tuple[str, TreeEntry]]] = {}

        for path, entry in items:
            head, sep, rest = path.partition('/')
            if sep:
                groups.setdefault(head, []).append((rest, entry))
            else:
                level[head] = entry

        for name, children in groups.items():
            if name in level:
                raise ArchiveReadError(f"Path {name!r} is both a file and a directory")
            level[name] = TreeEntry(oid=self._write_level(children), mode=MODE_TREE)

        return self.store.write_tree(level)


def build_tree(entries: Iterable[ArchiveEntry], store: ContentStore) -> str:
    """Build a tree for entries in store. See TreeBuilder.build."""
    return TreeBuilder(store).build(entries)
