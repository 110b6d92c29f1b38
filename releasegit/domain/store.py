"""
ContentStore contract for releasegit.

The store owns every persisted object. Objects are write-once and named by
the hash of their content, so writing identical content twice yields the
same id. Tags are create-only; references can be repointed.

Implementations live in releasegit.infra:
- GitObjectStore: a real git repository driven through plumbing commands
- MemoryObjectStore: in-process store with git-compatible ids
"""

import fnmatch
from typing import List, Mapping, Optional, Sequence

from .objects import CommitInfo, Signature, TagRef, TreeEntry


class ContentStore:
    """
    Content-addressable blob/tree/commit/tag storage.

    Write methods raise StoreWriteError on failure; write_tag raises
    DuplicateTagError when the tag already exists.
    """

    def find_tags(self, pattern: str = "*") -> List[TagRef]:
        """Tags whose short name matches an fnmatch-style pattern."""
        raise NotImplementedError

    def has_tag(self, name: str) -> bool:
        return any(tag.name == name for tag in self.find_tags(name))

    def write_blob(self, data: bytes) -> str:
        raise NotImplementedError

    def write_tree(self, entries: Mapping[str, TreeEntry]) -> str:
        """Write one directory level. Names must not contain '/'."""
        raise NotImplementedError

    def write_commit(
        self,
        tree: str,
        parents: Sequence[str],
        author: Signature,
        committer: Signature,
        message: str
    ) -> str:
        raise NotImplementedError

    def write_tag(self, name: str, target: str) -> str:
        raise NotImplementedError

    def update_ref(self, name: str, target: str, force: bool = True) -> None:
        raise NotImplementedError

    def read_ref(self, name: str) -> Optional[str]:
        raise NotImplementedError

    def read_commit(self, oid: str) -> CommitInfo:
        raise NotImplementedError


def qualify_ref(name: str) -> str:
    """
    Expand a short reference name.

    "latest" -> "refs/heads/latest"; names already under refs/ are unchanged.
    """
    if name.startswith("refs/"):
        return name
    return f"refs/heads/{name}"


def match_tag_pattern(name: str, pattern: str) -> bool:
    """fnmatch-style tag name match, case-sensitive."""
    return fnmatch.fnmatchcase(name, pattern)
