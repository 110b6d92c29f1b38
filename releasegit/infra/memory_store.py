"""
In-memory object store for releasegit.

Computes the same object ids git would, without a repository:
- Objects are framed as "<type> <size>\\0<body>" and hashed with SHA-1
- Trees are serialized in git's entry order
- Commits use git's header layout

Used by the test suite and by `releasegit update --dry-run`.
"""

import hashlib
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..domain.objects import CommitInfo, Signature, TagRef, TreeEntry
from ..domain.store import ContentStore, match_tag_pattern, qualify_ref
from ..errors import DuplicateTagError, StoreReadError, StoreWriteError
from .git_store import parse_commit


def _tree_sort_key(item: Tuple[str, TreeEntry]) -> bytes:
    # Git compares directory names as if they ended in '/'
    name, entry = item
    key = name + '/' if entry.is_tree else name
    return key.encode('utf-8')


class MemoryObjectStore(ContentStore):
    """
    ContentStore holding objects in a dict.

    Every object or tag write (including writes of content already present)
    is counted in `writes`; reference moves are counted in `ref_updates`.

    Example:
        store = MemoryObjectStore()
        oid = store.write_blob(b"hello\\n")
        assert oid == "ce013625030ba8dba906f756967f9e9ca394464a"
    """

    def __init__(self, tags: Optional[Iterable[TagRef]] = None):
        """
        Initialize MemoryObjectStore.

        Args:
            tags: Existing tags to seed the store with (targets need not exist)
        """
        self.objects: Dict[str, Tuple[str, bytes]] = {}
        self.refs: Dict[str, str] = {}
        self.writes = 0
        self.ref_updates = 0
        for tag in tags or ():
            self.refs[f"refs/tags/{tag.name}"] = tag.target

    def _hash_object(self, obj_type: str, body: bytes) -> str:
        self.writes += 1
        header = f"{obj_type} {len(body)}\0".encode()
        oid = hashlib.sha1(header + body).hexdigest()
        self.objects.setdefault(oid, (obj_type, body))
        return oid

    def read_object(self, oid: str) -> Tuple[str, bytes]:
        try:
            return self.objects[oid]
        except KeyError:
            raise StoreReadError(f"Object not found: {oid}") from None

    def read_tree(self, oid: str) -> Dict[str, TreeEntry]:
        """Decode a tree object into name -> TreeEntry."""
        obj_type, body = self.read_object(oid)
        if obj_type != 'tree':
            raise StoreReadError(f"{oid} is a {obj_type}, not a tree")

        entries = {}
        pos = 0
        while pos < len(body):
            space = body.index(b' ', pos)
            nul = body.index(b'\0', space)
            mode = int(body[pos:space], 8)
            name = body[space + 1:nul].decode('utf-8')
            entries[name] = TreeEntry(oid=body[nul + 1:nul + 21].hex(), mode=mode)
            pos = nul + 21
        return entries

    def count(self, obj_type: str) -> int:
        """Number of distinct objects of a type."""
        return sum(1 for kind, _ in self.objects.values() if kind == obj_type)

    # -------------------------------------------------------------------------
    # ContentStore
    # -------------------------------------------------------------------------

    def find_tags(self, pattern: str = "*") -> List[TagRef]:
        tags = []
        for ref, target in sorted(self.refs.items()):
            if not ref.startswith("refs/tags/"):
                continue
            name = ref[len("refs/tags/"):]
            if match_tag_pattern(name, pattern):
                tags.append(TagRef(name=name, target=target))
        return tags

    def has_tag(self, name: str) -> bool:
        return f"refs/tags/{name}" in self.refs

    def read_ref(self, name: str) -> Optional[str]:
        return self.refs.get(qualify_ref(name))

    def read_commit(self, oid: str) -> CommitInfo:
        obj_type, body = self.read_object(oid)
        if obj_type != 'commit':
            raise StoreReadError(f"{oid} is a {obj_type}, not a commit")
        return parse_commit(oid, body)

    def write_blob(self, data: bytes) -> str:
        return self._hash_object('blob', bytes(data))

    def write_tree(self, entries: Mapping[str, TreeEntry]) -> str:
        body = bytearray()
        for name, entry in sorted(entries.items(), key=_tree_sort_key):
            if '/' in name or not name:
                raise StoreWriteError(f"Invalid tree entry name: {name!r}")
            body += f"{entry.mode:o} {name}\0".encode('utf-8')
            body += bytes.fromhex(entry.oid)
        return self._hash_object('tree', bytes(body))

    def write_commit(
        self,
        tree: str,
        parents: Sequence[str],
        author: Signature,
        committer: Signature,
        message: str
    ) -> str:
        lines = [f"tree {tree}"]
        lines.extend(f"parent {parent}" for parent in parents)
        lines.append(f"author {author.to_git()}")
        lines.append(f"committer {committer.to_git()}")
        body = "\n".join(lines) + "\n\n" + message + "\n"
        return self._hash_object('commit', body.encode('utf-8'))

    def write_tag(self, name: str, target: str) -> str:
        ref = f"refs/tags/{name}"
        if ref in self.refs:
            raise DuplicateTagError(name, self.refs[ref])
        self.writes += 1
        self.refs[ref] = target
        return target

    def update_ref(self, name: str, target: str, force: bool = True) -> None:
        ref = qualify_ref(name)
        if not force and ref in self.refs:
            raise StoreWriteError(f"Reference {ref} already exists")
        self.ref_updates += 1
        self.refs[ref] = target
