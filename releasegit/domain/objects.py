"""
Value objects for the content-addressed object model.

These mirror what a git object store holds:
- ArchiveEntry: one file read from a release archive (transient)
- TreeEntry: one (object id, mode) row of a tree
- Signature: author/committer identity with a timestamp
- TagRef: an existing tag and the commit it points at
- CommitInfo: a commit read back from the store
"""

import stat
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple

# Git tree entry modes
MODE_TREE = 0o040000
MODE_REGULAR = stat.S_IFREG  # 0o100000
DEFAULT_PERMISSIONS = 0o644


@dataclass(frozen=True)
class ArchiveEntry:
    """
    A file read from an archive, with the container directory stripped.

    permission_bits may include file-type bits (stat.S_IFMT) exactly as the
    archive stored them; only regular files are accepted when building a tree.
    """
    path: str
    content: bytes
    permission_bits: int = DEFAULT_PERMISSIONS
    mod_time: Optional[datetime] = None

    @property
    def kind(self) -> int:
        """File-type bits, 0 when the archive stored permissions only."""
        return stat.S_IFMT(self.permission_bits)

    @property
    def is_regular(self) -> bool:
        return self.kind in (0, stat.S_IFREG)

    @property
    def tree_mode(self) -> int:
        """Mode recorded in the tree: regular file OR'd with the permission bits."""
        return MODE_REGULAR | stat.S_IMODE(self.permission_bits)


@dataclass(frozen=True)
class TreeEntry:
    """One row of a tree object."""
    oid: str
    mode: int

    @property
    def is_tree(self) -> bool:
        return self.mode == MODE_TREE

    @property
    def object_type(self) -> str:
        return "tree" if self.is_tree else "blob"


@dataclass(frozen=True)
class Signature:
    """
    Author or committer identity.

    Naive datetimes are taken to be UTC.
    """
    name: str
    email: str
    time: datetime

    def _aware_time(self) -> datetime:
        if self.time.tzinfo is None:
            return self.time.replace(tzinfo=timezone.utc)
        return self.time

    @property
    def timestamp(self) -> int:
        return int(self._aware_time().timestamp())

    @property
    def offset(self) -> str:
        """UTC offset in git's +hhmm form."""
        delta = self._aware_time().utcoffset()
        minutes = int(delta.total_seconds() // 60) if delta else 0
        sign = '-' if minutes < 0 else '+'
        minutes = abs(minutes)
        return f"{sign}{minutes // 60:02d}{minutes % 60:02d}"

    @property
    def git_date(self) -> str:
        """Date in git's internal "<epoch> <offset>" format."""
        return f"{self.timestamp} {self.offset}"

    def to_git(self) -> str:
        """Signature line as it appears in a commit object."""
        return f"{self.name} <{self.email}> {self.git_date}"


@dataclass(frozen=True)
class TagRef:
    """An existing tag, with target peeled to the commit it marks."""
    name: str
    target: str


@dataclass(frozen=True)
class CommitInfo:
    """A commit as read back from the store."""
    oid: str
    tree: str
    parents: Tuple[str, ...] = ()
    author: str = ""
    committer: str = ""
    message: str = field(default="")
