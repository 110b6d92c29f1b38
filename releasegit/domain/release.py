"""
Release domain object for releasegit.

A Release is one published archive of the upstream project:
- version: "0.8.3862"
- filename: "datomic-free-0.8.3862.zip"
- archive_url: where the archive can be downloaded
- published_at: when it was published

Everything except resolved_commit is fixed at construction. resolved_commit
is set exactly once, either from an existing tag or after this run commits
the release.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(eq=False)
class Release:
    """
    One archive snapshot of the upstream project.

    Identity is the version string: two Release objects with the same
    version compare equal regardless of the other fields.

    Example:
        release = Release("1.0", "app-1.0.zip", "http://host/app-1.0.zip",
                          datetime(2013, 1, 1))
        release.tag_name()          -> "v1.0"
        release.resolve("abc123")   # sets resolved_commit once
    """

    version: str
    filename: str
    archive_url: str
    published_at: datetime
    resolved_commit: Optional[str] = field(default=None)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Release):
            return NotImplemented
        return self.version == other.version

    def __hash__(self) -> int:
        return hash(self.version)

    @property
    def is_resolved(self) -> bool:
        """True once the release has a commit in the store."""
        return self.resolved_commit is not None

    def resolve(self, commit: str) -> None:
        """
        Record the commit that represents this release.

        Raises:
            ValueError: If the release was already resolved
        """
        if self.resolved_commit is not None:
            raise ValueError(
                f"Release {self.version} already resolved to {self.resolved_commit}"
            )
        self.resolved_commit = commit

    def tag_name(self, prefix: str = "v") -> str:
        """Name of the tag marking this release."""
        return f"{prefix}{self.version}"

    def matches_tag(self, tag_name: str, prefix: str = "v") -> bool:
        """
        Check whether an existing tag marks this release.

        Matching is exact: the tag must be either the prefixed version
        ("v1.0") or the bare version ("1.0"). "v1.0" does not match
        release "1.0.1".
        """
        return tag_name == self.tag_name(prefix) or tag_name == self.version

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'version': self.version,
            'filename': self.filename,
            'archive_url': self.archive_url,
            'published_at': self.published_at.isoformat(),
            'resolved_commit': self.resolved_commit,
        }

    def __repr__(self) -> str:
        return f"Release({self.version!r}, published_at={self.published_at.isoformat()!r})"
