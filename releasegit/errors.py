"""
Error taxonomy for releasegit.

Every failure that aborts a history run is one of these. Nothing is
retried or rolled back: releases committed and tagged before the failure
stay in the store and are pre-resolved on the next run.
"""


class ReleaseGitError(Exception):
    """Base class for all releasegit errors."""


class CatalogError(ReleaseGitError):
    """The release list could not be fetched or is inconsistent."""


class ArchiveFetchError(ReleaseGitError):
    """An archive could not be downloaded or cached."""

    def __init__(self, message: str, url: str = "", filename: str = ""):
        super().__init__(message)
        self.url = url
        self.filename = filename


class ArchiveReadError(ReleaseGitError):
    """An archive is malformed or its entry stream could not be drained."""


class UnsupportedEntryKind(ArchiveReadError):
    """An archive member is not a regular file (symlink, device, ...)."""

    def __init__(self, path: str, mode: int):
        super().__init__(f"Unsupported archive entry {path!r} (mode {mode:o})")
        self.path = path
        self.mode = mode


class StoreError(ReleaseGitError):
    """Base class for object store failures."""


class StoreReadError(StoreError):
    """Reading an object or reference from the store failed."""


class StoreWriteError(StoreError):
    """Writing an object or reference to the store failed."""


class DuplicateTagError(StoreWriteError):
    """A tag with this name already exists and was not pre-resolved."""

    def __init__(self, name: str, target: str = ""):
        message = f"Tag {name!r} already exists"
        if target:
            message += f" (points at {target})"
        super().__init__(message)
        self.name = name
        self.target = target


class RunCancelled(ReleaseGitError):
    """The run was cancelled or hit its deadline between releases."""
