"""
Zip archive reader for releasegit.

Release archives wrap their files in one container directory
("datomic-free-0.8.3862/bin/run"). The reader strips that directory and
yields one ArchiveEntry per file member, lazily, so only one member's
content is in memory at a time.
"""

import logging
import stat
import zipfile
import zlib
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from ..domain.objects import ArchiveEntry, DEFAULT_PERMISSIONS
from ..errors import ArchiveReadError

logger = logging.getLogger(__name__)


def strip_container(name: str) -> str:
    """
    Drop the top-level container directory from a member name.

    Members stored at the archive root (no directory component) keep
    their name.
    """
    head, sep, rest = name.partition('/')
    return rest if sep else head


def member_mode(info: zipfile.ZipInfo) -> int:
    """
    Unix mode stored in a zip member, including file-type bits.

    Archives created on hosts without unix permissions store nothing;
    those members get DEFAULT_PERMISSIONS.
    """
    mode = (info.external_attr >> 16) & 0xFFFF
    if not stat.S_IMODE(mode):
        mode = stat.S_IFMT(mode) | DEFAULT_PERMISSIONS
    return mode


def member_time(info: zipfile.ZipInfo) -> Optional[datetime]:
    try:
        return datetime(*info.date_time)
    except ValueError:
        return None


class ZipArchiveReader:
    """
    Enumerates the files of a zip archive.

    Example:
        reader = ZipArchiveReader()
        for entry in reader.entries("/tmp/app-1.0.zip"):
            print(entry.path, oct(entry.permission_bits))
    """

    def __init__(self, strip_components: bool = True):
        """
        Initialize ZipArchiveReader.

        Args:
            strip_components: Drop the top-level container directory
        """
        self.strip_components = strip_components

    def entries(self, path) -> Iterator[ArchiveEntry]:
        """
        Yield one ArchiveEntry per file member.

        Directory members are skipped. Symlinks and other special members
        are passed through with their type bits so the tree builder can
        reject them.

        Raises:
            ArchiveReadError: If the archive is missing, malformed or truncated
        """
        path = Path(path)
        try:
            with zipfile.ZipFile(path) as archive:
                for info in archive.infolist():
                    if info.is_dir():
                        continue

                    name = strip_container(info.filename) if self.strip_components else info.filename
                    if not name or name.endswith('/'):
                        continue

                    with archive.open(info) as member:
                        content = member.read()

                    yield ArchiveEntry(
                        path=name,
                        content=content,
                        permission_bits=member_mode(info),
                        mod_time=member_time(info),
                    )
        except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, EOFError, OSError) as e:
            raise ArchiveReadError(f"Cannot read archive {path}: {e}") from e
