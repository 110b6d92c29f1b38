"""Shared fixtures for releasegit tests."""

import shutil
import zipfile
from datetime import datetime, timezone

import pytest

from releasegit.domain import ArchiveEntry, Release
from releasegit.infra.memory_store import MemoryObjectStore

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, body=b"", status_code=200, text=None):
        self.body = body
        self.status_code = status_code
        self.text = text if text is not None else body.decode('utf-8', 'replace')

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def raise_for_status(self):
        import requests
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.body), chunk_size):
            yield self.body[i:i + chunk_size]


class FakeSession:
    """Records GET requests and answers from a url -> FakeResponse map."""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append(url)
        response = self.responses.get(url)
        if isinstance(response, Exception):
            raise response
        if response is None:
            return FakeResponse(b"not found", status_code=404)
        return response


class FakeFetcher:
    """Fetcher that 'downloads' by returning the filename."""

    def __init__(self):
        self.fetched = []
        self.prefetched = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def fetch(self, url, filename):
        self.fetched.append(filename)
        return filename

    def prefetch(self, releases):
        self.prefetched.extend(r.filename for r in releases)
        return len(self.prefetched)

    def close(self):
        pass


class FakeReader:
    """Reader serving entry lists keyed by archive filename."""

    def __init__(self, archives):
        self.archives = archives

    def entries(self, path):
        return iter(self.archives[path])


def make_release(version, day, resolved=None):
    return Release(
        version=version,
        filename=f"app-{version}.zip",
        archive_url=f"http://example.com/app-{version}.zip",
        published_at=datetime(2013, 1, day, tzinfo=timezone.utc),
        resolved_commit=resolved,
    )


def make_entries(version):
    return [
        ArchiveEntry("README", f"app {version}\n".encode(), 0o644),
        ArchiveEntry("bin/run", b"#!/bin/sh\nexec java -jar app.jar\n", 0o755),
        ArchiveEntry(f"lib/app-{version}.jar", f"jar {version}".encode(), 0o644),
    ]


def write_zip(path, files, root="app-1.0"):
    """Write a zip whose members live under one container directory.

    files maps relative path -> (bytes, unix mode).
    """
    with zipfile.ZipFile(path, "w") as archive:
        if root:
            info = zipfile.ZipInfo(f"{root}/", date_time=(2013, 1, 1, 0, 0, 0))
            info.external_attr = (0o040755 << 16) | 0x10
            archive.writestr(info, b"")
        for name, (content, mode) in files.items():
            member = f"{root}/{name}" if root else name
            info = zipfile.ZipInfo(member, date_time=(2013, 1, 2, 3, 4, 6))
            info.external_attr = mode << 16
            info.compress_type = zipfile.ZIP_DEFLATED
            archive.writestr(info, content)
    return path


@pytest.fixture
def store():
    return MemoryObjectStore()


@pytest.fixture
def releases():
    return [make_release("1.0", 1), make_release("1.1", 2)]


@pytest.fixture
def reader():
    return FakeReader({
        "app-1.0.zip": make_entries("1.0"),
        "app-1.1.zip": make_entries("1.1"),
        "app-1.2.zip": make_entries("1.2"),
    })


@pytest.fixture
def fetcher():
    return FakeFetcher()
