"""
Git object store infrastructure for releasegit.

Drives a real git repository through plumbing commands. All writes go
through this store, making them:
- Content addressed (git computes every object id)
- Easy to mock for testing (one _run method)
- Consistent in error handling (StoreWriteError / StoreReadError)

No working tree or index is touched: blobs, trees, commits and refs are
written directly into the object database.
"""

import os
import subprocess
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence
import logging

from ..domain.objects import CommitInfo, Signature, TagRef, TreeEntry
from ..domain.store import ContentStore, match_tag_pattern, qualify_ref
from ..errors import DuplicateTagError, StoreError, StoreReadError, StoreWriteError

logger = logging.getLogger(__name__)


class GitObjectStore(ContentStore):
    """
    ContentStore backed by a git repository.

    Example:
        store = GitObjectStore("/path/to/repo")
        blob = store.write_blob(b"hello\\n")
        tree = store.write_tree({"hello.txt": TreeEntry(blob, 0o100644)})
    """

    def __init__(self, path: str, timeout: int = 60, git: str = "git"):
        """
        Initialize GitObjectStore.

        Args:
            path: Path to the git repository (work tree or bare)
            timeout: Command timeout in seconds (default: 60)
            git: git executable to run
        """
        self.path = str(Path(path).expanduser())
        self.timeout = timeout
        self.git = git

    @classmethod
    def init(cls, path: str, bare: bool = False, **kwargs) -> 'GitObjectStore':
        """Create a repository at path (if needed) and open it."""
        Path(path).expanduser().mkdir(parents=True, exist_ok=True)
        store = cls(path, **kwargs)
        if not store.is_repository():
            args = ["init", "-q"]
            if bare:
                args.append("--bare")
            store._run(args)
            logger.info(f"Initialized git repository at {store.path}")
        return store

    def _run(
        self,
        args: Sequence[str],
        input: Optional[bytes] = None,
        env: Optional[Dict[str, str]] = None,
        check: bool = True,
        error: type = StoreWriteError
    ) -> subprocess.CompletedProcess:
        """
        Run a git command in the repository.

        Args:
            args: Arguments after the git executable
            input: Bytes written to stdin
            env: Extra environment variables
            check: Raise `error` on non-zero exit
            error: StoreError subclass raised on failure

        Returns:
            CompletedProcess with bytes stdout/stderr
        """
        cmd = [self.git, *args]
        run_env = None
        if env:
            run_env = {**os.environ, **env}

        try:
            result = subprocess.run(
                cmd,
                cwd=self.path,
                input=input,
                capture_output=True,
                env=run_env,
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired as e:
            raise error(f"git command timed out: {' '.join(cmd)}") from e
        except OSError as e:
            raise error(f"git command failed: {' '.join(cmd)} - {e}") from e

        if check and result.returncode != 0:
            stderr = result.stderr.decode('utf-8', 'replace').strip()
            raise error(f"git {args[0]} failed ({result.returncode}): {stderr}")

        return result

    @staticmethod
    def _text(result: subprocess.CompletedProcess) -> str:
        return result.stdout.decode('utf-8', 'replace').strip()

    def is_repository(self) -> bool:
        """Check if path is inside a git repository."""
        try:
            result = self._run(["rev-parse", "--git-dir"], check=False, error=StoreReadError)
        except StoreError:
            return False
        return result.returncode == 0

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def find_tags(self, pattern: str = "*") -> List[TagRef]:
        """
        List tags matching pattern, peeled to the commits they mark.

        Annotated tags report the commit they point at, not the tag object.
        """
        fmt = "%(refname:strip=2)%00%(objectname)%00%(*objectname)"
        result = self._run(
            ["for-each-ref", f"--format={fmt}", "refs/tags"],
            error=StoreReadError
        )

        tags = []
        for line in self._text(result).split('\n'):
            if not line:
                continue
            name, oid, peeled = (line.split('\0') + ['', ''])[:3]
            if not match_tag_pattern(name, pattern):
                continue
            tags.append(TagRef(name=name, target=peeled or oid))
        return tags

    def has_tag(self, name: str) -> bool:
        result = self._run(
            ["show-ref", "--verify", "--quiet", f"refs/tags/{name}"],
            check=False,
            error=StoreReadError
        )
        return result.returncode == 0

    def read_ref(self, name: str) -> Optional[str]:
        """Resolve a reference to an object id, or None if it does not exist."""
        result = self._run(
            ["rev-parse", "--verify", "-q", qualify_ref(name)],
            check=False,
            error=StoreReadError
        )
        if result.returncode != 0:
            return None
        return self._text(result)

    def read_commit(self, oid: str) -> CommitInfo:
        result = self._run(["cat-file", "commit", oid], error=StoreReadError)
        return parse_commit(oid, result.stdout)

    def object_count(self) -> int:
        """Number of loose and packed objects, for reporting."""
        result = self._run(["count-objects", "-v"], error=StoreReadError)
        total = 0
        for line in self._text(result).split('\n'):
            key, _, value = line.partition(':')
            if key in ('count', 'in-pack'):
                total += int(value.strip() or 0)
        return total

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def write_blob(self, data: bytes) -> str:
        result = self._run(["hash-object", "-w", "-t", "blob", "--stdin"], input=data)
        return self._text(result)

    def write_tree(self, entries: Mapping[str, TreeEntry]) -> str:
        lines = []
        for name, entry in entries.items():
            if '/' in name or not name:
                raise StoreWriteError(f"Invalid tree entry name: {name!r}")
            lines.append(f"{entry.mode:o} {entry.object_type} {entry.oid}\t{name}\0")
        result = self._run(["mktree", "-z"], input="".join(lines).encode('utf-8'))
        return self._text(result)

    def write_commit(
        self,
        tree: str,
        parents: Sequence[str],
        author: Signature,
        committer: Signature,
        message: str
    ) -> str:
        args = ["commit-tree", "--no-gpg-sign", tree]
        for parent in parents:
            args += ["-p", parent]
        args += ["-m", message]

        env = {
            "GIT_AUTHOR_NAME": author.name,
            "GIT_AUTHOR_EMAIL": author.email,
            "GIT_AUTHOR_DATE": f"@{author.git_date}",
            "GIT_COMMITTER_NAME": committer.name,
            "GIT_COMMITTER_EMAIL": committer.email,
            "GIT_COMMITTER_DATE": f"@{committer.git_date}",
        }
        result = self._run(args, env=env)
        return self._text(result)

    def write_tag(self, name: str, target: str) -> str:
        """
        Create a lightweight tag; never moves an existing one.

        Returns:
            The tagged commit id (lightweight tags have no object of their own)
        """
        ref = f"refs/tags/{name}"
        existing = self.read_ref(ref)
        if existing is not None:
            raise DuplicateTagError(name, existing)

        # Empty old value: update-ref refuses if the ref appeared meanwhile
        result = self._run(["update-ref", ref, target, ""], check=False)
        if result.returncode != 0:
            existing = self.read_ref(ref)
            if existing is not None:
                raise DuplicateTagError(name, existing)
            stderr = result.stderr.decode('utf-8', 'replace').strip()
            raise StoreWriteError(f"Could not create tag {name}: {stderr}")
        return target

    def update_ref(self, name: str, target: str, force: bool = True) -> None:
        ref = qualify_ref(name)
        args = ["update-ref", "-m", "releasegit: update", ref, target]
        if not force:
            # Only create, never move
            args.append("")
        self._run(args)


def parse_commit(oid: str, raw: bytes) -> CommitInfo:
    """Parse the body of a commit object."""
    text = raw.decode('utf-8', 'replace')
    header, _, message = text.partition('\n\n')

    tree = ""
    parents = []
    author = ""
    committer = ""
    for line in header.split('\n'):
        key, _, value = line.partition(' ')
        if key == 'tree':
            tree = value
        elif key == 'parent':
            parents.append(value)
        elif key == 'author':
            author = value
        elif key == 'committer':
            committer = value

    return CommitInfo(
        oid=oid,
        tree=tree,
        parents=tuple(parents),
        author=author,
        committer=committer,
        message=message.rstrip('\n')
    )
