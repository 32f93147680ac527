# git-copyright - keep copyright notices in sync with git history
# Copyright (C) 2026 git-copyright Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

import os
import subprocess
from datetime import datetime
from pathlib import Path
from typing import FrozenSet, List, Optional, Sequence

from .errors import CopyrightError, FileSkipped, RepositoryError
from .logging_config import get_logger
from .models import CommitRecord

logger = get_logger(__name__)

# Record separator between commits in `git log` output.
_RS = "\x1e"


class GitCommandError(CopyrightError):
    def __init__(self, args: Sequence[str], returncode: int, stderr: str) -> None:
        super().__init__(f"git {' '.join(args)} failed with exit code {returncode}: {stderr.strip()}")
        self.returncode = returncode
        self.stderr = stderr


class HistoryTimeoutError(FileSkipped):
    pass


class GitRepository:
    """
    Handle on one git work tree.

    Opened once per run and shared read-only by all workers: the top-level
    directory and the subprocess environment are resolved once, and each
    query is a single git invocation.
    """

    def __init__(self, root: Path, git: str = "git") -> None:
        self.root = Path(root)
        self.git = git
        env = dict(os.environ)
        # Parallel read-only queries must not contend for index.lock.
        env["GIT_OPTIONAL_LOCKS"] = "0"
        env["GIT_TERMINAL_PROMPT"] = "0"
        self._env = env

    @classmethod
    def open(cls, path: str | os.PathLike = ".", git: str = "git") -> "GitRepository":
        path = Path(path)
        if not path.exists():
            raise RepositoryError(f"repository path {path} does not exist")
        if not path.is_dir():
            path = path.parent
        try:
            result = subprocess.run(
                [git, "rev-parse", "--show-toplevel"],
                cwd=path,
                capture_output=True,
                timeout=60,
            )
        except FileNotFoundError as exc:
            raise RepositoryError(f"git executable {git!r} not found") from exc
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise RepositoryError(f"cannot query repository at {path}: {exc}") from exc
        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", "replace").strip()
            raise RepositoryError(f"{path} is not inside a git work tree: {stderr}")
        root = Path(result.stdout.decode("utf-8").strip())
        logger.debug(f"Opened git repository at {root}")
        return cls(root, git=git)

    def _run(self, args: Sequence[str], timeout: Optional[float] = None) -> bytes:
        cmd = [self.git, "-c", "core.quotepath=off", *args]
        result = subprocess.run(
            cmd,
            cwd=self.root,
            env=self._env,
            capture_output=True,
            timeout=timeout,
        )
        if result.returncode != 0:
            raise GitCommandError(args, result.returncode, result.stderr.decode("utf-8", "replace"))
        return result.stdout

    def relative(self, path: str | os.PathLike) -> str:
        """Repository-relative POSIX path for an absolute or cwd-relative path."""
        resolved = Path(path).resolve()
        return resolved.relative_to(self.root.resolve()).as_posix()

    def tracked_files(self, pathspecs: Sequence[str] = ()) -> List[str]:
        try:
            out = self._run(["ls-files", "-z", "--", *pathspecs])
        except GitCommandError as exc:
            raise RepositoryError(f"cannot list tracked files: {exc}") from exc
        return [p for p in out.decode("utf-8", "surrogateescape").split("\0") if p]

    def dirty_paths(self) -> FrozenSet[str]:
        """Tracked paths with staged or unstaged modifications, from one status query."""
        try:
            out = self._run(["status", "--porcelain=v1", "-z", "--untracked-files=no"])
        except GitCommandError as exc:
            raise RepositoryError(f"cannot read working tree status: {exc}") from exc
        entries = out.decode("utf-8", "surrogateescape").split("\0")
        dirty = set()
        index = 0
        while index < len(entries):
            entry = entries[index]
            index += 1
            if len(entry) < 4:
                continue
            code, path = entry[:2], entry[3:]
            dirty.add(path)
            # Renames and copies are followed by the original path.
            if "R" in code or "C" in code:
                index += 1
        return frozenset(dirty)

    def file_history(self, path: str, timeout: Optional[float] = None) -> List[CommitRecord]:
        """
        Commit timestamps that touched the content now at path, newest first.

        Renames are followed. An empty list means the path has never been
        committed.
        """
        args = [
            "log", "--follow", "-m", "--name-only",
            f"--format={_RS}%cI", "--", path,
        ]
        try:
            out = self._run(args, timeout=timeout)
        except subprocess.TimeoutExpired as exc:
            raise HistoryTimeoutError(f"history query timed out after {timeout}s") from exc
        return parse_log(out.decode("utf-8", "surrogateescape"), path)

    def head_contents(self, path: str, timeout: Optional[float] = None) -> Optional[bytes]:
        try:
            return self._run(["cat-file", "blob", f"HEAD:{path}"], timeout=timeout)
        except GitCommandError:
            return None
        except subprocess.TimeoutExpired as exc:
            raise HistoryTimeoutError(f"reading HEAD contents timed out after {timeout}s") from exc


def parse_log(output: str, path: str) -> List[CommitRecord]:
    records = []
    for chunk in output.split(_RS):
        lines = [line for line in chunk.splitlines() if line.strip()]
        if not lines:
            continue
        timestamp = datetime.fromisoformat(lines[0].strip())
        records.append(CommitRecord(timestamp=timestamp, path=lines[1] if len(lines) > 1 else path))
    return records
