# git-copyright - keep copyright notices in sync with git history
# Copyright (C) 2026 git-copyright Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

import os
import shutil
import subprocess
from datetime import datetime, timezone
from pathlib import Path

import pytest


class GitTestRepo:
    """A throwaway repository whose commits carry fixed dates."""

    def __init__(self, root: Path):
        self.root = root
        self.git("init", "-q")

    def git(self, *args, env=None):
        cmd = [
            "git",
            "-c", "user.name=Test User",
            "-c", "user.email=test@example.com",
            "-c", "commit.gpgsign=false",
            "-c", "init.defaultBranch=main",
            *args,
        ]
        full_env = dict(os.environ)
        full_env.update(env or {})
        return subprocess.run(cmd, cwd=self.root, env=full_env, check=True, capture_output=True)

    def write(self, name, content):
        path = self.root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_bytes(content.encode("utf-8"))
        return path

    def read(self, name):
        return (self.root / name).read_bytes().decode("utf-8")

    def commit(self, year, files=None, message=None):
        for name, content in (files or {}).items():
            self.write(name, content)
        self.git("add", "-A")
        stamp = int(datetime(year, 6, 1, 12, tzinfo=timezone.utc).timestamp())
        date = f"{stamp} +0000"
        self.git(
            "commit", "-q", "--allow-empty", "-m", message or f"commit in {year}",
            env={"GIT_AUTHOR_DATE": date, "GIT_COMMITTER_DATE": date},
        )


@pytest.fixture
def git_repo(tmp_path):
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    root = tmp_path / "repo"
    root.mkdir()
    return GitTestRepo(root)
