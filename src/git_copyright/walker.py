# git-copyright - keep copyright notices in sync with git history
# Copyright (C) 2026 git-copyright Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

from fnmatch import fnmatchcase
from pathlib import Path, PurePosixPath
from typing import Iterator, Sequence

from .history import GitRepository
from .logging_config import get_logger
from .models import TrackedFile

logger = get_logger(__name__)

SNIFF_BYTES = 8000

DEFAULT_IGNORE_FILES = [
    "LICENSE*",
    "COPYING*",
    "NOTICE*",
    ".gitignore",
    ".gitattributes",
    ".gitmodules",
    "*.lock",
]

BINARY_EXTENSIONS = {
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".icns", ".webp", ".tif", ".tiff",
    ".pdf", ".zip", ".tar", ".gz", ".tgz", ".bz2", ".xz", ".7z", ".jar", ".whl",
    ".mp3", ".mp4", ".wav", ".ogg", ".mov", ".avi",
    ".ttf", ".otf", ".woff", ".woff2", ".eot",
    ".so", ".dll", ".dylib", ".exe", ".bin", ".o", ".a", ".lib", ".class", ".pyc",
    ".db", ".sqlite", ".npy", ".npz", ".pkl", ".parquet",
}


def is_binary(path: Path) -> bool:
    if path.suffix.lower() in BINARY_EXTENSIONS:
        return True
    try:
        with path.open("rb") as fh:
            chunk = fh.read(SNIFF_BYTES)
    except OSError:
        return False
    return b"\0" in chunk


def is_excluded(path: str, file_patterns: Sequence[str], dir_patterns: Sequence[str] = ()) -> bool:
    """
    Match a repository-relative path against exclusion globs.

    File patterns are tried on the whole path and on the file name; directory
    patterns on every parent directory (both its path and its name).
    """
    pure = PurePosixPath(path)
    for pattern in file_patterns:
        pattern = pattern.rstrip("/")
        if fnmatchcase(path, pattern) or fnmatchcase(pure.name, pattern):
            return True
        # "vendor/" or "vendor/**" style patterns exclude a whole directory.
        if pattern.endswith("/**") and fnmatchcase(path, pattern[:-3] + "/*"):
            return True
    parents = [p for p in pure.parents if str(p) != "."]
    for pattern in dir_patterns:
        pattern = pattern.rstrip("/")
        for parent in parents:
            if fnmatchcase(parent.as_posix(), pattern) or fnmatchcase(parent.name, pattern):
                return True
    return False


def walk_repository(
    repo: GitRepository,
    exclude: Sequence[str] = (),
    ignore_dirs: Sequence[str] = (),
    pathspecs: Sequence[str] = (),
) -> Iterator[TrackedFile]:
    """Yield tracked regular files that are not excluded."""
    for path in repo.tracked_files(pathspecs):
        if is_excluded(path, exclude, ignore_dirs):
            logger.debug(f"Excluded {path}")
            continue
        absolute = repo.root / path
        if absolute.is_symlink() or not absolute.is_file():
            # Deleted in the working tree, a symlink or a submodule.
            continue
        yield TrackedFile(
            path=path,
            absolute_path=absolute,
            extension=PurePosixPath(path).suffix.lstrip("."),
            is_binary=is_binary(absolute),
        )
