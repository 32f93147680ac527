# git-copyright - keep copyright notices in sync with git history
# Copyright (C) 2026 git-copyright Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

import os
import stat
import tempfile
from pathlib import Path
from typing import Optional, Sequence

from .models import ExistingNotice
from .renderer import rewrap_notice, wrap_notice
from .styles import CommentStyle, leading_end


def detect_eol(text: str) -> str:
    # Preserve the file's newline style; default to '\n' if there is none.
    index = text.find("\n")
    if index > 0 and text[index - 1] == "\r":
        return "\r\n"
    return "\n"


def _starts_with_blank_line(text: str) -> bool:
    line = text.split("\n", 1)[0]
    return not line.strip()


def apply_notice(
    text: str,
    style: CommentStyle,
    lines: Sequence[str],
    notice: Optional[ExistingNotice] = None,
) -> str:
    """
    Return new file contents carrying the notice.

    With an existing notice its span is replaced and nothing outside it
    changes. Otherwise the wrapped notice is inserted after the constructs
    that must stay first in the file, followed by one blank line.
    """
    eol = detect_eol(text)
    if notice is not None:
        replacement = eol.join(rewrap_notice(notice, lines, style))
        return text[: notice.start] + replacement + text[notice.end:]

    block = eol.join(wrap_notice(style, lines)) + eol
    pos = leading_end(text, style.leading)
    head, rest = text[:pos], text[pos:]
    # A bare byte order mark is not a line of its own.
    if head.lstrip("\ufeff") and not head.endswith(("\n", "\r")):
        head += eol
    if rest and not _starts_with_blank_line(rest):
        block += eol
    return head + block + rest


def write_atomic(path: Path, text: str, encoding: str = "utf-8") -> None:
    """Write through a temporary file in the same directory, then rename over the target."""
    path = Path(path)
    try:
        mode = stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        mode = None

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as fh:
            fh.write(text)
            fh.flush()
            os.fsync(fh.fileno())
        if mode is not None:
            os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def update_file(path: Path, original: str, new_text: str, dry_run: bool = False) -> bool:
    """Write new_text unless it equals the original or this is a dry run. Returns whether it differs."""
    if new_text == original:
        return False
    if not dry_run:
        write_atomic(path, new_text)
    return True
