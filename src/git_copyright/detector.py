# git-copyright - keep copyright notices in sync with git history
# Copyright (C) 2026 git-copyright Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Notice detection.

Only the head of a file is scanned. Each head line is split into the comment
framing (prefix, suffix) and the text in between, tracking block comment
state, so that notices are recognised independently of how they are wrapped.
Two kinds of notice are found:

- template notices: consecutive comment lines whose text has the exact shape
  of the configured template (years may differ);
- generic notices: a single comment line carrying a copyright marker
  ("Copyright", "©", "(c)") and a plausible year.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .errors import FileSkipped
from .models import ExistingNotice, YearRange
from .renderer import YEARS_PATTERN, Template
from .styles import CommentStyle, LineComment

DEFAULT_HEAD_LINES = 20

MARKER_RE = re.compile(r"copyright|©|\(c\)", re.IGNORECASE)
PLAUSIBLE_YEAR_RE = re.compile(r"(?<!\d)(?:19|20)\d{2}(?!\d)")
YEARS_RE = re.compile(r"(?<!\d)" + YEARS_PATTERN + r"(?!\d)")
_YEAR_RE = re.compile(r"\d{4}")
_LINE_RE = re.compile(r"([^\r\n]*)(\r\n|\n|\r)?")


class AmbiguousNoticeError(FileSkipped):
    pass


@dataclass(frozen=True)
class CommentLine:
    start: int
    end: int
    prefix: str = ""
    body: str = ""
    suffix: str = ""
    in_comment: bool = False


@dataclass(frozen=True)
class NoticeMatcher:
    patterns: tuple

    @classmethod
    def for_template(cls, template: Template) -> "NoticeMatcher":
        return cls(patterns=tuple(template.line_patterns()))

    @staticmethod
    def is_generic_notice(body: str) -> bool:
        return bool(MARKER_RE.search(body)) and bool(PLAUSIBLE_YEAR_RE.search(body))


def parse_years(text: str) -> Optional[YearRange]:
    """Best-effort year range from notice text: 2019, 2019-2022, 2019, 2021-2022."""
    m = YEARS_RE.search(text)
    if m is None:
        return None
    years = [int(y) for y in _YEAR_RE.findall(m.group(0))]
    return YearRange(start_year=min(years), end_year=max(years))


def _iter_lines(text: str, limit: int):
    # A byte order mark is not part of the first line.
    pos = 1 if text.startswith("\ufeff") else 0
    count = 0
    while count < limit and pos < len(text):
        m = _LINE_RE.match(text, pos)
        content = m.group(1)
        yield pos, pos + len(content), content
        pos = m.end()
        count += 1


def comment_lines(text: str, style: CommentStyle, head_lines: int = DEFAULT_HEAD_LINES) -> List[CommentLine]:
    """Split the first head_lines lines into comment framing and text."""
    lines: List[CommentLine] = []
    if isinstance(style, LineComment):
        line_re = _line_comment_re(style.prefix)
        for start, end, content in _iter_lines(text, head_lines):
            m = line_re.fullmatch(content)
            if m is None:
                lines.append(CommentLine(start, end))
                continue
            lines.append(_split(start, end, m.group("prefix"), m.group("body"), ""))
        return lines

    open_re = re.compile(r"[ \t]*" + re.escape(style.open) + r"[ \t]?")
    if style.continuation:
        cont_re = re.compile(r"[ \t]*(?:" + re.escape(style.continuation.strip()) + r"(?:[ \t]|$))?")
    else:
        cont_re = re.compile(r"[ \t]*")

    line_re = _line_comment_re(style.line_prefix) if style.line_prefix else None
    in_block = False
    for start, end, content in _iter_lines(text, head_lines):
        if in_block:
            m = cont_re.match(content)
            prefix_end = m.end()
        else:
            m = open_re.match(content)
            if m is None:
                m = line_re.fullmatch(content) if line_re is not None else None
                if m is None:
                    lines.append(CommentLine(start, end))
                else:
                    lines.append(_split(start, end, m.group("prefix"), m.group("body"), ""))
                continue
            prefix_end = m.end()
            in_block = True

        rest = content[prefix_end:]
        close_at = rest.find(style.close)
        if close_at >= 0:
            body, tail = rest[:close_at], rest[close_at:]
            in_block = False
        else:
            body, tail = rest, ""
        lines.append(_split(start, end, content[:prefix_end], body, tail))
    return lines


def _line_comment_re(prefix: str) -> re.Pattern:
    return re.compile(r"(?P<prefix>[ \t]*" + re.escape(prefix) + r"[ \t]?)(?P<body>.*)")


def _split(start: int, end: int, prefix: str, text: str, tail: str) -> CommentLine:
    body = text.rstrip()
    return CommentLine(start, end, prefix, body, text[len(body):] + tail, True)


def _notice_from(lines: Sequence[CommentLine], matches: Sequence[re.Match] = ()) -> ExistingNotice:
    years = None
    groups = {}
    for m in matches:
        groups.update({k: v for k, v in m.groupdict().items() if v is not None})
    if "years" in groups:
        years = parse_years(groups["years"])
    elif "first_year" in groups and "last_year" in groups:
        first, last = int(groups["first_year"]), int(groups["last_year"])
        if first <= last:
            years = YearRange(start_year=first, end_year=last)
    if years is None:
        years = parse_years("\n".join(line.body for line in lines))
    return ExistingNotice(
        start=lines[0].start,
        end=lines[-1].end,
        framings=[(line.prefix, line.suffix) for line in lines],
        years=years,
        matches_template=bool(matches),
    )


def find_notices(
    text: str,
    style: CommentStyle,
    matcher: NoticeMatcher,
    head_lines: int = DEFAULT_HEAD_LINES,
) -> List[ExistingNotice]:
    """All notice-like comment blocks in the file head: template notices first, then generic ones."""
    lines = comment_lines(text, style, head_lines)
    width = len(matcher.patterns)
    template_notices: List[ExistingNotice] = []
    consumed = set()

    index = 0
    while width and index + width <= len(lines):
        window = lines[index: index + width]
        matches = []
        for pattern, line in zip(matcher.patterns, window):
            if not line.in_comment:
                break
            m = pattern.fullmatch(line.body)
            if m is None:
                break
            matches.append(m)
        if len(matches) == width:
            template_notices.append(_notice_from(window, matches))
            consumed.update(range(index, index + width))
            index += width
        else:
            index += 1

    generic_notices = [
        _notice_from([line])
        for index, line in enumerate(lines)
        if index not in consumed and line.in_comment and matcher.is_generic_notice(line.body)
    ]
    return template_notices + generic_notices


def select_notice(notices: Sequence[ExistingNotice], policy: str = "first") -> Optional[ExistingNotice]:
    """
    Pick the canonical notice. Template notices win over generic ones; among
    candidates of the same kind the first in the file is canonical, unless
    the policy is "skip", in which case more than one candidate is an error.
    """
    if not notices:
        return None
    candidates = [n for n in notices if n.matches_template] or list(notices)
    if len(candidates) > 1 and policy == "skip":
        raise AmbiguousNoticeError(f"{len(candidates)} notice-like comment blocks in the file head")
    return candidates[0]


def without_notice(text: str, notice: Optional[ExistingNotice]) -> str:
    if notice is None:
        return text
    return text[: notice.start] + text[notice.end:]
