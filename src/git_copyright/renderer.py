# git-copyright - keep copyright notices in sync with git history
# Copyright (C) 2026 git-copyright Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Notice rendering.

A Template is parsed and validated once per run. Rendering is textual:
placeholders are replaced segment by segment, never through str.format on
user input, and unknown placeholders are rejected up front.
"""

from __future__ import annotations

import datetime
import re
import string
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .errors import TemplateError
from .models import ExistingNotice, YearRange
from .styles import BlockComment, CommentStyle, LineComment

# Closed set of recognised placeholders and the pattern each one takes in an
# existing notice.
YEARS_PATTERN = r"\d{4}(?:[ \t]*[-–,][ \t]*\d{4})*"
PLACEHOLDER_PATTERNS = {
    "years": YEARS_PATTERN,
    "first_year": r"\d{4}",
    "last_year": r"\d{4}",
    "current_year": r"\d{4}",
    "filename": r"\S+?",
}

Segment = Tuple[str, Optional[str]]


@dataclass(frozen=True)
class Template:
    text: str
    lines: Tuple[Tuple[Segment, ...], ...]

    @classmethod
    def parse(cls, text: str) -> "Template":
        if text is None or not text.strip():
            raise TemplateError("copyright template is empty")
        formatter = string.Formatter()
        parsed_lines = []
        for line in text.strip("\r\n").splitlines():
            line = line.rstrip()
            try:
                parts = list(formatter.parse(line))
            except ValueError as exc:
                raise TemplateError(f"malformed copyright template {text!r}: {exc}") from exc
            segments: List[Segment] = []
            for literal, name, spec, conversion in parts:
                if name is None:
                    segments.append((literal, None))
                    continue
                if name == "":
                    raise TemplateError("positional placeholder '{}' is not supported; use {years}")
                if name not in PLACEHOLDER_PATTERNS:
                    known = ", ".join("{" + n + "}" for n in PLACEHOLDER_PATTERNS)
                    raise TemplateError(f"unknown placeholder {{{name}}} in template (known: {known})")
                if spec or conversion:
                    raise TemplateError(f"placeholder {{{name}}} does not accept a conversion or format spec")
                segments.append((literal, name))
            parsed_lines.append(tuple(segments))
        return cls(text=text, lines=tuple(parsed_lines))

    @property
    def placeholders(self) -> frozenset:
        return frozenset(name for line in self.lines for _, name in line if name)

    def render(
        self,
        years: YearRange,
        filename: str = "",
        current_year: Optional[int] = None,
    ) -> List[str]:
        values = {
            "years": str(years),
            "first_year": str(years.start_year),
            "last_year": str(years.end_year),
            "current_year": str(current_year or datetime.date.today().year),
            "filename": filename,
        }
        rendered = []
        for line in self.lines:
            rendered.append("".join(literal + (values[name] if name else "") for literal, name in line))
        return rendered

    def line_patterns(self) -> List[re.Pattern]:
        """One regex per template line, matched against the text of a comment line."""
        patterns = []
        for line in self.lines:
            parts = []
            seen = set()
            for literal, name in line:
                parts.append(_literal_pattern(literal))
                if name is None:
                    continue
                group = PLACEHOLDER_PATTERNS[name]
                if name in seen:
                    parts.append(f"(?:{group})")
                else:
                    parts.append(f"(?P<{name}>{group})")
                    seen.add(name)
            patterns.append(re.compile("".join(parts)))
        return patterns


def _literal_pattern(literal: str) -> str:
    # Runs of blanks in the template match any run of blanks in the file.
    chunks = re.split(r"([ \t]+)", literal)
    return "".join("[ \\t]+" if chunk.isspace() else re.escape(chunk) for chunk in chunks if chunk)


def wrap_notice(style: CommentStyle, lines: Sequence[str]) -> List[str]:
    """Wrap notice text in a complete comment of the given style."""
    if isinstance(style, LineComment):
        return [f"{style.prefix} {line}".rstrip() for line in lines]

    if len(lines) == 1:
        return [f"{style.open} {lines[0]} {style.close}"]

    if style.continuation:
        indent = style.continuation[: len(style.continuation) - len(style.continuation.lstrip())]
        body = [f"{style.continuation} {line}".rstrip() for line in lines]
        return [style.open, *body, indent + style.close]
    return [style.open, *[line.rstrip() for line in lines], style.close]


def rewrap_notice(notice: ExistingNotice, lines: Sequence[str], style: CommentStyle) -> List[str]:
    """
    Render notice text inside the framing of an existing notice.

    Each rendered line keeps the comment prefix and suffix of the line it
    replaces, so only the notice text changes. When the template has more
    lines than were matched (a generic single-line notice), the extra lines
    get a continuation prefix and the last matched suffix moves to the end.
    """
    framings = list(notice.framings) or [("", "")]
    last_suffix = framings[-1][1]
    out = []
    for index, line in enumerate(lines):
        if index < len(framings):
            prefix, suffix = framings[index]
        else:
            prefix, suffix = _continuation_prefix(framings[-1][0], style), ""
        if index == len(framings) - 1 and index != len(lines) - 1:
            suffix = ""
        if index == len(lines) - 1 and index >= len(framings) - 1:
            suffix = last_suffix
        out.append((prefix + line + suffix).rstrip())
    return out


def _continuation_prefix(prefix: str, style: CommentStyle) -> str:
    if isinstance(style, BlockComment) and style.open in prefix:
        indent = prefix[: prefix.index(style.open)]
        if style.continuation:
            return f"{indent}{style.continuation} "
        return indent
    return prefix
