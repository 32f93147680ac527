# git-copyright - keep copyright notices in sync with git history
# Copyright (C) 2026 git-copyright Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Comment style registry.

Maps a file to the comment syntax used for its notice, and records the
constructs that must stay first in the file (BOM, shebang, XML declaration,
encoding pragma, ...). The registry is built once per run and shared
read-only by every worker; overrides produce a new registry.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from types import MappingProxyType
from typing import Mapping, Optional, Sequence, Union


@dataclass(frozen=True)
class LeadingConstruct:
    name: str
    pattern: re.Pattern
    # Highest 0-based line number on which the construct may start.
    max_line: int = 0

    def match(self, text: str, pos: int, line: int) -> Optional[int]:
        if line > self.max_line:
            return None
        m = self.pattern.match(text, pos)
        if m is None or m.end() == pos:
            return None
        return m.end()


BOM = LeadingConstruct("bom", re.compile("\ufeff"))
# Rust inner attributes (#![...]) are code, not a shebang.
SHEBANG = LeadingConstruct("shebang", re.compile(r"#!(?!\[)[^\r\n]*(?:\r?\n)?"))
XML_DECLARATION = LeadingConstruct("xml-declaration", re.compile(r"<\?xml[^\r\n]*\?>[ \t]*(?:\r?\n)?"))
DOCTYPE = LeadingConstruct("doctype", re.compile(r"<!DOCTYPE[^\r\n]*>[ \t]*(?:\r?\n)?", re.IGNORECASE), max_line=1)
PHP_OPEN_TAG = LeadingConstruct("php-open-tag", re.compile(r"<\?php[ \t]*(?:\r?\n)?"), max_line=1)
# PEP 263 / Ruby magic comment: only honoured on the first two lines.
ENCODING_PRAGMA = LeadingConstruct(
    "encoding-pragma",
    re.compile(r"[ \t]*#[^\r\n]*coding[:=][ \t]*[-\w.]+[^\r\n]*(?:\r?\n)?"),
    max_line=1,
)

BASE_LEADING = (BOM, SHEBANG)
HASH_LEADING = (BOM, SHEBANG, ENCODING_PRAGMA)
MARKUP_LEADING = (BOM, XML_DECLARATION, DOCTYPE)
PHP_LEADING = (BOM, SHEBANG, PHP_OPEN_TAG)


def leading_end(text: str, constructs: Sequence[LeadingConstruct]) -> int:
    """Offset just past the leading constructs that must precede a notice."""
    pos = 0
    line = 0
    progressed = True
    while progressed:
        progressed = False
        for construct in constructs:
            end = construct.match(text, pos, line)
            if end is None:
                continue
            line += text.count("\n", pos, end)
            pos = end
            progressed = True
            break
    return pos


@dataclass(frozen=True)
class LineComment:
    prefix: str
    leading: tuple[LeadingConstruct, ...] = BASE_LEADING


@dataclass(frozen=True)
class BlockComment:
    open: str
    close: str
    continuation: Optional[str] = None
    leading: tuple[LeadingConstruct, ...] = BASE_LEADING
    # Languages that also have line comments; existing notices in that
    # form are recognised and kept in it.
    line_prefix: Optional[str] = None


CommentStyle = Union[LineComment, BlockComment]

HASH = LineComment("#", leading=HASH_LEADING)
SLASHES = LineComment("//")
DASHES = LineComment("--")
PERCENT = LineComment("%")
SEMICOLON = LineComment(";")
BANG = LineComment("!")
QUOTE = LineComment('"')
REM = LineComment("REM")
C_BLOCK = BlockComment("/*", "*/", " *", line_prefix="//")
CSS_BLOCK = BlockComment("/*", "*/", " *", leading=(BOM,))
STYLESHEET_BLOCK = BlockComment("/*", "*/", " *", leading=(BOM,), line_prefix="//")
PHP_LINE = LineComment("//", leading=PHP_LEADING)
MARKUP = BlockComment("<!--", "-->", leading=MARKUP_LEADING)
ML_BLOCK = BlockComment("(*", "*)")
HASKELL_BLOCK = BlockComment("{-", "-}", leading=(BOM,))
JINJA_BLOCK = BlockComment("{#", "#}", leading=(BOM,))


def _expand(groups: Sequence[tuple[CommentStyle, str]]) -> dict[str, CommentStyle]:
    mapping: dict[str, CommentStyle] = {}
    for style, keys in groups:
        for key in keys.split():
            mapping[key] = style
    return mapping


DEFAULT_EXTENSIONS: dict[str, CommentStyle] = _expand([
    (HASH, (
        "py pyi pyw pyx pxd sh bash zsh ksh fish rb rake gemspec pl pm t r R jl nim cr "
        "ex exs yaml yml toml cfg conf ini properties cmake mk make tf tfvars hcl nix "
        "ps1 psm1 psd1 awk sed tcl coffee gd bzl bazel star dockerfile containerfile "
        "graphql gql pp service socket env"
    )),
    (SLASHES, "rs go swift kt kts scala sc dart zig v groovy gradle proto fs fsx fsi jsonc sol"),
    (C_BLOCK, (
        "c h cc cpp cxx c++ hh hpp hxx h++ ipp inl cu cuh m mm java js jsx mjs cjs ts "
        "tsx mts cts cs d glsl hlsl frag vert"
    )),
    (CSS_BLOCK, "css"),
    (STYLESHEET_BLOCK, "scss sass less styl"),
    (PHP_LINE, "php phtml"),
    (DASHES, "sql lua hs lhs elm adb ads ada vhd vhdl purs"),
    (PERCENT, "tex sty cls bib erl hrl"),
    (SEMICOLON, "lisp el clj cljs cljc edn scm ss rkt asm nasm"),
    (BANG, "f f90 f95 f03 f08"),
    (QUOTE, "vim"),
    (REM, "bat cmd"),
    (MARKUP, "html htm xhtml xml xsd xsl xslt svg vue svelte md markdown plist csproj"),
    (ML_BLOCK, "ml mli sml fsl pas"),
    (JINJA_BLOCK, "j2 jinja jinja2"),
    (HASKELL_BLOCK, "agda"),
])

DEFAULT_FILENAMES: dict[str, CommentStyle] = {
    name: HASH
    for name in (
        "Dockerfile", "Containerfile", "Makefile", "GNUmakefile", "makefile",
        "CMakeLists.txt", "Justfile", "justfile", "Rakefile", "Gemfile", "Vagrantfile",
        "BUILD", "WORKSPACE", "Pipfile", "Procfile", ".bashrc", ".zshrc", ".profile",
        ".editorconfig", ".flake8", ".pylintrc", ".env",
    )
}

DEFAULT_INTERPRETERS: dict[str, CommentStyle] = {
    **{name: HASH for name in (
        "python", "pypy", "sh", "bash", "dash", "zsh", "ksh", "fish", "perl", "ruby",
        "Rscript", "tclsh", "wish", "awk", "gawk", "make", "julia", "elixir",
    )},
    "node": SLASHES,
    "deno": SLASHES,
    "bun": SLASHES,
    "php": PHP_LINE,
    "lua": DASHES,
    "runghc": DASHES,
    "escript": PERCENT,
}

_SHEBANG_RE = re.compile(r"^\ufeff?#!\s*(\S+)(?:\s+(\S+))?")
_VERSION_SUFFIX_RE = re.compile(r"[\d.]+$")


def shebang_interpreter(text: str) -> Optional[str]:
    """Interpreter named by a shebang line, without version suffix."""
    m = _SHEBANG_RE.match(text)
    if m is None:
        return None
    program = PurePosixPath(m.group(1)).name
    if program == "env" and m.group(2):
        arg = m.group(2)
        if arg.startswith("-") or "=" in arg:
            return None
        program = PurePosixPath(arg).name
    return _VERSION_SUFFIX_RE.sub("", program) or None


def style_from_sign(sign: Union[str, Sequence[str]], leading=BASE_LEADING) -> CommentStyle:
    """Build a style from a config-file comment sign (prefix or [open, close(, cont)])."""
    if isinstance(sign, str):
        return LineComment(sign.strip(), leading=HASH_LEADING if sign.strip() == "#" else leading)
    if len(sign) == 2:
        return BlockComment(sign[0].strip(), sign[1].strip(), leading=leading)
    if len(sign) == 3:
        return BlockComment(sign[0].strip(), sign[1].strip(), sign[2].rstrip() or None, leading=leading)
    raise ValueError(f"unsupported comment sign: {sign!r}")


class StyleRegistry:
    def __init__(
        self,
        extensions: Mapping[str, CommentStyle],
        filenames: Mapping[str, CommentStyle] | None = None,
        interpreters: Mapping[str, CommentStyle] | None = None,
    ) -> None:
        self._extensions = MappingProxyType(dict(extensions))
        self._filenames = MappingProxyType(dict(filenames or {}))
        self._interpreters = MappingProxyType(dict(interpreters or {}))

    @property
    def extensions(self) -> Mapping[str, CommentStyle]:
        return self._extensions

    def lookup(self, path: str, text: str = "") -> Optional[CommentStyle]:
        name = PurePosixPath(path).name
        suffix = PurePosixPath(path).suffix
        if suffix:
            style = self._extensions.get(suffix[1:]) or self._extensions.get(suffix[1:].lower())
            if style is not None:
                return style
        style = self._filenames.get(name) or self._extensions.get(name)
        if style is not None:
            return style
        if not suffix:
            interpreter = shebang_interpreter(text)
            if interpreter is not None:
                return self._interpreters.get(interpreter)
        return None

    def with_overrides(
        self, comment_signs: Mapping[str, Union[str, Sequence[str]]], replace: bool = False
    ) -> "StyleRegistry":
        """
        Return a new registry with config-file comment signs applied.

        Keys are extensions without the dot ("py") or exact file names
        ("Dockerfile", ".bashrc"). The receiver is left unchanged.
        """
        extensions = {} if replace else dict(self._extensions)
        filenames = {} if replace else dict(self._filenames)
        for key, sign in comment_signs.items():
            base = self._extensions.get(key) or self._filenames.get(key)
            style = style_from_sign(sign, leading=base.leading if base is not None else BASE_LEADING)
            if key in self._filenames:
                filenames[key] = style
            else:
                extensions[key] = style
        return StyleRegistry(extensions, filenames, self._interpreters)


DEFAULT_REGISTRY = StyleRegistry(DEFAULT_EXTENSIONS, DEFAULT_FILENAMES, DEFAULT_INTERPRETERS)
