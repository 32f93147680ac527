# git-copyright - keep copyright notices in sync with git history
# Copyright (C) 2026 git-copyright Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

import asyncio
import difflib
import signal
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Iterable, List, Optional

import anyio

from .config import DEFAULT_TEMPLATE, Settings, load_file_config
from .detector import NoticeMatcher, find_notices, select_notice, without_notice
from .errors import ConfigurationError, FileSkipped
from .history import GitCommandError, GitRepository
from .logging_config import get_logger
from .models import FileResult, FileStatus, RunSummary, TrackedFile
from .renderer import Template
from .styles import DEFAULT_REGISTRY, CommentStyle, StyleRegistry
from .updater import apply_notice, update_file
from .walker import DEFAULT_IGNORE_FILES, walk_repository
from .years import current_year, resolve_year_range

logger = get_logger(__name__)


@dataclass(frozen=True)
class RunContext:
    """Read-only state shared by every worker of one run."""

    repo: GitRepository
    registry: StyleRegistry
    template: Template
    matcher: NoticeMatcher
    current_year: int
    dirty_paths: FrozenSet[str] = frozenset()
    dry_run: bool = False
    show_diff: bool = False
    bump_dirty_year: bool = True
    head_lines: int = 20
    multiple_notices: str = "first"
    history_timeout: Optional[float] = 30.0


def _significant_lines(text: str, style: CommentStyle, ctx: RunContext) -> List[str]:
    notice = select_notice(find_notices(text, style, ctx.matcher, ctx.head_lines))
    stripped = without_notice(text, notice)
    return [line.rstrip() for line in stripped.splitlines() if line.strip()]


def has_substantive_changes(tracked: TrackedFile, text: str, style: CommentStyle, ctx: RunContext) -> bool:
    """
    Whether the working copy differs from HEAD by more than its notice.

    Edits confined to the notice or to blank lines do not count, so a file
    whose only uncommitted change is a notice written by an earlier run is
    not treated as modified.
    """
    head = ctx.repo.head_contents(tracked.path, timeout=ctx.history_timeout)
    if head is None:
        return True
    try:
        head_text = head.decode("utf-8")
    except UnicodeDecodeError:
        return True
    return _significant_lines(text, style, ctx) != _significant_lines(head_text, style, ctx)


def _skipped(path: str, reason: str, quiet: bool = False) -> FileResult:
    if quiet:
        logger.debug(f"Skipping {path}: {reason}")
    else:
        logger.warning(f"Skipping {path}: {reason}")
    return FileResult(path=path, status=FileStatus.SKIPPED, reason=reason)


def process_file(tracked: TrackedFile, ctx: RunContext) -> FileResult:
    """Run the whole pipeline for one file. Per-file problems become results, never exceptions."""
    path = tracked.path
    if tracked.is_binary:
        return _skipped(path, "binary file", quiet=True)

    try:
        raw = tracked.absolute_path.read_bytes()
    except OSError as exc:
        logger.error(f"Cannot read {path}: {exc}")
        return FileResult(path=path, status=FileStatus.FAILED, reason=f"cannot read file: {exc}")
    if b"\0" in raw:
        return _skipped(path, "binary file", quiet=True)
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        return _skipped(path, "not valid UTF-8 text")

    style = ctx.registry.lookup(path, text)
    if style is None:
        return _skipped(path, "no comment style known for this file type, please update the configuration")

    try:
        history = ctx.repo.file_history(path, timeout=ctx.history_timeout)
        if not history:
            return _skipped(path, "no committed history")

        dirty = False
        if ctx.bump_dirty_year and path in ctx.dirty_paths:
            dirty = has_substantive_changes(tracked, text, style, ctx)
            if dirty:
                logger.debug(f"File {path} has uncommitted changes, extending to {ctx.current_year}")
        years = resolve_year_range((c.year for c in history), dirty=dirty, current=ctx.current_year)

        notice = select_notice(find_notices(text, style, ctx.matcher, ctx.head_lines), ctx.multiple_notices)
    except FileSkipped as exc:
        return _skipped(path, exc.reason)
    except GitCommandError as exc:
        logger.error(f"History query failed for {path}: {exc}")
        return FileResult(path=path, status=FileStatus.FAILED, reason=str(exc))

    previous = notice.years if notice is not None else None
    lines = ctx.template.render(years, filename=Path(path).name, current_year=ctx.current_year)
    new_text = apply_notice(text, style, lines, notice)

    if new_text == text:
        logger.debug(f"File {path} has correct copyright with years {years}")
        return FileResult(path=path, status=FileStatus.UNCHANGED, years=years, previous_years=previous)

    if notice is None:
        logger.info(f"File {path} has no copyright but should have {years}")
    else:
        logger.info(f"File {path} has copyright with year(s) {previous} but should have {years}")

    diff = None
    if ctx.dry_run or ctx.show_diff:
        diff = "".join(difflib.unified_diff(
            text.splitlines(keepends=True),
            new_text.splitlines(keepends=True),
            fromfile=f"a/{path}",
            tofile=f"b/{path}",
        ))

    try:
        update_file(tracked.absolute_path, text, new_text, dry_run=ctx.dry_run)
    except OSError as exc:
        logger.error(f"Cannot write {path}: {exc}")
        return FileResult(path=path, status=FileStatus.FAILED, reason=f"cannot write file: {exc}")

    status = FileStatus.WOULD_UPDATE if ctx.dry_run else FileStatus.UPDATED
    return FileResult(path=path, status=status, years=years, previous_years=previous, diff=diff)


class Runner:
    """
    Bounded worker pool over process_file.

    Each file runs in a worker thread; the capacity limiter keeps at most
    `workers` history queries in flight. A stop request prevents new files
    from starting, while files already running (and their atomic writes)
    complete.
    """

    def __init__(self, ctx: RunContext, workers: int = 4) -> None:
        if workers <= 0:
            raise ValueError("workers must be >= 1")
        self.ctx = ctx
        self.workers = workers
        self._stop = threading.Event()

    def request_stop(self) -> None:
        if not self._stop.is_set():
            logger.warning("Stop requested, finishing files in progress")
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def _process(self, tracked: TrackedFile) -> FileResult:
        if self._stop.is_set():
            return FileResult(path=tracked.path, status=FileStatus.SKIPPED, reason="interrupted")
        try:
            return process_file(tracked, self.ctx)
        except Exception as exc:
            logger.exception(f"Unexpected error processing {tracked.path}: {exc}")
            return FileResult(path=tracked.path, status=FileStatus.FAILED, reason=str(exc))

    async def run(self, files: Iterable[TrackedFile]) -> RunSummary:
        start = time.perf_counter()
        limiter = anyio.CapacityLimiter(self.workers)
        results: List[FileResult] = []

        async def worker(tracked: TrackedFile) -> None:
            # Not abandoned on cancellation: an update in progress always finishes.
            result = await anyio.to_thread.run_sync(self._process, tracked, limiter=limiter)
            results.append(result)

        installed = self._install_signal_handlers()
        try:
            async with anyio.create_task_group() as tg:
                for tracked in files:
                    if self._stop.is_set():
                        results.append(
                            FileResult(path=tracked.path, status=FileStatus.SKIPPED, reason="interrupted")
                        )
                        continue
                    tg.start_soon(worker, tracked)
        finally:
            self._remove_signal_handlers(installed)

        results.sort(key=lambda r: r.path)
        return RunSummary(
            results=results,
            interrupted=self._stop.is_set(),
            duration_seconds=time.perf_counter() - start,
        )

    def run_sync(self, files: Iterable[TrackedFile]) -> RunSummary:
        return anyio.run(self.run, files)

    def _install_signal_handlers(self) -> list:
        installed = []
        try:
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.add_signal_handler(sig, self.request_stop)
                installed.append(sig)
        except (NotImplementedError, RuntimeError, ValueError):
            pass
        return installed

    def _remove_signal_handlers(self, installed: list) -> None:
        if not installed:
            return
        loop = asyncio.get_running_loop()
        for sig in installed:
            loop.remove_signal_handler(sig)


def build_context(settings: Settings, today: Optional[int] = None) -> tuple[RunContext, list[str], list[str]]:
    """
    Open the repository and build the shared run state.

    Everything that can make the run impossible (not a repository, bad config
    file, bad template) fails here, before any file is touched.
    """
    settings.validate()
    repo = GitRepository.open(settings.repo_path)
    file_config = load_file_config(settings.config_path)

    template = Template.parse(
        settings.copyright_template or file_config.copyright_template or DEFAULT_TEMPLATE
    )
    registry = DEFAULT_REGISTRY
    if file_config.comment_sign_map or not file_config.use_default_styles:
        registry = registry.with_overrides(
            file_config.comment_sign_map, replace=not file_config.use_default_styles
        )

    dirty = repo.dirty_paths() if settings.bump_dirty_year else frozenset()
    ctx = RunContext(
        repo=repo,
        registry=registry,
        template=template,
        matcher=NoticeMatcher.for_template(template),
        current_year=today or current_year(),
        dirty_paths=dirty,
        dry_run=settings.dry_run,
        show_diff=settings.show_diff,
        bump_dirty_year=settings.bump_dirty_year,
        head_lines=settings.head_lines,
        multiple_notices=settings.multiple_notices,
        history_timeout=settings.history_timeout_seconds,
    )
    exclude = [*DEFAULT_IGNORE_FILES, *file_config.ignore_files, *settings.exclude]
    return ctx, exclude, list(file_config.ignore_dirs)


def _pathspecs(repo: GitRepository, settings: Settings) -> list[str]:
    # Explicit paths are taken as typed (relative to the working directory);
    # without them the run covers repo_path, which may be a subdirectory.
    targets = [Path(p) for p in settings.paths] or [Path(settings.repo_path)]
    specs = []
    for target in targets:
        try:
            rel = repo.relative(target)
        except ValueError as exc:
            raise ConfigurationError(f"{target} is outside the repository {repo.root}") from exc
        if rel != ".":
            specs.append(rel)
    return specs


def log_summary(summary: RunSummary) -> None:
    counts = summary.counts()
    for result in summary.failed:
        logger.error(f"Failed {result.path}: {result.reason}")
    logger.info(
        f"Checked {len(summary.results)} files in {summary.duration_seconds:.2f}s: "
        f"{counts['updated']} updated, {counts['would_update']} would update, "
        f"{counts['unchanged']} unchanged, {counts['skipped']} skipped, {counts['failed']} failed"
    )
    if summary.interrupted:
        logger.warning("Run was interrupted before all files were processed")


def check_repo_copyright(settings: Settings, today: Optional[int] = None) -> RunSummary:
    """Check and update the copyright notices of the tracked files in a repository."""
    ctx, exclude, ignore_dirs = build_context(settings, today=today)
    logger.info(f"Checking copyrights in {ctx.repo.root} with template {ctx.template.text!r}")

    files = list(walk_repository(ctx.repo, exclude, ignore_dirs, _pathspecs(ctx.repo, settings)))
    logger.debug(f"{len(files)} candidate files")

    runner = Runner(ctx, workers=settings.workers)
    summary = runner.run_sync(files)
    log_summary(summary)
    return summary
