# git-copyright - keep copyright notices in sync with git history
# Copyright (C) 2026 git-copyright Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

import argparse
import dataclasses
import sys
from typing import List, Optional

from . import __version__
from .config import Settings
from .errors import ConfigurationError
from .logging_config import LOGGER_NAME, get_logger, setup_logging
from .runner import check_repo_copyright

EXIT_OK = 0
EXIT_CHANGES = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130

logger = get_logger(LOGGER_NAME)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-copyright",
        description="Add or update copyright notices using the years each file was changed in git.",
    )
    parser.add_argument("paths", nargs="*", help="limit the run to these files or directories")
    parser.add_argument("--repo-path", help="path inside the git repository (default: current directory)")
    parser.add_argument(
        "-t", "--copyright-template",
        help="notice template; placeholders: {years} {first_year} {last_year} {current_year} {filename}",
    )
    parser.add_argument("-c", "--config-path", help="TOML configuration file")
    parser.add_argument(
        "-e", "--exclude", action="append", default=None, metavar="GLOB",
        help="exclude matching paths (repeatable)",
    )
    parser.add_argument("-n", "--dry-run", action="store_true", default=None, help="report changes without writing")
    parser.add_argument("--diff", dest="show_diff", action="store_true", default=None, help="print a diff per changed file")
    parser.add_argument(
        "--fail-on-changes", action="store_true", default=None,
        help="exit with status 1 if any file was (or would be) changed",
    )
    parser.add_argument("-j", "--workers", type=int, help="files processed in parallel")
    parser.add_argument(
        "--timeout", dest="history_timeout_seconds", type=float,
        help="seconds allowed for one file's history query",
    )
    parser.add_argument("--head-lines", type=int, help="number of leading lines searched for a notice")
    parser.add_argument(
        "--multiple-notices", choices=["first", "skip"],
        help="when several notices are found: update the first, or skip the file",
    )
    parser.add_argument(
        "--no-dirty-bump", dest="bump_dirty_year", action="store_false", default=None,
        help="do not extend notices of files with uncommitted changes to the current year",
    )
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], type=str.upper)
    parser.add_argument("--log-file")
    parser.add_argument("--json-logs", dest="log_json_format", action="store_true", default=None)
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    """Environment defaults from Settings(), overridden by options given on the command line."""
    settings = Settings()
    names = {f.name for f in dataclasses.fields(Settings)}
    overrides = {
        key: value for key, value in vars(args).items()
        if key in names and value is not None and value != []
    }
    if args.exclude:
        overrides["exclude"] = [*settings.exclude, *args.exclude]
    return dataclasses.replace(settings, **overrides)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = settings_from_args(args)
    except ValueError as exc:
        # Malformed GIT_COPYRIGHT_* number.
        print(f"git-copyright: invalid environment setting: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    setup_logging(
        level=settings.log_level,
        log_file=settings.log_file,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count,
        json_format=settings.log_json_format,
    )

    try:
        summary = check_repo_copyright(settings)
    except ConfigurationError as exc:
        logger.error(f"{exc}")
        return EXIT_CONFIG_ERROR
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return EXIT_INTERRUPTED

    if settings.show_diff:
        for result in summary.results:
            if result.diff:
                sys.stdout.write(result.diff)
        sys.stdout.flush()

    if summary.interrupted:
        return EXIT_INTERRUPTED
    if settings.fail_on_changes and summary.changed:
        return EXIT_CHANGES
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
