# git-copyright - keep copyright notices in sync with git history
# Copyright (C) 2026 git-copyright Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

import os
import tomllib
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigurationError

DEFAULT_TEMPLATE = "Copyright {years} DummyCorp. All rights reserved."


def _get_bool(value: str, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}

def _get_csv_list(value: str) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]

def _get_optional_float(value: str) -> Optional[float]:
    if value is None or not value.strip() or value.strip().lower() == "none":
        return None
    return float(value)


@dataclass
class Settings:
    # NOTE: use default_factory so env vars are read when Settings() is instantiated,
    # not at import time (important for tests and predictable runtime behavior).
    repo_path: str = field(default_factory=lambda: os.getenv("GIT_COPYRIGHT_REPO_PATH", "."))
    # None means "take it from the config file, else DEFAULT_TEMPLATE".
    copyright_template: Optional[str] = field(default_factory=lambda: os.getenv("GIT_COPYRIGHT_TEMPLATE"))
    config_path: Optional[str] = field(default_factory=lambda: os.getenv("GIT_COPYRIGHT_CONFIG"))
    paths: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=lambda: _get_csv_list(os.getenv("GIT_COPYRIGHT_EXCLUDE", "")))

    dry_run: bool = field(default_factory=lambda: _get_bool(os.getenv("GIT_COPYRIGHT_DRY_RUN"), False))
    show_diff: bool = field(default_factory=lambda: _get_bool(os.getenv("GIT_COPYRIGHT_DIFF"), False))
    fail_on_changes: bool = field(default_factory=lambda: _get_bool(os.getenv("GIT_COPYRIGHT_FAIL_ON_CHANGES"), False))

    # Notice policy.
    # - bump_dirty_year widens the end year to the current year for files with
    #   substantive uncommitted edits.
    # - multiple_notices is "first" (first notice in the head wins) or "skip".
    bump_dirty_year: bool = field(default_factory=lambda: _get_bool(os.getenv("GIT_COPYRIGHT_BUMP_DIRTY_YEAR"), True))
    multiple_notices: str = field(default_factory=lambda: os.getenv("GIT_COPYRIGHT_MULTIPLE_NOTICES", "first"))
    head_lines: int = field(default_factory=lambda: int(os.getenv("GIT_COPYRIGHT_HEAD_LINES", "20")))

    # Worker pool: one history query in flight per worker.
    workers: int = field(default_factory=lambda: int(os.getenv("GIT_COPYRIGHT_WORKERS", str(os.cpu_count() or 4))))
    history_timeout_seconds: Optional[float] = field(
        default_factory=lambda: _get_optional_float(os.getenv("GIT_COPYRIGHT_HISTORY_TIMEOUT_SECONDS", "30"))
    )

    log_level: str = field(default_factory=lambda: os.getenv("GIT_COPYRIGHT_LOG_LEVEL", "INFO"))
    log_file: Optional[str] = field(default_factory=lambda: os.getenv("GIT_COPYRIGHT_LOG_FILE"))
    log_max_bytes: int = field(default_factory=lambda: int(os.getenv("GIT_COPYRIGHT_LOG_MAX_BYTES", "10485760")))
    log_backup_count: int = field(default_factory=lambda: int(os.getenv("GIT_COPYRIGHT_LOG_BACKUP_COUNT", "3")))
    log_json_format: bool = field(default_factory=lambda: _get_bool(os.getenv("GIT_COPYRIGHT_LOG_JSON"), False))

    def validate(self) -> None:
        if self.workers <= 0:
            raise ConfigurationError("workers must be >= 1")
        if self.head_lines <= 0:
            raise ConfigurationError("head_lines must be >= 1")
        if self.multiple_notices not in {"first", "skip"}:
            raise ConfigurationError(
                f"multiple_notices must be 'first' or 'skip', got {self.multiple_notices!r}"
            )
        if self.history_timeout_seconds is not None and self.history_timeout_seconds <= 0:
            raise ConfigurationError("history_timeout_seconds must be > 0")


class FileConfig(BaseModel):
    """Contents of the optional TOML configuration file."""

    copyright_template: Optional[str] = None
    comment_sign_map: Dict[str, Union[str, List[str]]] = Field(default_factory=dict)
    ignore_files: List[str] = Field(default_factory=list)
    ignore_dirs: List[str] = Field(default_factory=list)
    use_default_styles: bool = True

    @field_validator("comment_sign_map")
    @classmethod
    def _check_signs(cls, value: Dict[str, Union[str, List[str]]]) -> Dict[str, Union[str, List[str]]]:
        for key, sign in value.items():
            if isinstance(sign, str):
                if not sign.strip():
                    raise ValueError(f"empty comment sign for {key!r}")
            elif len(sign) not in (2, 3) or not all(part.strip() for part in sign[:2]):
                raise ValueError(
                    f"comment sign for {key!r} must be a prefix or [open, close(, continuation)]"
                )
        return value


def load_file_config(path: Optional[str]) -> FileConfig:
    if not path:
        return FileConfig()
    try:
        with open(path, "rb") as fh:
            data = tomllib.load(fh)
    except OSError as exc:
        raise ConfigurationError(f"cannot read config {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"invalid TOML in config {path}: {exc}") from exc

    try:
        return FileConfig(**data)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid config {path}: {exc}") from exc
