# git-copyright - keep copyright notices in sync with git history
# Copyright (C) 2026 git-copyright Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class YearRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_year: int
    end_year: int

    @model_validator(mode="after")
    def _check_order(self) -> "YearRange":
        if self.start_year > self.end_year:
            raise ValueError(f"start_year {self.start_year} is after end_year {self.end_year}")
        return self

    def __str__(self) -> str:
        if self.start_year == self.end_year:
            return str(self.start_year)
        return f"{self.start_year}-{self.end_year}"


class CommitRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    path: str

    @property
    def year(self) -> int:
        return self.timestamp.year


class TrackedFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str = Field(description="Repository-relative path with POSIX separators")
    absolute_path: Path
    extension: str = ""
    is_binary: bool = False


class ExistingNotice(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: int = Field(description="Offset of the first notice line in the decoded text")
    end: int = Field(description="Offset just past the last notice line, before its line ending")
    framings: List[Tuple[str, str]] = Field(
        default_factory=list,
        description="Comment prefix and suffix around the notice text, one pair per line",
    )
    years: Optional[YearRange] = None
    matches_template: bool = False

    @property
    def span(self) -> Tuple[int, int]:
        return self.start, self.end


class FileStatus(str, Enum):
    UNCHANGED = "unchanged"
    UPDATED = "updated"
    WOULD_UPDATE = "would_update"
    SKIPPED = "skipped"
    FAILED = "failed"


class FileResult(BaseModel):
    path: str
    status: FileStatus
    reason: Optional[str] = None
    years: Optional[YearRange] = None
    previous_years: Optional[YearRange] = None
    diff: Optional[str] = None


class RunSummary(BaseModel):
    results: List[FileResult] = Field(default_factory=list)
    interrupted: bool = False
    duration_seconds: float = 0.0

    def counts(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in FileStatus}
        for result in self.results:
            counts[result.status.value] += 1
        return counts

    @property
    def changed(self) -> List[str]:
        return [
            r.path for r in self.results
            if r.status in (FileStatus.UPDATED, FileStatus.WOULD_UPDATE)
        ]

    @property
    def skipped(self) -> List[FileResult]:
        return [r for r in self.results if r.status == FileStatus.SKIPPED]

    @property
    def failed(self) -> List[FileResult]:
        return [r for r in self.results if r.status == FileStatus.FAILED]
