# git-copyright - keep copyright notices in sync with git history
# Copyright (C) 2026 git-copyright Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

import datetime
from typing import Iterable, Optional

from .models import YearRange


def current_year() -> int:
    return datetime.date.today().year


def resolve_year_range(
    years: Iterable[int],
    *,
    dirty: bool = False,
    current: Optional[int] = None,
) -> YearRange:
    """
    Reduce commit years to an inclusive (first, last) range.

    A dirty file (substantive uncommitted edits) ends in the current year even
    though no commit records it yet. Both ends are clamped to the current
    year so commits dated in the future cannot push the notice past it.
    """
    years = list(years)
    if not years:
        raise ValueError("cannot resolve a year range without any commit years")
    current = current or current_year()

    start = min(min(years), current)
    end = min(max(years), current)
    if dirty:
        end = current
    return YearRange(start_year=start, end_year=end)


def format_years(years: YearRange) -> str:
    return str(years)
