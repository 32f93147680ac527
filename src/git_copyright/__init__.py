# git-copyright - keep copyright notices in sync with git history
# Copyright (C) 2026 git-copyright Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Add and refresh copyright notices from the years recorded in git history."""

__version__ = "0.3.0"
