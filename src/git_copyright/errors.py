# git-copyright - keep copyright notices in sync with git history
# Copyright (C) 2026 git-copyright Contributors
# SPDX-License-Identifier: GPL-3.0-or-later


class CopyrightError(Exception):
    pass


class ConfigurationError(CopyrightError):
    """The run cannot start. Raised before any file is touched."""


class RepositoryError(ConfigurationError):
    pass


class TemplateError(ConfigurationError):
    pass


class FileSkipped(CopyrightError):
    """A single file cannot be processed; the run continues without it."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason
