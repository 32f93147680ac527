# git-copyright - keep copyright notices in sync with git history
# Copyright (C) 2026 git-copyright Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
