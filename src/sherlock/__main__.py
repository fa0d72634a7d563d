# SPDX-FileCopyrightText: 2025 Marco Ricci <software@the13thletter.info>
#
# SPDX-License-Identifier: Zlib
"""Run [`sherlock.cli.sherlock`][] on import."""

import sys

if __name__ == '__main__':
    from sherlock.cli import sherlock

    sys.exit(sherlock())
