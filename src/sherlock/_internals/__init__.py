# SPDX-FileCopyrightText: 2025 Marco Ricci <software@the13thletter.info>
#
# SPDX-License-Identifier: Zlib

"""sherlock internals.

Warning:
    Non-public package (implementation detail), provided for didactical
    and educational purposes only. Subject to change without notice,
    including removal.

"""

import sherlock

__all__ = ()

PROG_NAME = 'sherlock'
VERSION = sherlock.__version__
AUTHOR = sherlock.__author__
