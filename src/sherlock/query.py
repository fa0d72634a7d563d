# SPDX-FileCopyrightText: 2025 Marco Ricci <software@the13thletter.info>
#
# SPDX-License-Identifier: Zlib

"""Parsing of `group@account` queries."""

from __future__ import annotations

from sherlock import _types
from sherlock.errors import InvalidQueryError

__all__ = ('QUERY_SEPARATOR', 'split_query')

QUERY_SEPARATOR = '@'


def split_query(query: str, /) -> _types.Query:
    """Split a `group@account` query into group id and account name.

    Neither half is validated further: an empty group id or account
    name surfaces later as an unknown group or account.

    Args:
        query:
            The query, as given by the user.

    Returns:
        The group id and the account name.

    Raises:
        InvalidQueryError:
            The query does not contain exactly one `@`.

    Examples:
        >>> split_query('detective@bakerstreet')
        Query(gid='detective', account_name='bakerstreet')
        >>> split_query('@')
        Query(gid='', account_name='')

    """
    parts = query.split(QUERY_SEPARATOR)
    if len(parts) != 2:  # noqa: PLR2004
        raise InvalidQueryError(query)
    gid, account_name = parts
    return _types.Query(gid, account_name)
