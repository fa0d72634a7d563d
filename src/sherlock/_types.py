# SPDX-FileCopyrightText: 2025 Marco Ricci <software@the13thletter.info>
#
# SPDX-License-Identifier: Zlib

"""Types used by sherlock."""

from __future__ import annotations

import datetime
import enum
from typing import TYPE_CHECKING

from typing_extensions import NamedTuple, TypedDict

if TYPE_CHECKING:
    from typing_extensions import Any, TypeIs

__all__ = (
    'AccountData',
    'AccountField',
    'GroupData',
    'Query',
    'is_account_data',
    'is_group_data',
)


class AccountData(TypedDict):
    r"""Serialized form of an account.  For typing purposes.

    Attributes:
        name:
            The account name.
        tag:
            The account tag.  May be empty.
        secret:
            The account secret, e.g. a password.
        created_on:
            The creation timestamp, in ISO 8601 format.

    """

    name: str
    """"""
    tag: str
    """"""
    secret: str
    """"""
    created_on: str
    """"""


class GroupData(TypedDict):
    r"""Serialized form of a group.  For typing purposes.

    Usually stored as JSON, encrypted under the group key.

    Attributes:
        name:
            The group id.
        accounts:
            The accounts of this group, in insertion order.

    """

    name: str
    """"""
    accounts: list[AccountData]
    """"""


def is_account_data(obj: Any) -> TypeIs[AccountData]:  # noqa: ANN401
    """Check if `obj` is a valid serialized account.

    Args:
        obj: The object to test.

    Returns:
        True if this is a serialized account, false otherwise.

    """
    if not isinstance(obj, dict):
        return False
    if set(obj) != {'name', 'tag', 'secret', 'created_on'}:
        return False
    if not all(isinstance(value, str) for value in obj.values()):
        return False
    try:
        datetime.datetime.fromisoformat(obj['created_on'])
    except ValueError:
        return False
    return True


def is_group_data(obj: Any) -> TypeIs[GroupData]:  # noqa: ANN401
    """Check if `obj` is a valid serialized group.

    Args:
        obj: The object to test.

    Returns:
        True if this is a serialized group, false otherwise.

    """
    return (
        isinstance(obj, dict)
        and set(obj) == {'name', 'accounts'}
        and isinstance(obj['name'], str)
        and isinstance(obj['accounts'], list)
        and all(is_account_data(account) for account in obj['accounts'])
    )


class AccountField(str, enum.Enum):
    """The mutable fields of an account.

    Attributes:
        SECRET:
            The account secret.
        NAME:
            The account name.
        TAG:
            The account tag.

    """

    SECRET = 'secret'
    """"""
    NAME = 'name'
    """"""
    TAG = 'tag'
    """"""


class Query(NamedTuple):
    """A parsed `group@account` address.

    Attributes:
        gid: The group id.
        account_name: The account name.

    """

    gid: str
    """"""
    account_name: str
    """"""
