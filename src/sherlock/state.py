# SPDX-FileCopyrightText: 2025 Marco Ricci <software@the13thletter.info>
#
# SPDX-License-Identifier: Zlib

"""State options: the mutations applicable to a decrypted group.

Each state option is a small immutable value naming exactly one domain
operation and carrying its payload.  [`apply`][] dispatches on the
option type and either completes the operation or raises, in which
case the caller discards the group without persisting it.

"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Union

from typing_extensions import NamedTuple, TypeAlias, assert_never

from sherlock import _types
from sherlock.errors import AccountExistsError

if TYPE_CHECKING:
    from collections.abc import Callable

    from sherlock.group import Account, Group

__all__ = (
    'AddAccount',
    'DeleteAccount',
    'SetName',
    'SetPassword',
    'SetTag',
    'StateOption',
    'apply',
)

logger = logging.getLogger(__name__)


class AddAccount(NamedTuple):
    """Add a new account to the group.

    Attributes:
        account:
            The account to add.  Its name, not the query's account
            name, determines where it is stored.

    """

    account: Account
    """"""


class SetPassword(NamedTuple):
    """Replace the secret of the target account.

    Attributes:
        secret:
            The new secret.
        allow_weak:
            If true, skip the password strength check.

    """

    secret: str
    """"""
    allow_weak: bool = False
    """"""

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}(secret=<hidden>, '
            f'allow_weak={self.allow_weak!r})'
        )


class SetName(NamedTuple):
    """Rename the target account.

    Attributes:
        name: The new account name.

    """

    name: str
    """"""


class SetTag(NamedTuple):
    """Re-tag the target account.

    Attributes:
        tag: The new account tag.

    """

    tag: str
    """"""


class DeleteAccount(NamedTuple):
    """Remove the target account from the group."""


StateOption: TypeAlias = Union[
    AddAccount, SetPassword, SetName, SetTag, DeleteAccount
]
"""Any of the state options."""


def apply(
    option: StateOption,
    group: Group,
    account_name: str,
    /,
    *,
    check_password: Callable[[str], None] | None = None,
) -> None:
    """Apply a state option to a decrypted group, in place.

    Args:
        option:
            The state option.
        group:
            The decrypted group.  On failure, the group may be in an
            unspecified state and must be discarded.
        account_name:
            The target account name, as taken from the query.  Unused
            by [`AddAccount`][].
        check_password:
            A password strength check, raising on weak passwords.
            Consulted by [`SetPassword`][] unless weak passwords are
            allowed.  If not given, no check takes place.

    Raises:
        AccountExistsError:
            The new account, name or tag collides with an existing
            account.
        NoSuchAccountError:
            The target account does not exist.
        WeakPasswordError:
            The new secret fails the password strength check.

    """
    match option:
        case AddAccount(account=account):
            group.append(account)
        case SetPassword(secret=secret, allow_weak=allow_weak):
            target = group.lookup(account_name)
            if not allow_weak and check_password is not None:
                check_password(secret)
            target.update(_types.AccountField.SECRET, secret)
        case SetName(name=name):
            if name != account_name and any(
                account.name == name for account in group
            ):
                raise AccountExistsError(name)
            target = group.lookup(account_name)
            target.update(_types.AccountField.NAME, name)
        case SetTag(tag=tag):
            target = group.lookup(account_name)
            if any(
                account is not target
                and account.name == target.name
                and account.tag == tag
                for account in group
            ):
                raise AccountExistsError(target.name, tag)
            target.update(_types.AccountField.TAG, tag)
        case DeleteAccount():
            group.delete(account_name)
        case _:  # pragma: no cover
            assert_never(option)
    logger.debug(
        'Applied %s to group %r', type(option).__name__, group.gid
    )
