# SPDX-FileCopyrightText: 2025 Marco Ricci <software@the13thletter.info>
#
# SPDX-License-Identifier: Zlib

"""Accounts and groups: the plaintext data model of a group vault.

A [`Group`][] exclusively owns its [`Account`][]s.  The pair
`(name, tag)` identifies an account within its group; retrieval and
deletion address accounts by name alone, returning the first match.

"""

from __future__ import annotations

import datetime
import json
from typing import TYPE_CHECKING

from typing_extensions import assert_never

from sherlock import _types
from sherlock.errors import AccountExistsError, NoSuchAccountError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from typing_extensions import Buffer

__all__ = ('Account', 'Group')

PRETTY_DATE_FORMAT = '%A, %d. %B %Y'
"""Date format for listings, e.g. "Monday, 02. January 2006"."""

INVALID_GROUP_DATA = 'Invalid serialized group data'


class Account:
    """A single credential record.

    Attributes:
        name:
            The account name.
        tag:
            An optional label for grouping accounts in listings.  The
            empty string is a valid tag.
        secret:
            The protected credential, e.g. a password.
        created_on:
            The (timezone-aware) creation timestamp.  Never changes.

    """

    __slots__ = ('created_on', 'name', 'secret', 'tag')

    def __init__(
        self,
        name: str,
        secret: str,
        tag: str = '',
        *,
        created_on: datetime.datetime | None = None,
    ) -> None:
        self.name = name
        self.secret = secret
        self.tag = tag
        self.created_on = (
            created_on
            if created_on is not None
            else datetime.datetime.now(tz=datetime.timezone.utc)
        )

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}(name={self.name!r}, '
            f'tag={self.tag!r}, secret=<hidden>, '
            f'created_on={self.created_on!r})'
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Account):
            return NotImplemented
        return (self.name, self.tag, self.secret, self.created_on) == (
            other.name,
            other.tag,
            other.secret,
            other.created_on,
        )

    __hash__ = None  # type: ignore[assignment]

    def update(self, field: _types.AccountField, value: str, /) -> None:
        """Set exactly one mutable field of the account.

        Cross-account invariants (name collisions) are the owning
        group's business and must be checked before calling this.

        """
        match field:
            case _types.AccountField.SECRET:
                self.secret = value
            case _types.AccountField.NAME:
                self.name = value
            case _types.AccountField.TAG:
                self.tag = value
            case _:  # pragma: no cover
                assert_never(field)

    def to_data(self) -> _types.AccountData:
        """Return the serializable form of this account."""
        return {
            'name': self.name,
            'tag': self.tag,
            'secret': self.secret,
            'created_on': self.created_on.isoformat(),
        }

    @classmethod
    def from_data(cls, data: _types.AccountData, /) -> Account:
        """Reconstruct an account from its serializable form."""
        return cls(
            data['name'],
            data['secret'],
            data['tag'],
            created_on=datetime.datetime.fromisoformat(data['created_on']),
        )


class Group:
    """An ordered collection of accounts sharing one group key.

    Attributes:
        gid:
            The group id.  Unique across all groups; never changes.
        accounts:
            The accounts, in insertion order.  No two accounts share
            both name and tag.

    """

    __slots__ = ('accounts', 'gid')

    def __init__(
        self, gid: str, accounts: Iterable[Account] = (), /
    ) -> None:
        self.gid = gid
        self.accounts: list[Account] = []
        for account in accounts:
            self.append(account)

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}({self.gid!r}, '
            f'<{len(self.accounts)} accounts>)'
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Group):
            return NotImplemented
        return (self.gid, self.accounts) == (other.gid, other.accounts)

    __hash__ = None  # type: ignore[assignment]

    def __len__(self) -> int:
        return len(self.accounts)

    def __iter__(self) -> Iterator[Account]:
        return iter(self.accounts)

    def exists(self, candidate: Account, /) -> bool:
        """Return true if an account with the same name and tag exists."""
        return any(
            account.name == candidate.name and account.tag == candidate.tag
            for account in self.accounts
        )

    def append(self, account: Account, /) -> None:
        """Add an account to the end of the group.

        Raises:
            AccountExistsError:
                An account with the same name and tag already exists.
                The group is left unchanged.

        """
        if self.exists(account):
            raise AccountExistsError(account.name, account.tag)
        self.accounts.append(account)

    def lookup(self, name: str, /) -> Account:
        """Return the first account called `name`.

        Raises:
            NoSuchAccountError:
                No account is called `name`.

        """
        for account in self.accounts:
            if account.name == name:
                return account
        raise NoSuchAccountError(name)

    def delete(self, name: str, /) -> None:
        """Remove the first account called `name`.

        The relative order of the remaining accounts is preserved.

        Raises:
            NoSuchAccountError:
                No account is called `name`.

        """
        for i, account in enumerate(self.accounts):
            if account.name == name:
                del self.accounts[i]
                return
        raise NoSuchAccountError(name)

    def to_data(self) -> _types.GroupData:
        """Return the serializable form of this group."""
        return {
            'name': self.gid,
            'accounts': [account.to_data() for account in self.accounts],
        }

    def serialize(self) -> bytes:
        """Serialize the group deterministically as ASCII-only JSON.

        The field order is fixed, so equal groups serialize to equal
        byte strings.  Non-ASCII text, including lone surrogates from
        undecodable command-line arguments, is written as `\\u` escapes.

        """
        return json.dumps(
            self.to_data(), ensure_ascii=True, separators=(',', ':')
        ).encode('UTF-8')

    @classmethod
    def deserialize(cls, data: Buffer, /) -> Group:
        """Reconstruct a group from the output of [`serialize`][].

        Raises:
            ValueError:
                The data is not a serialized group.  This includes
                invalid UTF-8, invalid JSON and duplicate accounts.

        """
        obj = json.loads(bytes(data).decode('UTF-8'))
        if not _types.is_group_data(obj):
            raise ValueError(INVALID_GROUP_DATA)
        try:
            return cls(
                obj['name'],
                (Account.from_data(item) for item in obj['accounts']),
            )
        except AccountExistsError as exc:
            raise ValueError(INVALID_GROUP_DATA) from exc

    def table(self) -> list[tuple[str, str, str, str]]:
        """Return the accounts as rows for a listing.

        Each row holds the group id, the account name, the tag
        (prefixed with `#`) and the creation date.  Secrets are not
        included.

        """
        return [
            (
                self.gid,
                account.name,
                f'#{account.tag}',
                account.created_on.strftime(PRETTY_DATE_FORMAT),
            )
            for account in self.accounts
        ]
