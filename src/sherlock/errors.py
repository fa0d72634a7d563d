# SPDX-FileCopyrightText: 2025 Marco Ricci <software@the13thletter.info>
#
# SPDX-License-Identifier: Zlib

"""Exceptions raised by sherlock.

Every domain error derives from [`SherlockError`][].  None of them are
transient: retrying the same call with the same inputs fails the same
way.

"""

from __future__ import annotations

__all__ = (
    'AccountExistsError',
    'AlreadyExistsError',
    'InvalidGroupNameError',
    'InvalidQueryError',
    'NoSuchAccountError',
    'NoSuchGroupError',
    'NotSetUpError',
    'SherlockError',
    'WeakPasswordError',
    'WrongKeyError',
)


class SherlockError(Exception):
    """Base class for all sherlock domain errors."""


class NotSetUpError(SherlockError):
    """The `default` group has not been initialized yet."""

    def __str__(self) -> str:
        return 'sherlock needs to be set up first (use "sherlock setup")'


class NoSuchGroupError(SherlockError, LookupError):
    """The requested group does not exist."""

    def __init__(self, gid: str) -> None:
        super().__init__(gid)
        self.gid = gid

    def __str__(self) -> str:
        return (
            f'No such group: {self.gid!r} '
            '(use "sherlock add group" to create it)'
        )


class AlreadyExistsError(SherlockError):
    """An entity with the same identity already exists."""


class AccountExistsError(AlreadyExistsError):
    """An account with the same name (and tag) already exists."""

    def __init__(self, name: str, tag: str | None = None) -> None:
        super().__init__(name, tag)
        self.name = name
        self.tag = tag

    def __str__(self) -> str:
        if self.tag is None:
            return f'Account already exists in group: {self.name!r}'
        return (
            f'Account already exists in group: {self.name!r} '
            f'(tag {self.tag!r})'
        )


class GroupExistsError(AlreadyExistsError):
    """A group with the same id already exists."""

    def __init__(self, gid: str) -> None:
        super().__init__(gid)
        self.gid = gid

    def __str__(self) -> str:
        return f'Group already exists: {self.gid!r}'


class NoSuchAccountError(SherlockError, LookupError):
    """The requested account does not exist in its group."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f'No such account: {self.name!r}'


class WrongKeyError(SherlockError):
    """The group vault could not be decrypted with the given key.

    Deliberately does not distinguish between a wrong group key and
    corrupted vault data.

    """

    def __str__(self) -> str:
        return 'Wrong group key'


class InvalidQueryError(SherlockError, ValueError):
    """The query is not of the form `group@account`."""

    def __init__(self, query: str) -> None:
        super().__init__(query)
        self.query = query

    def __str__(self) -> str:
        return (
            f'Invalid query {self.query!r}.  '
            'Query should be "group@account"'
        )


class InvalidGroupNameError(SherlockError, ValueError):
    """The group name cannot be used as a group identifier."""

    def __init__(self, gid: str) -> None:
        super().__init__(gid)
        self.gid = gid

    def __str__(self) -> str:
        return f'Invalid group name: {self.gid!r}'


class WeakPasswordError(SherlockError, ValueError):
    """The password does not satisfy the password strength policy."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason

    def __str__(self) -> str:
        return f'Password too weak: {self.reason}'
