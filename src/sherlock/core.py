# SPDX-FileCopyrightText: 2025 Marco Ricci <software@the13thletter.info>
#
# SPDX-License-Identifier: Zlib

"""The sherlock vault orchestrator.

[`Sherlock`][] coordinates loading, decrypting, mutating, re-encrypting
and persisting group vaults.  No decrypted group outlives the call that
loaded it: every operation reads its own copy from storage, and writes
happen only after a state option applied successfully.

"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sherlock import codec, state
from sherlock.errors import (
    GroupExistsError,
    NotSetUpError,
    WrongKeyError,
)
from sherlock.filesystem import DEFAULT_GROUP, validate_gid
from sherlock.group import Account, Group
from sherlock.policy import PasswordPolicy
from sherlock.query import split_query

if TYPE_CHECKING:
    from sherlock.filesystem import FileSystem

__all__ = ('Sherlock',)

logger = logging.getLogger(__name__)


class Sherlock:
    """Facade over the group vaults in a [`FileSystem`][].

    Attributes:
        filesystem:
            The storage backend.
        password_policy:
            The password strength check for group keys and account
            secrets.
        iterations:
            The PBKDF2 iteration count for newly encrypted vaults.

    """

    def __init__(
        self,
        filesystem: FileSystem,
        /,
        *,
        password_policy: PasswordPolicy | None = None,
        iterations: int = codec.DEFAULT_ITERATIONS,
    ) -> None:
        self.filesystem = filesystem
        self.password_policy = (
            password_policy
            if password_policy is not None
            else PasswordPolicy()
        )
        self.iterations = iterations

    def is_set_up(self) -> bool:
        """Return true if the default group and its vault exist."""
        return self.filesystem.group_exists(
            DEFAULT_GROUP
        ) and self.filesystem.vault_exists(DEFAULT_GROUP)

    def ensure_set_up(self) -> None:
        """Raise unless sherlock has been set up.

        Raises:
            NotSetUpError:
                The default group or its vault is missing.

        """
        if not self.is_set_up():
            raise NotSetUpError

    def setup(self, group_key: str, /) -> None:
        """Create the default group, encrypted under `group_key`.

        Raises:
            GroupExistsError:
                The default group already exists.
            ValueError:
                Key derivation failed, e.g. for an empty group key.

        """
        vault = codec.init_with_default(
            group_key, Group(DEFAULT_GROUP), iterations=self.iterations
        )
        self.filesystem.init_root(vault)
        logger.info('Set up the %r group', DEFAULT_GROUP)

    def group_exists(self, gid: str, /) -> bool:
        """Return true if the group exists."""
        return self.filesystem.group_exists(gid)

    def setup_group(
        self, name: str, group_key: str, /, *, insecure: bool = False
    ) -> None:
        """Create a new, empty group encrypted under `group_key`.

        Args:
            name:
                The new group id.
            group_key:
                The group key.
            insecure:
                If true, skip the password strength check on the group
                key.

        Raises:
            GroupExistsError:
                The group already exists.
            InvalidGroupNameError:
                The group id is not usable.
            WeakPasswordError:
                The group key fails the password strength check.
            ValueError:
                Key derivation failed.

        """
        validate_gid(name)
        if self.filesystem.group_exists(name):
            raise GroupExistsError(name)
        if not insecure:
            self.password_policy(group_key)
        vault = codec.init_with_default(
            group_key, Group(name), iterations=self.iterations
        )
        self.filesystem.create_group(name, vault)
        logger.info('Created group %r', name)

    def delete_group(self, gid: str, /) -> None:
        """Irreversibly delete a group and all of its accounts."""
        self.filesystem.delete(gid)
        logger.info('Deleted group %r', gid)

    def check_group_key(self, query: str, group_key: str, /) -> None:
        """Verify the group key for the group named in `query`.

        The decrypted group is discarded immediately.

        Raises:
            InvalidQueryError:
                The query is malformed.
            NoSuchGroupError:
                The group does not exist.
            WrongKeyError:
                The group key is wrong.

        """
        gid, _ = split_query(query)
        self._load_group(gid, group_key)

    def get_account(self, query: str, group_key: str, /) -> Account:
        """Return the account addressed by `query`.

        Raises:
            InvalidQueryError:
                The query is malformed.
            NoSuchGroupError:
                The group does not exist.
            WrongKeyError:
                The group key is wrong.
            NoSuchAccountError:
                The account does not exist.

        """
        gid, name = split_query(query)
        return self._load_group(gid, group_key).lookup(name)

    def get_group(self, gid: str, group_key: str, /) -> Group:
        """Return a freshly decrypted copy of the group, for listings.

        Raises:
            NoSuchGroupError:
                The group does not exist.
            WrongKeyError:
                The group key is wrong.

        """
        return self._load_group(gid, group_key)

    def update_state(
        self, query: str, group_key: str, option: state.StateOption, /
    ) -> None:
        """Apply a state option to the group and persist the result.

        The group is locked, loaded and decrypted, mutated, re-encrypted
        under the same group key and written back.  If anything fails
        before the write, nothing is written.

        Args:
            query:
                The `group@account` query.  The account part names the
                target account of the state option.
            group_key:
                The group key.
            option:
                The state option to apply.

        Raises:
            InvalidQueryError:
                The query is malformed.
            NoSuchGroupError:
                The group does not exist.
            WrongKeyError:
                The group key is wrong.
            AccountExistsError:
                See [`state.apply`][].
            NoSuchAccountError:
                See [`state.apply`][].
            WeakPasswordError:
                See [`state.apply`][].

        """
        gid, name = split_query(query)
        with self.filesystem.lock(gid):
            group = self._load_group(gid, group_key)
            try:
                state.apply(
                    option,
                    group,
                    name,
                    check_password=self.password_policy,
                )
            except Exception:
                logger.debug(
                    'Aborted %s on group %r; nothing written',
                    type(option).__name__,
                    gid,
                )
                raise
            self._write_group(gid, group_key, group)

    def read_registered_groups(self) -> list[str]:
        """Return the ids of all groups."""
        return self.filesystem.read_registered_groups()

    def _load_group(self, gid: str, group_key: str, /) -> Group:
        blob = self.filesystem.read_group_vault(gid)
        try:
            group = Group.deserialize(codec.decrypt_vault(blob, group_key))
        except ValueError:
            raise WrongKeyError from None
        if group.gid != gid:
            raise WrongKeyError
        logger.debug('Loaded group %r (%d accounts)', gid, len(group))
        return group

    def _write_group(self, gid: str, group_key: str, group: Group, /) -> None:
        blob = codec.encrypt_vault(
            group.serialize(), group_key, iterations=self.iterations
        )
        self.filesystem.write(gid, blob)
        logger.debug('Persisted group %r', gid)
