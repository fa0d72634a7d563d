# SPDX-FileCopyrightText: 2025 Marco Ricci <software@the13thletter.info>
#
# SPDX-License-Identifier: Zlib

"""Persistent storage of group vaults.

The storage layout below the root directory is:

    <root>/groups/<gid>/vault    the encrypted group vault
    <root>/groups/<gid>/.lock    the advisory lock file for the group

The store only ever handles encrypted vault blobs.

"""

from __future__ import annotations

import contextlib
import logging
import os
import pathlib
import shutil
import sys
import tempfile
from typing import TYPE_CHECKING, Protocol

from sherlock.errors import (
    GroupExistsError,
    InvalidGroupNameError,
    NoSuchGroupError,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from contextlib import AbstractContextManager

    from typing_extensions import Buffer

__all__ = ('DEFAULT_GROUP', 'FileSystem', 'LocalFileSystem', 'validate_gid')

logger = logging.getLogger(__name__)

DEFAULT_GROUP = 'default'
GROUPS_DIRNAME = 'groups'
VAULT_FILENAME = 'vault'
LOCK_FILENAME = '.lock'

CANNOT_DELETE_DEFAULT_GROUP = 'The default group cannot be deleted'


class FileSystem(Protocol):
    """The storage operations sherlock requires."""

    def init_root(self, initial_vault: Buffer, /) -> None:
        """Create the storage tree and the default group vault.

        Raises:
            GroupExistsError:
                The default group already has a vault.

        """

    def create_group(self, gid: str, initial_vault: Buffer, /) -> None:
        """Create a new group with the given vault.

        Raises:
            GroupExistsError:
                The group already exists.
            InvalidGroupNameError:
                The group id is not usable.

        """

    def group_exists(self, gid: str, /) -> bool:
        """Return true if the group exists."""

    def vault_exists(self, gid: str, /) -> bool:
        """Return true if the group has a vault."""

    def read_group_vault(self, gid: str, /) -> bytes:
        """Return the group vault.

        Raises:
            NoSuchGroupError:
                The group has no vault.

        """

    def write(self, gid: str, data: Buffer, /) -> None:
        """Overwrite the group vault.

        Raises:
            NoSuchGroupError:
                The group does not exist.

        """

    def delete(self, gid: str, /) -> None:
        """Irreversibly remove the group and its vault.

        Raises:
            NoSuchGroupError:
                The group does not exist.

        """

    def read_registered_groups(self) -> list[str]:
        """Return the ids of all groups, sorted."""

    def lock(self, gid: str, /) -> AbstractContextManager[None]:
        """Hold an exclusive lock on the group for the enclosed block."""


def _is_valid_gid(gid: str, /) -> bool:
    return bool(gid) and not (
        gid in {os.curdir, os.pardir}
        or '@' in gid
        or '/' in gid
        or '\\' in gid
        or '\0' in gid
        or (os.altsep is not None and os.altsep in gid)
    )


def validate_gid(gid: str, /) -> None:
    """Raise unless `gid` is usable as a group id.

    Raises:
        InvalidGroupNameError:
            The group id is empty, `.` or `..`, or contains `@`, a path
            separator or a NUL character.

    """
    if not _is_valid_gid(gid):
        raise InvalidGroupNameError(gid)


@contextlib.contextmanager
def _flock(path: pathlib.Path, /) -> Iterator[None]:
    with path.open('a+b') as fileobj:
        if sys.platform == 'win32':  # pragma: no cover [windows]
            import msvcrt  # noqa: PLC0415

            fileobj.seek(0)
            msvcrt.locking(fileobj.fileno(), msvcrt.LK_LOCK, 1)
            try:
                yield
            finally:
                fileobj.seek(0)
                msvcrt.locking(fileobj.fileno(), msvcrt.LK_UNLCK, 1)
        else:
            import fcntl  # noqa: PLC0415

            fcntl.flock(fileobj.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(fileobj.fileno(), fcntl.LOCK_UN)


class LocalFileSystem:
    """A [`FileSystem`][] on a local directory.

    Attributes:
        root: The storage root directory.

    """

    def __init__(self, root: str | os.PathLike[str], /) -> None:
        self.root = pathlib.Path(root)

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({os.fspath(self.root)!r})'

    @property
    def groups_dir(self) -> pathlib.Path:
        """The directory holding one subdirectory per group."""
        return self.root / GROUPS_DIRNAME

    def _group_dir(self, gid: str, /) -> pathlib.Path:
        if not _is_valid_gid(gid):
            raise NoSuchGroupError(gid)
        return self.groups_dir / gid

    def _write_atomically(self, path: pathlib.Path, data: Buffer, /) -> None:
        fd, tmpname = tempfile.mkstemp(
            prefix=f'.{path.name}.', dir=path.parent
        )
        try:
            with os.fdopen(fd, 'wb') as outfile:
                outfile.write(bytes(data))
                outfile.flush()
                os.fsync(outfile.fileno())
            os.replace(tmpname, path)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmpname)
            raise

    def init_root(self, initial_vault: Buffer, /) -> None:
        group_dir = self.groups_dir / DEFAULT_GROUP
        if (group_dir / VAULT_FILENAME).exists():
            raise GroupExistsError(DEFAULT_GROUP)
        group_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        self._write_atomically(group_dir / VAULT_FILENAME, initial_vault)
        logger.debug('Initialized storage at %s', self.root)

    def create_group(self, gid: str, initial_vault: Buffer, /) -> None:
        validate_gid(gid)
        group_dir = self.groups_dir / gid
        self.groups_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        try:
            group_dir.mkdir(mode=0o700)
        except FileExistsError:
            raise GroupExistsError(gid) from None
        try:
            self._write_atomically(group_dir / VAULT_FILENAME, initial_vault)
        except BaseException:
            shutil.rmtree(group_dir, ignore_errors=True)
            raise
        logger.debug('Created group %r', gid)

    def group_exists(self, gid: str, /) -> bool:
        return _is_valid_gid(gid) and (self.groups_dir / gid).is_dir()

    def vault_exists(self, gid: str, /) -> bool:
        return (
            _is_valid_gid(gid)
            and (self.groups_dir / gid / VAULT_FILENAME).is_file()
        )

    def read_group_vault(self, gid: str, /) -> bytes:
        path = self._group_dir(gid) / VAULT_FILENAME
        try:
            return path.read_bytes()
        except (FileNotFoundError, NotADirectoryError):
            raise NoSuchGroupError(gid) from None

    def write(self, gid: str, data: Buffer, /) -> None:
        group_dir = self._group_dir(gid)
        if not group_dir.is_dir():
            raise NoSuchGroupError(gid)
        self._write_atomically(group_dir / VAULT_FILENAME, data)
        logger.debug('Wrote vault of group %r', gid)

    def delete(self, gid: str, /) -> None:
        if gid == DEFAULT_GROUP:
            raise ValueError(CANNOT_DELETE_DEFAULT_GROUP)
        group_dir = self._group_dir(gid)
        if not group_dir.is_dir():
            raise NoSuchGroupError(gid)
        shutil.rmtree(group_dir)
        logger.debug('Deleted group %r', gid)

    def read_registered_groups(self) -> list[str]:
        try:
            entries = list(self.groups_dir.iterdir())
        except FileNotFoundError:
            return []
        return sorted(entry.name for entry in entries if entry.is_dir())

    @contextlib.contextmanager
    def lock(self, gid: str, /) -> Iterator[None]:
        group_dir = self._group_dir(gid)
        if not group_dir.is_dir():
            raise NoSuchGroupError(gid)
        with _flock(group_dir / LOCK_FILENAME):
            logger.debug('Acquired lock on group %r', gid)
            try:
                yield
            finally:
                logger.debug('Released lock on group %r', gid)
