# SPDX-FileCopyrightText: 2025 Marco Ricci <software@the13thletter.info>
#
# SPDX-License-Identifier: Zlib

from __future__ import annotations

import contextlib
import datetime
import logging
import os
import sys
from typing import TYPE_CHECKING

import click.testing
import hypothesis
from hypothesis import strategies
from typing_extensions import NamedTuple, Self

from sherlock import cli, errors, filesystem
from sherlock._internals import cli_helpers, cli_machinery
from sherlock.group import Account, Group

__all__ = ()

if TYPE_CHECKING:
    from collections.abc import Iterator

    import pytest
    from typing_extensions import Buffer

DUMMY_GROUP_KEY = 'Elementary, my dear Watson: 221B!'
"""A group key satisfying the default password policy."""
DUMMY_OTHER_GROUP_KEY = 'The game is afoot, 1887 & onwards'
DUMMY_WEAK_KEY = 'watson'
DUMMY_SECRET = 'Mrs. Hudson keeps the spare key #7'
DUMMY_GROUP = 'detective'
DUMMY_ACCOUNT = 'bakerstreet'
DUMMY_TAG = '221b'
DUMMY_QUERY = f'{DUMMY_GROUP}@{DUMMY_ACCOUNT}'
DUMMY_CREATED_ON = datetime.datetime(
    2006, 1, 2, 15, 4, 5, tzinfo=datetime.timezone.utc
)

TEST_ITERATIONS = 1000
"""A PBKDF2 iteration count small enough for tests."""

TEST_CONFIG_TOML = f"""\
[vault]
kdf-iterations = {TEST_ITERATIONS}
"""

hypothesis_settings_coverage_compatible = (
    hypothesis.settings(
        # Running under coverage with the Python tracer increases
        # running times 40-fold.
        deadline=(
            40 * deadline
            if (deadline := hypothesis.settings().deadline) is not None
            else None
        ),
        suppress_health_check=(hypothesis.HealthCheck.too_slow,),
    )
    if sys.gettrace() is not None
    else hypothesis.settings()
)


# Hypothesis strategies
# =====================

account_names = strategies.text(max_size=24)
account_tags = strategies.text(max_size=12)
account_secrets = strategies.text(max_size=64)
creation_timestamps = strategies.datetimes(
    min_value=datetime.datetime(1970, 1, 1),  # noqa: DTZ001
    max_value=datetime.datetime(2200, 1, 1),  # noqa: DTZ001
    timezones=strategies.just(datetime.timezone.utc),
)


@strategies.composite
def accounts(draw: strategies.DrawFn) -> Account:
    """Return an arbitrary account."""
    return Account(
        draw(account_names),
        draw(account_secrets),
        draw(account_tags),
        created_on=draw(creation_timestamps),
    )


@strategies.composite
def groups(draw: strategies.DrawFn, max_size: int = 8) -> Group:
    """Return an arbitrary group, respecting the uniqueness invariant."""
    gid = draw(strategies.text(min_size=1, max_size=16))
    members = draw(
        strategies.lists(
            accounts(),
            max_size=max_size,
            unique_by=lambda account: (account.name, account.tag),
        )
    )
    return Group(gid, members)


def make_account(
    name: str = DUMMY_ACCOUNT,
    secret: str = DUMMY_SECRET,
    tag: str = DUMMY_TAG,
) -> Account:
    return Account(name, secret, tag, created_on=DUMMY_CREATED_ON)


# Storage fakes and isolation
# ===========================


class LockEvent(NamedTuple):
    """A lock acquisition or release, as recorded by the fake store."""

    action: str
    gid: str


class InMemoryFileSystem:
    """A [`sherlock.filesystem.FileSystem`][] held in a dict.

    Records lock acquisitions and releases, and counts writes.

    """

    def __init__(self) -> None:
        self.vaults: dict[str, bytes] = {}
        self.lock_events: list[LockEvent] = []
        self.writes = 0

    @classmethod
    def with_groups(cls, **vaults: bytes) -> Self:
        fs = cls()
        fs.vaults.update(vaults)
        return fs

    def init_root(self, initial_vault: Buffer, /) -> None:
        if filesystem.DEFAULT_GROUP in self.vaults:
            raise errors.GroupExistsError(filesystem.DEFAULT_GROUP)
        self.vaults[filesystem.DEFAULT_GROUP] = bytes(initial_vault)

    def create_group(self, gid: str, initial_vault: Buffer, /) -> None:
        if gid in self.vaults:
            raise errors.GroupExistsError(gid)
        self.vaults[gid] = bytes(initial_vault)

    def group_exists(self, gid: str, /) -> bool:
        return gid in self.vaults

    def vault_exists(self, gid: str, /) -> bool:
        return gid in self.vaults

    def read_group_vault(self, gid: str, /) -> bytes:
        try:
            return self.vaults[gid]
        except KeyError:
            raise errors.NoSuchGroupError(gid) from None

    def write(self, gid: str, data: Buffer, /) -> None:
        if gid not in self.vaults:
            raise errors.NoSuchGroupError(gid)
        self.vaults[gid] = bytes(data)
        self.writes += 1

    def delete(self, gid: str, /) -> None:
        if gid not in self.vaults:
            raise errors.NoSuchGroupError(gid)
        del self.vaults[gid]

    def read_registered_groups(self) -> list[str]:
        return sorted(self.vaults)

    @contextlib.contextmanager
    def lock(self, gid: str, /) -> Iterator[None]:
        if gid not in self.vaults:
            raise errors.NoSuchGroupError(gid)
        self.lock_events.append(LockEvent('acquire', gid))
        try:
            yield
        finally:
            self.lock_events.append(LockEvent('release', gid))


@contextlib.contextmanager
def isolated_storage(
    monkeypatch: pytest.MonkeyPatch,
    runner: click.testing.CliRunner,
    *,
    config_toml: str | None = TEST_CONFIG_TOML,
) -> Iterator[None]:
    """Run the enclosed block with a fresh, empty storage directory."""
    env_name = cli_helpers.PROG_NAME.upper() + '_PATH'
    with runner.isolated_filesystem():
        monkeypatch.setenv('HOME', os.getcwd())
        monkeypatch.setenv('USERPROFILE', os.getcwd())
        monkeypatch.setenv(env_name, os.path.join(os.getcwd(), '.sherlock'))
        storage_dir = cli_helpers.storage_path()
        os.makedirs(storage_dir, exist_ok=True)
        if config_toml is not None:
            with open(
                cli_helpers.config_filename(), 'w', encoding='UTF-8'
            ) as outfile:
                outfile.write(config_toml)
        yield


def error_emitted(
    text: str,
    record_tuples: list[tuple[str, int, str]],
) -> bool:
    """Return true if an error log record containing `text` exists."""
    return any(
        name.startswith('sherlock')
        and level >= logging.ERROR
        and text in message
        for name, level, message in record_tuples
    )


# Command-line invocation
# =======================


class ReadableResult(NamedTuple):
    """Helper class for formatting and testing click.testing.Result objects."""

    exception: BaseException | None
    exit_code: int
    stdout: str
    stderr: str

    @classmethod
    def parse(cls, r: click.testing.Result, /) -> Self:
        return cls(r.exception, r.exit_code, r.stdout or '', r.stderr or '')

    def clean_exit(
        self, *, output: str = '', empty_stderr: bool = False
    ) -> bool:
        """Return whether the invocation exited cleanly.

        Args:
            output:
                An expected output string.
            empty_stderr:
                If true, additionally require that nothing was written
                to standard error.

        """
        return (
            (
                not self.exception
                or (
                    isinstance(self.exception, SystemExit)
                    and self.exit_code == 0
                )
            )
            and (not output or output in self.stdout)
            and (not empty_stderr or not self.stderr)
        )

    def error_exit(self, *, error: str = '') -> bool:
        """Return whether the invocation exited uncleanly.

        Args:
            error:
                An expected error message on standard error.

        """
        return (
            isinstance(self.exception, SystemExit)
            and self.exit_code > 0
            and (not error or error in self.stderr)
        )


def run_cli(
    runner: click.testing.CliRunner,
    args: list[str],
    /,
    *,
    input: str | None = None,  # noqa: A002
) -> ReadableResult:
    """Invoke the sherlock command-line, with standard logging set up.

    This mirrors what calling the top-level command does, but goes
    through `.main`, as [`click.testing.CliRunner`][] does.

    """
    with cli_machinery.StandardCLILogging.ensure_standard_logging():
        result = runner.invoke(
            cli.sherlock, args, input=input, catch_exceptions=False
        )
    return ReadableResult.parse(result)
