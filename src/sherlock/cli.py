# SPDX-FileCopyrightText: 2025 Marco Ricci <software@the13thletter.info>
#
# SPDX-License-Identifier: Zlib

"""Command-line interface for sherlock."""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING

import click

from sherlock import _internals, errors, state
from sherlock._internals import cli_helpers, cli_machinery
from sherlock.group import Account
from sherlock.query import split_query

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from sherlock import core

__all__ = ('sherlock',)

PROG_NAME = _internals.PROG_NAME
VERSION = _internals.VERSION

TABLE_HEADER = ('GROUP', 'ACCOUNT', 'TAG', 'CREATED ON')

logger = logging.getLogger(PROG_NAME)


@contextlib.contextmanager
def _reporting_errors(ctx: click.Context, /) -> Iterator[None]:
    """Report domain and storage errors, then exit with status 1."""
    try:
        yield
    except (errors.SherlockError, ValueError) as exc:
        logger.error('%s', exc, extra={'color': ctx.color})
        ctx.exit(1)
    except OSError as exc:
        logger.error(
            'Cannot access the vault storage: %s: %r',
            exc.strerror,
            exc.filename,
            extra={'color': ctx.color},
        )
        ctx.exit(1)


def _get_sherlock(ctx: click.Context, /) -> core.Sherlock:
    sh = ctx.find_object(dict)['sherlock']
    with _reporting_errors(ctx):
        sh.ensure_set_up()
    return sh


def _format_table(
    header: Sequence[str], rows: Sequence[Sequence[str]], /
) -> Iterator[str]:
    widths = [
        max(len(cell) for cell in column) for column in zip(header, *rows)
    ]
    yield '  '.join(
        click.style(cell.ljust(width), bold=True)
        for cell, width in zip(header, widths)
    ).rstrip()
    for row in rows:
        yield '  '.join(
            cell.ljust(width) for cell, width in zip(row, widths)
        ).rstrip()


@click.group(
    context_settings={'help_option_names': ['-h', '--help']},
    cls=cli_machinery.TopLevelCLIEntryPoint,
)
@click.version_option(version=VERSION, prog_name=PROG_NAME)
@cli_machinery.standard_logging_options
@click.pass_context
def sherlock(ctx: click.Context, /) -> None:
    """Store account credentials in groups, each encrypted separately.

    Accounts are addressed as GROUP@ACCOUNT.  Every group is encrypted
    under its own group key, which is asked for whenever the group is
    accessed and never stored.

    This is a [`click`][CLICK]-powered command-line interface function,
    and not intended for programmatic use.  (See also
    [`click.testing.CliRunner`][] for controlled, programmatic
    invocation.)

    [CLICK]: https://pypi.org/package/click/

    """
    with _reporting_errors(ctx):
        sh = cli_helpers.make_sherlock(cli_helpers.load_user_config())
    ctx.ensure_object(dict)['sherlock'] = sh


@sherlock.command(
    'setup', context_settings={'help_option_names': ['-h', '--help']}
)
@click.pass_context
def sherlock_setup(ctx: click.Context, /) -> None:
    """Set up sherlock and its "default" group."""
    sh: core.Sherlock = ctx.find_object(dict)['sherlock']
    if sh.is_set_up():
        logger.error(
            'sherlock is already set up', extra={'color': ctx.color}
        )
        ctx.exit(1)
    group_key = cli_helpers.prompt_for_secret(
        '(default) group key', confirm=True
    )
    with _reporting_errors(ctx):
        sh.setup(group_key)
    logger.info('sherlock is set up', extra={'color': ctx.color})


@sherlock.command(
    'check', context_settings={'help_option_names': ['-h', '--help']}
)
@click.argument('query', metavar='GROUP@ACCOUNT')
@click.pass_context
def sherlock_check(ctx: click.Context, /, *, query: str) -> None:
    """Verify the group key of the group in GROUP@ACCOUNT."""
    sh = _get_sherlock(ctx)
    group_key = cli_helpers.prompt_for_secret(f'({query}) group key')
    with _reporting_errors(ctx):
        sh.check_group_key(query, group_key)
    click.echo('group key is valid')


@sherlock.command(
    'get', context_settings={'help_option_names': ['-h', '--help']}
)
@click.argument('query', metavar='GROUP@ACCOUNT')
@click.pass_context
def sherlock_get(ctx: click.Context, /, *, query: str) -> None:
    """Print the secret of the account GROUP@ACCOUNT."""
    sh = _get_sherlock(ctx)
    group_key = cli_helpers.prompt_for_secret(f'({query}) group key')
    with _reporting_errors(ctx):
        account = sh.get_account(query, group_key)
    click.echo(account.secret)


@sherlock.command(
    'list', context_settings={'help_option_names': ['-h', '--help']}
)
@click.argument('gid', metavar='GROUP', required=False)
@click.pass_context
def sherlock_list(ctx: click.Context, /, *, gid: str | None) -> None:
    """List the accounts of GROUP, or list all groups.

    Secrets are never listed.

    """
    sh = _get_sherlock(ctx)
    if gid is None:
        with _reporting_errors(ctx):
            gids = sh.read_registered_groups()
        for name in gids:
            click.echo(name)
        return
    group_key = cli_helpers.prompt_for_secret(f'({gid}) group key')
    with _reporting_errors(ctx):
        rows = sh.get_group(gid, group_key).table()
    for line in _format_table(TABLE_HEADER, rows):
        click.echo(line, color=ctx.color)


# Adding groups and accounts
# ==========================


@sherlock.group(
    'add', context_settings={'help_option_names': ['-h', '--help']}
)
def sherlock_add() -> None:
    """Add a group or an account."""


@sherlock_add.command(
    'group', context_settings={'help_option_names': ['-h', '--help']}
)
@cli_machinery.insecure_option
@click.argument('name', metavar='GROUP')
@click.pass_context
def sherlock_add_group(
    ctx: click.Context, /, *, name: str, insecure: bool
) -> None:
    """Create the new group GROUP, with its own group key."""
    sh = _get_sherlock(ctx)
    with _reporting_errors(ctx):
        if sh.group_exists(name):
            raise errors.GroupExistsError(name)
    group_key = cli_helpers.prompt_for_secret(
        f'({name}) group key', confirm=True
    )
    with _reporting_errors(ctx):
        sh.setup_group(name, group_key, insecure=insecure)
    logger.info('group %r created', name, extra={'color': ctx.color})


@sherlock_add.command(
    'account', context_settings={'help_option_names': ['-h', '--help']}
)
@cli_machinery.insecure_option
@click.option(
    '-t', '--tag', default='', help='label the account with TAG'
)
@click.argument('query', metavar='GROUP@ACCOUNT')
@click.pass_context
def sherlock_add_account(
    ctx: click.Context, /, *, query: str, tag: str, insecure: bool
) -> None:
    """Add the account ACCOUNT to the group GROUP."""
    sh = _get_sherlock(ctx)
    group_key = cli_helpers.prompt_for_secret(f'({query}) group key')
    with _reporting_errors(ctx):
        sh.check_group_key(query, group_key)
    secret = cli_helpers.prompt_for_secret(
        f'({query}) account password', confirm=True
    )
    with _reporting_errors(ctx):
        if not insecure:
            sh.password_policy(secret)
        _, name = split_query(query)
        sh.update_state(
            query, group_key, state.AddAccount(Account(name, secret, tag))
        )
    logger.info('account %r added', query, extra={'color': ctx.color})


# Updating accounts
# =================


@sherlock.group(
    'update', context_settings={'help_option_names': ['-h', '--help']}
)
def sherlock_update() -> None:
    """Change an account's password, name or tag."""


@sherlock_update.command(
    'password', context_settings={'help_option_names': ['-h', '--help']}
)
@cli_machinery.insecure_option
@click.argument('query', metavar='GROUP@ACCOUNT')
@click.pass_context
def sherlock_update_password(
    ctx: click.Context, /, *, query: str, insecure: bool
) -> None:
    """Change the password of the account GROUP@ACCOUNT."""
    sh = _get_sherlock(ctx)
    group_key = cli_helpers.prompt_for_secret(f'({query}) group key')
    secret = cli_helpers.prompt_for_secret(
        f'({query}) new password', confirm=True
    )
    with _reporting_errors(ctx):
        sh.update_state(
            query, group_key, state.SetPassword(secret, allow_weak=insecure)
        )
    logger.info(
        'account password updated', extra={'color': ctx.color}
    )


@sherlock_update.command(
    'name', context_settings={'help_option_names': ['-h', '--help']}
)
@click.argument('query', metavar='GROUP@ACCOUNT')
@click.pass_context
def sherlock_update_name(ctx: click.Context, /, *, query: str) -> None:
    """Rename the account GROUP@ACCOUNT."""
    sh = _get_sherlock(ctx)
    group_key = cli_helpers.prompt_for_secret(f'({query}) group key')
    name = cli_helpers.prompt_for_line(f'({query}) new account name')
    with _reporting_errors(ctx):
        sh.update_state(query, group_key, state.SetName(name))
    logger.info('account name updated', extra={'color': ctx.color})


@sherlock_update.command(
    'tag', context_settings={'help_option_names': ['-h', '--help']}
)
@click.argument('query', metavar='GROUP@ACCOUNT')
@click.pass_context
def sherlock_update_tag(ctx: click.Context, /, *, query: str) -> None:
    """Change the tag of the account GROUP@ACCOUNT."""
    sh = _get_sherlock(ctx)
    group_key = cli_helpers.prompt_for_secret(f'({query}) group key')
    tag = cli_helpers.prompt_for_line(f'({query}) new account tag')
    with _reporting_errors(ctx):
        sh.update_state(query, group_key, state.SetTag(tag))
    logger.info('account tag updated', extra={'color': ctx.color})


# Deleting groups and accounts
# ============================


@sherlock.group(
    'delete', context_settings={'help_option_names': ['-h', '--help']}
)
def sherlock_delete() -> None:
    """Delete a group or an account."""


@sherlock_delete.command(
    'account', context_settings={'help_option_names': ['-h', '--help']}
)
@click.argument('query', metavar='GROUP@ACCOUNT')
@click.pass_context
def sherlock_delete_account(ctx: click.Context, /, *, query: str) -> None:
    """Delete the account GROUP@ACCOUNT."""
    sh = _get_sherlock(ctx)
    group_key = cli_helpers.prompt_for_secret(f'({query}) group key')
    with _reporting_errors(ctx):
        sh.update_state(query, group_key, state.DeleteAccount())
    logger.info('account %r deleted', query, extra={'color': ctx.color})


@sherlock_delete.command(
    'group', context_settings={'help_option_names': ['-h', '--help']}
)
@click.option(
    '-y', '--yes', is_flag=True, help='do not ask for confirmation'
)
@click.argument('gid', metavar='GROUP')
@click.pass_context
def sherlock_delete_group(
    ctx: click.Context, /, *, gid: str, yes: bool
) -> None:
    """Irreversibly delete GROUP and all of its accounts."""
    sh = _get_sherlock(ctx)
    if not yes and not click.confirm(
        f'Delete group {gid!r} and all of its accounts?', err=True
    ):
        logger.warning(
            'group %r not deleted', gid, extra={'color': ctx.color}
        )
        ctx.exit(1)
    with _reporting_errors(ctx):
        sh.delete_group(gid)
    logger.info('group %r deleted', gid, extra={'color': ctx.color})


if __name__ == '__main__':
    sherlock()
