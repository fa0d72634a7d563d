# SPDX-FileCopyrightText: 2025 Marco Ricci <software@the13thletter.info>
#
# SPDX-License-Identifier: Zlib

"""Helper functions for the sherlock command-line.

Warning:
    Non-public module (implementation detail), provided for didactical and
    educational purposes only. Subject to change without notice, including
    removal.

"""

from __future__ import annotations

import os
import pathlib
import sys
from typing import TYPE_CHECKING, cast

import click

from sherlock import _internals, codec, core, filesystem, policy

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from typing_extensions import Any

PROG_NAME = _internals.PROG_NAME
CONFIG_FILENAME = 'config.toml'

# Error messages
INVALID_CONFIG_VALUE = 'Invalid value {value!r} for config key {key}'


def storage_path() -> pathlib.Path:
    """Return the sherlock storage directory.

    This is the `SHERLOCK_PATH` environment variable, if set, else
    determined by [`click.get_app_dir`][] in POSIX mode.

    """
    return pathlib.Path(
        os.getenv(PROG_NAME.upper() + '_PATH')
        or click.get_app_dir(PROG_NAME, force_posix=True)
    )


def config_filename() -> pathlib.Path:
    """Return the filename of the user configuration file."""
    return storage_path() / CONFIG_FILENAME


def load_user_config() -> dict[str, Any]:
    """Load the user config from the storage directory.

    The filename is obtained via [`config_filename`][].  A missing file
    yields an empty configuration.

    Returns:
        The user configuration, as a nested `dict`.

    Raises:
        OSError:
            There was an OS error accessing the file.
        ValueError:
            The data loaded from the file is not a valid configuration
            file.

    """
    try:
        with config_filename().open('rb') as fileobj:
            return tomllib.load(fileobj)
    except FileNotFoundError:
        return {}


def _get_number(
    config: Mapping[str, Any],
    path: Sequence[str],
    default: int | float,
    /,
    *,
    integral: bool = False,
) -> Any:  # noqa: ANN401
    value: Any = config
    for part in path:
        if not isinstance(value, dict):
            value = None
            break
        value = value.get(part)
    if value is None:
        return default
    allowed = (int,) if integral else (int, float)
    if isinstance(value, bool) or not isinstance(value, allowed):
        msg = INVALID_CONFIG_VALUE.format(value=value, key='.'.join(path))
        raise ValueError(msg)  # noqa: TRY004
    return value


def make_sherlock(config: Mapping[str, Any], /) -> core.Sherlock:
    """Construct the orchestrator from the user configuration.

    Raises:
        ValueError:
            A configuration value has the wrong type.

    """
    password_policy = policy.PasswordPolicy(
        min_length=_get_number(
            config,
            ('password-policy', 'min-length'),
            policy.DEFAULT_MIN_LENGTH,
            integral=True,
        ),
        min_entropy=float(
            _get_number(
                config,
                ('password-policy', 'min-entropy'),
                policy.DEFAULT_MIN_ENTROPY,
            )
        ),
    )
    iterations = _get_number(
        config,
        ('vault', 'kdf-iterations'),
        codec.DEFAULT_ITERATIONS,
        integral=True,
    )
    return core.Sherlock(
        filesystem.LocalFileSystem(storage_path()),
        password_policy=password_policy,
        iterations=iterations,
    )


def prompt_for_secret(text: str, /, *, confirm: bool = False) -> str:
    """Interactively prompt for a group key or account secret.

    Calls [`click.prompt`][] internally, with hidden input.  Moved into
    a separate function mainly for testing/mocking purposes.

    Args:
        text:
            The prompt text.
        confirm:
            If true, ask a second time and insist on matching input.

    """
    return cast(
        'str',
        click.prompt(
            text,
            hide_input=True,
            confirmation_prompt=confirm,
            show_default=False,
            err=True,
        ),
    )


def prompt_for_line(text: str, /) -> str:
    """Interactively prompt for a line of visible text.

    Calls [`click.prompt`][] internally.  Empty input is allowed.

    """
    return cast(
        'str',
        click.prompt(
            text,
            default='',
            show_default=False,
            err=True,
        ),
    )
