# SPDX-FileCopyrightText: 2025 Marco Ricci <software@the13thletter.info>
#
# SPDX-License-Identifier: Zlib

"""Command-line machinery for sherlock: logging setup and shared options.

Warning:
    Non-public module (implementation detail), provided for didactical and
    educational purposes only. Subject to change without notice, including
    removal.

"""

from __future__ import annotations

import collections
import logging
from typing import TYPE_CHECKING, Callable, Literal, TypeVar

import click
from typing_extensions import Any, ParamSpec

from sherlock import _internals

if TYPE_CHECKING:
    import types

    from typing_extensions import Self

PROG_NAME = _internals.PROG_NAME

LEVEL_LABELS = {
    logging.DEBUG: 'Debug',
    logging.INFO: '',
    logging.WARNING: 'Warning',
    logging.ERROR: 'Error',
    logging.CRITICAL: 'Error',
}
"""Labels shown before each log line, by log level."""


# Logging
# =======


class ClickEchoStderrHandler(logging.Handler):
    """Emit log records to standard error via [`click.echo`][].

    A `color` attribute on the record, if present, is passed on to
    [`click.echo`][], so that `--color`-like context settings apply.

    """

    def emit(self, record: logging.LogRecord) -> None:
        click.echo(
            self.format(record),
            err=True,
            color=getattr(record, 'color', None),
        )


class CLIofPackageFormatter(logging.Formatter):
    """Format log records as diagnostics of the sherlock command-line.

    Every line of the message is prefixed with `"sherlock: "` and, for
    levels other than [`logging.INFO`][], a bold level label.  So a
    failed lookup reads

        sherlock: Error: No such account: 'moriarty'

    """

    def __init__(self, *, prog_name: str = PROG_NAME) -> None:
        super().__init__()
        self.prog_name = prog_name

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record for standard error.

        Raises:
            AssertionError:
                The log level is not one of the standard levels.

        """
        try:
            label = LEVEL_LABELS[record.levelno]
        except KeyError:  # pragma: no cover [failsafe]
            msg = f'Unsupported logging level: {record.levelname}'
            raise AssertionError(msg) from None
        prefix = f'{self.prog_name}: '
        if label:
            prefix += f'{click.style(label, bold=True)}: '
        text = ''.join(
            prefix + line
            for line in record.getMessage().splitlines(keepends=True)
        )
        if record.exc_info:
            text += '\n' + self.formatException(record.exc_info)
        return text


class StandardCLILogging:
    """The handler and formatter shared by all sherlock commands.

    The handler only passes records from the `sherlock` logger
    hierarchy, at level [`logging.WARNING`][] unless changed via the
    `-v`, `-q` or `--debug` options.

    """

    package_name = PROG_NAME
    cli_formatter = CLIofPackageFormatter(prog_name=PROG_NAME)
    cli_handler = ClickEchoStderrHandler()
    cli_handler.addFilter(logging.Filter(name=package_name))
    cli_handler.setFormatter(cli_formatter)
    cli_handler.setLevel(logging.WARNING)

    @classmethod
    def ensure_standard_logging(cls) -> StandardLoggingContextManager:
        """Return a context manager installing the CLI log handler."""
        return StandardLoggingContextManager(
            handler=cls.cli_handler,
            root_logger=cls.package_name,
        )


class StandardLoggingContextManager:
    """Install a log handler for the duration of a `with` block.

    The handler is added to the named logger on entry, unless already
    present, and removed again on exit only if it was added on entry.
    Nesting is therefore harmless.  Not thread safe: this modifies the
    global logger configuration.

    """

    def __init__(
        self,
        handler: logging.Handler,
        root_logger: str | None = None,
    ) -> None:
        self.handler = handler
        self.base_logger = logging.getLogger(root_logger)
        self.added: collections.deque[bool] = collections.deque()

    def __enter__(self) -> Self:
        needs_adding = self.handler not in self.base_logger.handlers
        self.added.append(needs_adding)
        if needs_adding:
            self.base_logger.addHandler(self.handler)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> Literal[False]:
        if self.added.pop():
            self.base_logger.removeHandler(self.handler)
        return False


P = ParamSpec('P')
R = TypeVar('R')


def adjust_logging_level(
    ctx: click.Context,
    /,
    param: click.Parameter | None = None,
    value: int | None = None,
) -> None:
    """Set the level of emitted diagnostics (an option callback).

    Applies `value` to both the `sherlock` logger and the CLI handler.
    Called once per logging option, so must be idempotent.

    """
    if param is None or value is None or ctx.resilient_parsing:
        return
    StandardCLILogging.cli_handler.setLevel(value)
    logging.getLogger(StandardCLILogging.package_name).setLevel(value)


class TopLevelCLIEntryPoint(click.Group):
    """A [`click.Group`][] that installs the CLI log handler when called.

    Calling `.main` directly, as [`click.testing.CliRunner`][] does,
    skips this.

    """

    def __call__(  # pragma: no cover [external-api]
        self,
        *args: Any,  # noqa: ANN401
        **kwargs: Any,  # noqa: ANN401
    ) -> Any:  # noqa: ANN401
        """"""  # noqa: D419
        with StandardCLILogging.ensure_standard_logging():
            return self.main(*args, **kwargs)


# Options
# =======


debug_option = click.option(
    '--debug',
    'logging_level',
    is_flag=True,
    flag_value=logging.DEBUG,
    expose_value=False,
    callback=adjust_logging_level,
    help='also emit debug information (implies --verbose)',
)
verbose_option = click.option(
    '-v',
    '--verbose',
    'logging_level',
    is_flag=True,
    flag_value=logging.INFO,
    expose_value=False,
    callback=adjust_logging_level,
    help='report successful changes on standard error',
)
quiet_option = click.option(
    '-q',
    '--quiet',
    'logging_level',
    is_flag=True,
    flag_value=logging.ERROR,
    expose_value=False,
    callback=adjust_logging_level,
    help='suppress warnings, emit only errors',
)


def standard_logging_options(f: Callable[P, R]) -> Callable[P, R]:
    """Add the `--debug`, `-v`/`--verbose` and `-q`/`--quiet` options."""
    return debug_option(verbose_option(quiet_option(f)))


insecure_option = click.option(
    '-i',
    '--insecure',
    is_flag=True,
    default=False,
    help='skip the password strength check',
)
