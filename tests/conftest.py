# SPDX-FileCopyrightText: 2025 Marco Ricci <software@the13thletter.info>
#
# SPDX-License-Identifier: Zlib

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING

import hypothesis
import pytest

import tests
from sherlock import codec, core, filesystem
from sherlock.group import Group

if TYPE_CHECKING:
    import pathlib

# https://hypothesis.readthedocs.io/en/latest/settings.html#settings-profiles
hypothesis.settings.register_profile('ci', max_examples=1000)
hypothesis.settings.register_profile('dev', max_examples=10)
hypothesis.settings.register_profile(
    'debug', max_examples=10, verbosity=hypothesis.Verbosity.verbose
)
hypothesis.settings.register_profile(
    'flaky', deadline=datetime.timedelta(milliseconds=150)
)


@pytest.fixture
def local_filesystem(tmp_path: pathlib.Path) -> filesystem.LocalFileSystem:
    """Return a local file system in a fresh temporary directory."""
    return filesystem.LocalFileSystem(tmp_path / 'sherlock')


@pytest.fixture
def sherlock_instance(
    local_filesystem: filesystem.LocalFileSystem,
) -> core.Sherlock:
    """Return an orchestrator on an empty local file system."""
    return core.Sherlock(local_filesystem, iterations=tests.TEST_ITERATIONS)


@pytest.fixture
def detective_vault() -> bytes:
    """Return the vault of a "detective" group holding one account."""
    return codec.init_with_default(
        tests.DUMMY_GROUP_KEY,
        Group(tests.DUMMY_GROUP, [tests.make_account()]),
        iterations=tests.TEST_ITERATIONS,
    )
