# SPDX-FileCopyrightText: 2025 Marco Ricci <software@the13thletter.info>
#
# SPDX-License-Identifier: Zlib

from __future__ import annotations

import hypothesis
import pytest
from hypothesis import strategies

import tests
from sherlock import errors
from sherlock.query import QUERY_SEPARATOR, split_query

no_separator_text = strategies.text(
    alphabet=strategies.characters(exclude_characters=QUERY_SEPARATOR),
    max_size=20,
)


class Test001SplitQuery:
    def test_100_well_formed(self) -> None:
        gid, account_name = split_query(tests.DUMMY_QUERY)
        assert gid == tests.DUMMY_GROUP
        assert account_name == tests.DUMMY_ACCOUNT

    @pytest.mark.parametrize(
        'query',
        [
            pytest.param('detective', id='no-separator'),
            pytest.param('', id='empty'),
            pytest.param('a@b@c', id='two-separators'),
            pytest.param('@@', id='only-separators'),
        ],
    )
    def test_200_malformed(self, query: str) -> None:
        with pytest.raises(errors.InvalidQueryError) as excinfo:
            split_query(query)
        assert excinfo.value.query == query
        assert 'group@account' in str(excinfo.value)

    @tests.hypothesis_settings_coverage_compatible
    @hypothesis.given(gid=no_separator_text, account_name=no_separator_text)
    def test_300_splits_at_the_separator(
        self, gid: str, account_name: str
    ) -> None:
        query = f'{gid}{QUERY_SEPARATOR}{account_name}'
        assert tuple(split_query(query)) == (gid, account_name)

    @tests.hypothesis_settings_coverage_compatible
    @hypothesis.given(
        parts=strategies.lists(no_separator_text, min_size=3, max_size=5)
    )
    def test_301_rejects_extra_separators(self, parts: list[str]) -> None:
        with pytest.raises(errors.InvalidQueryError):
            split_query(QUERY_SEPARATOR.join(parts))
