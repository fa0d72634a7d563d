# SPDX-FileCopyrightText: 2025 Marco Ricci <software@the13thletter.info>
#
# SPDX-License-Identifier: Zlib

from __future__ import annotations

import pytest

import tests
from sherlock import errors, policy, state
from sherlock.group import Group


def _group() -> Group:
    return Group(
        tests.DUMMY_GROUP,
        [
            tests.make_account(),
            tests.make_account(name='mycroft', tag='diogenes'),
        ],
    )


class Test001AddAccount:
    def test_100_appends(self) -> None:
        group = _group()
        new = tests.make_account(name='lestrade', tag='yard')
        state.apply(state.AddAccount(new), group, 'ignored')
        assert group.lookup('lestrade') is new
        assert len(group) == 3

    def test_200_duplicate(self) -> None:
        group = _group()
        with pytest.raises(errors.AccountExistsError):
            state.apply(
                state.AddAccount(tests.make_account()), group, 'ignored'
            )
        assert group == _group()


class Test002SetPassword:
    def test_100_changes_secret_only(self) -> None:
        group = _group()
        state.apply(
            state.SetPassword(tests.DUMMY_GROUP_KEY),
            group,
            tests.DUMMY_ACCOUNT,
        )
        target = group.lookup(tests.DUMMY_ACCOUNT)
        assert target.secret == tests.DUMMY_GROUP_KEY
        assert target.tag == tests.DUMMY_TAG
        assert target.created_on == tests.DUMMY_CREATED_ON

    def test_200_weak_password_rejected(self) -> None:
        group = _group()
        with pytest.raises(errors.WeakPasswordError):
            state.apply(
                state.SetPassword(tests.DUMMY_WEAK_KEY),
                group,
                tests.DUMMY_ACCOUNT,
                check_password=policy.PasswordPolicy(),
            )
        assert group == _group()

    def test_201_weak_password_allowed(self) -> None:
        group = _group()
        state.apply(
            state.SetPassword(tests.DUMMY_WEAK_KEY, allow_weak=True),
            group,
            tests.DUMMY_ACCOUNT,
            check_password=policy.PasswordPolicy(),
        )
        assert group.lookup(tests.DUMMY_ACCOUNT).secret == (
            tests.DUMMY_WEAK_KEY
        )

    def test_202_missing_account(self) -> None:
        with pytest.raises(errors.NoSuchAccountError):
            state.apply(
                state.SetPassword(tests.DUMMY_GROUP_KEY), _group(), 'moriarty'
            )

    def test_300_repr_hides_secret(self) -> None:
        option = state.SetPassword(tests.DUMMY_SECRET)
        assert tests.DUMMY_SECRET not in repr(option)


class Test003SetName:
    def test_100_renames(self) -> None:
        group = _group()
        state.apply(state.SetName('sherlock'), group, tests.DUMMY_ACCOUNT)
        assert group.lookup('sherlock').tag == tests.DUMMY_TAG
        with pytest.raises(errors.NoSuchAccountError):
            group.lookup(tests.DUMMY_ACCOUNT)

    def test_101_rename_to_itself(self) -> None:
        group = _group()
        state.apply(
            state.SetName(tests.DUMMY_ACCOUNT), group, tests.DUMMY_ACCOUNT
        )
        assert group == _group()

    def test_200_collision(self) -> None:
        group = _group()
        with pytest.raises(errors.AccountExistsError) as excinfo:
            state.apply(state.SetName('mycroft'), group, tests.DUMMY_ACCOUNT)
        assert excinfo.value.name == 'mycroft'
        assert group == _group()

    def test_201_missing_account(self) -> None:
        with pytest.raises(errors.NoSuchAccountError):
            state.apply(state.SetName('sherlock'), _group(), 'moriarty')


class Test004SetTag:
    def test_100_retags(self) -> None:
        group = _group()
        state.apply(state.SetTag('baker'), group, tests.DUMMY_ACCOUNT)
        target = group.lookup(tests.DUMMY_ACCOUNT)
        assert target.tag == 'baker'
        assert target.secret == tests.DUMMY_SECRET

    def test_101_retag_to_same_tag(self) -> None:
        group = _group()
        state.apply(
            state.SetTag(tests.DUMMY_TAG), group, tests.DUMMY_ACCOUNT
        )
        assert group == _group()

    def test_200_collision(self) -> None:
        group = Group(
            tests.DUMMY_GROUP,
            [tests.make_account(tag='a'), tests.make_account(tag='b')],
        )
        with pytest.raises(errors.AccountExistsError) as excinfo:
            state.apply(state.SetTag('b'), group, tests.DUMMY_ACCOUNT)
        assert excinfo.value.tag == 'b'
        assert [account.tag for account in group] == ['a', 'b']

    def test_201_same_tag_other_name_is_fine(self) -> None:
        group = _group()
        state.apply(state.SetTag('diogenes'), group, tests.DUMMY_ACCOUNT)
        assert group.lookup(tests.DUMMY_ACCOUNT).tag == 'diogenes'


class Test005DeleteAccount:
    def test_100_deletes(self) -> None:
        group = _group()
        state.apply(state.DeleteAccount(), group, tests.DUMMY_ACCOUNT)
        assert [account.name for account in group] == ['mycroft']

    def test_200_missing_account(self) -> None:
        group = _group()
        with pytest.raises(errors.NoSuchAccountError):
            state.apply(state.DeleteAccount(), group, 'moriarty')
        assert group == _group()
