# SPDX-FileCopyrightText: 2025 Marco Ricci <software@the13thletter.info>
#
# SPDX-License-Identifier: Zlib

"""Password strength policy.

The estimate is deliberately simple: the password length times the
binary logarithm of the size of the character pool it draws from.

"""

from __future__ import annotations

import math
import string

from sherlock.errors import WeakPasswordError

__all__ = (
    'DEFAULT_MIN_ENTROPY',
    'DEFAULT_MIN_LENGTH',
    'PasswordPolicy',
    'check_password_strength',
    'estimate_entropy',
)

DEFAULT_MIN_LENGTH = 8
DEFAULT_MIN_ENTROPY = 50.0

_POOLS: tuple[tuple[frozenset[str], int], ...] = (
    (frozenset(string.ascii_lowercase), 26),
    (frozenset(string.ascii_uppercase), 26),
    (frozenset(string.digits), 10),
    (frozenset(string.punctuation + ' '), 33),
)
_NON_ASCII_POOL_SIZE = 100


def estimate_entropy(password: str, /) -> float:
    """Estimate the entropy of `password`, in bits.

    Examples:
        >>> estimate_entropy('')
        0.0
        >>> estimate_entropy('aaaa')
        18.8
        >>> estimate_entropy('Tr0ub4dor&3')
        72.3

    """
    pool_size = sum(
        size for chars, size in _POOLS if any(c in chars for c in password)
    )
    if any(ord(c) > 127 for c in password):  # noqa: PLR2004
        pool_size += _NON_ASCII_POOL_SIZE
    if not pool_size:
        return 0.0
    return round(len(password) * math.log2(pool_size), 1)


def check_password_strength(
    password: str,
    /,
    *,
    min_length: int = DEFAULT_MIN_LENGTH,
    min_entropy: float = DEFAULT_MIN_ENTROPY,
) -> None:
    """Reject passwords that are too short or too predictable.

    Raises:
        WeakPasswordError:
            The password is shorter than `min_length` characters, or
            its entropy estimate is below `min_entropy` bits.

    """
    if len(password) < min_length:
        reason = f'must be at least {min_length} characters long'
        raise WeakPasswordError(reason)
    entropy = estimate_entropy(password)
    if entropy < min_entropy:
        reason = (
            f'estimated entropy of {entropy:.1f} bits is below '
            f'the required {min_entropy:.1f} bits'
        )
        raise WeakPasswordError(reason)


class PasswordPolicy:
    """A configured password strength check.

    Calling the policy checks a password via
    [`check_password_strength`][] with the configured thresholds.

    """

    def __init__(
        self,
        *,
        min_length: int = DEFAULT_MIN_LENGTH,
        min_entropy: float = DEFAULT_MIN_ENTROPY,
    ) -> None:
        self.min_length = min_length
        self.min_entropy = min_entropy

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}(min_length={self.min_length!r}, '
            f'min_entropy={self.min_entropy!r})'
        )

    def __call__(self, password: str, /) -> None:
        check_password_strength(
            password,
            min_length=self.min_length,
            min_entropy=self.min_entropy,
        )
