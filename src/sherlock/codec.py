# SPDX-FileCopyrightText: 2025 Marco Ricci <software@the13thletter.info>
#
# SPDX-License-Identifier: Zlib

"""The vault codec: password-based encryption of serialized groups.

A vault blob consists of:

- a 1-byte format version,
- the 4-byte (big endian) PBKDF2 iteration count,
- a 16-byte salt,
- a 16-byte IV,
- the AES256-CBC-encrypted, PKCS7-padded payload, and
- a 32-byte HMAC-SHA256 of all preceding bytes.

The group key is run through PBKDF2-HMAC-SHA256 with the salt to
obtain 64 bytes, which are split into an encryption key and a signing
key.  The MAC is verified before attempting to decrypt the payload.

Decryption failures are deliberately indistinguishable: a wrong key,
a truncated blob and a tampered blob all raise the same
[`VaultCodecError`][].

"""

from __future__ import annotations

import logging
import os
import struct
from typing import TYPE_CHECKING

from cryptography import exceptions as crypto_exceptions
from cryptography.hazmat.primitives import ciphers, hashes, hmac, padding
from cryptography.hazmat.primitives.ciphers import algorithms, modes
from cryptography.hazmat.primitives.kdf import pbkdf2
from typing_extensions import NamedTuple

if TYPE_CHECKING:
    from typing_extensions import Buffer

    from sherlock.group import Group

__all__ = (
    'DEFAULT_ITERATIONS',
    'VaultCodecError',
    'decrypt_vault',
    'encrypt_vault',
    'init_with_default',
)

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1
DEFAULT_ITERATIONS = 600_000
MAX_ITERATIONS = 10_000_000
SALT_SIZE = IV_SIZE = 16
KEY_SIZE = MAC_SIZE = 32
HEADER_FORMAT = f'>BI{SALT_SIZE}s'
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)

EMPTY_KEY = 'Cannot derive a vault key from an empty group key'
INVALID_ITERATIONS = 'Invalid PBKDF2 iteration count: {!r}'


class VaultCodecError(ValueError):
    """The vault blob cannot be decrypted.

    Raised for a wrong key and for corrupted data alike.

    """

    def __str__(self) -> str:
        return 'Cannot decrypt vault'


class VaultKeys(NamedTuple):
    """Encryption and signing keys derived from a group key.

    Attributes:
        encryption_key: The AES256 key.
        signing_key: The HMAC-SHA256 key.

    """

    encryption_key: bytes
    """"""
    signing_key: bytes
    """"""


def derive_vault_keys(
    group_key: str | Buffer, salt: Buffer, iterations: int
) -> VaultKeys:
    """Derive encryption and signing keys from the group key.

    Args:
        group_key:
            The group key (password).  Text is encoded as UTF-8.
        salt:
            The per-blob salt.
        iterations:
            The PBKDF2 iteration count.

    Raises:
        ValueError:
            The group key is empty, or the iteration count is not
            positive or exceeds [`MAX_ITERATIONS`][].

    Warning:
        Non-public function, provided for didactical and educational
        purposes only.  Subject to change without notice, including
        removal.

    """
    if isinstance(group_key, str):
        group_key = group_key.encode('UTF-8')
    if not bytes(group_key):
        raise ValueError(EMPTY_KEY)
    if not 0 < iterations <= MAX_ITERATIONS:
        raise ValueError(INVALID_ITERATIONS.format(iterations))
    keys_blob = pbkdf2.PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=2 * KEY_SIZE,
        salt=bytes(salt),
        iterations=iterations,
    ).derive(bytes(group_key))
    encryption_key, signing_key = struct.unpack(
        f'{KEY_SIZE}s {KEY_SIZE}s', keys_blob
    )
    return VaultKeys(encryption_key, signing_key)


def encrypt_vault(
    plaintext: Buffer,
    group_key: str | Buffer,
    *,
    iterations: int = DEFAULT_ITERATIONS,
) -> bytes:
    """Encrypt and authenticate `plaintext` under `group_key`.

    A fresh salt and IV are drawn for every call, so encrypting the
    same plaintext twice yields different blobs.

    Args:
        plaintext:
            The serialized group.
        group_key:
            The group key (password).
        iterations:
            The PBKDF2 iteration count to use and record in the blob.

    Returns:
        The vault blob.

    Raises:
        ValueError:
            Key derivation failed.  See [`derive_vault_keys`][].

    """
    salt = os.urandom(SALT_SIZE)
    iv = os.urandom(IV_SIZE)
    keys = derive_vault_keys(group_key, salt, iterations)
    padder = padding.PKCS7(IV_SIZE * 8).padder()
    padded_plaintext = bytearray()
    padded_plaintext.extend(padder.update(bytes(plaintext)))
    padded_plaintext.extend(padder.finalize())
    encryptor = ciphers.Cipher(
        algorithms.AES256(keys.encryption_key), modes.CBC(iv)
    ).encryptor()
    payload = bytearray()
    payload.extend(encryptor.update(bytes(padded_plaintext)))
    payload.extend(encryptor.finalize())
    signed = bytearray(
        struct.pack(HEADER_FORMAT, FORMAT_VERSION, iterations, salt)
    )
    signed.extend(iv)
    signed.extend(payload)
    mac = hmac.HMAC(keys.signing_key, hashes.SHA256())
    mac.update(bytes(signed))
    signed.extend(mac.finalize())
    logger.debug(
        'Encrypted vault: %d plaintext bytes, %d blob bytes, '
        '%d PBKDF2 iterations',
        len(bytes(plaintext)),
        len(signed),
        iterations,
    )
    return bytes(signed)


def decrypt_vault(blob: Buffer, group_key: str | Buffer) -> bytes:
    """Verify and decrypt a vault blob.

    Args:
        blob:
            The vault blob, as produced by [`encrypt_vault`][].
        group_key:
            The group key (password).

    Returns:
        The plaintext (serialized group).

    Raises:
        VaultCodecError:
            The blob cannot be decrypted with this key.  This covers
            wrong keys, truncated or tampered blobs, and unsupported
            format versions alike.

    """
    data = bytes(blob)
    try:
        signed, claimed_mac = struct.unpack(
            f'{len(data) - MAC_SIZE}s {MAC_SIZE}s', data
        )
        version, iterations, salt = struct.unpack_from(HEADER_FORMAT, signed)
        if version != FORMAT_VERSION:
            logger.debug('Unsupported vault format version: %d', version)
            raise VaultCodecError
        keys = derive_vault_keys(group_key, salt, iterations)
        actual_mac = hmac.HMAC(keys.signing_key, hashes.SHA256())
        actual_mac.update(signed)
        actual_mac.verify(claimed_mac)
        iv, payload = struct.unpack(
            f'{IV_SIZE}s {len(signed) - HEADER_SIZE - IV_SIZE}s',
            signed[HEADER_SIZE:],
        )
        decryptor = ciphers.Cipher(
            algorithms.AES256(keys.encryption_key), modes.CBC(iv)
        ).decryptor()
        padded_plaintext = bytearray()
        padded_plaintext.extend(decryptor.update(payload))
        padded_plaintext.extend(decryptor.finalize())
        unpadder = padding.PKCS7(IV_SIZE * 8).unpadder()
        plaintext = bytearray()
        plaintext.extend(unpadder.update(bytes(padded_plaintext)))
        plaintext.extend(unpadder.finalize())
    except (
        ValueError,
        struct.error,
        crypto_exceptions.InvalidSignature,
    ) as exc:
        raise VaultCodecError from exc
    return bytes(plaintext)


def init_with_default(
    group_key: str | Buffer,
    group: Group,
    *,
    iterations: int = DEFAULT_ITERATIONS,
) -> bytes:
    """Encrypt a freshly created group under `group_key`.

    Used both at first-time setup and at group creation.

    Raises:
        ValueError:
            Key derivation failed.  See [`derive_vault_keys`][].

    """
    return encrypt_vault(group.serialize(), group_key, iterations=iterations)
