from __future__ import annotations
"""
Symmetric encryption for stored Search Console credentials.

Format is compatible with values written by the dashboard's settings screen:
hex(salt[64] + iv[16] + tag[16] + ciphertext), AES-256-GCM with a key
derived from SECRET via PBKDF2-HMAC-SHA512 (100000 iterations).
"""

import os
from typing import Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from scsync.settings import settings

SALT_LENGTH = 64
IV_LENGTH = 16
TAG_LENGTH = 16
PBKDF2_ITERATIONS = 100000


def _get_secret(secret: Optional[str]) -> str:
    value = secret if secret is not None else settings.SECRET
    if not value:
        raise ValueError("SECRET is not configured; cannot encrypt or decrypt credentials")
    return value


def _derive_key(secret: str, salt: bytes) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA512(),
        length=32,
        salt=salt,
        iterations=PBKDF2_ITERATIONS,
    )
    return kdf.derive(secret.encode('utf-8'))


def encrypt(value: str, secret: Optional[str] = None) -> str:
    key_secret = _get_secret(secret)
    salt = os.urandom(SALT_LENGTH)
    iv = os.urandom(IV_LENGTH)
    sealed = AESGCM(_derive_key(key_secret, salt)).encrypt(iv, str(value).encode('utf-8'), None)
    # AESGCM appends the tag; stored layout puts it before the ciphertext
    ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
    return (salt + iv + tag + ciphertext).hex()


def decrypt(value: str, secret: Optional[str] = None) -> str:
    """
    Decrypt a hex payload produced by encrypt().

    Raises:
        ValueError: malformed payload or missing secret
        cryptography.exceptions.InvalidTag: wrong secret or tampered payload
    """
    key_secret = _get_secret(secret)
    raw = bytes.fromhex(str(value))
    tag_position = SALT_LENGTH + IV_LENGTH
    encrypted_position = tag_position + TAG_LENGTH
    if len(raw) < encrypted_position:
        raise ValueError("Encrypted value is too short")

    salt = raw[:SALT_LENGTH]
    iv = raw[SALT_LENGTH:tag_position]
    tag = raw[tag_position:encrypted_position]
    ciphertext = raw[encrypted_position:]

    plain = AESGCM(_derive_key(key_secret, salt)).decrypt(iv, ciphertext + tag, None)
    return plain.decode('utf-8')


def decrypt_field(value: Optional[str], secret: Optional[str] = None) -> str:
    """Decrypt an optional stored field; a missing field decrypts to ''"""
    if not value:
        return ''
    return decrypt(value, secret)
