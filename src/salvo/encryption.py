# encryption abstraction module

import os

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

NONCE_SIZE = 12
TAG_SIZE = 16
# Bytes added to a payload by seal(): nonce in front, GCM tag at the end.
OVERHEAD = NONCE_SIZE + TAG_SIZE


def check_key(key: bytes) -> bytes:
    """Return *key* unchanged if it is a valid AES key length."""
    if len(key) not in (16, 24, 32):
        raise ValueError("AES key must be 16/24/32 bytes")
    return key


def seal(key: bytes, plaintext: bytes, aad: bytes | None = None) -> bytes:
    """AES-GCM encrypt *plaintext*; returns nonce + ciphertext + tag."""
    nonce = os.urandom(NONCE_SIZE)
    return nonce + AESGCM(key).encrypt(nonce, plaintext, aad)


def open_sealed(key: bytes, blob: bytes, aad: bytes | None = None) -> bytes:
    """Reverse of :func:`seal`. Raises ``cryptography.exceptions.InvalidTag`` on tampering."""
    nonce, ciphertext = blob[:NONCE_SIZE], blob[NONCE_SIZE:]
    return AESGCM(key).decrypt(nonce, ciphertext, aad)
