import os
import random

import pytest
from cryptography.exceptions import InvalidTag

from salvo.encryption import NONCE_SIZE, OVERHEAD, check_key, open_sealed, seal

KEY = bytes(range(16))


@pytest.mark.parametrize("size", [0, 16, 1024])
def test_seal_open_roundtrip(size):
    payload = os.urandom(size)
    blob = seal(KEY, payload, b"hdr")
    assert len(blob) == size + OVERHEAD
    assert open_sealed(KEY, blob, b"hdr") == payload


def test_nonces_are_unique():
    blobs = [seal(KEY, b"repeat-test") for _ in range(100)]
    assert len({b[:NONCE_SIZE] for b in blobs}) == 100


@pytest.mark.parametrize(
    "idx_func",
    [
        lambda length: random.randint(NONCE_SIZE, length - 17),  # ciphertext
        lambda length: length - 1,  # auth tag
    ],
)
def test_tampering_cipher_or_tag(idx_func):
    blob = bytearray(seal(KEY, b"hello tamper"))
    blob[idx_func(len(blob))] ^= 0xFF
    with pytest.raises(InvalidTag):
        open_sealed(KEY, bytes(blob))


def test_associated_data_must_match():
    blob = seal(KEY, b"payload", b"header-a")
    with pytest.raises(InvalidTag):
        open_sealed(KEY, blob, b"header-b")


@pytest.mark.parametrize("key", [b"", b"x" * 15, b"x" * 33])
def test_check_key_rejects_bad_lengths(key):
    with pytest.raises(ValueError):
        check_key(key)
