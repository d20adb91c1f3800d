"""Low-level packet framing utilities.

Frame layout (16-byte header + JSON payload):
0-1  : 0x5A17       magic bytes
2    : version (1)
3    : PacketType (enum)
4-7  : seq u32 (big-endian)
8-11 : len u32 (payload length)
12-15: CRC-32 over header[0:12]+payload
16-  : UTF-8 JSON payload

When encryption is enabled the payload is AES-GCM sealed (nonce + ciphertext +
tag) with header[0:12] as associated data, so the header cannot be altered
without failing authentication.
"""

from __future__ import annotations

import enum
import json
import struct
import zlib
from typing import Any, BinaryIO, Final, Tuple

from cryptography.exceptions import InvalidTag

from . import config as _cfg
from .encryption import OVERHEAD, check_key, open_sealed, seal

MAGIC: Final[int] = 0x5A17
VERSION: Final[int] = 1
MAX_PAYLOAD: Final[int] = 1024 * 1024  # 1 MiB

_PREFIX = struct.Struct(">HBBII")  # magic, version, ptype, seq, len
_CRC = struct.Struct(">I")
HEADER_SIZE: Final[int] = _PREFIX.size + _CRC.size

# Default AES key for enable_encryption() callers that have none of their own
DEFAULT_KEY = _cfg.DEFAULT_KEY

_SECRET_KEY: bytes | None = None


def enable_encryption(key: bytes) -> None:
    """Seal every subsequent payload with AES-GCM under *key*."""
    global _SECRET_KEY
    _SECRET_KEY = check_key(key)


def disable_encryption() -> None:
    """Revert to plain CRC framing."""
    global _SECRET_KEY
    _SECRET_KEY = None


class PacketType(int, enum.Enum):
    """Enumerate wire-protocol packet categories."""

    GAME = 0
    ERROR = 1


class FrameError(Exception):
    """Base for framing problems."""


class CrcError(FrameError):
    """Raised when a CRC-32 check fails while decoding a frame."""


class IncompleteError(FrameError):
    """Raised when the stream closes before a full frame could be read."""


# ---------------------------------------------------------------------------
# Public pack / unpack
# ---------------------------------------------------------------------------


def pack(ptype: PacketType | int, seq: int, obj: Any) -> bytes:
    """Serialize *obj* as a single framed packet."""
    payload = json.dumps(obj).encode()
    length = len(payload) + (OVERHEAD if _SECRET_KEY is not None else 0)
    if length > MAX_PAYLOAD:
        raise FrameError(f"Payload too large: {length} bytes")
    prefix = _PREFIX.pack(MAGIC, VERSION, int(ptype), seq & 0xFFFFFFFF, length)
    if _SECRET_KEY is not None:
        payload = seal(_SECRET_KEY, payload, prefix)
    crc = zlib.crc32(prefix + payload)
    return prefix + _CRC.pack(crc) + payload


def _decode(header: bytes, payload: bytes) -> Tuple[PacketType, int, Any]:
    prefix = header[: _PREFIX.size]
    magic, version, ptype_val, seq, _ = _PREFIX.unpack(prefix)
    (crc,) = _CRC.unpack(header[_PREFIX.size :])
    if magic != MAGIC or version != VERSION:
        raise FrameError("magic/version mismatch")
    if zlib.crc32(prefix + payload) != crc:
        raise CrcError("CRC mismatch")
    if _SECRET_KEY is not None:
        try:
            payload = open_sealed(_SECRET_KEY, payload, prefix)
        except InvalidTag:
            raise FrameError("AEAD authentication failed") from None
    try:
        ptype = PacketType(ptype_val)
    except ValueError:
        raise FrameError(f"Unknown packet type {ptype_val}") from None
    try:
        obj = json.loads(payload)
    except ValueError:
        raise FrameError("Payload is not valid JSON") from None
    return ptype, seq, obj


def unpack(buf: bytes | BinaryIO) -> Tuple[PacketType, int, Any]:
    """Decode one frame from raw bytes or from a binary reader."""
    if isinstance(buf, (bytes, bytearray)):
        data = bytes(buf)
        if len(data) < HEADER_SIZE:
            raise IncompleteError("Incomplete header")
        _, _, _, _, length = _PREFIX.unpack(data[: _PREFIX.size])
        payload = data[HEADER_SIZE : HEADER_SIZE + length]
        if len(payload) < length:
            raise IncompleteError("Incomplete payload")
        return _decode(data[:HEADER_SIZE], payload)
    return recv_pkt(buf)


# ---------------------------------------------------------------------------
# Convenience wrappers for file-like objects
# ---------------------------------------------------------------------------


def send_pkt(w: BinaryIO, ptype: PacketType, seq: int, obj: Any) -> None:
    """Write a single framed packet to buffered writer *w* and flush."""
    w.write(pack(ptype, seq, obj))
    w.flush()


def recv_pkt(r: BinaryIO) -> Tuple[PacketType, int, Any]:
    """Blocking helper that returns the next `(ptype, seq, obj)` tuple from *r*."""
    header = r.read(HEADER_SIZE)
    if not header or len(header) < HEADER_SIZE:
        raise IncompleteError("Incomplete header")
    magic, _, _, _, length = _PREFIX.unpack(header[: _PREFIX.size])
    if magic != MAGIC:
        raise FrameError("magic/version mismatch")
    if length > MAX_PAYLOAD:
        raise FrameError(f"Payload too large: {length} bytes")
    payload = r.read(length) if length else b""
    if len(payload) < length:
        raise IncompleteError("Incomplete payload")
    return _decode(header, payload)


__all__ = [
    "PacketType",
    "FrameError",
    "CrcError",
    "IncompleteError",
    "enable_encryption",
    "disable_encryption",
    "pack",
    "unpack",
    "send_pkt",
    "recv_pkt",
]
