"""
BCS encoding for pure block inputs.

A `PureInput` is opaque bytes to the builder; the receiving command decides what they
mean. This module produces those bytes the way an object-ledger engine expects them
(Binary Canonical Serialization):

- bool:             1 byte: 0x00 (false) or 0x01 (true)
- u8 … u256:        fixed-width little-endian (1, 2, 4, 8, 16, 32 bytes)
- address:          32 raw bytes, no length prefix
- vector<u8>:       ULEB128(len) || raw bytes
- string:           ULEB128(len) || UTF-8 bytes
- vector<T>:        ULEB128(count) || item1 || … || itemN

Decoding helpers cover what the simulated engine reads back (u64 amounts, addresses,
strings, byte vectors).
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Tuple

from ..errors import CodecError
from ..types.ids import ID_LENGTH, HexLike, ObjectId

__all__ = [
    "uleb128_encode",
    "uleb128_decode",
    "encode_bool",
    "encode_uint",
    "encode_u8",
    "encode_u16",
    "encode_u32",
    "encode_u64",
    "encode_u128",
    "encode_u256",
    "encode_address",
    "encode_bytes",
    "encode_string",
    "encode_vector",
    "decode_bool",
    "decode_uint",
    "decode_u64",
    "decode_address",
    "decode_bytes",
    "decode_string",
]

_WIDTHS = {8: 1, 16: 2, 32: 4, 64: 8, 128: 16, 256: 32}


# ──────────────────────────────────────────────────────────────────────────────
# ULEB128 for length prefixes and counts
# ──────────────────────────────────────────────────────────────────────────────

def uleb128_encode(n: int) -> bytes:
    """Unsigned LEB128, minimal length."""
    if not isinstance(n, int) or isinstance(n, bool):
        raise CodecError("uleb128 value must be int", kind="uleb128")
    if n < 0:
        raise CodecError("uleb128 cannot encode negative values", kind="uleb128")
    out = bytearray()
    while True:
        b = n & 0x7F
        n >>= 7
        if n:
            out.append(b | 0x80)
        else:
            out.append(b)
            break
    return bytes(out)


def uleb128_decode(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """Returns (value, new_offset)."""
    result = 0
    shift = 0
    pos = offset
    while True:
        if pos >= len(data):
            raise CodecError("truncated uleb128", kind="uleb128")
        b = data[pos]
        pos += 1
        result |= (b & 0x7F) << shift
        if not b & 0x80:
            break
        shift += 7
        if shift > 63:
            raise CodecError("uleb128 too long", kind="uleb128")
    return result, pos


# ──────────────────────────────────────────────────────────────────────────────
# Encoders
# ──────────────────────────────────────────────────────────────────────────────

def encode_bool(value: Any) -> bytes:
    if not isinstance(value, bool):
        raise CodecError(f"expected bool, got {type(value).__name__}", kind="bool")
    return b"\x01" if value else b"\x00"


def encode_uint(value: Any, *, bits: int) -> bytes:
    if bits not in _WIDTHS:
        raise CodecError(f"unsupported integer width: u{bits}", kind=f"u{bits}")
    if not isinstance(value, int) or isinstance(value, bool):
        raise CodecError(f"expected int, got {type(value).__name__}", kind=f"u{bits}")
    if value < 0 or value >= 1 << bits:
        raise CodecError(f"value {value} out of range for u{bits}", kind=f"u{bits}")
    return value.to_bytes(_WIDTHS[bits], "little", signed=False)


def encode_u8(value: int) -> bytes:
    return encode_uint(value, bits=8)


def encode_u16(value: int) -> bytes:
    return encode_uint(value, bits=16)


def encode_u32(value: int) -> bytes:
    return encode_uint(value, bits=32)


def encode_u64(value: int) -> bytes:
    return encode_uint(value, bits=64)


def encode_u128(value: int) -> bytes:
    return encode_uint(value, bits=128)


def encode_u256(value: int) -> bytes:
    return encode_uint(value, bits=256)


def encode_address(value: HexLike) -> bytes:
    """Fixed 32 bytes; short hex literals are zero-padded like any ObjectId."""
    return ObjectId(value).raw


def encode_bytes(value: Any) -> bytes:
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise CodecError(f"expected bytes, got {type(value).__name__}", kind="vector<u8>")
    b = bytes(value)
    return uleb128_encode(len(b)) + b


def encode_string(value: Any) -> bytes:
    if not isinstance(value, str):
        raise CodecError(f"expected str, got {type(value).__name__}", kind="string")
    raw = value.encode("utf-8")
    return uleb128_encode(len(raw)) + raw


def encode_vector(items: Iterable[Any], encode_item: Callable[[Any], bytes]) -> bytes:
    parts: List[bytes] = [encode_item(x) for x in items]
    return uleb128_encode(len(parts)) + b"".join(parts)


# ──────────────────────────────────────────────────────────────────────────────
# Decoders (whole-buffer; trailing bytes are an error)
# ──────────────────────────────────────────────────────────────────────────────

def _exact(data: bytes, n: int, kind: str) -> bytes:
    if len(data) != n:
        raise CodecError(f"{kind} expects {n} bytes, got {len(data)}", kind=kind)
    return bytes(data)


def decode_bool(data: bytes) -> bool:
    b = _exact(data, 1, "bool")
    if b not in (b"\x00", b"\x01"):
        raise CodecError("bool must be 0x00 or 0x01", kind="bool")
    return b == b"\x01"


def decode_uint(data: bytes, *, bits: int) -> int:
    if bits not in _WIDTHS:
        raise CodecError(f"unsupported integer width: u{bits}", kind=f"u{bits}")
    return int.from_bytes(_exact(data, _WIDTHS[bits], f"u{bits}"), "little", signed=False)


def decode_u64(data: bytes) -> int:
    return decode_uint(data, bits=64)


def decode_address(data: bytes) -> ObjectId:
    return ObjectId(_exact(data, ID_LENGTH, "address"))


def decode_bytes(data: bytes) -> bytes:
    n, pos = uleb128_decode(data)
    body = data[pos:]
    if len(body) != n:
        raise CodecError(f"vector<u8> length prefix {n} does not match {len(body)} bytes", kind="vector<u8>")
    return bytes(body)


def decode_string(data: bytes) -> str:
    raw = decode_bytes(data)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise CodecError(f"invalid utf-8: {e}", kind="string") from None
