"""
ptb.types.ids — fixed-width object ids and account addresses.

Object ids and addresses share one representation: 32 raw bytes, rendered as `0x` followed
by 64 lowercase hex digits. Short literals (e.g. `0x6` for the clock, `0x2` for the
framework package) are left-padded with zeros, the way an account-address hex literal is
read on an object ledger.

`ObjectId` is a `str` subclass holding the canonical rendering, so ids compare, hash and
serialize like plain strings while guaranteeing they were normalized once.
"""

from __future__ import annotations

from typing import Union

from ..errors import InvalidIdentifier

ID_LENGTH = 32

HexLike = Union[str, bytes, bytearray, memoryview]


# ------------------------------ hex helpers ---------------------------------


def _hex_to_bytes(v: HexLike) -> bytes:
    if isinstance(v, (bytes, bytearray, memoryview)):
        return bytes(v)
    if isinstance(v, str):
        s = v.strip()
        if s.startswith(("0x", "0X")):
            s = s[2:]
        if not s:
            raise InvalidIdentifier("empty hex literal", value=v)
        if len(s) % 2:
            s = "0" + s  # tolerate odd-length hex
        try:
            return bytes.fromhex(s)
        except ValueError:
            raise InvalidIdentifier(f"invalid hex literal: {v!r}", value=v) from None
    raise InvalidIdentifier(f"expected hex-like value, got {type(v).__name__}", value=v)


def bytes_to_hex(b: bytes) -> str:
    return "0x" + bytes(b).hex()


# ------------------------------- main type ----------------------------------


class ObjectId(str):
    """
    Canonical 32-byte identity.

    Accepts `0x`-hex strings of any length up to 64 digits, raw 32-byte values, or
    another ObjectId. Raises InvalidIdentifier for anything else.
    """

    __slots__ = ()

    def __new__(cls, value: HexLike) -> "ObjectId":
        if isinstance(value, ObjectId):
            return value
        raw = _hex_to_bytes(value)
        if isinstance(value, (bytes, bytearray, memoryview)) and len(raw) != ID_LENGTH:
            raise InvalidIdentifier(
                f"raw identifiers must be {ID_LENGTH} bytes (got {len(raw)})", value=value
            )
        if len(raw) > ID_LENGTH:
            raise InvalidIdentifier(
                f"identifier longer than {ID_LENGTH} bytes ({len(raw)})", value=value
            )
        return super().__new__(cls, bytes_to_hex(raw.rjust(ID_LENGTH, b"\x00")))

    @property
    def raw(self) -> bytes:
        return bytes.fromhex(self[2:])

    def short(self) -> str:
        """Compact rendering for logs: leading zeros stripped (0x6, 0x2, 0xab12…)."""
        stripped = self[2:].lstrip("0") or "0"
        if len(stripped) > 16:
            return f"0x{stripped[:8]}…{stripped[-4:]}"
        return "0x" + stripped

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f"ObjectId({self.short()})"


# Addresses use the same 32-byte space; the alias keeps signatures readable.
Address = ObjectId


def is_object_id(value: object) -> bool:
    """True iff `value` normalizes to a valid ObjectId."""
    if not isinstance(value, (str, bytes, bytearray, memoryview)):
        return False
    try:
        ObjectId(value)  # type: ignore[arg-type]
    except InvalidIdentifier:
        return False
    return True


__all__ = ["ID_LENGTH", "ObjectId", "Address", "is_object_id", "bytes_to_hex", "HexLike"]
