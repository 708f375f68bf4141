from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from ptb.codec import bcs
from ptb.errors import CodecError
from ptb.types import ObjectId


def test_fixed_width_little_endian():
    assert bcs.encode_u8(7) == b"\x07"
    assert bcs.encode_u64(1) == b"\x01" + b"\x00" * 7
    assert bcs.encode_u16(0x0102) == b"\x02\x01"
    assert len(bcs.encode_u256(1)) == 32


def test_bool():
    assert bcs.encode_bool(True) == b"\x01"
    assert bcs.encode_bool(False) == b"\x00"
    with pytest.raises(CodecError):
        bcs.encode_bool(1)
    with pytest.raises(CodecError):
        bcs.decode_bool(b"\x02")


@pytest.mark.parametrize("value", [-1, 1 << 64, True, "1"])
def test_u64_range_and_type(value):
    with pytest.raises(CodecError):
        bcs.encode_u64(value)


def test_uleb128_known_vectors():
    assert bcs.uleb128_encode(0) == b"\x00"
    assert bcs.uleb128_encode(127) == b"\x7f"
    assert bcs.uleb128_encode(128) == b"\x80\x01"
    assert bcs.uleb128_encode(300) == b"\xac\x02"
    assert bcs.uleb128_decode(b"\xac\x02") == (300, 2)


def test_uleb128_truncated():
    with pytest.raises(CodecError):
        bcs.uleb128_decode(b"\x80")


def test_string_and_bytes_are_length_prefixed():
    assert bcs.encode_string("alpha") == b"\x05alpha"
    assert bcs.encode_bytes(b"\x00\x01") == b"\x02\x00\x01"
    assert bcs.decode_string(b"\x05alpha") == "alpha"
    with pytest.raises(CodecError):
        bcs.decode_bytes(b"\x03\x00")


def test_address_is_raw_32_bytes():
    enc = bcs.encode_address("0x6")
    assert enc == b"\x00" * 31 + b"\x06"
    assert bcs.decode_address(enc) == ObjectId("0x6")
    with pytest.raises(CodecError):
        bcs.decode_address(b"\x06")


def test_vector_of_strings():
    assert bcs.encode_vector(["a", "bc"], bcs.encode_string) == b"\x02\x01a\x02bc"


@given(st.integers(min_value=0, max_value=(1 << 64) - 1))
def test_u64_decodes_to_itself(n):
    assert bcs.decode_u64(bcs.encode_u64(n)) == n


@given(st.text(max_size=300))
def test_strings_decode_to_themselves(s):
    assert bcs.decode_string(bcs.encode_string(s)) == s
