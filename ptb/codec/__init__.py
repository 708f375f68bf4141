"""
ptb.codec — byte encodings for pure inputs and object state.
"""

from .bcs import (decode_address, decode_bytes, decode_string, decode_u64,
                  encode_address, encode_bool, encode_bytes, encode_string,
                  encode_u8, encode_u64, encode_vector)

__all__ = [
    "encode_bool",
    "encode_u8",
    "encode_u64",
    "encode_address",
    "encode_bytes",
    "encode_string",
    "encode_vector",
    "decode_u64",
    "decode_address",
    "decode_bytes",
    "decode_string",
]
