# password_elephant/legacy/sha1.py
"""
SHA-1 with a caller-supplied initial state.

Password Safe 2 validates passwords with "SHA1_init_state_zero": a SHA-1
whose five initial registers are all zero instead of the standard
constants. hashlib cannot change the initial state, so the compression
function is implemented here. With STANDARD_STATE the output is plain SHA-1.
"""

import struct
from typing import Sequence

STANDARD_STATE = (0x67452301, 0xEFCDAB89, 0x98BADCFE, 0x10325476, 0xC3D2E1F0)
ZERO_STATE = (0, 0, 0, 0, 0)

_MASK = 0xFFFFFFFF


def _rotl(value: int, count: int) -> int:
    return ((value << count) | (value >> (32 - count))) & _MASK


def _compress(state: Sequence[int], block: bytes):
    w = list(struct.unpack(">16I", block))
    for i in range(16, 80):
        w.append(_rotl(w[i - 3] ^ w[i - 8] ^ w[i - 14] ^ w[i - 16], 1))

    a, b, c, d, e = state
    for i in range(80):
        if i < 20:
            f = (b & c) | (~b & d)
            k = 0x5A827999
        elif i < 40:
            f = b ^ c ^ d
            k = 0x6ED9EBA1
        elif i < 60:
            f = (b & c) | (b & d) | (c & d)
            k = 0x8F1BBCDC
        else:
            f = b ^ c ^ d
            k = 0xCA62C1D6
        temp = (_rotl(a, 5) + (f & _MASK) + e + k + w[i]) & _MASK
        e = d
        d = c
        c = _rotl(b, 30)
        b = a
        a = temp

    return tuple((s + v) & _MASK for s, v in zip(state, (a, b, c, d, e)))


def sha1(data: bytes, initial_state: Sequence[int] = STANDARD_STATE) -> bytes:
    if len(initial_state) != 5:
        raise ValueError("SHA-1 state has exactly five registers")
    message = bytes(data)
    bit_length = len(message) * 8
    message += b"\x80"
    message += b"\x00" * ((56 - len(message) % 64) % 64)
    message += struct.pack(">Q", bit_length)

    state = tuple(initial_state)
    for offset in range(0, len(message), 64):
        state = _compress(state, message[offset:offset + 64])
    return struct.pack(">5I", *state)


def sha1_zero_state(data: bytes) -> bytes:
    return sha1(data, ZERO_STATE)
