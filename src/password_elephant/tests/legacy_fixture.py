"""Builds Password Safe 2.0 files the way Password Gorilla writes them."""

import os
import struct

from cryptography.hazmat.decrepit.ciphers.algorithms import Blowfish
from cryptography.hazmat.primitives.ciphers import Cipher, modes

from password_elephant.legacy.field import BLOCK_SIZE, swap_endian
from password_elephant.legacy.safe_db import compute_verifier, field_key

MAGIC_TEXT = b" !!!Version 2 File Format!!! Please upgrade to PasswordSafe 2.0 or later"
DEFAULT_PREFS = "B 24 1 B 22 0 I 7 5"

# Raw field type codes
NAME, UUID, GROUP, TITLE, USERNAME, NOTES, PASSWORD = 0, 1, 2, 3, 4, 5, 6
CREATION_TIME, PASSWORD_MODIFICATION_TIME, LAST_ACCESS_TIME = 7, 8, 9
LAST_MODIFICATION_TIME, URL, END_OF_RECORD = 12, 13, 255

GORILLA_RECORD = [
    (UUID, bytes(range(16))),
    (GROUP, b"Imported"),
    (TITLE, b"PasswordGorilla"),
    (USERNAME, b"ImportUser"),
    (PASSWORD, b"Secret!"),
    (NOTES, b"A few notes."),
    (URL, b"https://somewhere.secure/"),
    (CREATION_TIME, struct.pack("<I", 1500000000)),
    (LAST_MODIFICATION_TIME, struct.pack("<I", 1500003600)),
]


def encode_field(raw_type: int, content: bytes) -> bytes:
    header = bytes([len(content) & 0xFF, len(content) >> 8, 0, 0, raw_type, 0, 0, 0])
    padded = max(1, -(-len(content) // BLOCK_SIZE)) * BLOCK_SIZE
    return header + content.ljust(padded, b"\x00")


def encrypt_stream(key: bytes, iv: bytes, plain: bytes) -> bytes:
    encryptor = Cipher(Blowfish(key), modes.CBC(swap_endian(iv))).encryptor()
    return swap_endian(encryptor.update(swap_endian(plain)) + encryptor.finalize())


def build_safe(password: str, records, prefs: str = DEFAULT_PREFS, version: bytes = b"2.0",
               magic: bytes = MAGIC_TEXT) -> bytes:
    rnd = os.urandom(8)
    salt = os.urandom(20)
    iv = os.urandom(8)

    plain = encode_field(NAME, magic)
    plain += encode_field(PASSWORD, version)
    plain += encode_field(NOTES, prefs.encode('ascii'))
    for record in records:
        for raw_type, content in record:
            plain += encode_field(raw_type, content)
        plain += encode_field(END_OF_RECORD, b"")

    header = rnd + compute_verifier(rnd, password) + salt + iv
    return header + encrypt_stream(field_key(password, salt), iv, plain)


def write_safe(path, password: str, records, **kwargs) -> None:
    with open(path, 'wb') as f:
        f.write(build_safe(password, records, **kwargs))
