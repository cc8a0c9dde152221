# password_elephant/legacy/safe_db.py
"""
Reader for Password Safe 2.0 databases (as written by Password Gorilla).

File layout:

    RND(8) | H(RND)(20) | SALT(20) | IV(8, byte-swapped) | fields...

The field stream is Blowfish-CBC keyed by SHA1(password | SALT). The first
three fields are a header: a magic string, the version "2.0" and the
application preference string. Records follow until the data runs out.
"""

import hashlib
import hmac
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

from cryptography.hazmat.decrepit.ciphers.algorithms import Blowfish
from cryptography.hazmat.primitives.ciphers import Cipher, modes

from password_elephant.core.errors import (
    ArchiveSystemError, FormatError, IncorrectPassword, UnsupportedPreference, UnsupportedVersion,
)
from password_elephant.legacy.field import BlockDecryptor, PasswordSafeField, swap_endian
from password_elephant.legacy.record import PasswordSafeRecord
from password_elephant.legacy.sha1 import sha1_zero_state

EXPECTED_MAGIC = b"!!!Version 2 File Format!!!"
EXPECTED_VERSION = "2.0"
VERIFIER_ROUNDS = 1000

RND_SLICE = slice(0, 8)
HRND_SLICE = slice(8, 28)
SALT_SLICE = slice(28, 48)
IV_SLICE = slice(48, 56)
HEADER_SIZE = 56


def compute_verifier(rnd: bytes, password: str) -> bytes:
    """
    H(RND) is SHA1_init_state_zero(Cipher(RND) | 00 00), where
    tempSalt = SHA1(RND | 00 00 | password) and Cipher(RND) is 1000
    Blowfish-ECB encryptions of RND keyed by tempSalt.
    """
    temp_key = hashlib.sha1(rnd + b"\x00\x00" + password.encode('utf-8')).digest()
    encryptor = Cipher(Blowfish(temp_key), modes.ECB()).encryptor()
    cipher = swap_endian(rnd)
    for _ in range(VERIFIER_ROUNDS):
        cipher = encryptor.update(cipher)
    return sha1_zero_state(swap_endian(cipher) + b"\x00\x00")


def field_key(password: str, salt: bytes) -> bytes:
    return hashlib.sha1(password.encode('utf-8') + salt).digest()


@dataclass
class GorillaPrefs:
    """Application preferences stored in the third header field."""
    is_utf8: bool = False
    lock_on_idle_timeout: bool = True
    idle_timeout: int = 0

    # (kind, id) -> attribute
    KNOWN = {
        ("B", 24): "is_utf8",
        ("B", 22): "lock_on_idle_timeout",
        ("I", 7): "idle_timeout",
    }

    @classmethod
    def parse(cls, pref_field: str) -> 'GorillaPrefs':
        """Parse "<B|I> <id> <value>" triples; anything unrecognised is rejected."""
        tokens = pref_field.split()
        if not tokens or len(tokens) % 3:
            raise UnsupportedPreference(pref_field)
        prefs = cls()
        for i in range(0, len(tokens), 3):
            kind, pref_id, value = tokens[i:i + 3]
            try:
                attribute = cls.KNOWN[(kind, int(pref_id))]
                number = int(value)
            except (KeyError, ValueError):
                raise UnsupportedPreference(pref_field) from None
            if kind == "B":
                if number not in (0, 1):
                    raise UnsupportedPreference(pref_field)
                setattr(prefs, attribute, bool(number))
            else:
                setattr(prefs, attribute, number)
        return prefs


class PasswordSafeDB:
    """The records of a Password Safe 2.0 database, decrypted in memory."""

    def __init__(self, records: List[PasswordSafeRecord], prefs: GorillaPrefs, filename=None):
        self.records = records
        self.prefs = prefs
        self.filename = filename

    @classmethod
    def open(cls, path: Union[str, Path], password: str) -> 'PasswordSafeDB':
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ArchiveSystemError(f"Could not read {path}: {e.strerror}") from e
        db = cls.from_bytes(data, password)
        db.filename = str(path)
        logging.info(f"Read {len(db.records)} records from Password Safe database {path}")
        return db

    @classmethod
    def from_bytes(cls, data: bytes, password: str) -> 'PasswordSafeDB':
        if len(data) < HEADER_SIZE:
            raise FormatError(f"File is too small ({len(data)} bytes) to be a Password Safe database")

        # The password is checked before any field is decrypted.
        if not hmac.compare_digest(compute_verifier(data[RND_SLICE], password), data[HRND_SLICE]):
            raise IncorrectPassword()

        decryptor = BlockDecryptor(field_key(password, data[SALT_SLICE]), data[IV_SLICE])
        stream = data[HEADER_SIZE:]
        prefs, position = cls._read_header(decryptor, stream)
        records = cls._read_records(decryptor, stream, position, prefs.is_utf8)
        return cls(records, prefs)

    @staticmethod
    def _read_header(decryptor: BlockDecryptor, stream: bytes):
        name_field = PasswordSafeField.read(decryptor, stream, 0)
        if name_field is None:
            raise UnsupportedVersion(found=None, expected=EXPECTED_VERSION)
        found_magic = name_field.content[1:1 + len(EXPECTED_MAGIC)]
        if found_magic != EXPECTED_MAGIC:
            raise UnsupportedVersion(found=found_magic.decode('latin-1'), expected=EXPECTED_MAGIC.decode())
        position = name_field.cipher_length

        version_field = PasswordSafeField.read(decryptor, stream, position)
        if version_field is None or version_field.text() != EXPECTED_VERSION:
            found = version_field.text() if version_field else None
            raise UnsupportedVersion(found=found, expected=EXPECTED_VERSION)
        position += version_field.cipher_length

        pref_field = PasswordSafeField.read(decryptor, stream, position)
        if pref_field is None:
            raise FormatError("Missing preference field")
        prefs = GorillaPrefs.parse(pref_field.text())
        logging.debug(f"Password Safe preferences: {prefs}")
        return prefs, position + pref_field.cipher_length

    @staticmethod
    def _read_records(decryptor: BlockDecryptor, stream: bytes, position: int,
                      is_utf8: bool) -> List[PasswordSafeRecord]:
        records = []
        while position < len(stream):
            record = PasswordSafeRecord.read(decryptor, stream, position, is_utf8)
            if record is None:
                break
            position += record.cipher_length
            if record.is_end_of_database:
                if len(record.fields) > 1:
                    records.append(record)
                break
            records.append(record)
        return records
