# password_elephant/core/archive.py
import hmac
import logging
import os
from pathlib import Path
from typing import List, Optional, Tuple, Union

from google.protobuf.message import DecodeError

from password_elephant.core.auth import (
    KEY_SIZE, MAX_STRETCH_ITERATIONS, SALT_SIZE, STRETCH_ITERATIONS,
    ArchiveAuthenticator, password_hash, stretch_password,
)
from password_elephant.core.database import Database
from password_elephant.core.encryption import (
    IV_SIZE, KeyWrapper, PayloadCipher, compute_hmac, random_bytes,
)
from password_elephant.core.entry import Entry, LifetimeUnit
from password_elephant.core.errors import (
    ArchiveError, ArchiveSystemError, FormatError, HMACFailure, IncorrectPassword, UnsupportedVersion,
)
from password_elephant.core.feature import Category, Feature
from password_elephant.core.schema import ArchiveMessage, DatabaseMessage, EntryMessage

FILE_MAGIC = "PEDB"
FILE_VERSION = 1
HMAC_SIZE = 32

PathLike = Union[str, Path]


def entry_to_message(entry: Entry):
    message = EntryMessage()
    for feature in entry.features:
        feature_message = message.features.add()
        feature_message.category = int(feature.category)
        feature_message.content = feature.content
    message.passwordLifetimeUnits = int(entry.password_lifetime_units)
    message.passwordLifetimeCount = entry.password_lifetime_count
    message.inactive = entry.inactive
    return message


def entry_from_message(message) -> Entry:
    features = [Feature(Category.from_wire(f.category), bytes(f.content)) for f in message.features]
    entry = Entry(features=features)
    entry.password_lifetime_units = LifetimeUnit.from_wire(message.passwordLifetimeUnits)
    entry.password_lifetime_count = message.passwordLifetimeCount
    entry.inactive = message.inactive
    return entry


def serialize_database(database: Database) -> Tuple[bytes, bytes]:
    """Return (serialized database, HMAC input of every feature's content in order)."""
    database_message = DatabaseMessage()
    hmac_data = bytearray()
    for entry in database.entries:
        entry_message = entry_to_message(entry)
        for feature_message in entry_message.features:
            hmac_data += feature_message.content
        database_message.entries.append(entry_message)
    return database_message.SerializeToString(deterministic=True), bytes(hmac_data)


def deserialize_database(plain_text: bytes) -> Tuple[Database, bytes]:
    database_message = DatabaseMessage()
    try:
        database_message.ParseFromString(plain_text)
    except DecodeError as e:
        raise FormatError("Decrypted payload is not a valid database") from e
    entries: List[Entry] = []
    hmac_data = bytearray()
    for entry_message in database_message.entries:
        entry = entry_from_message(entry_message)
        for feature in entry.features:
            hmac_data += feature.content
        entries.append(entry)
    return Database(entries), bytes(hmac_data)


def _check_length(name: str, value: bytes, expected: int) -> None:
    if len(value) != expected:
        raise FormatError(f"Field {name} has length {len(value)}, expected {expected}")


class Archive:
    """Reads and writes a Database to or from an encrypted file."""

    def __init__(self, database: Optional[Database] = None,
                 path: Optional[PathLike] = None, password: Optional[str] = None):
        self.database = database if database is not None else Database()
        self.path = Path(path) if path is not None else None
        self.password = password

    def can_save(self) -> bool:
        return self.path is not None and self.password is not None

    @classmethod
    def open(cls, path: PathLike, password: str) -> 'Archive':
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ArchiveSystemError(f"Could not read {path}: {e.strerror}") from e
        database = cls.decrypt(data, password)
        logging.info(f"Opened archive {path} with {database.count} entries")
        return cls(database, path, password)

    @classmethod
    def decrypt(cls, data: bytes, password: str) -> Database:
        archive = ArchiveMessage()
        try:
            archive.ParseFromString(data)
        except DecodeError as e:
            raise FormatError("File is not a Password Elephant archive") from e

        if archive.magic != FILE_MAGIC:
            raise FormatError("File does not start with correct magic string")
        if archive.version != FILE_VERSION:
            raise UnsupportedVersion(found=archive.version, expected=FILE_VERSION)
        if not 0 <= archive.count <= MAX_STRETCH_ITERATIONS:
            raise FormatError(f"Invalid iteration count {archive.count}")
        _check_length("salt", archive.salt, SALT_SIZE)
        _check_length("passHash", archive.passHash, KEY_SIZE)
        _check_length("innerKeyCipher", archive.innerKeyCipher, KEY_SIZE)
        _check_length("outerKeyCipher", archive.outerKeyCipher, KEY_SIZE)
        _check_length("iv", archive.iv, IV_SIZE)
        _check_length("hmac", archive.hmac, HMAC_SIZE)

        authenticator = ArchiveAuthenticator(archive.salt, archive.count, archive.passHash)
        if not authenticator.authenticate(password):
            raise IncorrectPassword()

        wrapper = KeyWrapper(authenticator.get_stretch_key())
        inner_key = wrapper.decrypt(archive.innerKeyCipher)
        outer_key = wrapper.decrypt(archive.outerKeyCipher)

        plain_text = PayloadCipher(inner_key, archive.iv).decrypt(archive.cipherText)
        database, hmac_data = deserialize_database(plain_text)

        # The HMAC covers the plaintext feature content, so it can only be
        # checked once the whole database has been parsed.
        if not hmac.compare_digest(compute_hmac(outer_key, hmac_data), archive.hmac):
            logging.error("Archive HMAC verification failed")
            raise HMACFailure()
        return database

    def encrypt(self, password: str) -> bytes:
        """Serialize the database into archive bytes under a fresh salt and fresh keys."""
        archive = ArchiveMessage()
        archive.magic = FILE_MAGIC
        archive.version = FILE_VERSION
        archive.count = STRETCH_ITERATIONS

        salt = random_bytes(SALT_SIZE)
        archive.salt = salt
        stretch_key = stretch_password(password, salt, STRETCH_ITERATIONS)
        archive.passHash = password_hash(stretch_key)

        wrapper = KeyWrapper(stretch_key)
        inner_key = random_bytes(KEY_SIZE)
        archive.innerKeyCipher = wrapper.encrypt(inner_key)
        outer_key = random_bytes(KEY_SIZE)
        archive.outerKeyCipher = wrapper.encrypt(outer_key)

        iv = random_bytes(IV_SIZE)
        archive.iv = iv

        plain_text, hmac_data = serialize_database(self.database)
        archive.cipherText = PayloadCipher(inner_key, iv).encrypt(plain_text)
        archive.hmac = compute_hmac(outer_key, hmac_data)
        return archive.SerializeToString(deterministic=True)

    def write(self) -> None:
        if not self.can_save():
            raise ArchiveSystemError("Filename and password must be set")
        data = self.encrypt(self.password)
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            with open(tmp, 'wb') as f:
                f.write(data)
            os.chmod(tmp, 0o600)
            os.replace(tmp, self.path)
        except OSError as e:
            if tmp.exists():
                tmp.unlink()
            raise ArchiveSystemError(f"Could not write {self.path}: {e.strerror}") from e
        logging.info(f"Saved archive {self.path} with {self.database.count} entries")


def open_archive(path: PathLike, password: str) -> Archive:
    return Archive.open(path, password)


def save_archive(archive: Archive, path: Optional[PathLike] = None, password: Optional[str] = None) -> None:
    """Save archive, optionally to a new path and/or under a new password.

    The archive keeps its previous path and password if the write fails.
    """
    previous = (archive.path, archive.password)
    if path is not None:
        archive.path = Path(path)
    if password is not None:
        archive.password = password
    try:
        archive.write()
    except ArchiveError:
        archive.path, archive.password = previous
        raise
