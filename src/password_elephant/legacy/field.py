# password_elephant/legacy/field.py
import logging
from datetime import datetime
from enum import Enum
from typing import Optional

from cryptography.hazmat.decrepit.ciphers.algorithms import Blowfish
from cryptography.hazmat.primitives.ciphers import Cipher, modes

from password_elephant.core.errors import FormatError

BLOCK_SIZE = 8


def swap_endian(data: bytes) -> bytes:
    """
    Reverse the bytes of every 4-byte group.

    Password Safe 2 ran Blowfish on little-endian words, so every block has
    to be swapped before and after the cipher to match a standard Blowfish.
    """
    if len(data) < 4:
        return bytes(data)
    out = bytearray(len(data))
    for i in range(0, len(data) - len(data) % 4, 4):
        out[i:i + 4] = data[i:i + 4][::-1]
    tail = len(data) % 4
    if tail:
        out[-tail:] = data[-tail:]
    return bytes(out)


class BlockDecryptor:
    """Blowfish-CBC over the whole field stream, with the 4-byte swap around each block."""

    def __init__(self, key: bytes, iv: bytes):
        if len(iv) != BLOCK_SIZE:
            raise FormatError(f"IV must be {BLOCK_SIZE} bytes, got {len(iv)}")
        self._decryptor = Cipher(Blowfish(key), modes.CBC(swap_endian(iv))).decryptor()

    def decrypt(self, data: bytes) -> bytes:
        if len(data) % BLOCK_SIZE:
            raise FormatError(f"Cipher text length {len(data)} is not a whole number of blocks")
        return swap_endian(self._decryptor.update(swap_endian(data)))


class FieldType(Enum):
    MAGIC = 0
    UUID = 1
    GROUP = 2
    TITLE = 3
    USERNAME = 4
    NOTES = 5
    PASSWORD = 6
    CREATION_TIME = 7
    PASSWORD_MODIFICATION_TIME = 8
    LAST_ACCESS_TIME = 9
    PASSWORD_LIFETIME = 10
    PASSWORD_POLICY = 11
    LAST_MODIFICATION_TIME = 12
    URL = 13
    END_OF_DATABASE = 254
    END_OF_RECORD = 255
    UNKNOWN = -1

    @classmethod
    def from_raw(cls, raw_type: int) -> 'FieldType':
        try:
            return cls(raw_type)
        except ValueError:
            logging.warning(f"Encountered unknown field type {raw_type}")
            return cls.UNKNOWN


DATE_TYPES = {
    FieldType.CREATION_TIME,
    FieldType.PASSWORD_MODIFICATION_TIME,
    FieldType.LAST_ACCESS_TIME,
    FieldType.PASSWORD_LIFETIME,
    FieldType.LAST_MODIFICATION_TIME,
}


class PasswordSafeField:
    """One decrypted field: 8-byte header block then content padded to 8 bytes."""

    def __init__(self, content: bytes, raw_type: int, cipher_length: int):
        self.content = content
        self.raw_type = raw_type
        self.type = FieldType.from_raw(raw_type)
        self.cipher_length = cipher_length

    @classmethod
    def read(cls, decryptor: BlockDecryptor, data: bytes, offset: int) -> Optional['PasswordSafeField']:
        """Decrypt the field at offset, or return None when no header block remains."""
        if offset + BLOCK_SIZE > len(data):
            return None
        header = decryptor.decrypt(data[offset:offset + BLOCK_SIZE])
        length = header[0] | (header[1] << 8)
        raw_type = header[4]

        num_bytes = max(1, (length + BLOCK_SIZE - 1) // BLOCK_SIZE) * BLOCK_SIZE
        start = offset + BLOCK_SIZE
        if start + num_bytes > len(data):
            raise FormatError(f"Field of length {length} at offset {offset} runs past end of data ({len(data)} bytes)")
        content = decryptor.decrypt(data[start:start + num_bytes])[:length]
        return cls(content, raw_type, num_bytes + BLOCK_SIZE)

    def text(self, is_utf8: bool = True) -> str:
        if is_utf8:
            return self.content.decode('utf-8', errors='replace')
        return self.content.decode('latin-1')

    @property
    def epoch_seconds(self) -> int:
        return int.from_bytes(self.content[:4].ljust(4, b"\x00"), 'little')

    @property
    def date(self) -> Optional[datetime]:
        if self.type not in DATE_TYPES:
            return None
        try:
            return datetime.fromtimestamp(self.epoch_seconds)
        except (OverflowError, OSError, ValueError):
            return None

    @property
    def uuid(self) -> str:
        hex_content = self.content[:16].hex()
        return "-".join([hex_content[0:8], hex_content[8:12], hex_content[12:16],
                         hex_content[16:20], hex_content[20:32]])

    def __repr__(self):
        if self.type == FieldType.PASSWORD:
            return f"{self.type.name}: **********************"
        if self.type == FieldType.END_OF_RECORD:
            return "-------- END OF RECORD --------"
        if self.type in DATE_TYPES:
            return f"{self.type.name}: {self.date}"
        return f"{self.type.name}: {self.text()}"
