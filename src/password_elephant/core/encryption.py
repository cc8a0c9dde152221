# password_elephant/core/encryption.py

import hashlib
import hmac
import logging
import os
from abc import ABC, abstractmethod

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from password_elephant.core.errors import ArchiveSystemError, FormatError

AES_BLOCK_SIZE = 16
IV_SIZE = 16


def random_bytes(count: int) -> bytes:
    try:
        return os.urandom(count)
    except (OSError, NotImplementedError) as e:
        raise ArchiveSystemError("Failed generating random bytes") from e


def compute_hmac(key: bytes, data: bytes) -> bytes:
    return hmac.new(key, data, hashlib.sha256).digest()


class EncryptionService(ABC):
    """Abstract base class for encryption services."""

    @abstractmethod
    def encrypt(self, data: bytes) -> bytes:
        """Encrypt the given data."""
        pass

    @abstractmethod
    def decrypt(self, encrypted_data: bytes) -> bytes:
        """Decrypt the given data."""
        pass


class KeyWrapper(EncryptionService):
    """
    AES-256-ECB without padding, applied to each 16-byte block as an
    independent call. Wraps the 32-byte inner and outer keys under the
    password stretch key.
    """

    def __init__(self, stretch_key: bytes):
        self._key = stretch_key

    def _ecb(self):
        return Cipher(algorithms.AES(self._key), modes.ECB())

    def _encrypt_block(self, block: bytes) -> bytes:
        encryptor = self._ecb().encryptor()
        return encryptor.update(block) + encryptor.finalize()

    def _decrypt_block(self, block: bytes) -> bytes:
        decryptor = self._ecb().decryptor()
        return decryptor.update(block) + decryptor.finalize()

    def _blocks(self, data: bytes):
        if len(data) == 0 or len(data) % AES_BLOCK_SIZE:
            raise FormatError(f"Wrapped key length {len(data)} is not a whole number of blocks")
        return [data[i:i + AES_BLOCK_SIZE] for i in range(0, len(data), AES_BLOCK_SIZE)]

    def encrypt(self, data: bytes) -> bytes:
        return b"".join(self._encrypt_block(block) for block in self._blocks(data))

    def decrypt(self, encrypted_data: bytes) -> bytes:
        return b"".join(self._decrypt_block(block) for block in self._blocks(encrypted_data))


class PayloadCipher(EncryptionService):
    """AES-256-CBC with PKCS7 padding, used for the serialized database."""

    def __init__(self, key: bytes, iv: bytes):
        if len(iv) != IV_SIZE:
            raise FormatError(f"IV must be {IV_SIZE} bytes, got {len(iv)}")
        self._key = key
        self._iv = iv

    def _cipher(self):
        return Cipher(algorithms.AES(self._key), modes.CBC(self._iv))

    def encrypt(self, data: bytes) -> bytes:
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(data) + padder.finalize()
        encryptor = self._cipher().encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        logging.debug(f"Encrypted payload of {len(data)} bytes into {len(ciphertext)} bytes")
        return ciphertext

    def decrypt(self, encrypted_data: bytes) -> bytes:
        if len(encrypted_data) == 0 or len(encrypted_data) % AES_BLOCK_SIZE:
            raise FormatError(f"Cipher text length {len(encrypted_data)} is not a whole number of blocks")
        decryptor = self._cipher().decryptor()
        padded = decryptor.update(encrypted_data) + decryptor.finalize()
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        try:
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError as e:
            logging.error("Payload padding is invalid")
            raise FormatError("Invalid padding in decrypted payload") from e
