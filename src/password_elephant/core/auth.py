# password_elephant/core/auth.py

from abc import ABC, abstractmethod
import hashlib
import hmac
import logging

from password_elephant.core.errors import IncorrectPassword

STRETCH_ITERATIONS = 10000
MAX_STRETCH_ITERATIONS = 1000000
KEY_SIZE = 32
SALT_SIZE = 32


class AuthenticationService(ABC):
    """Abstract base class for authentication services."""

    @abstractmethod
    def authenticate(self, password: str) -> bool:
        """Authenticate using the given password."""
        pass


def stretch_password(password: str, salt: bytes, iterations: int) -> bytes:
    """
    Stretch a password into 32 bytes of key material.

    H0 = SHA-256(password || salt), then H = SHA-256(H) repeated
    `iterations` times. The iteration count is stored in each archive
    header so it can be tuned per archive.
    See http://www.schneier.com/paper-low-entropy.pdf
    """
    if iterations < 0:
        raise ValueError("Iteration count must not be negative")
    digest = hashlib.sha256(password.encode('utf-8') + salt).digest()
    for _ in range(iterations):
        digest = hashlib.sha256(digest).digest()
    return digest


def password_hash(stretch_key: bytes) -> bytes:
    return hashlib.sha256(stretch_key).digest()


def verify_password(password: str, salt: bytes, iterations: int, expected_hash: bytes) -> bytes:
    """Return the stretch key for password, or raise IncorrectPassword."""
    stretch_key = stretch_password(password, salt, iterations)
    if not hmac.compare_digest(password_hash(stretch_key), expected_hash):
        logging.info("Password hash mismatch")
        raise IncorrectPassword()
    return stretch_key


class ArchiveAuthenticator(AuthenticationService):
    """Checks passwords against an archive header without touching its payload."""

    def __init__(self, salt: bytes, iterations: int, expected_hash: bytes):
        self._salt = salt
        self._iterations = iterations
        self._expected_hash = expected_hash
        self._stretch_key = None

    def authenticate(self, password: str) -> bool:
        try:
            self._stretch_key = verify_password(password, self._salt, self._iterations, self._expected_hash)
        except IncorrectPassword:
            self._stretch_key = None
            return False
        return True

    def get_stretch_key(self) -> bytes:
        if self._stretch_key is None:
            raise ValueError("No stretch key available. Please authenticate first.")
        return self._stretch_key
