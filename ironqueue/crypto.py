"""
Payload Encryption

Authenticated encryption for queue payloads. The driver only depends on
the Encrypter protocol; FernetEncrypter is the bundled implementation.
"""
from typing import Optional, Protocol

from cryptography.fernet import Fernet, InvalidToken

from ironqueue.config import get_settings
from ironqueue.exceptions import ConfigurationError, DecryptionError


class Encrypter(Protocol):
    """
    Protocol for payload encryption services.

    Both directions work on text so ciphertext can travel as an
    IronMQ message body.
    """

    def encrypt(self, payload: str) -> str:
        ...

    def decrypt(self, payload: str) -> str:
        """
        Raises:
            DecryptionError: Bad key, tampered ciphertext or malformed input
        """
        ...


class FernetEncrypter:
    """
    Fernet (AES-128-CBC + HMAC-SHA256) encrypter.

    Usage:
        encrypter = FernetEncrypter(FernetEncrypter.generate_key())
        token = encrypter.encrypt('{"job":"foo"}')
        encrypter.decrypt(token)
    """

    def __init__(self, key: str):
        try:
            self._fernet = Fernet(key)
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Invalid encryption key: {e}") from e

    @staticmethod
    def generate_key() -> str:
        """Generate a new urlsafe base64 key."""
        return Fernet.generate_key().decode("ascii")

    def encrypt(self, payload: str) -> str:
        return self._fernet.encrypt(payload.encode("utf-8")).decode("ascii")

    def decrypt(self, payload: str) -> str:
        try:
            return self._fernet.decrypt(payload.encode("utf-8")).decode("utf-8")
        except InvalidToken as e:
            raise DecryptionError("The payload is invalid or was encrypted with another key") from e
        except UnicodeError as e:
            raise DecryptionError("The payload is not valid UTF-8") from e


def get_encrypter(key: Optional[str] = None) -> FernetEncrypter:
    """
    Build an encrypter from the given key or ENCRYPTION_KEY.

    Raises:
        ConfigurationError: No key configured
    """
    key = key or get_settings().encryption_key
    if not key:
        raise ConfigurationError("ENCRYPTION_KEY is not configured")
    return FernetEncrypter(key)
