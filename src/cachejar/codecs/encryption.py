"""
Encryption at Rest
==================

Transparent encryption layered over the text codec (and, for binary entries,
directly over RawStore).

The cipher is a pluggable capability: anything implementing
``CipherPrimitive`` can be handed to the store. The default
``PasswordCipher`` derives a Fernet key from the caller's passphrase with
PBKDF2-HMAC-SHA256 and a fresh random salt per write. Fernet authenticates the
token, so decrypting with the wrong passphrase fails loudly instead of
returning garbage.

Passphrases live only for the duration of one call. They are never stored on
any object, never logged and never placed in error context.
"""

import base64
import binascii
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..config import EncryptionConfig
from ..error_handling import CacheSerializationError, DecryptionError
from .text import TextCodec

logger = logging.getLogger(__name__)

Passphrase = Union[str, bytes]


def _passphrase_bytes(passphrase: Passphrase) -> bytes:
    if isinstance(passphrase, str):
        passphrase = passphrase.encode("utf-8")
    if not isinstance(passphrase, bytes):
        raise TypeError("passphrase must be str or bytes")
    if not passphrase:
        raise ValueError("passphrase must not be empty")
    return passphrase


class CipherPrimitive(ABC):
    """Abstract base class for symmetric, passphrase-keyed ciphers."""

    @abstractmethod
    def encrypt(self, plaintext: bytes, passphrase: Passphrase) -> bytes:
        """Encrypt ``plaintext`` and return self-contained ciphertext."""
        pass

    @abstractmethod
    def decrypt(self, ciphertext: bytes, passphrase: Passphrase) -> bytes:
        """
        Decrypt ``ciphertext``.

        Must raise ``DecryptionError`` for a wrong passphrase or corrupted
        input, never return unauthenticated plaintext.
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the cipher identifier."""
        pass


class PasswordCipher(CipherPrimitive):
    """
    PBKDF2-HMAC-SHA256 key derivation feeding Fernet (AES-128-CBC + HMAC).

    Ciphertext layout is ``salt || fernet_token``; the salt length comes from
    ``EncryptionConfig.salt_bytes`` and must match between write and read.
    """

    def __init__(self, config: Optional[EncryptionConfig] = None):
        self.config = config or EncryptionConfig()

    def _fernet(self, passphrase: Passphrase, salt: bytes) -> Fernet:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt,
            iterations=self.config.kdf_iterations,
        )
        key = kdf.derive(_passphrase_bytes(passphrase))
        return Fernet(base64.urlsafe_b64encode(key))

    def encrypt(self, plaintext: bytes, passphrase: Passphrase) -> bytes:
        salt = os.urandom(self.config.salt_bytes)
        return salt + self._fernet(passphrase, salt).encrypt(plaintext)

    def decrypt(self, ciphertext: bytes, passphrase: Passphrase) -> bytes:
        salt_bytes = self.config.salt_bytes
        if len(ciphertext) <= salt_bytes:
            raise DecryptionError(
                "Ciphertext is too short to contain a salt and token",
                {"cipher": self.name, "length": len(ciphertext)},
            )
        salt, token = ciphertext[:salt_bytes], ciphertext[salt_bytes:]
        try:
            return self._fernet(passphrase, salt).decrypt(token)
        except InvalidToken as e:
            raise DecryptionError(
                "Ciphertext failed authentication (wrong passphrase or corrupted data)",
                {"cipher": self.name},
            ) from e

    @property
    def name(self) -> str:
        return "pbkdf2-sha256-fernet"


class EncryptionLayer:
    """Encrypted variants of the text and binary entry paths."""

    def __init__(self, text: TextCodec, cipher: Optional[CipherPrimitive] = None):
        self.text = text
        self.raw = text.raw
        self.cipher = cipher or PasswordCipher()

    def write_encrypted(self, path: Path, text: str, key: Passphrase) -> int:
        """Encrypt ``text`` and store it as URL-safe base64 text."""
        if not isinstance(text, str):
            raise TypeError(f"Expected str, got {type(text).__name__}")
        try:
            plaintext = text.encode("utf-8")
        except UnicodeEncodeError as e:
            raise CacheSerializationError(
                f"Text for {path.name} is not encodable as UTF-8: {e.reason}",
                {"file_path": str(path), "position": e.start},
            ) from e
        ciphertext = self.cipher.encrypt(plaintext, key)
        logger.debug(f"Encrypted {len(plaintext)} bytes for {path.name} ({self.cipher.name})")
        return self.text.write_text(path, base64.urlsafe_b64encode(ciphertext).decode("ascii"))

    def read_encrypted(self, path: Path, key: Passphrase) -> str:
        """
        Read base64 ciphertext text and decrypt it.

        Read-layer errors propagate unchanged; everything after the read
        (base64, authentication, UTF-8) fails as ``DecryptionError``.
        """
        encoded = self.raw.read_bytes(path)
        try:
            ciphertext = base64.b64decode(
                encoded.decode("ascii"), altchars=b"-_", validate=True
            )
        except (UnicodeDecodeError, binascii.Error) as e:
            raise DecryptionError(
                f"Entry {path.name} does not hold encoded ciphertext",
                {"file_path": str(path), "cipher": self.cipher.name},
            ) from e
        plaintext = self._decrypt(path, ciphertext, key)
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecryptionError(
                f"Decrypted entry {path.name} is not UTF-8 text",
                {"file_path": str(path), "cipher": self.cipher.name},
            ) from e

    def write_encrypted_bytes(self, path: Path, data: bytes, key: Passphrase) -> int:
        """Encrypt ``data`` and store the raw ciphertext bytes."""
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError(f"Expected bytes-like data, got {type(data).__name__}")
        ciphertext = self.cipher.encrypt(bytes(data), key)
        return self.raw.write_bytes(path, ciphertext)

    def read_encrypted_bytes(self, path: Path, key: Passphrase) -> bytes:
        return self._decrypt(path, self.raw.read_bytes(path), key)

    def _decrypt(self, path: Path, ciphertext: bytes, key: Passphrase) -> bytes:
        try:
            return self.cipher.decrypt(ciphertext, key)
        except DecryptionError as e:
            e.context.setdefault("file_path", str(path))
            raise
