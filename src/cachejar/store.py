"""
CacheStore - Single-Directory Entry Store
=========================================

The one entry point host applications use. A ``CacheStore`` owns an immutable
configuration and the codec stack built from it; every operation resolves the
entry name against the cache root before any codec runs, performs exactly one
file operation, and returns or raises. There are no retries, no locks and no
in-process caches, so one instance can be shared freely between threads.
Concurrent writers to the *same* entry are not coordinated: the last writer
wins.
"""

import functools
import logging
from pathlib import Path
from typing import Any, Optional, Union

import numpy as np
from PIL import Image

from .codecs import CipherPrimitive, EncryptionLayer, ImageCodec, PasswordCipher, RecordCodec, TextCodec
from .codecs.encryption import Passphrase
from .config import StoreConfig, create_store_config
from .error_handling import CacheConfigurationError, cache_operation_context
from .naming import resolve_entry_path
from .storage import RawStore

logger = logging.getLogger(__name__)


class CacheStore:
    """
    Typed local cache store over one directory.

    Entries are single files directly under the cache root, holding exactly
    the codec's encoding with no extra header. The root must already exist;
    the store never creates directories.

    Attributes:
        cache_dir: Absolute cache root
        config: Store configuration
        raw: Byte-level storage
        text: UTF-8 text codec
        encryption: Encryption layer over text and binary entries
        records: Structured record codec
        images: Raster image codec
    """

    def __init__(
        self,
        cache_dir_or_config: Union[str, Path, StoreConfig],
        cipher: Optional[CipherPrimitive] = None,
    ):
        """
        Initialize the store.

        Args:
            cache_dir_or_config: Cache root path or a StoreConfig
            cipher: Cipher for encrypted entries (defaults to PasswordCipher)

        Raises:
            CacheConfigurationError: If the cache root is not an existing directory
        """
        if isinstance(cache_dir_or_config, (str, Path)):
            self.config = StoreConfig(cache_dir=cache_dir_or_config)
        elif isinstance(cache_dir_or_config, StoreConfig):
            self.config = cache_dir_or_config
        else:
            raise TypeError(
                f"Expected str, Path, or StoreConfig, got {type(cache_dir_or_config)}"
            )

        self.cache_dir = Path(self.config.cache_dir)
        if not self.cache_dir.is_dir():
            raise CacheConfigurationError(
                f"Cache root is not an existing directory: {self.cache_dir}",
                {"cache_dir": str(self.cache_dir), "exists": self.cache_dir.exists()},
            )

        self.raw = RawStore(self.config.storage)
        self.text = TextCodec(self.raw)
        self.encryption = EncryptionLayer(
            self.text, cipher or PasswordCipher(self.config.encryption)
        )
        self.records = RecordCodec(self.config.records)
        self.images = ImageCodec(self.raw, self.config.images)

        logger.info(
            f"Cache store opened: {self.cache_dir} "
            f"(atomic_writes={self.config.storage.atomic_writes}, "
            f"cipher={self.encryption.cipher.name})"
        )

    @classmethod
    def open(
        cls,
        root: Union[str, Path],
        config: Optional[StoreConfig] = None,
        cipher: Optional[CipherPrimitive] = None,
        **overrides,
    ) -> "CacheStore":
        """
        Open a store on an existing cache root.

        Args:
            root: Cache root directory, provisioned by the host
            config: Optional configuration; its cache_dir is replaced by ``root``
            cipher: Optional cipher for encrypted entries
            **overrides: Configuration fields (``atomic_writes=True``,
                ``kdf_iterations=...``), only when ``config`` is not given
        """
        if config is None:
            config = create_store_config(root, **overrides)
        else:
            if overrides:
                raise ValueError("Pass either a config or keyword overrides, not both")
            config = StoreConfig(
                storage=config.storage,
                encryption=config.encryption,
                records=config.records,
                images=config.images,
                cache_dir=root,
            )
        return cls(config, cipher=cipher)

    def __repr__(self) -> str:
        return f"CacheStore({str(self.cache_dir)!r})"

    def path_for(self, name: str) -> Path:
        """Return the file path an entry name maps to."""
        return resolve_entry_path(self.cache_dir, name)

    # ── Text ──────────────────────────────────────────────────────────

    def write(self, name: str, text: str) -> None:
        """Store ``text`` under ``name``, replacing any previous content."""
        with cache_operation_context("write_text", entry=name):
            self.text.write_text(self.path_for(name), text)

    def read(self, name: str) -> str:
        """Return the text stored under ``name`` exactly as written."""
        with cache_operation_context("read_text", entry=name):
            return self.text.read_text(self.path_for(name))

    def write_encrypted(self, name: str, text: str, key: Passphrase) -> None:
        """Encrypt ``text`` with ``key`` and store it under ``name``."""
        with cache_operation_context("write_text_encrypted", entry=name):
            self.encryption.write_encrypted(self.path_for(name), text, key)

    def read_encrypted(self, name: str, key: Passphrase) -> str:
        """Decrypt the text stored under ``name`` with ``key``."""
        with cache_operation_context("read_text_encrypted", entry=name):
            return self.encryption.read_encrypted(self.path_for(name), key)

    # ── Records ───────────────────────────────────────────────────────

    def write_record(self, name: str, record: Any) -> None:
        """Serialize ``record`` to JSON and store it under ``name``."""
        with cache_operation_context("write_record", entry=name):
            self.records.write_record(self.text.write_text, self.path_for(name), record)

    def read_record(self, name: str) -> Any:
        with cache_operation_context("read_record", entry=name):
            return self.records.read_record(self.text.read_text, self.path_for(name))

    def write_record_encrypted(self, name: str, record: Any, key: Passphrase) -> None:
        with cache_operation_context("write_record_encrypted", entry=name):
            sink = functools.partial(self.encryption.write_encrypted, key=key)
            self.records.write_record(sink, self.path_for(name), record)

    def read_record_encrypted(self, name: str, key: Passphrase) -> Any:
        with cache_operation_context("read_record_encrypted", entry=name):
            source = functools.partial(self.encryption.read_encrypted, key=key)
            return self.records.read_record(source, self.path_for(name))

    # ── Images ────────────────────────────────────────────────────────

    def write_image(
        self,
        name: str,
        image: Any,
        format: Optional[str] = None,
        quality: Optional[int] = None,
    ) -> None:
        """
        Encode ``image`` and store it under ``name``.

        Args:
            name: Entry name
            image: ``PIL.Image.Image`` or numpy array
            format: png, bmp, tiff, jpeg/jpg or webp
            quality: 0-100; ignored for lossless formats
        """
        with cache_operation_context("write_image", entry=name, format=format):
            self.images.write_image(self.path_for(name), image, format, quality)

    def read_image(self, name: str) -> Image.Image:
        with cache_operation_context("read_image", entry=name):
            return self.images.read_image(self.path_for(name))

    def read_image_array(self, name: str) -> np.ndarray:
        with cache_operation_context("read_image", entry=name, as_array=True):
            return self.images.read_image_array(self.path_for(name))

    # ── Binary ────────────────────────────────────────────────────────

    def write_binary(self, name: str, data: bytes) -> None:
        with cache_operation_context("write_binary", entry=name):
            self.raw.write_bytes(self.path_for(name), data)

    def read_binary(self, name: str) -> bytes:
        with cache_operation_context("read_binary", entry=name):
            return self.raw.read_bytes(self.path_for(name))

    def write_binary_encrypted(self, name: str, data: bytes, key: Passphrase) -> None:
        with cache_operation_context("write_binary_encrypted", entry=name):
            self.encryption.write_encrypted_bytes(self.path_for(name), data, key)

    def read_binary_encrypted(self, name: str, key: Passphrase) -> bytes:
        with cache_operation_context("read_binary_encrypted", entry=name):
            return self.encryption.read_encrypted_bytes(self.path_for(name), key)

    # ── Management ────────────────────────────────────────────────────

    def delete(self, name: str) -> bool:
        """
        Remove the entry ``name``.

        Idempotent: deleting an entry that does not exist succeeds.

        Returns:
            True if a file was removed, False if there was nothing to remove
        """
        with cache_operation_context("delete", entry=name):
            return self.raw.delete_file(self.path_for(name))

    def exists(self, name: str) -> bool:
        with cache_operation_context("exists", entry=name):
            return self.raw.exists(self.path_for(name))
