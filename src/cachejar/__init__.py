"""
cachejar - Single-directory local cache store with optional encryption at rest.

Persists named entries (text, structured records, raster images, raw bytes)
as one file each under a caller-provided cache root, with a typed error for
every failure kind.

Key Features:
- Exact round trips for text (newlines included), records, lossless images and bytes
- Transparent password-based encryption for text, record and binary entries
- Pluggable cipher primitive
- Path-traversal-safe entry names
- Optional atomic (temp file + rename) writes
- Thread-shareable store with no in-process state

Quick Start:
    >>> from cachejar import CacheStore
    >>>
    >>> store = CacheStore.open("/path/to/app/cache")
    >>> store.write("greeting.txt", "hello\\nworld\\n")
    >>> store.read("greeting.txt")
    'hello\\nworld\\n'
    >>>
    >>> store.write_record_encrypted("profile", {"id": 7}, key="s3cret")
    >>> store.read_record_encrypted("profile", key="s3cret")
    {'id': 7}
"""

from .codecs import CipherPrimitive, PasswordCipher
from .config import (
    EncryptionConfig,
    ImageConfig,
    RecordConfig,
    StorageConfig,
    StoreConfig,
    create_store_config,
)
from .error_handling import (
    CacheConfigurationError,
    CacheError,
    CacheReadError,
    CacheSerializationError,
    CacheWriteError,
    DecryptionError,
    EntryNotFoundError,
    ImageDecodeError,
    InvalidEntryNameError,
    RecordParseError,
    TextDecodeError,
)
from .store import CacheStore

__version__ = "0.1.0"
__author__ = "cachejar developers"

__all__ = [
    # Core classes
    "CacheStore",
    "StoreConfig",
    "StorageConfig",
    "EncryptionConfig",
    "RecordConfig",
    "ImageConfig",
    "create_store_config",
    # Ciphers
    "CipherPrimitive",
    "PasswordCipher",
    # Errors
    "CacheError",
    "CacheConfigurationError",
    "InvalidEntryNameError",
    "EntryNotFoundError",
    "CacheReadError",
    "TextDecodeError",
    "CacheWriteError",
    "CacheSerializationError",
    "DecryptionError",
    "RecordParseError",
    "ImageDecodeError",
    # Version info
    "__version__",
]
