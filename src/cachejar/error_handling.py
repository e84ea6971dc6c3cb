"""
Standardized Error Handling for cachejar
========================================

This module defines the error taxonomy shared by every store operation and the
logging helpers used around file I/O.

Every failure a caller can see is a distinct ``CacheError`` subclass, so code
can branch on the failure kind instead of matching message strings:

- ``InvalidEntryNameError``: entry name would escape the cache root
- ``EntryNotFoundError``: never written, deleted, or reclaimed by the OS
- ``CacheReadError``: the file exists but could not be read
- ``TextDecodeError``: a read text entry is not valid UTF-8
- ``CacheWriteError``: the file could not be written or removed
- ``DecryptionError``: wrong passphrase or corrupted ciphertext
- ``RecordParseError``: content was read but is not a valid record
- ``ImageDecodeError``: content was read but is not a decodable image
"""

import logging
import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class CacheError(Exception):
    """Base exception for all cache-related errors."""

    kind = "error"
    log_level = logging.ERROR

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.context = context or {}
        super().__init__(message)

        # Log error with context for debugging
        context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        logger.log(
            self.log_level,
            f"Cache error: {message}" + (f" ({context_str})" if context_str else ""),
        )


class CacheConfigurationError(CacheError):
    """Raised when the store configuration or cache root is invalid."""

    kind = "configuration"


class InvalidEntryNameError(CacheError):
    """Raised when an entry name is unsafe to join onto the cache root."""

    kind = "invalid_name"
    log_level = logging.WARNING


class EntryNotFoundError(CacheError):
    """Raised when an entry has no file under the cache root."""

    kind = "not_found"
    log_level = logging.DEBUG


class CacheReadError(CacheError):
    """Raised when an existing entry file cannot be read."""

    kind = "read_failed"


class TextDecodeError(CacheReadError):
    """Raised when an entry file was read but its bytes are not UTF-8 text."""

    log_level = logging.WARNING


class CacheWriteError(CacheError):
    """Raised when an entry file cannot be written or removed."""

    kind = "write_failed"


class CacheSerializationError(CacheWriteError):
    """Raised when a value cannot be encoded, before anything is written."""

    kind = "serialize_failed"


class DecryptionError(CacheError):
    """Raised when ciphertext cannot be decrypted with the given passphrase."""

    kind = "decrypt_failed"
    log_level = logging.WARNING


class RecordParseError(CacheError):
    """Raised when entry text was read but does not parse as a record."""

    kind = "parse_failed"
    log_level = logging.WARNING


class ImageDecodeError(CacheError):
    """Raised when entry bytes were read but do not decode as an image."""

    kind = "decode_failed"
    log_level = logging.WARNING


@contextmanager
def cache_operation_context(operation: str, entry: Optional[str] = None, **context):
    """
    Context manager for store operations with structured start/outcome events.

    Emits debug records carrying ``operation``, ``entry``, ``outcome`` and
    ``duration`` in ``extra`` so host applications can route them to their own
    observability sink. Nothing here configures handlers or formats.

    Args:
        operation: Name of the operation (``"write_text"``, ``"read_image"``...)
        entry: Entry name the operation targets
        **context: Additional fields attached to every event
    """
    fields = {"operation": operation, "entry": entry, **context}
    logger.debug(f"Starting cache operation: {operation}", extra=fields)
    start_time = time.time()

    try:
        yield
    except CacheError as e:
        duration = time.time() - start_time
        logger.debug(
            f"Cache operation failed: {operation} ({e.kind})",
            extra={**fields, "outcome": e.kind, "duration": duration},
        )
        raise
    except Exception as e:
        duration = time.time() - start_time
        logger.error(
            f"Unexpected error in cache operation: {operation} - {e}",
            extra={**fields, "outcome": "unexpected", "duration": duration},
        )
        raise
    else:
        duration = time.time() - start_time
        logger.debug(
            f"Cache operation completed: {operation} ({duration:.3f}s)",
            extra={**fields, "outcome": "ok", "duration": duration},
        )


def describe_cache_root(path: Path) -> Dict[str, Any]:
    """
    Inspect the directory holding ``path`` after an I/O failure.

    The cache root is only checked lazily, once something has already gone
    wrong, so the error context can tell "root was reclaimed" apart from an
    ordinary file fault.
    """
    root = Path(path).parent
    exists = root.is_dir()
    return {
        "cache_root": str(root),
        "cache_root_missing": not exists,
        "cache_root_writable": exists and os.access(root, os.W_OK),
    }
