"""
RawStore - Byte-level Entry Storage
===================================

Reads, writes and deletes whole entry files. Every call opens at most one
handle and releases it before returning, on success and on every failure path.

Writes are plain truncate-writes by default: a failed write may leave a
truncated file behind. With ``atomic_writes`` enabled the payload goes to a
dot-prefixed temp file in the same directory and is moved over the target
with ``os.replace``, so readers only ever see the old or the new content.
"""

import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Optional, Union

from ..config import StorageConfig
from ..error_handling import (
    CacheReadError,
    CacheWriteError,
    EntryNotFoundError,
    describe_cache_root,
)

logger = logging.getLogger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


# Mode a plain open(path, "wb") would create, read once at import
_DEFAULT_FILE_MODE = 0o666 & ~_current_umask()


class RawStore:
    """
    Whole-file byte storage against resolved entry paths.

    Holds no open handles and no cached content between calls; the
    filesystem is the only source of truth.
    """

    def __init__(self, config: Optional[StorageConfig] = None):
        self.config = config or StorageConfig()

    def write_bytes(self, path: Path, data: BytesLike) -> int:
        """
        Replace the contents of ``path`` with ``data``.

        Args:
            path: Resolved entry path
            data: Full payload

        Returns:
            Number of bytes written

        Raises:
            CacheWriteError: If the file could not be written
        """
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError(f"Expected bytes-like data, got {type(data).__name__}")
        payload = bytes(data)

        try:
            if self.config.atomic_writes:
                self._write_atomic(path, payload)
            else:
                with open(path, "wb") as handle:
                    handle.write(payload)
                    handle.flush()
                    if self.config.fsync:
                        os.fsync(handle.fileno())
        except OSError as e:
            context = {
                "file_path": str(path),
                "atomic": self.config.atomic_writes,
                "original_error": str(e),
                "original_error_type": type(e).__name__,
            }
            context.update(describe_cache_root(path))
            raise CacheWriteError(f"Failed to write {path.name}: {e}", context) from e

        logger.debug(f"Wrote {len(payload)} bytes to {path}")
        return len(payload)

    def _write_atomic(self, path: Path, payload: bytes) -> None:
        """Write to a sibling temp file, then move it over ``path``."""
        tmp_fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(tmp_fd, "wb") as handle:
                handle.write(payload)
                handle.flush()
                if self.config.fsync:
                    os.fsync(handle.fileno())
            # mkstemp creates 0600; match what a plain write would leave behind
            os.chmod(tmp_path, self._target_mode(path))
            os.replace(tmp_path, path)
        except BaseException:
            try:
                tmp_path.unlink()
            except FileNotFoundError:
                pass
            except OSError as cleanup_error:
                logger.warning(f"Failed to remove temp file {tmp_path}: {cleanup_error}")
            raise

    @staticmethod
    def _target_mode(path: Path) -> int:
        """Permission bits of the existing entry, or the umask default."""
        try:
            return stat.S_IMODE(os.stat(path).st_mode)
        except FileNotFoundError:
            return _DEFAULT_FILE_MODE

    def read_bytes(self, path: Path) -> bytes:
        """
        Read the full contents of ``path``.

        Raises:
            EntryNotFoundError: If no file exists at ``path``
            CacheReadError: If the file exists but could not be read
        """
        try:
            with open(path, "rb") as handle:
                data = handle.read()
        except FileNotFoundError as e:
            context = {"file_path": str(path)}
            context.update(describe_cache_root(path))
            raise EntryNotFoundError(f"No cache entry {path.name}", context) from e
        except OSError as e:
            context = {
                "file_path": str(path),
                "original_error": str(e),
                "original_error_type": type(e).__name__,
            }
            context.update(describe_cache_root(path))
            raise CacheReadError(f"Failed to read {path.name}: {e}", context) from e

        logger.debug(f"Read {len(data)} bytes from {path}")
        return data

    def delete_file(self, path: Path) -> bool:
        """
        Remove ``path`` if it exists.

        Deleting a missing file is not an error, so repeated deletes and
        deletes racing an OS cache purge both succeed.

        Returns:
            True if a file was removed, False if there was nothing to remove

        Raises:
            CacheWriteError: If an existing file could not be removed
        """
        try:
            path.unlink()
        except FileNotFoundError:
            logger.debug(f"Nothing to delete at {path}")
            return False
        except OSError as e:
            context = {
                "file_path": str(path),
                "original_error": str(e),
                "original_error_type": type(e).__name__,
            }
            raise CacheWriteError(f"Failed to delete {path.name}: {e}", context) from e

        logger.debug(f"Deleted {path}")
        return True

    def exists(self, path: Path) -> bool:
        """Check whether a regular file exists at ``path``."""
        return path.is_file()
