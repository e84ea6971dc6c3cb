"""
Fault Injection Tests for cachejar
==================================

Uses unittest.mock.patch to verify the store handles I/O failures correctly:

1. Disk full during a plain write: WriteFailed, handle still released
2. Disk full during an atomic write: old content kept, temp file removed
3. I/O error during read: ReadFailed (not NotFound), handle released
4. Failed encoding never touches the entry file
5. Entry vanishing between exists() and read() (OS cache purge)
"""

import errno
import logging
from unittest.mock import MagicMock, patch

import pytest

from cachejar import CacheReadError, CacheWriteError, EntryNotFoundError


def _failing_open(error):
    """Build an ``open`` replacement whose handle raises ``error`` on use."""
    opener = MagicMock()
    handle = opener.return_value.__enter__.return_value
    handle.write.side_effect = error
    handle.read.side_effect = error
    opener.return_value.__exit__.return_value = False
    return opener


class TestPlainWriteFailures:
    def test_disk_full_is_write_failure(self, store):
        opener = _failing_open(OSError(errno.ENOSPC, "No space left on device"))
        with patch("cachejar.storage.raw_store.open", opener, create=True):
            with pytest.raises(CacheWriteError) as exc_info:
                store.write("entry", "payload")

        assert exc_info.value.context["original_error_type"] == "OSError"
        assert exc_info.value.context["cache_root_missing"] is False
        # Handle was released despite the failure
        opener.return_value.__exit__.assert_called_once()

    def test_failure_is_chained(self, store):
        error = OSError(errno.EIO, "Input/output error")
        with patch("cachejar.storage.raw_store.open", _failing_open(error), create=True):
            with pytest.raises(CacheWriteError) as exc_info:
                store.write_binary("entry", b"payload")
        assert exc_info.value.__cause__ is error

    def test_failure_is_logged(self, store, caplog):
        opener = _failing_open(OSError(errno.ENOSPC, "No space left on device"))
        with caplog.at_level(logging.ERROR):
            with patch("cachejar.storage.raw_store.open", opener, create=True):
                with pytest.raises(CacheWriteError):
                    store.write("entry", "payload")
        assert "Failed to write entry" in caplog.text


class TestAtomicWriteFailures:
    def test_disk_full_keeps_old_content(self, atomic_store, cache_root):
        atomic_store.write("entry", "old content")

        with patch(
            "cachejar.storage.raw_store.os.fdopen",
            _failing_open(OSError(errno.ENOSPC, "No space left on device")),
        ):
            with pytest.raises(CacheWriteError):
                atomic_store.write("entry", "new content")

        assert atomic_store.read("entry") == "old content"
        assert [p.name for p in cache_root.iterdir()] == ["entry"]

    def test_failed_replace_removes_temp_file(self, atomic_store, cache_root):
        atomic_store.write("entry", "old content")

        with patch(
            "cachejar.storage.raw_store.os.replace",
            side_effect=OSError(errno.EXDEV, "Invalid cross-device link"),
        ):
            with pytest.raises(CacheWriteError):
                atomic_store.write("entry", "new content")

        assert atomic_store.read("entry") == "old content"
        assert [p.name for p in cache_root.iterdir()] == ["entry"]


class TestReadFailures:
    def test_io_error_is_read_failure(self, store):
        store.write("entry", "payload")
        opener = _failing_open(OSError(errno.EIO, "Input/output error"))
        with patch("cachejar.storage.raw_store.open", opener, create=True):
            with pytest.raises(CacheReadError) as exc_info:
                store.read("entry")

        assert not isinstance(exc_info.value, EntryNotFoundError)
        opener.return_value.__exit__.assert_called_once()

    def test_permission_error_is_read_failure(self, store):
        store.write("entry", "payload")
        with patch(
            "cachejar.storage.raw_store.open",
            side_effect=PermissionError(errno.EACCES, "Permission denied"),
            create=True,
        ):
            with pytest.raises(CacheReadError):
                store.read("entry")

    def test_entry_vanishes_before_read(self, store):
        store.write("entry", "payload")
        assert store.exists("entry")
        with patch(
            "cachejar.storage.raw_store.open",
            side_effect=FileNotFoundError(errno.ENOENT, "No such file or directory"),
            create=True,
        ):
            with pytest.raises(EntryNotFoundError):
                store.read("entry")


class TestEncodingFailures:
    def test_failed_image_encode_touches_nothing(self, store, cache_root):
        from PIL import Image

        store.write_binary("image", b"previous")
        with patch.object(Image.Image, "save", side_effect=OSError("encoder error")):
            with pytest.raises(CacheWriteError):
                store.write_image("image", Image.new("RGB", (2, 2)), format="png")
        assert (cache_root / "image").read_bytes() == b"previous"

    def test_failed_encryption_touches_nothing(self, store, cache_root):
        store.write("secret", "previous")
        with patch.object(
            store.encryption.cipher, "encrypt", side_effect=RuntimeError("cipher fault")
        ):
            with pytest.raises(RuntimeError):
                store.write_encrypted("secret", "new", "key")
        assert (cache_root / "secret").read_text() == "previous"
