"""
Storage Layer
=============

Byte-level access to entry files under the cache root. Codecs in
``cachejar.codecs`` build on this layer; nothing here knows about text,
records, images or encryption.

Usage:
    from cachejar.storage import RawStore

    raw = RawStore()
    raw.write_bytes(path, b"payload")
    data = raw.read_bytes(path)
    raw.delete_file(path)
"""

from .raw_store import RawStore

__all__ = [
    "RawStore",
]
