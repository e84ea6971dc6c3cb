"""
Entry Codecs
============

Paired encode/decode transformations between typed values and entry files:

- ``TextCodec``: UTF-8 text
- ``EncryptionLayer``: encrypted text and binary, via a pluggable ``CipherPrimitive``
- ``RecordCodec``: JSON-compatible records over any text sink/source
- ``ImageCodec``: raster images via Pillow
"""

from .encryption import CipherPrimitive, EncryptionLayer, PasswordCipher
from .images import ImageCodec, is_lossless, normalize_format
from .records import RecordCodec
from .text import TextCodec

__all__ = [
    "TextCodec",
    "EncryptionLayer",
    "CipherPrimitive",
    "PasswordCipher",
    "RecordCodec",
    "ImageCodec",
    "is_lossless",
    "normalize_format",
]
