"""UTF-8 text entries over RawStore."""

import logging
from pathlib import Path

from ..error_handling import CacheSerializationError, TextDecodeError
from ..storage import RawStore

logger = logging.getLogger(__name__)


class TextCodec:
    """
    Stores text as its exact UTF-8 bytes.

    Reads decode the whole buffer at once, so line endings and a trailing
    newline come back exactly as written.
    """

    encoding = "utf-8"

    def __init__(self, raw: RawStore):
        self.raw = raw

    def write_text(self, path: Path, text: str) -> int:
        if not isinstance(text, str):
            raise TypeError(f"Expected str, got {type(text).__name__}")
        try:
            payload = text.encode(self.encoding)
        except UnicodeEncodeError as e:
            raise CacheSerializationError(
                f"Text for {path.name} is not encodable as UTF-8: {e.reason}",
                {"file_path": str(path), "position": e.start},
            ) from e
        return self.raw.write_bytes(path, payload)

    def read_text(self, path: Path) -> str:
        data = self.raw.read_bytes(path)
        try:
            return data.decode(self.encoding)
        except UnicodeDecodeError as e:
            raise TextDecodeError(
                f"Entry {path.name} is not valid UTF-8 text",
                {"file_path": str(path), "reason": "utf-8 decode", "position": e.start},
            ) from e
