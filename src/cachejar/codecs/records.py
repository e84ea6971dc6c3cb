"""
Structured record entries.

Records are serialized to JSON text with orjson and handed to a text sink,
which is either the plain text codec or the encryption layer. Reading keeps
the two failure stages apart: anything the text source raises (not found,
read failure, decrypt failure) propagates unchanged. Content that was read
but is not UTF-8 or does not parse becomes ``RecordParseError``.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Optional

from .. import json_utils
from ..config import RecordConfig
from ..error_handling import CacheSerializationError, RecordParseError, TextDecodeError

logger = logging.getLogger(__name__)

TextSink = Callable[[Path, str], Any]
TextSource = Callable[[Path], str]


class RecordCodec:
    """Encode/decode JSON-compatible records over a text sink/source."""

    def __init__(self, config: Optional[RecordConfig] = None):
        self.config = config or RecordConfig()

    def encode(self, path: Path, record: Any) -> str:
        try:
            return json_utils.dumps(
                record, sort_keys=self.config.sort_keys, indent=self.config.indent
            )
        except json_utils.JSONEncodeError as e:
            raise CacheSerializationError(
                f"Record for {path.name} is not serializable: {e}",
                {"file_path": str(path), "record_type": type(record).__name__},
            ) from e

    def decode(self, path: Path, text: str) -> Any:
        try:
            return json_utils.loads(text)
        except json_utils.JSONDecodeError as e:
            raise RecordParseError(
                f"Entry {path.name} does not hold a valid record: {e}",
                {"file_path": str(path), "length": len(text)},
            ) from e

    def write_record(self, text_sink: TextSink, path: Path, record: Any) -> Any:
        """
        Serialize ``record`` and pass the text to ``text_sink(path, text)``.

        Nothing is written if serialization fails.
        """
        text = self.encode(path, record)
        logger.debug(f"Serialized record for {path.name} ({len(text)} chars)")
        return text_sink(path, text)

    def read_record(self, text_source: TextSource, path: Path) -> Any:
        """Read text via ``text_source(path)`` and parse it as a record."""
        try:
            text = text_source(path)
        except TextDecodeError as e:
            raise RecordParseError(
                f"Entry {path.name} does not hold a valid record: not UTF-8 text",
                {"file_path": str(path), "position": e.context.get("position")},
            ) from e
        return self.decode(path, text)
