"""
High-Performance JSON Utilities
===============================

Record serialization on top of orjson. orjson handles datetime, dataclass and
(with ``OPT_SERIALIZE_NUMPY``) numpy values natively, so records can carry
them without a custom ``default`` hook.
"""

import logging
from typing import Any, Union

import orjson

logger = logging.getLogger(__name__)

# Raised by loads() for malformed input; subclass of ValueError
JSONDecodeError = orjson.JSONDecodeError
# Raised by dumps() for unsupported values; subclass of TypeError
JSONEncodeError = orjson.JSONEncodeError


def dumps(obj: Any, sort_keys: bool = False, indent: bool = False) -> str:
    """
    Serialize object to JSON string using orjson.

    Args:
        obj: Object to serialize
        sort_keys: Whether to sort dictionary keys
        indent: Pretty-print with two-space indentation

    Returns:
        JSON string
    """
    option = orjson.OPT_SERIALIZE_NUMPY
    if sort_keys:
        option |= orjson.OPT_SORT_KEYS
    if indent:
        option |= orjson.OPT_INDENT_2

    # orjson returns bytes, decode to string for the text layer
    return orjson.dumps(obj, option=option).decode("utf-8")


def loads(s: Union[str, bytes]) -> Any:
    """
    Deserialize JSON string using orjson.

    Args:
        s: JSON string or bytes to deserialize

    Returns:
        Deserialized object
    """
    return orjson.loads(s)
