"""
Entry name resolution.

Maps a logical entry name onto a file directly under the cache root. Pure
path arithmetic, no filesystem access.
"""

import ntpath
import os
from pathlib import Path
from typing import Union

from .error_handling import InvalidEntryNameError

_SEPARATORS = {"/", "\\", os.sep} | ({os.altsep} if os.altsep else set())


def _reject(name: object, reason: str) -> InvalidEntryNameError:
    return InvalidEntryNameError(
        f"Invalid entry name {name!r}: {reason}",
        {"entry": repr(name), "reason": reason},
    )


def validate_entry_name(name: str) -> str:
    """
    Check that ``name`` is a single, plain path component.

    Args:
        name: Caller-chosen entry name

    Returns:
        The name unchanged

    Raises:
        InvalidEntryNameError: If the name is empty, a dot segment, contains a
            separator or NUL, or carries a drive/absolute prefix.
    """
    if not isinstance(name, str):
        raise _reject(name, "must be a string")
    if not name:
        raise _reject(name, "empty name")
    if name in (".", ".."):
        raise _reject(name, "parent or current directory segment")
    if "\x00" in name:
        raise _reject(name, "contains NUL character")
    if any(sep in name for sep in _SEPARATORS):
        raise _reject(name, "contains a path separator")
    if os.path.isabs(name) or ntpath.splitdrive(name)[0]:
        raise _reject(name, "absolute path or drive prefix")
    return name


def resolve_entry_path(root: Union[str, Path], name: str) -> Path:
    """
    Resolve ``name`` to its entry path under ``root``.

    Args:
        root: Absolute cache root directory
        name: Entry name

    Returns:
        ``root / name``, guaranteed to sit directly inside ``root``

    Raises:
        InvalidEntryNameError: If the name would escape the root
    """
    validate_entry_name(name)
    root_path = Path(root)
    candidate = root_path / name
    if candidate.parent != root_path or candidate.name != name:
        raise _reject(name, "resolves outside the cache root")
    return candidate
