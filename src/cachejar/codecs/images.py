"""
Raster image entries.

Images are encoded with Pillow into an in-memory buffer first and then
written with a single RawStore call, so an encoder failure never touches the
entry file. Decoding loads the full image eagerly; a file that isn't a valid
image raises ``ImageDecodeError`` rather than returning an empty result.
"""

import io
import logging
from pathlib import Path
from typing import Any, Optional

import numpy as np
from PIL import Image

from ..config import LOSSLESS_IMAGE_FORMATS, VALID_IMAGE_FORMATS, ImageConfig
from ..error_handling import CacheSerializationError, ImageDecodeError
from ..storage import RawStore

logger = logging.getLogger(__name__)

# Pillow format identifiers
_PIL_FORMATS = {
    "png": "PNG",
    "bmp": "BMP",
    "tiff": "TIFF",
    "jpeg": "JPEG",
    "jpg": "JPEG",
    "webp": "WEBP",
}

# Modes JPEG can store without conversion
_JPEG_MODES = {"L", "RGB", "CMYK"}


def normalize_format(image_format: str) -> str:
    """Lower-case ``image_format`` and check it is supported."""
    if not isinstance(image_format, str):
        raise ValueError(f"Image format must be a string, got {type(image_format).__name__}")
    fmt = image_format.lower().lstrip(".")
    if fmt not in VALID_IMAGE_FORMATS:
        raise ValueError(
            f"Unsupported image format {image_format!r}; "
            f"expected one of {sorted(VALID_IMAGE_FORMATS)}"
        )
    return fmt


def validate_quality(quality: int) -> int:
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise ValueError(f"Image quality must be an int, got {type(quality).__name__}")
    if not (0 <= quality <= 100):
        raise ValueError("Image quality must be between 0 and 100")
    return quality


def is_lossless(image_format: str) -> bool:
    return normalize_format(image_format) in LOSSLESS_IMAGE_FORMATS


class ImageCodec:
    """Encode/decode raster images over RawStore."""

    def __init__(self, raw: RawStore, config: Optional[ImageConfig] = None):
        self.raw = raw
        self.config = config or ImageConfig()

    def _as_image(self, path: Path, image: Any) -> Image.Image:
        if isinstance(image, Image.Image):
            return image
        if isinstance(image, np.ndarray):
            try:
                return Image.fromarray(image)
            except (TypeError, ValueError) as e:
                raise CacheSerializationError(
                    f"Array for {path.name} cannot be converted to an image: {e}",
                    {"file_path": str(path), "dtype": str(image.dtype), "shape": image.shape},
                ) from e
        raise TypeError(
            f"Expected PIL.Image.Image or numpy.ndarray, got {type(image).__name__}"
        )

    def encode(
        self,
        path: Path,
        image: Any,
        image_format: Optional[str] = None,
        quality: Optional[int] = None,
    ) -> bytes:
        fmt = normalize_format(image_format or self.config.default_format)
        quality = validate_quality(
            self.config.default_quality if quality is None else quality
        )
        img = self._as_image(path, image)

        save_kwargs = {}
        if fmt not in LOSSLESS_IMAGE_FORMATS:
            save_kwargs["quality"] = quality
        if _PIL_FORMATS[fmt] == "JPEG" and img.mode not in _JPEG_MODES:
            img = img.convert("RGB")

        buffer = io.BytesIO()
        try:
            img.save(buffer, format=_PIL_FORMATS[fmt], **save_kwargs)
        except (OSError, ValueError, KeyError) as e:
            raise CacheSerializationError(
                f"Failed to encode image for {path.name} as {fmt}: {e}",
                {"file_path": str(path), "format": fmt, "mode": img.mode},
            ) from e
        return buffer.getvalue()

    def write_image(
        self,
        path: Path,
        image: Any,
        image_format: Optional[str] = None,
        quality: Optional[int] = None,
    ) -> int:
        """
        Encode ``image`` and write the encoded bytes.

        Args:
            path: Resolved entry path
            image: ``PIL.Image.Image`` or numpy array
            image_format: png, bmp, tiff, jpeg/jpg or webp (config default if None)
            quality: 0-100, ignored for lossless formats (config default if None)

        Returns:
            Number of bytes written
        """
        payload = self.encode(path, image, image_format, quality)
        logger.debug(f"Encoded image for {path.name} ({len(payload)} bytes)")
        return self.raw.write_bytes(path, payload)

    def decode(self, path: Path, data: bytes) -> Image.Image:
        try:
            img = Image.open(io.BytesIO(data))
            img.load()
        except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
            raise ImageDecodeError(
                f"Entry {path.name} is not a decodable image: {e}",
                {"file_path": str(path), "size": len(data)},
            ) from e
        return img

    def read_image(self, path: Path) -> Image.Image:
        return self.decode(path, self.raw.read_bytes(path))

    def read_image_array(self, path: Path) -> np.ndarray:
        """Read an image entry as a numpy array (H x W [x C])."""
        return np.asarray(self.read_image(path))
