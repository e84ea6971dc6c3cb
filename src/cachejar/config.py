"""
Configuration Management for cachejar
=====================================

Configuration is split into focused sub-configurations, one per concern,
combined by ``StoreConfig``. The store never mutates its configuration after
construction, so a configured store can be shared between threads.
"""

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

# Formats Pillow can write that never lose pixel data
LOSSLESS_IMAGE_FORMATS = {"png", "bmp", "tiff"}
LOSSY_IMAGE_FORMATS = {"jpeg", "jpg", "webp"}
VALID_IMAGE_FORMATS = LOSSLESS_IMAGE_FORMATS | LOSSY_IMAGE_FORMATS


@dataclass
class StorageConfig:
    """Configuration for the cache root and raw file writes."""

    cache_dir: str = "./cache"
    atomic_writes: bool = False  # temp file + os.replace instead of truncate-write
    fsync: bool = False

    def __post_init__(self):
        """Validate storage configuration."""
        # Relative roots are pinned to the working directory at construction
        if not Path(self.cache_dir).is_absolute():
            self.cache_dir = str(Path.cwd() / self.cache_dir)

        logger.debug(
            f"Storage configured: dir={self.cache_dir}, "
            f"atomic={self.atomic_writes}, fsync={self.fsync}"
        )


@dataclass
class EncryptionConfig:
    """Configuration for the default password-based cipher."""

    kdf_iterations: int = 600_000
    salt_bytes: int = 16

    def __post_init__(self):
        """Validate encryption configuration."""
        if self.kdf_iterations < 1000:
            raise ValueError("kdf_iterations must be at least 1000")

        if not (16 <= self.salt_bytes <= 64):
            raise ValueError("salt_bytes must be between 16 and 64")

        logger.debug(
            f"Encryption configured: pbkdf2-sha256@{self.kdf_iterations}, "
            f"salt={self.salt_bytes}B"
        )


@dataclass
class RecordConfig:
    """Configuration for structured record serialization."""

    sort_keys: bool = False
    indent: bool = False


@dataclass
class ImageConfig:
    """Configuration for image encoding defaults."""

    default_format: str = "png"
    default_quality: int = 90

    def __post_init__(self):
        """Validate image configuration."""
        self.default_format = self.default_format.lower()
        if self.default_format not in VALID_IMAGE_FORMATS:
            raise ValueError(
                f"default_format must be one of {sorted(VALID_IMAGE_FORMATS)}"
            )

        if not (0 <= self.default_quality <= 100):
            raise ValueError("default_quality must be between 0 and 100")

        logger.debug(
            f"Images configured: format={self.default_format}, "
            f"quality={self.default_quality}"
        )


class StoreConfig:
    """Main configuration class that combines all sub-configurations."""

    def __init__(
        self,
        storage: Optional[StorageConfig] = None,
        encryption: Optional[EncryptionConfig] = None,
        records: Optional[RecordConfig] = None,
        images: Optional[ImageConfig] = None,
        # Flat convenience parameters
        cache_dir: Optional[Union[str, Path]] = None,
        atomic_writes: Optional[bool] = None,
        fsync: Optional[bool] = None,
        kdf_iterations: Optional[int] = None,
        sort_keys: Optional[bool] = None,
        default_image_format: Optional[str] = None,
        default_image_quality: Optional[int] = None,
        **kwargs,
    ):
        """Initialize configuration from sub-configs and flat overrides."""
        self.storage = storage or StorageConfig()
        self.encryption = encryption or EncryptionConfig()
        self.records = records or RecordConfig()
        self.images = images or ImageConfig()

        # Overrides copy the sub-configs so caller-owned instances stay untouched
        if cache_dir is not None:
            self.storage = replace(self.storage, cache_dir=str(cache_dir))
        if atomic_writes is not None:
            self.storage = replace(self.storage, atomic_writes=atomic_writes)
        if fsync is not None:
            self.storage = replace(self.storage, fsync=fsync)
        if kdf_iterations is not None:
            # Rebuild so the sub-config validation runs again
            self.encryption = replace(self.encryption, kdf_iterations=kdf_iterations)
        if sort_keys is not None:
            self.records = replace(self.records, sort_keys=sort_keys)
        if default_image_format is not None or default_image_quality is not None:
            self.images = replace(
                self.images,
                default_format=default_image_format or self.images.default_format,
                default_quality=(
                    default_image_quality
                    if default_image_quality is not None
                    else self.images.default_quality
                ),
            )

        for key, value in kwargs.items():
            logger.warning(f"Unknown configuration parameter ignored: {key}={value}")

        logger.debug(f"Store configuration initialized for {self.cache_dir}")

    @property
    def cache_dir(self) -> str:
        return self.storage.cache_dir

    def __repr__(self) -> str:
        return (
            f"StoreConfig(storage={self.storage!r}, encryption={self.encryption!r}, "
            f"records={self.records!r}, images={self.images!r})"
        )


def create_store_config(
    cache_dir: Optional[Union[str, Path]] = None,
    **overrides,
) -> StoreConfig:
    """
    Factory function for creating configurations with convenience parameters.

    Args:
        cache_dir: Directory holding the cache entries
        **overrides: Direct override values for any sub-configuration field

    Returns:
        Configured StoreConfig instance
    """
    config = StoreConfig(cache_dir=cache_dir)

    for key, value in overrides.items():
        found = False
        for sub_config_name in ["storage", "encryption", "records", "images"]:
            sub_config = getattr(config, sub_config_name)
            if hasattr(sub_config, key):
                setattr(sub_config, key, value)
                # Re-run validation with the new value in place
                if hasattr(sub_config, "__post_init__"):
                    sub_config.__post_init__()
                found = True
                break

        if not found:
            logger.warning(f"Unknown configuration parameter ignored: {key}")

    return config
