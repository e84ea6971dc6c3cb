"""
Shared fixtures for cachejar tests.

Stores are opened with a low PBKDF2 iteration count so encryption tests stay
fast; everything else uses production defaults.
"""

import pytest

from cachejar import CacheStore

FAST_KDF_ITERATIONS = 1000


@pytest.fixture
def cache_root(tmp_path):
    """Provide an existing, empty cache root directory."""
    root = tmp_path / "cache"
    root.mkdir()
    return root


@pytest.fixture
def store(cache_root):
    """Provide a store with default (non-atomic) writes."""
    return CacheStore.open(cache_root, kdf_iterations=FAST_KDF_ITERATIONS)


@pytest.fixture
def atomic_store(cache_root):
    """Provide a store using temp-file + rename writes."""
    return CacheStore.open(
        cache_root, kdf_iterations=FAST_KDF_ITERATIONS, atomic_writes=True
    )
