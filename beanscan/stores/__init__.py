"""Caching stores for derived project state."""

from .context_cache import MISS, CacheEntry, ContextCache
from .disk import BUCKETS, DiskMirror, project_key
from .fingerprint import Fingerprint, FingerprintCalculator
from .locks import ReadWriteLock

__all__ = [
    "BUCKETS",
    "CacheEntry",
    "ContextCache",
    "DiskMirror",
    "Fingerprint",
    "FingerprintCalculator",
    "MISS",
    "ReadWriteLock",
    "project_key",
]
