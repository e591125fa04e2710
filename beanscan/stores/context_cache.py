"""Session-scoped cache of derived project state with fingerprint invalidation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Iterable, Optional, Set, TypeVar

from ..logging import get_logger
from ..models import ProjectContext
from .disk import BUCKETS, DiskMirror
from .fingerprint import Fingerprint, FingerprintCalculator
from .locks import ReadWriteLock

_LOGGER = get_logger("stores.context_cache")

T = TypeVar("T")


class _Miss:
    _instance: Optional["_Miss"] = None

    def __new__(cls) -> "_Miss":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISS"


MISS: Any = _Miss()


@dataclass(frozen=True)
class CacheEntry:
    key: str
    fingerprint: Fingerprint
    version: int
    payload: Any

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fingerprint": self.fingerprint.to_dict(),
            "version": self.version,
            "payload": self.payload,
        }

    @classmethod
    def from_dict(cls, key: str, raw: Dict[str, Any]) -> Optional["CacheEntry"]:
        fingerprint_raw = raw.get("fingerprint")
        version = raw.get("version")
        if not isinstance(fingerprint_raw, dict) or not isinstance(version, int):
            return None
        if "payload" not in raw:
            return None
        fingerprint = Fingerprint.from_dict(fingerprint_raw)
        if fingerprint is None:
            return None
        return cls(key=key, fingerprint=fingerprint, version=version, payload=raw["payload"])


def split_key(key: str) -> tuple[str, str]:
    """Split ``bucket:name`` keys; keys without a bucket live in memory only."""
    bucket, sep, name = key.partition(":")
    if not sep:
        return "", key
    return bucket, name


class ContextCache(Generic[T]):
    """Holds the project context, fingerprinted entries and the derived index bundle.

    Entries are keyed ``"<bucket>:<name>"``. Keys in one of the persisted
    buckets are mirrored to disk; a stale entry is never returned, whether it
    came from memory or from disk. The derived bundle returned by
    :meth:`indices` is replaced wholesale by :meth:`refresh`.
    """

    def __init__(
        self,
        project: ProjectContext,
        *,
        indices_builder: Callable[["ContextCache[T]"], T] | None = None,
        mirror: DiskMirror | None = None,
        fingerprints: FingerprintCalculator | None = None,
    ) -> None:
        self._project = project
        self._builder = indices_builder
        self._mirror = mirror
        self.fingerprints = fingerprints or FingerprintCalculator()
        self._lock = ReadWriteLock()
        self._entries: Dict[str, CacheEntry] = {}
        self._loaded_buckets: Set[str] = set()
        self._indices: Optional[T] = None
        self._generation = 0
        self._closed = False

    @property
    def project(self) -> ProjectContext:
        return self._project

    @property
    def generation(self) -> int:
        """Number of completed refreshes; bumps every time the bundle is swapped."""
        with self._lock.read_locked():
            return self._generation

    # ------------------------------------------------------------------
    # Keyed entries

    def get(self, key: str, *, current: Fingerprint | None = None) -> Any:
        """Return the payload for ``key`` or :data:`MISS`.

        ``current`` is the caller's view of the live fingerprint. Without it
        the stored file list is re-fingerprinted, which catches edits and
        deletions but not newly added files.
        """
        self._ensure_bucket(split_key(key)[0])
        with self._lock.read_locked():
            entry = self._entries.get(key)
        if entry is None:
            return MISS

        live = current or self.fingerprints.compute(entry.fingerprint.paths)
        if not entry.fingerprint.matches(live):
            _LOGGER.debug("Cache entry %s is stale; treating as miss", key)
            self._discard(key, entry)
            return MISS
        return entry.payload

    def put(self, key: str, value: Any, fingerprint: Fingerprint) -> None:
        bucket, _ = split_key(key)
        self._ensure_bucket(bucket)
        with self._lock.write_locked():
            previous = self._entries.get(key)
            version = previous.version + 1 if previous else 1
            self._entries[key] = CacheEntry(
                key=key, fingerprint=fingerprint, version=version, payload=value
            )
            snapshot = self._bucket_snapshot(bucket)
        self._persist(bucket, snapshot)

    def entries(self, bucket: str, *, current: Fingerprint | None = None) -> Dict[str, Any]:
        """Return ``name -> payload`` for every valid entry in ``bucket``."""
        self._ensure_bucket(bucket)
        prefix = f"{bucket}:"
        with self._lock.read_locked():
            candidates = [
                entry for key, entry in self._entries.items() if key.startswith(prefix)
            ]
        result: Dict[str, Any] = {}
        for entry in sorted(candidates, key=lambda item: item.key):
            live = current or self.fingerprints.compute(entry.fingerprint.paths)
            if entry.fingerprint.matches(live):
                result[split_key(entry.key)[1]] = entry.payload
            else:
                self._discard(entry.key, entry)
        return result

    def replace_bucket(
        self, bucket: str, values: Dict[str, Any], fingerprints: Dict[str, Fingerprint]
    ) -> None:
        """Swap all entries of ``bucket`` for ``values`` in one step."""
        self._ensure_bucket(bucket)
        prefix = f"{bucket}:"
        with self._lock.write_locked():
            for key in [key for key in self._entries if key.startswith(prefix)]:
                del self._entries[key]
            for name, value in values.items():
                key = f"{prefix}{name}"
                self._entries[key] = CacheEntry(
                    key=key, fingerprint=fingerprints[name], version=1, payload=value
                )
            snapshot = self._bucket_snapshot(bucket)
        self._persist(bucket, snapshot)

    def invalidate(self, key: str) -> None:
        with self._lock.write_locked():
            entry = self._entries.pop(key, None)
            bucket = split_key(key)[0]
            snapshot = self._bucket_snapshot(bucket) if entry is not None else None
        if snapshot is not None:
            self._persist(bucket, snapshot)

    def clear(self) -> None:
        """Drop every entry and the persisted mirror; the bundle is rebuilt on demand."""
        with self._lock.write_locked():
            self._entries.clear()
            self._loaded_buckets = set(BUCKETS)
            self._indices = None
        if self._mirror is not None:
            self._mirror.clear()

    def fingerprint(self, paths: Iterable[Path | str]) -> Fingerprint:
        return self.fingerprints.compute(paths)

    # ------------------------------------------------------------------
    # Derived bundle

    def indices(self) -> T:
        """Return the current derived bundle, building it on first use."""
        with self._lock.read_locked():
            current = self._indices
        if current is not None:
            return current
        return self.refresh()

    def refresh(self, builder: Callable[["ContextCache[T]"], T] | None = None) -> T:
        """Rebuild the derived bundle and swap it in atomically.

        The builder runs without holding the lock; it may consult the source
        model and call :meth:`get`/:meth:`put` for its own reuse. Passing
        ``builder`` replaces the one used for this and later rebuilds.
        """
        if builder is not None:
            self._builder = builder
        else:
            builder = self._builder
        if builder is None:
            raise RuntimeError("ContextCache was created without an indices builder")
        bundle = builder(self)
        with self._lock.write_locked():
            self._indices = bundle
            self._generation += 1
            generation = self._generation
        _LOGGER.info("Refreshed derived indices (generation %d)", generation)
        return bundle

    # ------------------------------------------------------------------
    # Lifecycle

    def flush(self) -> None:
        if self._mirror is not None:
            self._mirror.flush()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._mirror is not None:
            self._mirror.close()

    def __enter__(self) -> "ContextCache[T]":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internal helpers

    def _ensure_bucket(self, bucket: str) -> None:
        if self._mirror is None or bucket not in BUCKETS:
            return
        with self._lock.read_locked():
            if bucket in self._loaded_buckets:
                return
        raw_entries = self._mirror.load(bucket)
        loaded: Dict[str, CacheEntry] = {}
        for name, raw in raw_entries.items():
            key = f"{bucket}:{name}"
            entry = CacheEntry.from_dict(key, raw)
            if entry is None:
                _LOGGER.debug("Ignoring malformed persisted entry %s", key)
                continue
            loaded[key] = entry
        with self._lock.write_locked():
            if bucket in self._loaded_buckets:
                return
            for key, entry in loaded.items():
                self._entries.setdefault(key, entry)
            self._loaded_buckets.add(bucket)
        if loaded:
            _LOGGER.debug("Loaded %d persisted entries for %s", len(loaded), bucket)

    def _discard(self, key: str, stale: CacheEntry) -> None:
        with self._lock.write_locked():
            if self._entries.get(key) is not stale:
                return
            del self._entries[key]
            bucket = split_key(key)[0]
            snapshot = self._bucket_snapshot(bucket)
        self._persist(bucket, snapshot)

    def _bucket_snapshot(self, bucket: str) -> Optional[Dict[str, Dict[str, Any]]]:
        if self._mirror is None or bucket not in BUCKETS:
            return None
        prefix = f"{bucket}:"
        return {
            key[len(prefix):]: entry.to_dict()
            for key, entry in self._entries.items()
            if key.startswith(prefix)
        }

    def _persist(self, bucket: str, snapshot: Optional[Dict[str, Dict[str, Any]]]) -> None:
        if snapshot is None or self._mirror is None:
            return
        self._mirror.schedule_write(bucket, snapshot)


__all__ = ["CacheEntry", "ContextCache", "MISS", "split_key"]
