"""File fingerprints (modification time + content checksum)."""

from __future__ import annotations

import hashlib
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

_MISSING = "missing"


@dataclass(frozen=True)
class Fingerprint:
    """Timestamp/checksum pair describing the state of a set of files."""

    paths: Tuple[str, ...]
    timestamp: int
    checksum: str

    def matches(self, other: "Fingerprint") -> bool:
        return (
            self.paths == other.paths
            and self.timestamp == other.timestamp
            and self.checksum == other.checksum
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "paths": list(self.paths),
            "timestamp": self.timestamp,
            "checksum": self.checksum,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Optional["Fingerprint"]:
        paths = payload.get("paths")
        timestamp = payload.get("timestamp")
        checksum = payload.get("checksum")
        if (
            not isinstance(paths, list)
            or not all(isinstance(item, str) for item in paths)
            or not isinstance(timestamp, int)
            or not isinstance(checksum, str)
        ):
            return None
        return cls(paths=tuple(paths), timestamp=timestamp, checksum=checksum)


def _hash_file(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1024 * 1024), b""):
            digest.update(chunk)
    return digest.hexdigest()


class FingerprintCalculator:
    """Computes fingerprints, re-hashing a file only when its size or mtime moved."""

    def __init__(self) -> None:
        self._known: Dict[str, Tuple[int, int, str]] = {}
        self._lock = threading.Lock()

    def compute(self, paths: Iterable[Path | str]) -> Fingerprint:
        names = tuple(sorted({str(Path(path)) for path in paths}))
        digest = hashlib.sha256()
        newest = 0
        for name in names:
            mtime_ns, file_hash = self._file_state(Path(name))
            newest = max(newest, mtime_ns)
            digest.update(f"{name}\0{mtime_ns}\0{file_hash}\n".encode("utf-8"))
        return Fingerprint(paths=names, timestamp=newest, checksum=digest.hexdigest())

    def _file_state(self, path: Path) -> Tuple[int, str]:
        try:
            stat_result = path.stat()
        except OSError:
            return -1, _MISSING
        key = str(path)
        size = stat_result.st_size
        mtime_ns = stat_result.st_mtime_ns
        with self._lock:
            cached = self._known.get(key)
        if cached and cached[0] == size and cached[1] == mtime_ns:
            return mtime_ns, cached[2]
        try:
            file_hash = _hash_file(path)
        except OSError:
            return -1, _MISSING
        with self._lock:
            self._known[key] = (size, mtime_ns, file_hash)
        return mtime_ns, file_hash


__all__ = ["Fingerprint", "FingerprintCalculator"]
