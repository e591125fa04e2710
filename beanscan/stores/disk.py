"""On-disk mirror of cache buckets, one JSON document per bucket."""

from __future__ import annotations

import hashlib
import json
import os
import shutil
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping

from ..errors import CacheCorruptionError
from ..logging import get_logger

_CACHE_VERSION = 1

BUCKETS = (
    "configuration_classes",
    "mapper_index",
    "datasource_config",
    "scan_packages",
    "bean_classes",
)

_LOGGER = get_logger("stores.disk")


def project_key(root: Path) -> str:
    """Return the directory name used for ``root``'s cache documents."""
    return hashlib.sha256(str(root.resolve()).encode("utf-8")).hexdigest()


class DiskMirror:
    """Persists bucket snapshots asynchronously under a per-project directory."""

    def __init__(self, cache_root: Path, project_root: Path) -> None:
        self._project_root = project_root.resolve()
        self.directory = cache_root.expanduser() / project_key(self._project_root)
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="beanscan-disk"
        )
        self._pending: List[Future[None]] = []
        self._pending_lock = threading.Lock()
        self._closed = False

    def bucket_path(self, bucket: str) -> Path:
        return self.directory / f"{bucket}.json"

    def load(self, bucket: str) -> Dict[str, Dict[str, Any]]:
        """Return the raw entries of ``bucket``; unreadable documents count as empty."""
        try:
            return self._read(bucket)
        except CacheCorruptionError as exc:
            _LOGGER.warning("Discarding cache bucket %s: %s", bucket, exc)
            self._remove(bucket)
            return {}

    def schedule_write(self, bucket: str, entries: Mapping[str, Mapping[str, Any]]) -> None:
        """Queue a rewrite of ``bucket``; failures are logged, never raised."""
        if self._closed:
            return
        snapshot = {key: dict(value) for key, value in entries.items()}
        future = self._executor.submit(self._write, bucket, snapshot)
        with self._pending_lock:
            self._pending = [item for item in self._pending if not item.done()]
            self._pending.append(future)

    def flush(self, timeout: float | None = None) -> None:
        """Wait for queued writes to finish."""
        with self._pending_lock:
            pending = list(self._pending)
            self._pending.clear()
        if pending:
            wait(pending, timeout=timeout)

    def clear(self) -> None:
        self.flush()
        if self.directory.exists():
            shutil.rmtree(self.directory, ignore_errors=True)

    def close(self) -> None:
        if self._closed:
            return
        self.flush()
        self._closed = True
        self._executor.shutdown(wait=True)

    # ------------------------------------------------------------------
    # Internal helpers

    def _read(self, bucket: str) -> Dict[str, Dict[str, Any]]:
        path = self.bucket_path(bucket)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            raise CacheCorruptionError(f"{path.name}: {exc}") from exc
        if not isinstance(data, dict) or data.get("version") != _CACHE_VERSION:
            raise CacheCorruptionError(f"{path.name}: unexpected version")
        entries = data.get("entries")
        if not isinstance(entries, dict):
            raise CacheCorruptionError(f"{path.name}: missing entries")
        return {
            key: raw
            for key, raw in entries.items()
            if isinstance(key, str) and isinstance(raw, dict)
        }

    def _write(self, bucket: str, entries: Dict[str, Dict[str, Any]]) -> None:
        payload = {
            "version": _CACHE_VERSION,
            "project_root": str(self._project_root),
            "updated_at": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "entries": entries,
        }
        path = self.bucket_path(bucket)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(
                json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8"
            )
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as exc:
            # The in-memory entry stays authoritative; only reuse across sessions is lost.
            _LOGGER.warning("Failed to persist cache bucket %s: %s", bucket, exc)

    def _remove(self, bucket: str) -> None:
        try:
            self.bucket_path(bucket).unlink()
        except OSError:
            pass


__all__ = ["BUCKETS", "DiskMirror", "project_key"]
