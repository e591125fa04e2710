"""Helper utilities for constructing temporary projects in tests."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from beanscan.config import BeanScanConfig, CacheSettings
from beanscan.models import ClassSymbol
from beanscan.session import ScanSession
from beanscan.source_model import SnapshotSourceModel


class ProjectBuilder:
    """Writes files into a throwaway project and builds models and sessions over it."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = (tmp_path / "project").resolve()
        self.root.mkdir()
        self.cache_dir = tmp_path / "cache"

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the project."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def path(self, relative: str = "") -> Path:
        return self.root / relative if relative else self.root

    def model(self, symbols: Iterable[ClassSymbol]) -> SnapshotSourceModel:
        return SnapshotSourceModel(self.root, symbols)

    def config(self, *, cache: bool = True, **overrides: Any) -> BeanScanConfig:
        config = BeanScanConfig(
            root=self.root,
            cache=CacheSettings(enabled=cache, directory=self.cache_dir),
        )
        for name, value in overrides.items():
            setattr(config, name, value)
        return config

    def session(
        self,
        symbols: Iterable[ClassSymbol],
        *,
        config: Optional[BeanScanConfig] = None,
    ) -> ScanSession:
        return ScanSession(self.root, self.model(symbols), config or self.config())

    def snapshot(self, classes: Iterable[Mapping[str, Any]], name: str = "symbols.json") -> Path:
        """Write a JSON symbol snapshot and return its path."""
        path = self.root / name
        path.write_text(
            json.dumps({"version": 1, "classes": list(classes)}, indent=2),
            encoding="utf-8",
        )
        return path


__all__ = ["ProjectBuilder"]
