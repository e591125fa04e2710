"""Exception taxonomy for scan and configuration failures."""

from __future__ import annotations

from pathlib import Path


class BeanScanError(RuntimeError):
    """Base class for all beanscan errors."""


class ScanFailure(BeanScanError):
    """A class or dependency could not be processed during traversal."""


class UnresolvedClassError(ScanFailure):
    """Raised when a qualified name cannot be resolved by the source model."""

    def __init__(self, qualified_name: str) -> None:
        super().__init__(f"Class not found in source model: {qualified_name}")
        self.qualified_name = qualified_name


class ConfigurationFailure(BeanScanError):
    """A configuration source or cache document could not be used."""


class MalformedDocumentError(ConfigurationFailure):
    """Raised when a configuration document cannot be parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Failed to parse {path}: {reason}")
        self.path = path
        self.reason = reason


class CacheCorruptionError(ConfigurationFailure):
    """Raised when a persisted cache bucket cannot be decoded."""


__all__ = [
    "BeanScanError",
    "CacheCorruptionError",
    "ConfigurationFailure",
    "MalformedDocumentError",
    "ScanFailure",
    "UnresolvedClassError",
]
