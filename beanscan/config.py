"""Configuration loading for beanscan (.beanscan.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import ConfigurationFailure

CONFIG_FILENAME = ".beanscan.yml"

DEFAULT_LIBRARY_PREFIXES = ("java.", "javax.", "jakarta.", "jdk.", "sun.", "kotlin.")


class ConfigError(ConfigurationFailure):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ScanSettings:
    """Additions to the built-in classification and injection sets."""

    stereotypes: List[str] = field(default_factory=list)
    injection_annotations: List[str] = field(default_factory=list)
    mapper_annotations: List[str] = field(default_factory=list)
    mapper_suffixes: List[str] = field(default_factory=list)
    library_prefixes: List[str] = field(
        default_factory=lambda: list(DEFAULT_LIBRARY_PREFIXES)
    )


@dataclass
class CacheSettings:
    """Where and whether derived indices are persisted between sessions."""

    enabled: bool = True
    directory: Path = field(default_factory=lambda: Path("~/.beanscan_cache").expanduser())


@dataclass
class OutputSettings:
    path: Optional[str] = None


@dataclass
class DataSourceDefaults:
    """Connection details used when the project does not declare a datasource."""

    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    driver: Optional[str] = None


@dataclass
class BeanScanConfig:
    """Represents the settings defined in .beanscan.yml."""

    root: Path
    scan: ScanSettings = field(default_factory=ScanSettings)
    exclude_paths: List[str] = field(default_factory=list)
    active_profiles: List[str] = field(default_factory=list)
    cache: CacheSettings = field(default_factory=CacheSettings)
    output: OutputSettings = field(default_factory=OutputSettings)
    datasource: DataSourceDefaults = field(default_factory=DataSourceDefaults)


def load_config(config_path: Path) -> BeanScanConfig:
    """Load configuration from disk, returning defaults when the file is absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return BeanScanConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    scan = ScanSettings()
    scan_data = _as_dict(data.get("scan"))
    if scan_data:
        scan.stereotypes = _as_str_list(scan_data.get("stereotypes"))
        scan.injection_annotations = _as_str_list(scan_data.get("injection_annotations"))
        scan.mapper_annotations = _as_str_list(scan_data.get("mapper_annotations"))
        scan.mapper_suffixes = _as_str_list(scan_data.get("mapper_suffixes"))
        extra_prefixes = _as_str_list(scan_data.get("library_prefixes"))
        for prefix in extra_prefixes:
            if prefix not in scan.library_prefixes:
                scan.library_prefixes.append(prefix)

    profiles_data = _as_dict(data.get("profiles"))
    active_profiles = _as_str_list(profiles_data.get("active")) if profiles_data else []

    cache = CacheSettings()
    cache_data = _as_dict(data.get("cache"))
    if cache_data:
        enabled = _as_bool(cache_data.get("enabled"))
        if enabled is not None:
            cache.enabled = enabled
        directory = _as_str(cache_data.get("directory"))
        if directory:
            cache_dir = Path(directory).expanduser()
            cache.directory = cache_dir if cache_dir.is_absolute() else root / cache_dir

    output_data = _as_dict(data.get("output"))
    output = OutputSettings(path=_as_str(output_data.get("path")) if output_data else None)

    datasource_data = _as_dict(data.get("datasource"))
    datasource = DataSourceDefaults()
    if datasource_data:
        datasource = DataSourceDefaults(
            url=_as_str(datasource_data.get("url")),
            username=_as_str(datasource_data.get("username")),
            password=_as_str(datasource_data.get("password")),
            driver=_as_str(datasource_data.get("driver")),
        )

    return BeanScanConfig(
        root=root,
        scan=scan,
        exclude_paths=_as_str_list(data.get("exclude_paths")),
        active_profiles=active_profiles,
        cache=cache,
        output=output,
        datasource=datasource,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "BeanScanConfig",
    "CONFIG_FILENAME",
    "CacheSettings",
    "ConfigError",
    "DEFAULT_LIBRARY_PREFIXES",
    "DataSourceDefaults",
    "OutputSettings",
    "ScanSettings",
    "load_config",
]
