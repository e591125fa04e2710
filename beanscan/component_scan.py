"""Component-scan base packages from annotations and ``<context:component-scan>``."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, List, Tuple

from .errors import MalformedDocumentError
from .logging import get_logger
from .models import ClassSymbol
from .xmlfiles import descendants, local_name, parse_xml, split_list

COMPONENT_SCAN = "org.springframework.context.annotation.ComponentScan"
COMPONENT_SCANS = "org.springframework.context.annotation.ComponentScans"
SPRING_BOOT_APPLICATION = "org.springframework.boot.autoconfigure.SpringBootApplication"

_LOGGER = get_logger("component_scan")


def _strings(value: Any) -> List[str]:
    if isinstance(value, str):
        return split_list(value)
    if isinstance(value, (list, tuple)):
        found: List[str] = []
        for item in value:
            if isinstance(item, str):
                found.extend(split_list(item))
        return found
    return []


def _packages_of(symbol: ClassSymbol, attributes: Any, keys: Tuple[str, ...]) -> List[str]:
    attributes = attributes if isinstance(attributes, dict) else {}
    packages: List[str] = []
    for key in keys:
        packages.extend(_strings(attributes.get(key)))
    for key in ("basePackageClasses", "scanBasePackageClasses"):
        for class_name in _strings(attributes.get(key)):
            if "." in class_name:
                packages.append(class_name.rsplit(".", 1)[0])
    if not packages and symbol.package_name:
        packages.append(symbol.package_name)
    return packages


def packages_from_annotations(classes: Iterable[ClassSymbol]) -> List[str]:
    packages: List[str] = []
    for symbol in classes:
        boot = symbol.annotation(SPRING_BOOT_APPLICATION)
        if boot is not None:
            packages.extend(_packages_of(symbol, boot, ("scanBasePackages",)))
        scan = symbol.annotation(COMPONENT_SCAN)
        if scan is not None:
            packages.extend(_packages_of(symbol, scan, ("value", "basePackages")))
        scans = symbol.annotation(COMPONENT_SCANS)
        if scans is not None:
            nested = scans.get("value")
            for attributes in nested if isinstance(nested, list) else [nested]:
                if isinstance(attributes, dict):
                    packages.extend(_packages_of(symbol, attributes, ("value", "basePackages")))
    return packages


def packages_from_xml(paths: Iterable[Path]) -> List[str]:
    packages: List[str] = []
    for path in paths:
        try:
            root = parse_xml(path)
        except MalformedDocumentError as exc:
            _LOGGER.warning("Skipping component-scan lookup in %s", exc)
            continue
        if local_name(root.tag) != "beans":
            continue
        for element in descendants(root, "component-scan"):
            packages.extend(split_list(element.get("base-package")))
    return packages


def normalize_packages(packages: Iterable[str]) -> Tuple[str, ...]:
    """Drop duplicates and packages already covered by a parent package."""
    unique = sorted({package.strip().rstrip(".*") for package in packages if package.strip()})
    kept: List[str] = []
    for package in unique:
        if any(package == parent or package.startswith(parent + ".") for parent in kept):
            continue
        kept.append(package)
    return tuple(kept)


def collect_scan_packages(
    classes: Iterable[ClassSymbol], beans_files: Iterable[Path]
) -> Tuple[str, ...]:
    return normalize_packages(
        [*packages_from_annotations(classes), *packages_from_xml(beans_files)]
    )


__all__ = [
    "collect_scan_packages",
    "normalize_packages",
    "packages_from_annotations",
    "packages_from_xml",
]
