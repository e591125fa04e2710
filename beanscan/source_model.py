"""Source model boundary: read-only class introspection and project search.

The scan engine never parses source code itself. It talks to a
:class:`SourceModel`, which in an IDE would be backed by the host's symbol
index. :class:`SnapshotSourceModel` is the implementation shipped here; it
serves symbols exported to a JSON snapshot, or built directly in tests.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .errors import MalformedDocumentError
from .logging import get_logger
from .models import (
    ClassKind,
    ClassSymbol,
    ConstructorSymbol,
    FieldSymbol,
    MethodSymbol,
    ParameterSymbol,
)
from .project import IgnoreRule, iter_project_files

_LOGGER = get_logger("source_model")

_SNAPSHOT_VERSION = 1


def in_scope(qualified_name: str, scope: Optional[Sequence[str]]) -> bool:
    """Return True when ``qualified_name`` lives under one of the scope packages."""
    if not scope:
        return True
    return any(
        qualified_name == package or qualified_name.startswith(package + ".")
        for package in scope
    )


class SourceModel(ABC):
    """Contract for the symbol introspection service consumed by the engine."""

    @property
    @abstractmethod
    def root(self) -> Path:
        """Return the project root directory."""

    @abstractmethod
    def resolve(self, qualified_name: str) -> Optional[ClassSymbol]:
        """Return the symbol for ``qualified_name`` or None when unknown."""

    @abstractmethod
    def find_all_classes(self, scope: Optional[Sequence[str]] = None) -> List[ClassSymbol]:
        """Return project-visible classes, optionally limited to package prefixes."""

    @abstractmethod
    def find_implementors(
        self, interface: ClassSymbol, scope: Optional[Sequence[str]] = None
    ) -> List[ClassSymbol]:
        """Return project-visible classes that implement or extend ``interface``."""

    @abstractmethod
    def find_files_by_extension(self, extension: str) -> List[Path]:
        """Return project files with the given extension (without the dot)."""

    def source_path(self, symbol: ClassSymbol) -> Optional[Path]:
        """Return the absolute path of the file declaring ``symbol``."""
        if not symbol.source_file:
            return None
        path = Path(symbol.source_file)
        return path if path.is_absolute() else self.root / path


class SnapshotSourceModel(SourceModel):
    """In-memory source model over a fixed set of class symbols."""

    def __init__(
        self,
        root: Path,
        symbols: Iterable[ClassSymbol],
        *,
        ignore_rules: Sequence[IgnoreRule] = (),
    ) -> None:
        self._root = root.expanduser().resolve()
        self._symbols: Dict[str, ClassSymbol] = {}
        for symbol in symbols:
            self._symbols.setdefault(symbol.qualified_name, symbol)
        self._ignore_rules = list(ignore_rules)
        self._subtypes = self._index_subtypes()

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, qualified_name: str) -> Optional[ClassSymbol]:
        return self._symbols.get(qualified_name)

    def find_all_classes(self, scope: Optional[Sequence[str]] = None) -> List[ClassSymbol]:
        return [
            symbol
            for name, symbol in sorted(self._symbols.items())
            if not symbol.library and in_scope(name, scope)
        ]

    def find_implementors(
        self, interface: ClassSymbol, scope: Optional[Sequence[str]] = None
    ) -> List[ClassSymbol]:
        found: Dict[str, ClassSymbol] = {}
        pending = list(self._subtypes.get(interface.qualified_name, ()))
        while pending:
            name = pending.pop()
            if name in found:
                continue
            symbol = self._symbols.get(name)
            if symbol is None:
                continue
            found[name] = symbol
            pending.extend(self._subtypes.get(name, ()))
        return [
            symbol
            for name, symbol in sorted(found.items())
            if not symbol.library and in_scope(name, scope)
        ]

    def find_files_by_extension(self, extension: str) -> List[Path]:
        suffix = "." + extension.lstrip(".").lower()
        return [
            path
            for path in iter_project_files(self._root, self._ignore_rules)
            if path.suffix.lower() == suffix
        ]

    def _index_subtypes(self) -> Dict[str, List[str]]:
        subtypes: Dict[str, List[str]] = {}
        for name, symbol in self._symbols.items():
            parents = list(symbol.interfaces)
            if symbol.supertype:
                parents.append(symbol.supertype)
            for parent in parents:
                subtypes.setdefault(parent, []).append(name)
        return subtypes


def load_snapshot(
    path: Path,
    root: Path | None = None,
    *,
    ignore_rules: Sequence[IgnoreRule] = (),
) -> SnapshotSourceModel:
    """Load a symbol snapshot exported from the host IDE.

    The document is ``{"version": 1, "classes": [...]}`` where each class
    entry mirrors :class:`ClassSymbol`. ``source_file`` paths are relative to
    ``root``, which defaults to the snapshot's directory.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise MalformedDocumentError(path, str(exc)) from exc
    except json.JSONDecodeError as exc:
        raise MalformedDocumentError(path, f"invalid JSON ({exc.msg})") from exc

    if not isinstance(data, dict) or not isinstance(data.get("classes"), list):
        raise MalformedDocumentError(path, "expected an object with a 'classes' list")
    version = data.get("version", _SNAPSHOT_VERSION)
    if version != _SNAPSHOT_VERSION:
        raise MalformedDocumentError(path, f"unsupported snapshot version {version}")

    root_path = (root or path.parent).expanduser().resolve()
    symbols: List[ClassSymbol] = []
    for index, raw in enumerate(data["classes"]):
        if not isinstance(raw, dict) or not isinstance(raw.get("qualified_name"), str):
            _LOGGER.warning("Skipping malformed class entry #%d in %s", index, path)
            continue
        try:
            symbols.append(symbol_from_dict(raw, root_path))
        except (AttributeError, ValueError) as exc:
            _LOGGER.warning(
                "Skipping class %s in %s: %s", raw["qualified_name"], path, exc
            )
    _LOGGER.debug("Loaded %d class symbol(s) from %s", len(symbols), path)
    return SnapshotSourceModel(root_path, symbols, ignore_rules=ignore_rules)


def symbol_from_dict(raw: Mapping[str, Any], root: Path | None = None) -> ClassSymbol:
    """Build a :class:`ClassSymbol` from its snapshot representation."""
    source_file = raw.get("source_file")
    marker = raw.get("modified_marker")
    if marker is None and source_file and root is not None:
        candidate = Path(source_file)
        candidate = candidate if candidate.is_absolute() else root / candidate
        try:
            marker = candidate.stat().st_mtime_ns
        except OSError:
            marker = None

    return ClassSymbol(
        qualified_name=raw["qualified_name"],
        kind=ClassKind(raw.get("kind", ClassKind.CLASS.value)),
        annotations=_annotations(raw.get("annotations")),
        fields=tuple(
            FieldSymbol(
                name=str(item.get("name", "")),
                type_name=str(item.get("type", "")),
                annotations=_annotations(item.get("annotations")),
                static=bool(item.get("static", False)),
                final=bool(item.get("final", False)),
                type_arguments=tuple(item.get("type_arguments") or ()),
            )
            for item in raw.get("fields") or ()
        ),
        constructors=tuple(
            ConstructorSymbol(
                parameters=_parameters(item.get("parameters")),
                annotations=_annotations(item.get("annotations")),
            )
            for item in raw.get("constructors") or ()
        ),
        methods=tuple(
            MethodSymbol(
                name=str(item.get("name", "")),
                return_type=item.get("return_type"),
                parameters=_parameters(item.get("parameters")),
                annotations=_annotations(item.get("annotations")),
                static=bool(item.get("static", False)),
                return_type_arguments=tuple(item.get("return_type_arguments") or ()),
            )
            for item in raw.get("methods") or ()
        ),
        supertype=raw.get("supertype"),
        interfaces=tuple(raw.get("interfaces") or ()),
        source_file=source_file,
        modified_marker=marker,
        library=bool(raw.get("library", False)),
        abstract=bool(raw.get("abstract", False)),
    )


def _annotations(value: Any) -> Dict[str, Dict[str, Any]]:
    if isinstance(value, list):
        # Bare list of names: annotations without attributes.
        return {str(name): {} for name in value}
    if not isinstance(value, dict):
        return {}
    return {
        str(name): dict(attributes) if isinstance(attributes, dict) else {}
        for name, attributes in value.items()
    }


def _parameters(value: Any) -> tuple[ParameterSymbol, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(
        ParameterSymbol(
            name=str(item.get("name", "")),
            type_name=str(item.get("type", "")),
            type_arguments=tuple(item.get("type_arguments") or ()),
        )
        for item in value
        if isinstance(item, dict)
    )


__all__ = [
    "SnapshotSourceModel",
    "SourceModel",
    "in_scope",
    "load_snapshot",
    "symbol_from_dict",
]
