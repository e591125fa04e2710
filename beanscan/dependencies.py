"""Extraction of injected dependency types from a class."""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set

from .config import DEFAULT_LIBRARY_PREFIXES
from .logging import get_logger
from .models import ClassSymbol, FieldSymbol
from .resolvers.factory_methods import factory_methods
from .source_model import SourceModel

INJECTION_ANNOTATIONS = (
    "org.springframework.beans.factory.annotation.Autowired",
    "javax.annotation.Resource",
    "jakarta.annotation.Resource",
    "javax.inject.Inject",
    "jakarta.inject.Inject",
)

LOMBOK_ALL_ARGS = "lombok.AllArgsConstructor"
LOMBOK_REQUIRED_ARGS = "lombok.RequiredArgsConstructor"

# Wrapper types whose type arguments are the real injection targets.
_CONTAINER_TYPES = frozenset(
    {
        "java.lang.Iterable",
        "java.util.Collection",
        "java.util.List",
        "java.util.Set",
        "java.util.SortedSet",
        "java.util.Optional",
        "java.util.Map",
        "org.springframework.beans.factory.ObjectProvider",
        "org.springframework.beans.factory.ObjectFactory",
        "javax.inject.Provider",
        "jakarta.inject.Provider",
    }
)
_MAP_TYPES = frozenset({"java.util.Map"})

_LOGGER = get_logger("dependencies")


def _raw_type(type_name: str) -> str:
    raw = type_name.split("<", 1)[0].strip()
    while raw.endswith("[]"):
        raw = raw[:-2].strip()
    return raw


class DependencyExtractor:
    """Lists the project classes a class needs injected.

    Candidates are injection-annotated fields (including those inherited from
    project superclasses), every constructor parameter, Lombok-generated
    constructor parameters and, for configuration classes, the return and
    parameter types of their factory methods.
    """

    def __init__(
        self,
        source_model: SourceModel,
        *,
        injection_annotations: Iterable[str] = (),
        library_prefixes: Sequence[str] = DEFAULT_LIBRARY_PREFIXES,
    ) -> None:
        self._model = source_model
        self._annotations = tuple(dict.fromkeys((*INJECTION_ANNOTATIONS, *injection_annotations)))
        self._library_prefixes = tuple(library_prefixes)

    def extract(self, symbol: ClassSymbol) -> List[ClassSymbol]:
        """Return resolved dependencies in declaration order, without duplicates."""
        found: Dict[str, ClassSymbol] = {}
        for type_name in self._candidate_types(symbol):
            if type_name == symbol.qualified_name or type_name in found:
                continue
            dependency = self._accept(type_name)
            if dependency is not None:
                found[type_name] = dependency
        return list(found.values())

    def is_library_type(self, qualified_name: str) -> bool:
        return qualified_name.startswith(self._library_prefixes)

    # ------------------------------------------------------------------
    # Internal helpers

    def _candidate_types(self, symbol: ClassSymbol) -> Iterator[str]:
        for field in self._injected_fields(symbol):
            yield from self._target_types(field.type_name, field.type_arguments)

        for constructor in symbol.constructors:
            for parameter in constructor.parameters:
                yield from self._target_types(parameter.type_name, parameter.type_arguments)

        for field in self._lombok_constructor_fields(symbol):
            yield from self._target_types(field.type_name, field.type_arguments)

        for method in factory_methods(symbol):
            if method.return_type:
                yield from self._target_types(method.return_type, method.return_type_arguments)
            for parameter in method.parameters:
                yield from self._target_types(parameter.type_name, parameter.type_arguments)

    def _injected_fields(self, symbol: ClassSymbol) -> Iterator[FieldSymbol]:
        seen: Set[str] = set()
        current: Optional[ClassSymbol] = symbol
        while current is not None and current.qualified_name not in seen:
            seen.add(current.qualified_name)
            for field in current.fields:
                if field.static or field.final:
                    continue
                if any(field.has_annotation(name) for name in self._annotations):
                    yield field
            current = self._project_supertype(current)

    def _project_supertype(self, symbol: ClassSymbol) -> Optional[ClassSymbol]:
        if not symbol.supertype or self.is_library_type(symbol.supertype):
            return None
        parent = self._model.resolve(symbol.supertype)
        if parent is None or parent.library:
            return None
        return parent

    @staticmethod
    def _lombok_constructor_fields(symbol: ClassSymbol) -> Iterator[FieldSymbol]:
        all_args = symbol.has_annotation(LOMBOK_ALL_ARGS)
        required_args = symbol.has_annotation(LOMBOK_REQUIRED_ARGS)
        if not (all_args or required_args):
            return
        for field in symbol.fields:
            if field.static:
                continue
            if all_args or field.final or field.has_annotation("lombok.NonNull"):
                yield field

    def _target_types(self, type_name: str, type_arguments: Sequence[str]) -> List[str]:
        raw = _raw_type(type_name)
        if raw in _CONTAINER_TYPES:
            arguments = [_raw_type(argument) for argument in type_arguments if argument]
            if raw in _MAP_TYPES:
                return arguments[-1:]
            return arguments
        return [raw] if raw else []

    def _accept(self, type_name: str) -> Optional[ClassSymbol]:
        if "." not in type_name or self.is_library_type(type_name):
            return None
        dependency = self._model.resolve(type_name)
        if dependency is None:
            _LOGGER.debug("Dropping unresolved dependency type %s", type_name)
            return None
        if dependency.library:
            return None
        return dependency


__all__ = ["DependencyExtractor", "INJECTION_ANNOTATIONS"]
