"""Origin resolvers and the fixed order in which they are consulted."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict, List, Sequence

from ..config import ScanSettings
from .annotation import AnnotationResolver
from .base import BeanResolver
from .declarations import ExternalDeclarationResolver
from .factory_methods import FactoryMethodResolver
from .mappers import MapperConventionResolver

if TYPE_CHECKING:  # pragma: no cover
    from ..indices import DerivedIndices

# First resolver to claim a class decides its origin.
RESOLVER_ORDER = (
    "annotation",
    "external_declaration",
    "factory_method",
    "mapper_convention",
)

_BUILTIN_FACTORIES: Dict[str, Callable[["DerivedIndices", ScanSettings], BeanResolver]] = {
    "annotation": lambda indices, settings: AnnotationResolver(settings.stereotypes),
    "external_declaration": lambda indices, settings: ExternalDeclarationResolver(
        indices.declarations
    ),
    "factory_method": lambda indices, settings: FactoryMethodResolver(indices.factory_index),
    "mapper_convention": lambda indices, settings: MapperConventionResolver(
        annotations=settings.mapper_annotations,
        suffixes=settings.mapper_suffixes,
        namespace_index=indices.mapper_namespaces,
        configs=indices.data_access.configs,
    ),
}


def build_resolvers(
    indices: "DerivedIndices",
    settings: ScanSettings | None = None,
    order: Sequence[str] = RESOLVER_ORDER,
) -> List[BeanResolver]:
    """Instantiate resolvers in ``order`` against a derived-index snapshot."""
    settings = settings or ScanSettings()
    resolvers: List[BeanResolver] = []
    for name in order:
        factory = _BUILTIN_FACTORIES.get(name)
        if factory is None:
            raise ValueError(f"Unknown resolver {name!r}")
        resolvers.append(factory(indices, settings))
    return resolvers


__all__ = [
    "AnnotationResolver",
    "BeanResolver",
    "ExternalDeclarationResolver",
    "FactoryMethodResolver",
    "MapperConventionResolver",
    "RESOLVER_ORDER",
    "build_resolvers",
]
