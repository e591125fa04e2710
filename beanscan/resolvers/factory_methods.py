"""Resolver for types produced by ``@Bean`` methods on configuration classes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional

from ..logging import get_logger
from ..models import BeanOrigin, ClassSymbol, Classification, MethodSymbol, decapitalize
from ..source_model import SourceModel
from .annotation import matching_stereotype
from .base import BeanResolver

BEAN_ANNOTATION = "org.springframework.context.annotation.Bean"

CONFIGURATION_ANNOTATIONS = (
    "org.springframework.context.annotation.Configuration",
    "org.springframework.boot.SpringBootConfiguration",
    "org.springframework.boot.autoconfigure.SpringBootApplication",
)

_LOGGER = get_logger("resolvers.factory_methods")


@dataclass(frozen=True)
class FactoryProvision:
    """Where a type comes from: ``provider.method()`` registered as ``bean_name``."""

    product: str
    provider: str
    method: str
    bean_name: str

    @property
    def provider_id(self) -> str:
        return decapitalize(self.provider.rsplit(".", 1)[-1])


def is_configuration_class(symbol: ClassSymbol) -> bool:
    return any(symbol.has_annotation(name) for name in CONFIGURATION_ANNOTATIONS)


def factory_methods(symbol: ClassSymbol) -> List[MethodSymbol]:
    """Return the ``@Bean`` methods declared on a configuration class."""
    if not is_configuration_class(symbol):
        return []
    return [
        method
        for method in symbol.methods
        if method.has_annotation(BEAN_ANNOTATION) and method.return_type
    ]


def bean_name(method: MethodSymbol) -> str:
    """Return the registered name of a ``@Bean`` method (first alias wins)."""
    attributes = method.annotation(BEAN_ANNOTATION) or {}
    for key in ("name", "value"):
        value = attributes.get(key)
        if isinstance(value, str) and value:
            return value
        if isinstance(value, list) and value and isinstance(value[0], str):
            return value[0]
    return method.name


def build_factory_index(
    configuration_classes: Iterable[ClassSymbol],
    model: SourceModel,
    extra_stereotypes: Iterable[str] = (),
) -> Dict[str, FactoryProvision]:
    """Index ``return type -> provision`` across all configuration classes.

    Abstract and interface return types also index their implementors that
    carry no stereotype of their own, since those only exist as the
    product of the factory method.
    """
    extra = tuple(extra_stereotypes)
    index: Dict[str, FactoryProvision] = {}
    for configuration in sorted(configuration_classes, key=lambda item: item.qualified_name):
        for method in factory_methods(configuration):
            return_type = method.return_type or ""
            provision = FactoryProvision(
                product=return_type,
                provider=configuration.qualified_name,
                method=method.name,
                bean_name=bean_name(method),
            )
            index.setdefault(return_type, provision)

            product = model.resolve(return_type)
            if product is None or not (product.is_interface or product.abstract):
                continue
            for implementor in model.find_implementors(product):
                if matching_stereotype(implementor, extra) is None:
                    index.setdefault(implementor.qualified_name, provision)
    _LOGGER.debug("Indexed %d factory-provided type(s)", len(index))
    return index


class FactoryMethodResolver(BeanResolver):
    name = "factory_method"
    origin = BeanOrigin.FACTORY_METHOD

    def __init__(self, index: Mapping[str, FactoryProvision]) -> None:
        self._index = index

    def resolve(self, symbol: ClassSymbol) -> Optional[Classification]:
        provision = self._index.get(symbol.qualified_name)
        if provision is None:
            return None
        return Classification(
            origin=self.origin,
            bean_id=provision.bean_name,
            resolver=self.name,
            evidence={
                "provider": provision.provider,
                "provider_id": provision.provider_id,
                "method": provision.method,
                "product": provision.product,
            },
        )


__all__ = [
    "BEAN_ANNOTATION",
    "CONFIGURATION_ANNOTATIONS",
    "FactoryMethodResolver",
    "FactoryProvision",
    "bean_name",
    "build_factory_index",
    "factory_methods",
    "is_configuration_class",
]
