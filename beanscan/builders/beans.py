"""Builders for the per-origin bean fragments."""

from __future__ import annotations

from typing import Tuple

from ..models import BeanOrigin, ClassSymbol, Classification, decapitalize
from ..resolvers.mappers import DEFAULT_FACTORY_BEAN_ID
from .base import BeanBuilder, render


def _bean_id(symbol: ClassSymbol, classification: Classification) -> str:
    return classification.bean_id or decapitalize(symbol.simple_name)


class AnnotationBeanBuilder(BeanBuilder):
    origin = BeanOrigin.ANNOTATION

    def build(self, symbol: ClassSymbol, classification: Classification) -> Tuple[str, str]:
        bean_id = _bean_id(symbol, classification)
        return bean_id, render(
            "bean.xml.j2", bean_id=bean_id, class_name=symbol.qualified_name
        )


class ExternalDeclarationBuilder(BeanBuilder):
    """Reuses the declaration found in the project's own XML verbatim."""

    origin = BeanOrigin.EXTERNAL_DECLARATION

    def build(self, symbol: ClassSymbol, classification: Classification) -> Tuple[str, str]:
        bean_id = _bean_id(symbol, classification)
        fragment = classification.evidence.get("fragment")
        if not fragment:
            fragment = render("bean.xml.j2", bean_id=bean_id, class_name=symbol.qualified_name)
        return bean_id, str(fragment)


class FactoryMethodBeanBuilder(BeanBuilder):
    """Points at the configuration class whose factory method creates the type."""

    origin = BeanOrigin.FACTORY_METHOD

    def build(self, symbol: ClassSymbol, classification: Classification) -> Tuple[str, str]:
        evidence = classification.evidence
        bean_id = _bean_id(symbol, classification)
        return bean_id, render(
            "factory_bean.xml.j2",
            bean_id=bean_id,
            provider_id=evidence["provider_id"],
            method=evidence["method"],
        )


class MapperBeanBuilder(BeanBuilder):
    origin = BeanOrigin.MAPPER_CONVENTION

    def build(self, symbol: ClassSymbol, classification: Classification) -> Tuple[str, str]:
        bean_id = _bean_id(symbol, classification)
        factory_bean_id = classification.evidence.get("factory_bean_id") or DEFAULT_FACTORY_BEAN_ID
        return bean_id, render(
            "mapper_bean.xml.j2",
            bean_id=bean_id,
            interface=symbol.qualified_name,
            factory_bean_id=factory_bean_id,
        )


__all__ = [
    "AnnotationBeanBuilder",
    "ExternalDeclarationBuilder",
    "FactoryMethodBeanBuilder",
    "MapperBeanBuilder",
]
