"""Per-origin bean builders."""

from __future__ import annotations

from typing import Dict

from ..models import BeanOrigin
from .base import BeanBuilder, render, template_environment
from .beans import (
    AnnotationBeanBuilder,
    ExternalDeclarationBuilder,
    FactoryMethodBeanBuilder,
    MapperBeanBuilder,
)
from .data_access import build_support_fragments

_BUILTIN_BUILDERS: Dict[BeanOrigin, BeanBuilder] = {
    BeanOrigin.ANNOTATION: AnnotationBeanBuilder(),
    BeanOrigin.EXTERNAL_DECLARATION: ExternalDeclarationBuilder(),
    BeanOrigin.FACTORY_METHOD: FactoryMethodBeanBuilder(),
    BeanOrigin.MAPPER_CONVENTION: MapperBeanBuilder(),
}


def builder_for(origin: BeanOrigin) -> BeanBuilder:
    """Return the builder responsible for ``origin``."""
    try:
        return _BUILTIN_BUILDERS[origin]
    except KeyError:
        raise ValueError(f"No bean builder for origin {origin.value!r}") from None


__all__ = [
    "AnnotationBeanBuilder",
    "BeanBuilder",
    "ExternalDeclarationBuilder",
    "FactoryMethodBeanBuilder",
    "MapperBeanBuilder",
    "build_support_fragments",
    "builder_for",
    "render",
    "template_environment",
]
