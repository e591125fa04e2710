"""Stereotype annotation resolver."""

from __future__ import annotations

from typing import Iterable, Optional

from ..models import BeanOrigin, ClassSymbol, Classification, decapitalize
from .base import BeanResolver

STEREOTYPE_PACKAGE = "org.springframework.stereotype."

STEREOTYPES = frozenset(
    {
        "org.springframework.stereotype.Component",
        "org.springframework.stereotype.Service",
        "org.springframework.stereotype.Repository",
        "org.springframework.stereotype.Controller",
        "org.springframework.web.bind.annotation.RestController",
        "org.springframework.web.bind.annotation.ControllerAdvice",
        "org.springframework.web.bind.annotation.RestControllerAdvice",
        "org.springframework.context.annotation.Configuration",
        "org.springframework.boot.SpringBootConfiguration",
        "org.springframework.boot.autoconfigure.SpringBootApplication",
    }
)


def matching_stereotype(
    symbol: ClassSymbol, extra: Iterable[str] = ()
) -> Optional[str]:
    """Return the first stereotype annotation carried by ``symbol``."""
    known = STEREOTYPES.union(extra)
    for annotation in symbol.annotations:
        if annotation in known or annotation.startswith(STEREOTYPE_PACKAGE):
            return annotation
    return None


class AnnotationResolver(BeanResolver):
    name = "annotation"
    origin = BeanOrigin.ANNOTATION

    def __init__(self, extra_stereotypes: Iterable[str] = ()) -> None:
        self._extra = frozenset(extra_stereotypes)

    def resolve(self, symbol: ClassSymbol) -> Optional[Classification]:
        if not symbol.is_concrete_class:
            return None
        stereotype = matching_stereotype(symbol, self._extra)
        if stereotype is None:
            return None
        return Classification(
            origin=self.origin,
            bean_id=decapitalize(symbol.simple_name),
            resolver=self.name,
            evidence={"annotation": stereotype},
        )


__all__ = ["AnnotationResolver", "STEREOTYPES", "matching_stereotype"]
