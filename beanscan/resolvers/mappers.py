"""Persistence mapper convention resolver (MyBatis-style interfaces)."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Mapping, Optional, Sequence

from ..errors import MalformedDocumentError
from ..logging import get_logger
from ..models import BeanOrigin, ClassSymbol, Classification, DataAccessConfig, decapitalize
from ..xmlfiles import local_name, parse_xml
from .base import BeanResolver

MAPPER_ANNOTATIONS = ("org.apache.ibatis.annotations.Mapper",)
MAPPER_SUFFIXES = ("Mapper", "Dao")
MAPPER_PACKAGE_SEGMENTS = ("mapper", "mappers")

DEFAULT_FACTORY_BEAN_ID = "sqlSessionFactory"

_LOGGER = get_logger("resolvers.mappers")


def read_mapper_namespace(path: Path) -> Optional[str]:
    """Return the ``namespace`` of a mapper XML document, if it is one."""
    try:
        root = parse_xml(path)
    except MalformedDocumentError as exc:
        _LOGGER.warning("Skipping mapper file %s", exc)
        return None
    if local_name(root.tag) != "mapper":
        return None
    namespace = (root.get("namespace") or "").strip()
    return namespace or None


def select_config(
    symbol: ClassSymbol, configs: Sequence[DataAccessConfig]
) -> Optional[DataAccessConfig]:
    """Pick the data-access configuration whose base packages best cover ``symbol``."""
    best: Optional[DataAccessConfig] = None
    best_length = 0
    for config in configs:
        length = config.covers_package(symbol.package_name)
        if length > best_length:
            best, best_length = config, length
    if best is not None:
        return best
    for config in configs:
        if config.name == DEFAULT_FACTORY_BEAN_ID:
            return config
    return configs[0] if configs else None


class MapperConventionResolver(BeanResolver):
    name = "mapper_convention"
    origin = BeanOrigin.MAPPER_CONVENTION

    def __init__(
        self,
        *,
        annotations: Iterable[str] = (),
        suffixes: Iterable[str] = (),
        namespace_index: Mapping[str, str] | None = None,
        configs: Sequence[DataAccessConfig] = (),
    ) -> None:
        self._annotations = tuple(dict.fromkeys((*MAPPER_ANNOTATIONS, *annotations)))
        self._suffixes = tuple(dict.fromkeys((*MAPPER_SUFFIXES, *suffixes)))
        self._namespaces = namespace_index or {}
        self._configs = tuple(configs)

    def match_reason(self, symbol: ClassSymbol) -> Optional[str]:
        if not symbol.is_interface:
            return None
        for annotation in self._annotations:
            if symbol.has_annotation(annotation):
                return "annotation"
        if symbol.qualified_name in self._namespaces:
            return "mapper_xml"
        if symbol.simple_name.endswith(self._suffixes):
            return "suffix"
        segments = symbol.package_name.split(".")
        if any(segment in MAPPER_PACKAGE_SEGMENTS for segment in segments):
            return "package"
        return None

    def resolve(self, symbol: ClassSymbol) -> Optional[Classification]:
        reason = self.match_reason(symbol)
        if reason is None:
            return None
        config = select_config(symbol, self._configs)
        return Classification(
            origin=self.origin,
            bean_id=decapitalize(symbol.simple_name),
            resolver=self.name,
            evidence={
                "reason": reason,
                "mapper_xml": self._namespaces.get(symbol.qualified_name),
                "config": config.name if config else DEFAULT_FACTORY_BEAN_ID,
                "factory_bean_id": (
                    config.factory_bean_id if config else DEFAULT_FACTORY_BEAN_ID
                ),
            },
        )


__all__ = [
    "DEFAULT_FACTORY_BEAN_ID",
    "MAPPER_ANNOTATIONS",
    "MAPPER_SUFFIXES",
    "MapperConventionResolver",
    "read_mapper_namespace",
    "select_config",
]
