"""``@MapperScan`` annotations on project classes."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping

from ..models import ClassSymbol, DataAccessConfig
from ..resolvers.mappers import DEFAULT_FACTORY_BEAN_ID

MAPPER_SCAN = "org.mybatis.spring.annotation.MapperScan"
MAPPER_SCANS = "org.mybatis.spring.annotation.MapperScans"


def _strings(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if isinstance(item, str) and item.strip()]
    return []


def _config_from_attributes(
    owner: ClassSymbol, attributes: Mapping[str, Any]
) -> DataAccessConfig:
    packages = _strings(attributes.get("value")) + _strings(attributes.get("basePackages"))
    for class_name in _strings(attributes.get("basePackageClasses")):
        if "." in class_name:
            packages.append(class_name.rsplit(".", 1)[0])
    if not packages and owner.package_name:
        packages.append(owner.package_name)
    factory_ref = _strings(attributes.get("sqlSessionFactoryRef"))
    name = factory_ref[0] if factory_ref else DEFAULT_FACTORY_BEAN_ID
    return DataAccessConfig(
        name=name,
        factory_bean_id=name,
        base_packages=tuple(dict.fromkeys(packages)),
    )


def configs_from_annotations(classes: Iterable[ClassSymbol]) -> List[DataAccessConfig]:
    """Return one config per ``@MapperScan`` (including those nested in ``@MapperScans``)."""
    configs: List[DataAccessConfig] = []
    for symbol in classes:
        scan = symbol.annotation(MAPPER_SCAN)
        if scan is not None:
            configs.append(_config_from_attributes(symbol, scan))
        scans = symbol.annotation(MAPPER_SCANS)
        if scans is not None:
            nested = scans.get("value")
            if isinstance(nested, Mapping):
                nested = [nested]
            for attributes in nested or ():
                if isinstance(attributes, Mapping):
                    configs.append(_config_from_attributes(symbol, attributes))
    return configs


__all__ = ["MAPPER_SCAN", "MAPPER_SCANS", "configs_from_annotations"]
