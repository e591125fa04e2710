"""MyBatis wiring declared in Spring ``<beans>`` XML files."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from ..models import DataAccessConfig
from ..resolvers.mappers import DEFAULT_FACTORY_BEAN_ID
from ..xmlfiles import children, descendants, local_name, parse_xml, split_list

FACTORY_CLASS_MARKER = "SqlSessionFactoryBean"
SCANNER_CLASS_MARKER = "MapperScannerConfigurer"
DEFAULT_DATASOURCE_ID = "dataSource"


@dataclass
class XmlSourceResult:
    configs: List[DataAccessConfig] = field(default_factory=list)
    datasource_ids: List[str] = field(default_factory=list)


def _property(bean: ET.Element, name: str) -> Optional[ET.Element]:
    for prop in children(bean, "property"):
        if prop.get("name") == name:
            return prop
    return None


def _property_values(prop: ET.Element) -> List[str]:
    """Collect literal values from ``value=``, ``<value>`` or list/array/set children."""
    if prop.get("value"):
        return split_list(prop.get("value"))
    values: List[str] = []
    for element in prop.iter():
        if isinstance(element.tag, str) and local_name(element.tag) == "value":
            text = (element.text or "").strip()
            if text:
                values.extend(split_list(text))
    return values


def _property_ref(prop: Optional[ET.Element]) -> Optional[str]:
    if prop is None:
        return None
    if prop.get("ref"):
        return prop.get("ref")
    for ref in children(prop, "ref"):
        return ref.get("bean") or ref.get("local")
    return None


def read_xml_source(path: Path) -> XmlSourceResult:
    """Extract session factory and mapper scanner declarations from one file.

    Scanner beans are matched to factories through the factory bean id, so
    each logical configuration is named after its factory.
    """
    root = parse_xml(path)
    result = XmlSourceResult()
    if local_name(root.tag) != "beans":
        return result

    for bean in descendants(root, "bean"):
        class_name = bean.get("class") or ""
        bean_id = bean.get("id") or ""
        if FACTORY_CLASS_MARKER in class_name:
            name = bean_id or DEFAULT_FACTORY_BEAN_ID
            datasource = _property_ref(_property(bean, "dataSource")) or DEFAULT_DATASOURCE_ID
            locations_prop = _property(bean, "mapperLocations")
            locations = _property_values(locations_prop) if locations_prop is not None else []
            result.configs.append(
                DataAccessConfig(
                    name=name,
                    datasource_bean_id=datasource,
                    factory_bean_id=name,
                    mapper_locations=tuple(locations),
                )
            )
            if datasource not in result.datasource_ids:
                result.datasource_ids.append(datasource)
        elif SCANNER_CLASS_MARKER in class_name:
            factory_prop = _property(bean, "sqlSessionFactoryBeanName")
            factory_id = None
            if factory_prop is not None:
                factory_id = factory_prop.get("value") or (factory_prop.text or "").strip()
            factory_id = factory_id or _property_ref(_property(bean, "sqlSessionFactory"))
            factory_id = factory_id or DEFAULT_FACTORY_BEAN_ID
            packages_prop = _property(bean, "basePackage")
            packages = _property_values(packages_prop) if packages_prop is not None else []
            result.configs.append(
                DataAccessConfig(
                    name=factory_id,
                    factory_bean_id=factory_id,
                    base_packages=tuple(packages),
                )
            )
    return result


def declared_bean_ids(path: Path) -> Dict[str, str]:
    """Return ``bean id -> class`` for the identified beans of a ``<beans>`` file."""
    root = parse_xml(path)
    if local_name(root.tag) != "beans":
        return {}
    return {
        bean.get("id") or "": bean.get("class") or ""
        for bean in descendants(root, "bean")
        if bean.get("id")
    }


__all__ = [
    "DEFAULT_DATASOURCE_ID",
    "XmlSourceResult",
    "declared_bean_ids",
    "read_xml_source",
]
