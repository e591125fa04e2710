"""Scan-local, insertion-ordered registry of bean definitions."""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional

from .models import BeanDefinition, BeanOrigin, ClassSymbol


class BeanRegistry:
    """Maps bean ids to definitions in discovery order.

    The first registration of an id is final: later calls with the same id
    are ignored, whatever fragment or origin they carry.
    """

    def __init__(self) -> None:
        self._definitions: Dict[str, BeanDefinition] = {}

    def register(
        self,
        bean_id: str,
        fragment: str,
        origin: BeanOrigin,
        source: Optional[ClassSymbol] = None,
    ) -> bool:
        """Insert a definition; return False when ``bean_id`` is already present."""
        if bean_id in self._definitions:
            return False
        self._definitions[bean_id] = BeanDefinition(
            bean_id=bean_id, origin=origin, fragment=fragment, source=source
        )
        return True

    def contains(self, bean_id: str) -> bool:
        return bean_id in self._definitions

    def get(self, bean_id: str) -> Optional[BeanDefinition]:
        return self._definitions.get(bean_id)

    def bean_id_for(self, class_name: str) -> Optional[str]:
        """Return the id under which ``class_name`` was registered, if it was."""
        for definition in self._definitions.values():
            if definition.class_name == class_name:
                return definition.bean_id
        return None

    def ordered_fragments(self) -> List[str]:
        return [definition.fragment for definition in self._definitions.values()]

    def definitions(self) -> List[BeanDefinition]:
        return list(self._definitions.values())

    def __contains__(self, bean_id: object) -> bool:
        return bean_id in self._definitions

    def __iter__(self) -> Iterator[BeanDefinition]:
        return iter(list(self._definitions.values()))

    def __len__(self) -> int:
        return len(self._definitions)


__all__ = ["BeanRegistry"]
