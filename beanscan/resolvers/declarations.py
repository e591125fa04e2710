"""Resolver for classes declared in existing ``<beans>`` XML files.

Declarations are located with expat rather than ElementTree because the
matching ``<bean>`` element is reused byte-for-byte, so its exact source
span is needed, not just its parsed attributes.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple
from xml.parsers import expat

from ..errors import MalformedDocumentError
from ..logging import get_logger
from ..models import BeanOrigin, ClassSymbol, Classification, decapitalize
from ..xmlfiles import document_encoding, local_name, sniff_root_tag
from .base import BeanResolver

GENERATED_MARKER = "generated by beanscan"

_LOGGER = get_logger("resolvers.declarations")


@dataclass(frozen=True)
class DeclaredBean:
    class_name: str
    bean_id: Optional[str]
    fragment: str
    path: str


def _tag_end(data: bytes, index: int) -> int:
    """Return the offset just past the tag starting at ``index``."""
    quote: Optional[int] = None
    for position in range(index, len(data)):
        byte = data[position]
        if quote is not None:
            if byte == quote:
                quote = None
        elif byte in (0x22, 0x27):
            quote = byte
        elif byte == 0x3E:
            return position + 1
    return len(data)


def read_bean_declarations(path: Path) -> List[DeclaredBean]:
    """Return every ``<bean class=...>`` declared directly under a ``<beans>`` element."""
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise MalformedDocumentError(path, str(exc)) from exc
    encoding = document_encoding(data)

    parser = expat.ParserCreate()
    stack: List[str] = []
    pending: List[Tuple[int, int, Optional[int], Dict[str, str]]] = []
    declarations: List[DeclaredBean] = []

    def on_start(name: str, attributes: Dict[str, str]) -> None:
        element = local_name(name)
        if element == "bean" and stack and stack[-1] == "beans":
            start = parser.CurrentByteIndex
            tag_end = _tag_end(data, start)
            empty_end = tag_end if data[tag_end - 2 : tag_end] == b"/>" else None
            pending.append((len(stack), start, empty_end, attributes))
        stack.append(element)

    def on_end(name: str) -> None:
        stack.pop()
        if not pending or pending[-1][0] != len(stack):
            return
        _, start, empty_end, attributes = pending.pop()
        class_name = attributes.get("class")
        if not class_name:
            return
        # expat reports an empty element's end past its "/>", so keep the start tag's span.
        end = empty_end if empty_end is not None else _tag_end(data, parser.CurrentByteIndex)
        declared_id = attributes.get("id")
        if not declared_id and attributes.get("name"):
            declared_id = attributes["name"].replace(";", ",").split(",")[0].strip() or None
        declarations.append(
            DeclaredBean(
                class_name=class_name.strip(),
                bean_id=declared_id,
                fragment=data[start:end].decode(encoding, errors="replace"),
                path=str(path),
            )
        )

    parser.StartElementHandler = on_start
    parser.EndElementHandler = on_end
    try:
        parser.Parse(data, True)
    except expat.ExpatError as exc:
        raise MalformedDocumentError(path, str(exc)) from exc
    return declarations


def is_generated_document(path: Path) -> bool:
    try:
        with path.open("rb") as handle:
            head = handle.read(512)
    except OSError:
        return False
    return GENERATED_MARKER.encode("ascii") in head


def build_declaration_index(paths: Iterable[Path]) -> Dict[str, DeclaredBean]:
    """Map qualified class names to their first declaration across ``paths``."""
    index: Dict[str, DeclaredBean] = {}
    for path in sorted(paths):
        if sniff_root_tag(path) != "beans" or is_generated_document(path):
            continue
        try:
            declarations = read_bean_declarations(path)
        except MalformedDocumentError as exc:
            _LOGGER.warning("Skipping bean definitions in %s", exc)
            continue
        for declaration in declarations:
            index.setdefault(declaration.class_name, declaration)
    _LOGGER.debug("Indexed %d declared bean class(es)", len(index))
    return index


class ExternalDeclarationResolver(BeanResolver):
    name = "external_declaration"
    origin = BeanOrigin.EXTERNAL_DECLARATION

    def __init__(self, index: Mapping[str, DeclaredBean]) -> None:
        self._index = index

    def resolve(self, symbol: ClassSymbol) -> Optional[Classification]:
        declaration = self._index.get(symbol.qualified_name)
        if declaration is None:
            return None
        return Classification(
            origin=self.origin,
            bean_id=declaration.bean_id or decapitalize(symbol.simple_name),
            resolver=self.name,
            evidence={
                "fragment": declaration.fragment,
                "declared_id": declaration.bean_id,
                "path": declaration.path,
            },
        )


__all__ = [
    "DeclaredBean",
    "ExternalDeclarationResolver",
    "GENERATED_MARKER",
    "build_declaration_index",
    "is_generated_document",
    "read_bean_declarations",
]
