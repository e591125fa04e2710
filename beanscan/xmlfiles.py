"""Small helpers shared by the XML-reading indexers."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterator, Optional

from .errors import MalformedDocumentError

_SNIFF_BYTES = 8192
_PROLOG_PATTERN = re.compile(r"<\?.*?\?>|<!--.*?-->|<!DOCTYPE[^>\[]*(\[.*?\])?\s*>", re.S)
_ROOT_PATTERN = re.compile(r"<([A-Za-z_][\w:.\-]*)")
_ENCODING_PATTERN = re.compile(rb"^<\?xml[^>]*encoding=[\"']([A-Za-z0-9._\-]+)[\"']")

SPRING_BEANS_NS = "http://www.springframework.org/schema/beans"


def local_name(tag: str) -> str:
    """Strip a ``{namespace}`` or ``prefix:`` qualifier from an element tag."""
    if tag.startswith("{"):
        tag = tag.split("}", 1)[1]
    return tag.rsplit(":", 1)[-1]


def sniff_root_tag(path: Path) -> Optional[str]:
    """Return the local name of the document element without a full parse."""
    try:
        with path.open("rb") as handle:
            head = handle.read(_SNIFF_BYTES)
    except OSError:
        return None
    text = _PROLOG_PATTERN.sub("", head.decode("utf-8", errors="replace"))
    match = _ROOT_PATTERN.search(text)
    return local_name(match.group(1)) if match else None


def document_encoding(data: bytes) -> str:
    match = _ENCODING_PATTERN.match(data.lstrip())
    return match.group(1).decode("ascii") if match else "utf-8"


def parse_xml(path: Path) -> ET.Element:
    """Parse ``path`` and return its root element."""
    try:
        return ET.parse(path).getroot()
    except ET.ParseError as exc:
        raise MalformedDocumentError(path, str(exc)) from exc
    except OSError as exc:
        raise MalformedDocumentError(path, str(exc)) from exc


def children(element: ET.Element, name: str) -> Iterator[ET.Element]:
    """Yield direct children whose local name is ``name``."""
    for child in element:
        if isinstance(child.tag, str) and local_name(child.tag) == name:
            yield child


def descendants(element: ET.Element, name: str) -> Iterator[ET.Element]:
    for child in element.iter():
        if isinstance(child.tag, str) and local_name(child.tag) == name:
            yield child


def split_list(value: str | None) -> list[str]:
    """Split Spring-style multi-value attributes on commas, semicolons and whitespace."""
    if not value:
        return []
    return [item for item in re.split(r"[,;\s]+", value.strip()) if item]


__all__ = [
    "SPRING_BEANS_NS",
    "children",
    "descendants",
    "document_encoding",
    "local_name",
    "parse_xml",
    "sniff_root_tag",
    "split_list",
]
