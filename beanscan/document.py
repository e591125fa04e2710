"""Rendering of the registry into a standalone ``<beans>`` document."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from .builders import render
from .logging import get_logger
from .models import BeanDefinition, BeanOrigin
from .resolvers.declarations import GENERATED_MARKER

_LOGGER = get_logger("document")


def render_document(
    definitions: Iterable[BeanDefinition], target: Optional[str] = None
) -> str:
    """Return the XML document for ``definitions`` in registry order.

    Reused declarations keep their original text; synthesized fragments are
    indented to sit inside the root element.
    """
    fragments = [
        {
            "text": definition.fragment,
            "verbatim": definition.origin is BeanOrigin.EXTERNAL_DECLARATION,
        }
        for definition in definitions
    ]
    return render(
        "beans.xml.j2", marker=GENERATED_MARKER, target=target, fragments=fragments
    ) + "\n"


def write_document(
    definitions: Iterable[BeanDefinition], path: Path, target: Optional[str] = None
) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_document(definitions, target), encoding="utf-8")
    _LOGGER.info("Wrote bean document to %s", path)
    return path


__all__ = ["render_document", "write_document"]
