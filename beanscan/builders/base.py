"""Base class for bean builders and the shared fragment template environment."""

from __future__ import annotations

from abc import ABC, abstractmethod
from functools import lru_cache
from pathlib import Path
from typing import Any, Tuple

from jinja2 import Environment, FileSystemLoader

from ..models import BeanOrigin, ClassSymbol, Classification

_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


@lru_cache(maxsize=1)
def template_environment() -> Environment:
    loader = FileSystemLoader(str(_TEMPLATES_DIR))
    return Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)


def render(template_name: str, **context: Any) -> str:
    """Render a fragment template, trimming trailing blank lines."""
    template = template_environment().get_template(template_name)
    return template.render(**context).rstrip()


class BeanBuilder(ABC):
    """Turns a classified class into ``(bean id, configuration fragment)``."""

    origin: BeanOrigin

    @abstractmethod
    def build(self, symbol: ClassSymbol, classification: Classification) -> Tuple[str, str]:
        """Return the bean id and fragment; must not mutate its inputs."""
