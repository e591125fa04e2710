"""Base class for origin resolvers."""

from abc import ABC, abstractmethod
from typing import Optional

from ..models import BeanOrigin, ClassSymbol, Classification


class BeanResolver(ABC):
    """Decides whether one particular mechanism provides a class as a bean."""

    name: str = ""
    origin: BeanOrigin = BeanOrigin.PLAIN

    @abstractmethod
    def resolve(self, symbol: ClassSymbol) -> Optional[Classification]:
        """Return a classification when this resolver claims ``symbol``, else None."""
