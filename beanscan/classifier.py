"""Origin classification: a fixed-priority chain of resolvers."""

from __future__ import annotations

from typing import Dict, Sequence, Tuple

from .logging import get_logger
from .models import ClassSymbol, Classification
from .resolvers import BeanResolver

_LOGGER = get_logger("classifier")


class OriginClassifier:
    """Asks each resolver in turn; the first one that claims the class wins.

    Results are memoized per instance, so one classifier should serve one
    scan against one index snapshot.
    """

    def __init__(self, resolvers: Sequence[BeanResolver]) -> None:
        self._resolvers = tuple(resolvers)
        self._memo: Dict[str, Classification] = {}

    @property
    def order(self) -> Tuple[str, ...]:
        return tuple(resolver.name for resolver in self._resolvers)

    def classify(self, symbol: ClassSymbol) -> Classification:
        cached = self._memo.get(symbol.qualified_name)
        if cached is not None:
            return cached
        result = Classification.plain()
        for resolver in self._resolvers:
            claimed = resolver.resolve(symbol)
            if claimed is not None:
                result = claimed
                break
        _LOGGER.debug("%s -> %s", symbol.qualified_name, result.origin.value)
        self._memo[symbol.qualified_name] = result
        return result


__all__ = ["OriginClassifier"]
