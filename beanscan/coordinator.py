"""Breadth-first discovery of the bean closure of a target class."""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Deque, Dict, List, Optional, Sequence, Tuple

from .builders import build_support_fragments, builder_for
from .classifier import OriginClassifier
from .datasource import AggregatedConfig
from .dependencies import DependencyExtractor
from .errors import ScanFailure
from .logging import get_logger
from .models import BeanOrigin, ClassSymbol, Classification, ProjectContext
from .registry import BeanRegistry
from .source_model import SourceModel

_LOGGER = get_logger("coordinator")

# Implementors with these origins are reached another way, never via interface expansion.
_NOT_EXPANDED = (BeanOrigin.PLAIN, BeanOrigin.MAPPER_CONVENTION, BeanOrigin.FACTORY_METHOD)


class ScanStatus(str, Enum):
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"


class CancelToken:
    """Cooperative cancellation handle with an optional deadline."""

    def __init__(self, timeout: float | None = None) -> None:
        self._event = threading.Event()
        self._deadline: Optional[float] = None
        if timeout is not None:
            self.set_timeout(timeout)

    def cancel(self) -> None:
        self._event.set()

    def set_timeout(self, seconds: float) -> None:
        """Arm (or re-arm) the deadline ``seconds`` from now."""
        self._deadline = time.monotonic() + max(0.0, seconds)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def timed_out(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def status(self) -> Optional[ScanStatus]:
        """Return why the scan must stop, or None to keep going."""
        if self.cancelled:
            return ScanStatus.CANCELLED
        if self.timed_out:
            return ScanStatus.TIMED_OUT
        return None


@dataclass
class ScanOutcome:
    status: ScanStatus = ScanStatus.COMPLETE
    visited: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    # (bean id, class that lost the id)
    collisions: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return self.status is ScanStatus.COMPLETE


class ScanCoordinator:
    """Walks the dependency graph from a target and fills a registry.

    One coordinator serves one scan. Classes classified PLAIN end their
    branch: they are neither registered nor traversed further.
    """

    def __init__(
        self,
        source_model: SourceModel,
        classifier: OriginClassifier,
        extractor: DependencyExtractor,
        *,
        project: ProjectContext,
        data_access: AggregatedConfig | None = None,
        scan_packages: Sequence[str] = (),
    ) -> None:
        self._model = source_model
        self._classifier = classifier
        self._extractor = extractor
        self._project = project
        self._data_access = data_access or AggregatedConfig.default()
        self._scan_packages = tuple(scan_packages)

    def scan_and_build(
        self,
        target: ClassSymbol,
        registry: BeanRegistry,
        cancel_token: CancelToken | None = None,
    ) -> ScanOutcome:
        """Populate ``registry`` with the closure of ``target``.

        Never raises on cancellation or timeout; the outcome status tells the
        caller whether the registry is complete.
        """
        outcome = ScanOutcome()
        queue: Deque[ClassSymbol] = deque([target])
        visited: Dict[str, None] = {}
        mappers: List[Classification] = []

        while queue:
            if cancel_token is not None:
                stop = cancel_token.status()
                if stop is not None:
                    _LOGGER.info(
                        "Scan of %s stopped (%s) after %d class(es)",
                        target.qualified_name,
                        stop.value,
                        len(visited),
                    )
                    outcome.status = stop
                    outcome.visited = list(visited)
                    return outcome

            symbol = queue.popleft()
            name = symbol.qualified_name
            if name in visited:
                continue
            visited[name] = None
            try:
                self._process(symbol, registry, queue, visited, mappers, outcome)
            except ScanFailure as exc:
                _LOGGER.warning("Skipping %s: %s", name, exc)
                outcome.skipped.append(name)

        outcome.visited = list(visited)
        if mappers:
            self._register_support_beans(mappers, registry)
        _LOGGER.debug(
            "Scan of %s visited %d class(es), registered %d bean(s)",
            target.qualified_name,
            len(visited),
            len(registry),
        )
        return outcome

    # ------------------------------------------------------------------
    # Internal helpers

    def _process(
        self,
        symbol: ClassSymbol,
        registry: BeanRegistry,
        queue: Deque[ClassSymbol],
        visited: Dict[str, None],
        mappers: List[Classification],
        outcome: ScanOutcome,
    ) -> None:
        classification = self._classifier.classify(symbol)
        if not classification.managed:
            return

        if classification.origin is BeanOrigin.FACTORY_METHOD:
            provider = self._model.resolve(classification.evidence["provider"])
            if provider is not None and provider.qualified_name not in visited:
                # The provider is registered before its product.
                del visited[symbol.qualified_name]
                queue.appendleft(symbol)
                queue.appendleft(provider)
                return
            provider_id = registry.bean_id_for(classification.evidence["provider"])
            if provider_id and provider_id != classification.evidence.get("provider_id"):
                classification = replace(
                    classification,
                    evidence={**classification.evidence, "provider_id": provider_id},
                )

        bean_id, fragment = builder_for(classification.origin).build(symbol, classification)
        if registry.register(bean_id, fragment, classification.origin, source=symbol):
            if classification.origin is BeanOrigin.MAPPER_CONVENTION:
                mappers.append(classification)
        else:
            existing = registry.get(bean_id)
            if existing is not None and existing.class_name != symbol.qualified_name:
                _LOGGER.warning(
                    "Bean id %r already registered by %s; ignoring %s",
                    bean_id,
                    existing.class_name or "a support bean",
                    symbol.qualified_name,
                )
                outcome.collisions.append((bean_id, symbol.qualified_name))

        for dependency in self._extractor.extract(symbol):
            for candidate in self._expand(dependency):
                if candidate.qualified_name not in visited:
                    queue.append(candidate)

    def _expand(self, dependency: ClassSymbol) -> List[ClassSymbol]:
        """Replace an unmanaged interface by its bean-managed implementors."""
        if not dependency.is_interface:
            return [dependency]
        if self._classifier.classify(dependency).managed:
            return [dependency]
        scope = self._scan_packages or None
        implementors = [
            implementor
            for implementor in self._model.find_implementors(dependency, scope)
            if implementor.is_concrete_class
            and self._classifier.classify(implementor).origin not in _NOT_EXPANDED
        ]
        if not implementors:
            _LOGGER.debug("No managed implementor found for %s", dependency.qualified_name)
        return implementors

    def _register_support_beans(
        self, mappers: List[Classification], registry: BeanRegistry
    ) -> None:
        fragments = build_support_fragments(
            mappers,
            self._data_access.configs,
            self._data_access.datasource,
            self._project,
        )
        for bean_id, fragment in fragments:
            registry.register(bean_id, fragment, BeanOrigin.MAPPER_CONVENTION)


__all__ = ["CancelToken", "ScanCoordinator", "ScanOutcome", "ScanStatus"]
