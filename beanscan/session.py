"""Scan sessions: the lifetime-scoped context shared by every scan of a project."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .classifier import OriginClassifier
from .config import BeanScanConfig, load_config
from .coordinator import CancelToken, ScanCoordinator, ScanOutcome, ScanStatus
from .dependencies import DependencyExtractor
from .document import write_document
from .errors import UnresolvedClassError
from .indices import DerivedIndices, IndexBuilder
from .logging import get_logger
from .models import BeanDefinition, BeanOrigin, ProjectContext
from .project import detect_project, load_ignore_rules
from .registry import BeanRegistry
from .resolvers import build_resolvers
from .source_model import SourceModel, load_snapshot
from .stores import MISS, ContextCache, DiskMirror

_LOGGER = get_logger("session")

_SCAN_BUCKET = "bean_classes"

_DEFAULT_OUTPUT_DIR = Path("src") / "test" / "resources" / "beanscan"


@dataclass(frozen=True)
class ScanResult:
    """What one scan produced, ready to render or serialise."""

    target: str
    status: ScanStatus
    definitions: Tuple[BeanDefinition, ...]
    skipped: Tuple[str, ...] = ()
    collisions: Tuple[Tuple[str, str], ...] = ()
    from_cache: bool = False
    target_method: Optional[str] = None

    @property
    def fragments(self) -> List[str]:
        return [definition.fragment for definition in self.definitions]

    @property
    def complete(self) -> bool:
        return self.status is ScanStatus.COMPLETE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "target_method": self.target_method,
            "status": self.status.value,
            "beans": [definition.to_dict() for definition in self.definitions],
            "skipped": list(self.skipped),
            "collisions": [list(item) for item in self.collisions],
            "from_cache": self.from_cache,
        }


class ScanSession:
    """Owns the project context, source model, configuration and context cache.

    A session is safe to share between threads scanning different targets;
    each scan gets its own registry, visited set and classifier. Call
    :meth:`close` (or use the session as a context manager) to flush pending
    cache writes.
    """

    def __init__(
        self,
        root: Path,
        source_model: SourceModel,
        config: BeanScanConfig | None = None,
        *,
        extra_inputs: Sequence[Path] = (),
        snapshot: Path | None = None,
    ) -> None:
        self.root = root.expanduser().resolve()
        self.source_model = source_model
        self.config = config or load_config(self.root)
        self._snapshot = snapshot
        self._extra_inputs = tuple(extra_inputs)
        self._rules = load_ignore_rules(self.root, self.config.exclude_paths)
        project = detect_project(self.root, self._rules)
        mirror = None
        if self.config.cache.enabled:
            mirror = DiskMirror(self.config.cache.directory, self.root)
        self.cache: ContextCache[DerivedIndices] = ContextCache(
            project,
            indices_builder=self._index_builder(source_model),
            mirror=mirror,
        )

    @property
    def project(self) -> ProjectContext:
        return self.cache.project

    def scan(
        self,
        target_name: str,
        *,
        target_method: str | None = None,
        cancel_token: CancelToken | None = None,
        timeout: float | None = None,
    ) -> ScanResult:
        """Discover the bean closure of ``target_name``.

        Raises :class:`UnresolvedClassError` when the target is unknown; a
        cancelled or timed-out scan returns a partial result instead.
        """
        model = self.source_model
        target = model.resolve(target_name)
        if target is None or target.library:
            raise UnresolvedClassError(target_name)

        indices = self.cache.indices()
        key = f"{_SCAN_BUCKET}:{target_name}"
        cached = self._cached_result(key, target_name, target_method, indices, model)
        if cached is not None:
            _LOGGER.info("Reusing cached scan of %s", target_name)
            return cached

        token = cancel_token or CancelToken()
        if timeout is not None:
            token.set_timeout(timeout)

        settings = self.config.scan
        classifier = OriginClassifier(build_resolvers(indices, settings))
        extractor = DependencyExtractor(
            model,
            injection_annotations=settings.injection_annotations,
            library_prefixes=settings.library_prefixes,
        )
        coordinator = ScanCoordinator(
            model,
            classifier,
            extractor,
            project=self.project,
            data_access=indices.data_access,
            scan_packages=indices.scan_packages,
        )
        registry = BeanRegistry()
        outcome = coordinator.scan_and_build(target, registry, token)
        result = self._result(target_name, target_method, registry, outcome)
        if result.complete:
            self._store(key, result, indices, model)
        _LOGGER.info(
            "Scan of %s %s with %d bean(s)",
            target_name,
            result.status.value,
            len(result.definitions),
        )
        return result

    def refresh(self) -> DerivedIndices:
        """Rebuild the derived indices from the current state of the project.

        A session opened over a snapshot re-reads it first, and scan results
        computed against the previous indices are dropped.
        """
        builder = None
        if self._snapshot is not None:
            model = load_snapshot(self._snapshot, self.root, ignore_rules=self._rules)
            self.source_model = model
            builder = self._index_builder(model)
        indices = self.cache.refresh(builder)
        self.cache.replace_bucket(_SCAN_BUCKET, {}, {})
        return indices

    def write_document(self, result: ScanResult, path: Path | None = None) -> Path:
        """Render ``result`` and write it, by default under the test resources."""
        output = path or self._default_output(result.target)
        if not output.is_absolute():
            output = self.root / output
        label = result.target
        if result.target_method:
            label = f"{label}#{result.target_method}"
        return write_document(result.definitions, output, target=label)

    def clear_cache(self) -> None:
        self.cache.clear()
        _LOGGER.info("Cleared cached project state for %s", self.root)

    def close(self) -> None:
        self.cache.flush()
        self.cache.close()

    def __enter__(self) -> "ScanSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internal helpers

    def _index_builder(self, model: SourceModel) -> IndexBuilder:
        return IndexBuilder(model, self.config, extra_inputs=self._extra_inputs)

    def _default_output(self, target_name: str) -> Path:
        if self.config.output.path:
            return Path(self.config.output.path)
        simple_name = target_name.rsplit(".", 1)[-1]
        return _DEFAULT_OUTPUT_DIR / f"{simple_name}.xml"

    @staticmethod
    def _result(
        target_name: str,
        target_method: Optional[str],
        registry: BeanRegistry,
        outcome: ScanOutcome,
    ) -> ScanResult:
        return ScanResult(
            target=target_name,
            status=outcome.status,
            definitions=tuple(registry.definitions()),
            skipped=tuple(outcome.skipped),
            collisions=tuple(outcome.collisions),
            target_method=target_method,
        )

    def _store(
        self, key: str, result: ScanResult, indices: DerivedIndices, model: SourceModel
    ) -> None:
        source_files = sorted(
            {
                str(path)
                for path in (
                    model.source_path(definition.source)
                    for definition in result.definitions
                    if definition.source is not None
                )
                if path is not None
            }
        )
        payload = {
            "source_files": source_files,
            "indices": indices.inputs.checksum,
            "beans": [definition.to_dict() for definition in result.definitions],
            "skipped": list(result.skipped),
            "collisions": [list(item) for item in result.collisions],
        }
        fingerprint = self.cache.fingerprint([*source_files, *indices.inputs.paths])
        self.cache.put(key, payload, fingerprint)

    def _cached_result(
        self,
        key: str,
        target_name: str,
        target_method: Optional[str],
        indices: DerivedIndices,
        model: SourceModel,
    ) -> Optional[ScanResult]:
        payload = self.cache.get(key)
        if payload is MISS:
            return None
        if not isinstance(payload, dict) or payload.get("indices") != indices.inputs.checksum:
            _LOGGER.debug("Cached scan of %s predates the current indices", target_name)
            self.cache.invalidate(key)
            return None
        try:
            definitions = tuple(
                BeanDefinition(
                    bean_id=str(item["id"]),
                    origin=BeanOrigin(item["origin"]),
                    fragment=str(item["fragment"]),
                    source=(
                        model.resolve(item["class_name"])
                        if item.get("class_name")
                        else None
                    ),
                )
                for item in payload["beans"]
            )
            return ScanResult(
                target=target_name,
                status=ScanStatus.COMPLETE,
                definitions=definitions,
                skipped=tuple(payload.get("skipped") or ()),
                collisions=tuple(tuple(item) for item in payload.get("collisions") or ()),
                from_cache=True,
                target_method=target_method,
            )
        except (KeyError, TypeError, ValueError) as exc:
            _LOGGER.warning("Discarding unreadable cached scan of %s: %s", target_name, exc)
            self.cache.invalidate(key)
            return None


def open_session(
    root: Path,
    snapshot: Path,
    config: BeanScanConfig | None = None,
) -> ScanSession:
    """Create a session over a JSON symbol snapshot exported for ``root``."""
    root = root.expanduser().resolve()
    config = config or load_config(root)
    rules = load_ignore_rules(root, config.exclude_paths)
    snapshot_path = snapshot.expanduser().resolve()
    model = load_snapshot(snapshot_path, root, ignore_rules=rules)
    return ScanSession(
        root, model, config, extra_inputs=(snapshot_path,), snapshot=snapshot_path
    )


__all__ = ["ScanResult", "ScanSession", "open_session"]
