"""Derived project indices, rebuilt as one bundle on each context refresh."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from .component_scan import collect_scan_packages
from .config import CONFIG_FILENAME, BeanScanConfig
from .datasource import AggregatedConfig, ConfigAggregator
from .logging import get_logger
from .models import ClassSymbol
from .resolvers.declarations import DeclaredBean, build_declaration_index
from .resolvers.factory_methods import (
    FactoryProvision,
    build_factory_index,
    is_configuration_class,
)
from .resolvers.mappers import read_mapper_namespace
from .source_model import SourceModel
from .stores import MISS, ContextCache, Fingerprint
from .xmlfiles import sniff_root_tag

_LOGGER = get_logger("indices")

_SOURCE_EXTENSIONS = ("java", "kt")


@dataclass(frozen=True)
class DerivedIndices:
    """Everything the resolvers and the coordinator look up during one scan.

    ``inputs`` fingerprints the files the bundle was derived from; scan
    results built against the bundle are only reusable while it matches.
    """

    configuration_classes: Mapping[str, str]
    factory_index: Mapping[str, FactoryProvision]
    declarations: Mapping[str, DeclaredBean]
    mapper_namespaces: Mapping[str, str]
    data_access: AggregatedConfig
    scan_packages: Tuple[str, ...]
    inputs: Fingerprint


class IndexBuilder:
    """Builds :class:`DerivedIndices` for a :class:`ContextCache`.

    Each cache bucket is consulted first; only stale or missing parts are
    recomputed and written back.
    """

    def __init__(
        self,
        source_model: SourceModel,
        config: BeanScanConfig,
        *,
        extra_inputs: Sequence[Path] = (),
    ) -> None:
        self._model = source_model
        self._config = config
        self._extra_inputs = [Path(path) for path in extra_inputs]

    def __call__(self, cache: ContextCache[DerivedIndices]) -> DerivedIndices:
        aggregator = ConfigAggregator(
            self._model,
            active_profiles=self._config.active_profiles,
            datasource_defaults=self._config.datasource,
        )
        source_files = self._source_files()
        config_file = self._config.root / CONFIG_FILENAME
        sources = cache.fingerprint([*source_files, *self._extra_inputs])
        xml_files = sorted(self._model.find_files_by_extension("xml"))

        configuration_classes = self._configuration_classes(cache, sources)
        configuration_symbols = [
            symbol
            for symbol in (self._model.resolve(name) for name in configuration_classes)
            if symbol is not None
        ]
        factory_index = build_factory_index(
            configuration_symbols, self._model, self._config.scan.stereotypes
        )
        declarations = build_declaration_index(xml_files)
        mapper_namespaces = self._mapper_namespaces(cache, xml_files)

        config_inputs = aggregator.input_files()
        data_access = self._data_access(
            cache,
            aggregator,
            cache.fingerprint([*config_inputs, *source_files, *self._extra_inputs, config_file]),
        )
        scan_packages = self._scan_packages(
            cache,
            aggregator.beans_files(),
            cache.fingerprint([*aggregator.beans_files(), *source_files, *self._extra_inputs]),
        )

        inputs = cache.fingerprint(
            [*source_files, *xml_files, *config_inputs, *self._extra_inputs, config_file]
        )
        _LOGGER.info(
            "Indexed %d configuration class(es), %d declared bean(s), %d mapper namespace(s)",
            len(configuration_classes),
            len(declarations),
            len(mapper_namespaces),
        )
        return DerivedIndices(
            configuration_classes=configuration_classes,
            factory_index=factory_index,
            declarations=declarations,
            mapper_namespaces=mapper_namespaces,
            data_access=data_access,
            scan_packages=scan_packages,
            inputs=inputs,
        )

    # ------------------------------------------------------------------
    # Buckets

    def _configuration_classes(
        self, cache: ContextCache[DerivedIndices], sources: Fingerprint
    ) -> Dict[str, str]:
        cached = cache.entries("configuration_classes", current=sources)
        if cached and all(self._still_configuration(name) for name in cached):
            _LOGGER.debug("Reusing %d cached configuration class(es)", len(cached))
            return {name: str(path) for name, path in cached.items()}

        found: Dict[str, str] = {}
        for symbol in self._model.find_all_classes():
            if is_configuration_class(symbol):
                found[symbol.qualified_name] = self._path_of(symbol)
        cache.replace_bucket(
            "configuration_classes", dict(found), {name: sources for name in found}
        )
        return found

    def _mapper_namespaces(
        self, cache: ContextCache[DerivedIndices], xml_files: Sequence[Path]
    ) -> Dict[str, str]:
        cached: Dict[str, str] = {
            name: str(path) for name, path in cache.entries("mapper_index").items()
        }
        covered = set(cached.values())
        namespaces = dict(cached)
        changed = False
        for path in xml_files:
            if str(path) in covered or sniff_root_tag(path) != "mapper":
                continue
            namespace = read_mapper_namespace(path)
            if namespace is None:
                continue
            namespaces.setdefault(namespace, str(path))
            changed = True

        current_files = {str(path) for path in xml_files}
        for namespace, path in list(namespaces.items()):
            if path not in current_files:
                del namespaces[namespace]
                changed = True

        if changed or len(namespaces) != len(cached):
            cache.replace_bucket(
                "mapper_index",
                dict(namespaces),
                {name: cache.fingerprint([path]) for name, path in namespaces.items()},
            )
        return dict(sorted(namespaces.items()))

    def _data_access(
        self,
        cache: ContextCache[DerivedIndices],
        aggregator: ConfigAggregator,
        fingerprint: Fingerprint,
    ) -> AggregatedConfig:
        payload = cache.get("datasource_config:default", current=fingerprint)
        if payload is not MISS:
            try:
                return AggregatedConfig.from_dict(payload)
            except (KeyError, TypeError, ValueError) as exc:
                _LOGGER.warning("Discarding unreadable cached data-access settings: %s", exc)
                cache.invalidate("datasource_config:default")
        aggregated = aggregator.aggregate(cache.project)
        cache.put("datasource_config:default", aggregated.to_dict(), fingerprint)
        return aggregated

    def _scan_packages(
        self,
        cache: ContextCache[DerivedIndices],
        beans_files: Sequence[Path],
        fingerprint: Fingerprint,
    ) -> Tuple[str, ...]:
        payload: Any = cache.get("scan_packages:packages", current=fingerprint)
        if isinstance(payload, list):
            return tuple(str(item) for item in payload)
        packages = collect_scan_packages(self._model.find_all_classes(), beans_files)
        cache.put("scan_packages:packages", list(packages), fingerprint)
        return packages

    # ------------------------------------------------------------------
    # Internal helpers

    def _source_files(self) -> List[Path]:
        files: List[Path] = []
        for extension in _SOURCE_EXTENSIONS:
            files.extend(self._model.find_files_by_extension(extension))
        return sorted(files)

    def _still_configuration(self, qualified_name: str) -> bool:
        symbol = self._model.resolve(qualified_name)
        return symbol is not None and is_configuration_class(symbol)

    def _path_of(self, symbol: ClassSymbol) -> str:
        path = self._model.source_path(symbol)
        return str(path) if path is not None else ""


__all__ = ["DerivedIndices", "IndexBuilder"]
