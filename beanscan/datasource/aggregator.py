"""Merges data-access configuration from XML, YAML, properties and annotations."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from ..config import DataSourceDefaults
from ..errors import ConfigurationFailure, MalformedDocumentError
from ..logging import get_logger
from ..models import DataAccessConfig, DataSourceSettings, ProjectContext
from ..resolvers.declarations import is_generated_document
from ..resolvers.mappers import DEFAULT_FACTORY_BEAN_ID
from ..source_model import SourceModel
from ..xmlfiles import sniff_root_tag
from .mapper_scan import configs_from_annotations
from .profiles import (
    APPLICATION_FILE,
    DatasourceProperties,
    PropertyDocument,
    active_profiles,
    interpret,
    read_property_documents,
)
from .xml_source import DEFAULT_DATASOURCE_ID, declared_bean_ids, read_xml_source

_LOGGER = get_logger("datasource.aggregator")

_PROPERTY_EXTENSIONS = ("yml", "yaml", "properties")


@dataclass(frozen=True)
class AggregatedConfig:
    """All data-access configurations plus the datasource settings to emit."""

    configs: Tuple[DataAccessConfig, ...]
    datasource: DataSourceSettings

    @classmethod
    def default(cls, datasource: DataSourceSettings | None = None) -> "AggregatedConfig":
        return cls(
            configs=(DataAccessConfig(name=DEFAULT_FACTORY_BEAN_ID),),
            datasource=datasource or DataSourceSettings(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "configs": [config.to_dict() for config in self.configs],
            "datasource": self.datasource.to_dict(),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "AggregatedConfig":
        return cls(
            configs=tuple(DataAccessConfig.from_dict(item) for item in payload["configs"]),
            datasource=DataSourceSettings.from_dict(payload["datasource"]),
        )


def _property_file_order(path: Path) -> Tuple[int, int, str]:
    match = APPLICATION_FILE.match(path.name)
    profiled = 1 if match and match.group("profile") else 0
    properties = 1 if path.suffix == ".properties" else 0
    return profiled, properties, str(path)


class ConfigAggregator:
    """Builds the list of :class:`DataAccessConfig` for a project.

    Sources are merged by logical name (the session factory bean id). A
    malformed source is logged and skipped; if aggregation fails outright a
    single default configuration is returned.
    """

    def __init__(
        self,
        source_model: SourceModel,
        *,
        active_profiles: Sequence[str] = (),
        datasource_defaults: DataSourceDefaults | None = None,
    ) -> None:
        self._model = source_model
        self._active_override = list(active_profiles)
        self._defaults = datasource_defaults or DataSourceDefaults()

    def load(self, project: ProjectContext) -> List[DataAccessConfig]:
        return list(self.aggregate(project).configs)

    def aggregate(self, project: ProjectContext) -> AggregatedConfig:
        try:
            return self._aggregate(project)
        except ConfigurationFailure as exc:
            _LOGGER.warning("Falling back to default data-access configuration: %s", exc)
            return AggregatedConfig.default(self._explicit_settings(DatasourceProperties()))

    def input_files(self) -> List[Path]:
        """Files whose content feeds aggregation, used to fingerprint the result."""
        return self.beans_files() + self._property_files()

    def beans_files(self) -> List[Path]:
        """Hand-written ``<beans>`` documents of the project, in path order."""
        return [
            path
            for path in sorted(self._model.find_files_by_extension("xml"))
            if sniff_root_tag(path) == "beans" and not is_generated_document(path)
        ]

    # ------------------------------------------------------------------
    # Internal helpers

    def _property_files(self) -> List[Path]:
        files: List[Path] = []
        for extension in _PROPERTY_EXTENSIONS:
            files.extend(
                path
                for path in self._model.find_files_by_extension(extension)
                if APPLICATION_FILE.match(path.name)
            )
        return sorted(files, key=_property_file_order)

    def _aggregate(self, project: ProjectContext) -> AggregatedConfig:
        merged: Dict[str, DataAccessConfig] = {}

        def _add(configs: Iterable[DataAccessConfig]) -> None:
            for config in configs:
                existing = merged.get(config.name)
                merged[config.name] = existing.merge(config) if existing else config

        beans_files = self.beans_files()
        for path in beans_files:
            try:
                _add(read_xml_source(path).configs)
            except MalformedDocumentError as exc:
                _LOGGER.warning("Skipping XML configuration %s", exc)

        documents: List[PropertyDocument] = []
        for path in self._property_files():
            try:
                documents.extend(read_property_documents(path))
            except MalformedDocumentError as exc:
                _LOGGER.warning("Skipping property source %s", exc)
        active = active_profiles(documents, self._active_override)
        properties = interpret(documents, active)
        _add(properties.configs)

        _add(configs_from_annotations(self._model.find_all_classes()))

        configs = tuple(merged.values())
        if not configs:
            configs = AggregatedConfig.default().configs
        datasource = self._datasource(beans_files, configs, properties.datasource, project)
        _LOGGER.debug(
            "Aggregated %d data-access configuration(s); active profiles: %s",
            len(configs),
            ", ".join(active) or "none",
        )
        return AggregatedConfig(configs=configs, datasource=datasource)

    def _datasource(
        self,
        beans_files: Sequence[Path],
        configs: Sequence[DataAccessConfig],
        properties: DatasourceProperties,
        project: ProjectContext,
    ) -> DataSourceSettings:
        wanted = {config.datasource_bean_id for config in configs}
        wanted.add(DEFAULT_DATASOURCE_ID)
        for path in beans_files:
            try:
                declared = declared_bean_ids(path)
            except MalformedDocumentError:
                continue
            if wanted.intersection(declared):
                return DataSourceSettings(
                    mode="imported", import_location=project.classpath_location(path)
                )
        return self._explicit_settings(properties)

    def _explicit_settings(self, properties: DatasourceProperties) -> DataSourceSettings:
        defaults = DataSourceSettings()
        configured = self._defaults
        if not properties.any() and not any(
            (configured.url, configured.username, configured.password, configured.driver)
        ):
            return defaults
        return DataSourceSettings(
            mode="explicit",
            url=configured.url or properties.url or defaults.url,
            username=configured.username or properties.username or defaults.username,
            password=configured.password or properties.password or defaults.password,
            driver=configured.driver or properties.driver or defaults.driver,
        )


__all__ = ["AggregatedConfig", "ConfigAggregator"]
