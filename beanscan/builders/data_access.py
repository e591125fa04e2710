"""Support beans required once mapper interfaces are part of the assembly."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from ..datasource.matcher import MapperLocationMatcher
from ..models import Classification, DataAccessConfig, DataSourceSettings, ProjectContext
from ..resolvers.mappers import DEFAULT_FACTORY_BEAN_ID
from .base import render


def _mapper_locations(
    mappers: Sequence[Classification],
    config: DataAccessConfig,
    project: ProjectContext,
) -> List[str]:
    matcher = MapperLocationMatcher(config.mapper_locations)
    locations: List[str] = []
    for classification in mappers:
        mapper_xml = classification.evidence.get("mapper_xml")
        if not mapper_xml:
            continue
        location = project.classpath_location(Path(mapper_xml))
        if matcher and not matcher.matches(location):
            continue
        entry = f"classpath:{location}"
        if entry not in locations:
            locations.append(entry)
    if not locations:
        locations = list(config.mapper_locations)
    return locations


def build_support_fragments(
    mappers: Sequence[Classification],
    configs: Sequence[DataAccessConfig],
    datasource: DataSourceSettings,
    project: ProjectContext,
) -> List[Tuple[str, str]]:
    """Return ``(bean id, fragment)`` for datasource and session factory beans.

    One session factory is produced per configuration actually used by the
    given mapper classifications, each preceded by its datasource.
    """
    by_config: Dict[str, List[Classification]] = {}
    for classification in mappers:
        name = classification.evidence.get("config") or DEFAULT_FACTORY_BEAN_ID
        by_config.setdefault(name, []).append(classification)

    known = {config.name: config for config in configs}
    fragments: List[Tuple[str, str]] = []
    datasource_emitted = False
    for name, classifications in by_config.items():
        config = known.get(name) or DataAccessConfig(name=name, factory_bean_id=name)
        # A single import covers every datasource bean the imported file declares.
        if datasource.mode != "imported" or not datasource_emitted:
            fragments.append(
                (
                    config.datasource_bean_id,
                    render(
                        "datasource.xml.j2",
                        bean_id=config.datasource_bean_id,
                        settings=datasource,
                    ),
                )
            )
            datasource_emitted = True
        fragments.append(
            (
                config.factory_bean_id,
                render(
                    "session_factory.xml.j2",
                    bean_id=config.factory_bean_id,
                    datasource_bean_id=config.datasource_bean_id,
                    locations=_mapper_locations(classifications, config, project),
                ),
            )
        )
    return fragments


__all__ = ["build_support_fragments"]
