"""Tests for the persistence mapper convention resolver."""

from __future__ import annotations

from beanscan.models import BeanOrigin, DataAccessConfig
from beanscan.resolvers.mappers import (
    MapperConventionResolver,
    read_mapper_namespace,
    select_config,
)

from tests._fixtures.symbols import MAPPER, cls, interface


def test_match_reasons_in_priority_order() -> None:
    resolver = MapperConventionResolver(namespace_index={"com.acme.OrderStore": "OrderStore.xml"})

    assert resolver.match_reason(interface("com.acme.UserMapper", annotations=[MAPPER])) == (
        "annotation"
    )
    assert resolver.match_reason(interface("com.acme.OrderStore")) == "mapper_xml"
    assert resolver.match_reason(interface("com.acme.UserDao")) == "suffix"
    assert resolver.match_reason(interface("com.acme.mapper.Users")) == "package"
    assert resolver.match_reason(interface("com.acme.Users")) is None


def test_concrete_classes_are_never_mappers() -> None:
    resolver = MapperConventionResolver()

    assert resolver.resolve(cls("com.acme.UserMapper", annotations=[MAPPER])) is None


def test_custom_suffixes_extend_the_defaults() -> None:
    resolver = MapperConventionResolver(suffixes=["Repo"])

    assert resolver.match_reason(interface("com.acme.UserRepo")) == "suffix"
    assert resolver.match_reason(interface("com.acme.UserMapper")) == "suffix"


def test_select_config_prefers_longest_covering_package() -> None:
    broad = DataAccessConfig(name="sqlSessionFactory", base_packages=("com.acme",))
    narrow = DataAccessConfig(
        name="reportingFactory",
        factory_bean_id="reportingFactory",
        base_packages=("com.acme.reporting",),
    )
    configs = [broad, narrow]

    assert select_config(interface("com.acme.reporting.dao.SalesMapper"), configs) is narrow
    assert select_config(interface("com.acme.orders.OrderMapper"), configs) is broad
    assert select_config(interface("org.other.OtherMapper"), configs) is broad
    assert select_config(interface("org.other.OtherMapper"), [narrow]) is narrow
    assert select_config(interface("org.other.OtherMapper"), []) is None


def test_resolve_records_factory_and_mapper_xml() -> None:
    config = DataAccessConfig(
        name="reportingFactory",
        factory_bean_id="reportingFactory",
        base_packages=("com.acme.reporting",),
    )
    resolver = MapperConventionResolver(
        namespace_index={"com.acme.reporting.SalesMapper": "mapper/SalesMapper.xml"},
        configs=[config],
    )

    result = resolver.resolve(interface("com.acme.reporting.SalesMapper"))

    assert result is not None
    assert result.origin is BeanOrigin.MAPPER_CONVENTION
    assert result.bean_id == "salesMapper"
    assert result.evidence["reason"] == "mapper_xml"
    assert result.evidence["mapper_xml"] == "mapper/SalesMapper.xml"
    assert result.evidence["factory_bean_id"] == "reportingFactory"


def test_unconfigured_mapper_uses_default_factory() -> None:
    result = MapperConventionResolver().resolve(interface("com.acme.UserMapper"))

    assert result is not None
    assert result.evidence["config"] == "sqlSessionFactory"
    assert result.evidence["factory_bean_id"] == "sqlSessionFactory"


def test_read_mapper_namespace(project) -> None:
    project.write(
        {
            "UserMapper.xml": """
            <?xml version="1.0" encoding="UTF-8"?>
            <mapper namespace=" com.acme.UserMapper ">
                <select id="all">select 1</select>
            </mapper>
            """,
            "beans.xml": "<beans/>",
            "broken.xml": "<mapper namespace=",
        }
    )

    assert read_mapper_namespace(project.path("UserMapper.xml")) == "com.acme.UserMapper"
    assert read_mapper_namespace(project.path("beans.xml")) is None
    assert read_mapper_namespace(project.path("broken.xml")) is None
