"""Tests for merging data-access configuration across sources."""

from __future__ import annotations

from beanscan.config import DataSourceDefaults
from beanscan.datasource import AggregatedConfig, ConfigAggregator
from beanscan.datasource.mapper_scan import MAPPER_SCAN
from beanscan.project import detect_project
from beanscan.source_model import SnapshotSourceModel

from tests._fixtures.symbols import cls


def _aggregate(project, symbols=(), **kwargs) -> AggregatedConfig:
    model = SnapshotSourceModel(project.root, symbols)
    return ConfigAggregator(model, **kwargs).aggregate(detect_project(project.root))


def test_empty_project_gets_the_default_configuration(project) -> None:
    result = _aggregate(project)

    assert [config.name for config in result.configs] == ["sqlSessionFactory"]
    assert result.datasource.mode == "default"
    assert result.datasource.url == "jdbc:mysql://localhost:3306/test"


def test_xml_yaml_and_annotations_merge_by_factory_name(project) -> None:
    project.write(
        {
            "src/main/resources/spring/dao.xml": """
            <?xml version="1.0" encoding="UTF-8"?>
            <beans xmlns="http://www.springframework.org/schema/beans">
                <bean id="sqlSessionFactory" class="org.mybatis.spring.SqlSessionFactoryBean">
                    <property name="mapperLocations" value="classpath:mapper/*.xml"/>
                </bean>
            </beans>
            """,
            "src/main/resources/application.yml": """
            mybatis:
              mapper-locations: classpath:extra/*.xml
            """,
        }
    )
    app = cls("com.acme.App", annotations={MAPPER_SCAN: {"value": "com.acme.dao"}})

    result = _aggregate(project, [app])

    (config,) = result.configs
    assert config.name == "sqlSessionFactory"
    assert config.mapper_locations == ("classpath:mapper/*.xml", "classpath:extra/*.xml")
    assert config.base_packages == ("com.acme.dao",)


def test_declared_datasource_is_imported(project) -> None:
    project.write(
        {
            "src/main/resources/spring/datasource.xml": """
            <beans>
                <bean id="dataSource" class="com.zaxxer.hikari.HikariDataSource"/>
            </beans>
            """
        }
    )

    result = _aggregate(project)

    assert result.datasource.mode == "imported"
    assert result.datasource.import_location == "spring/datasource.xml"


def test_active_profile_selects_datasource_properties(project) -> None:
    project.write(
        {
            "src/main/resources/application.properties": """
            spring.profiles.active=dev
            spring.datasource.url=jdbc:mysql://db/base
            """,
            "src/main/resources/application-dev.properties": """
            spring.datasource.url=jdbc:h2:mem:dev
            spring.datasource.driver-class-name=org.h2.Driver
            """,
        }
    )

    default = _aggregate(project)
    overridden = _aggregate(project, active_profiles=["prod"])

    assert default.datasource.mode == "explicit"
    assert default.datasource.url == "jdbc:h2:mem:dev"
    assert default.datasource.driver == "org.h2.Driver"
    assert default.datasource.username == "root"
    assert overridden.datasource.url == "jdbc:mysql://db/base"


def test_configured_defaults_override_properties(project) -> None:
    project.write({"application.properties": "spring.datasource.url=jdbc:mysql://db/base\n"})

    result = _aggregate(
        project, datasource_defaults=DataSourceDefaults(url="jdbc:h2:mem:configured")
    )

    assert result.datasource.mode == "explicit"
    assert result.datasource.url == "jdbc:h2:mem:configured"


def test_malformed_sources_are_skipped(project) -> None:
    project.write(
        {
            "src/main/resources/broken.xml": "<beans><bean",
            "src/main/resources/application.yml": "mybatis: [unclosed\n",
            "src/main/resources/application.properties": "mybatis.mapper-locations=mapper/*.xml\n",
        }
    )

    result = _aggregate(project)

    (config,) = result.configs
    assert config.mapper_locations == ("mapper/*.xml",)


def test_generated_documents_are_not_inputs(project) -> None:
    project.write(
        {
            "src/test/resources/beanscan/Out.xml": """
            <?xml version="1.0" encoding="UTF-8"?>
            <!-- generated by beanscan for com.acme.Out -->
            <beans><bean id="dataSource" class="x.Y"/></beans>
            """,
            "src/main/resources/app.xml": "<beans/>",
        }
    )
    model = SnapshotSourceModel(project.root, [])
    aggregator = ConfigAggregator(model)

    assert aggregator.beans_files() == [project.path("src/main/resources/app.xml")]
    assert _aggregate(project).datasource.mode == "default"


def test_round_trips_through_its_cache_payload(project) -> None:
    result = _aggregate(project)

    assert AggregatedConfig.from_dict(result.to_dict()) == result
