"""Tests for MyBatis wiring read from <beans> XML files."""

from __future__ import annotations

import pytest

from beanscan.datasource.xml_source import declared_bean_ids, read_xml_source
from beanscan.errors import MalformedDocumentError

_DAO_XML = """
<?xml version="1.0" encoding="UTF-8"?>
<beans xmlns="http://www.springframework.org/schema/beans">
    <bean id="mainDs" class="org.apache.commons.dbcp2.BasicDataSource"/>
    <bean id="mainFactory" class="org.mybatis.spring.SqlSessionFactoryBean">
        <property name="dataSource" ref="mainDs"/>
        <property name="mapperLocations">
            <array>
                <value>classpath:mapper/a/*.xml</value>
                <value>classpath:mapper/b/*.xml</value>
            </array>
        </property>
    </bean>
    <bean class="org.mybatis.spring.mapper.MapperScannerConfigurer">
        <property name="basePackage" value="com.acme.a, com.acme.b"/>
        <property name="sqlSessionFactoryBeanName" value="mainFactory"/>
    </bean>
</beans>
"""


def test_factory_and_scanner_are_read(project) -> None:
    project.write({"dao.xml": _DAO_XML})

    result = read_xml_source(project.path("dao.xml"))

    factory, scanner = result.configs
    assert factory.name == "mainFactory"
    assert factory.datasource_bean_id == "mainDs"
    assert factory.mapper_locations == ("classpath:mapper/a/*.xml", "classpath:mapper/b/*.xml")
    assert scanner.name == "mainFactory"
    assert scanner.base_packages == ("com.acme.a", "com.acme.b")
    assert result.datasource_ids == ["mainDs"]

    merged = factory.merge(scanner)
    assert merged.datasource_bean_id == "mainDs"
    assert merged.base_packages == ("com.acme.a", "com.acme.b")


def test_defaults_apply_when_ids_and_refs_are_missing(project) -> None:
    project.write(
        {
            "dao.xml": """
            <beans>
                <bean class="org.mybatis.spring.SqlSessionFactoryBean"/>
                <bean class="org.mybatis.spring.mapper.MapperScannerConfigurer">
                    <property name="basePackage">
                        <value>com.acme.dao</value>
                    </property>
                </bean>
            </beans>
            """
        }
    )

    factory, scanner = read_xml_source(project.path("dao.xml")).configs

    assert factory.name == "sqlSessionFactory"
    assert factory.datasource_bean_id == "dataSource"
    assert scanner.factory_bean_id == "sqlSessionFactory"
    assert scanner.base_packages == ("com.acme.dao",)


def test_non_beans_documents_yield_nothing(project) -> None:
    project.write({"UserMapper.xml": '<mapper namespace="com.acme.UserMapper"/>'})

    assert read_xml_source(project.path("UserMapper.xml")).configs == []
    assert declared_bean_ids(project.path("UserMapper.xml")) == {}


def test_declared_bean_ids_lists_identified_beans(project) -> None:
    project.write({"dao.xml": _DAO_XML})

    assert declared_bean_ids(project.path("dao.xml")) == {
        "mainDs": "org.apache.commons.dbcp2.BasicDataSource",
        "mainFactory": "org.mybatis.spring.SqlSessionFactoryBean",
    }


def test_malformed_xml_raises(project) -> None:
    project.write({"dao.xml": "<beans><bean"})

    with pytest.raises(MalformedDocumentError):
        read_xml_source(project.path("dao.xml"))
