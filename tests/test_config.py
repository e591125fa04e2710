"""Tests for beanscan.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from beanscan.config import (
    DEFAULT_LIBRARY_PREFIXES,
    BeanScanConfig,
    ConfigError,
    load_config,
)


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, BeanScanConfig)
    assert config.root == tmp_path.resolve()
    assert config.scan.stereotypes == []
    assert config.scan.library_prefixes == list(DEFAULT_LIBRARY_PREFIXES)
    assert config.exclude_paths == []
    assert config.active_profiles == []
    assert config.cache.enabled is True
    assert config.output.path is None
    assert config.datasource.url is None


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".beanscan.yml"
    config_file.write_text(
        """
scan:
  stereotypes: [com.acme.annotations.Task]
  injection_annotations:
    - com.acme.annotations.Wire
  mapper_annotations: com.acme.annotations.Dao
  mapper_suffixes: [Repo]
  library_prefixes: [org.apache., java.]
profiles:
  active: [dev, local]
cache:
  enabled: "no"
  directory: .cache/beanscan
output:
  path: build/beans.xml
datasource:
  url: jdbc:h2:mem:test
  username: sa
  password: ""
  driver: org.h2.Driver
exclude_paths:
  - "generated/"
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.scan.stereotypes == ["com.acme.annotations.Task"]
    assert config.scan.injection_annotations == ["com.acme.annotations.Wire"]
    assert config.scan.mapper_annotations == ["com.acme.annotations.Dao"]
    assert config.scan.mapper_suffixes == ["Repo"]
    assert config.scan.library_prefixes == [*DEFAULT_LIBRARY_PREFIXES, "org.apache."]
    assert config.active_profiles == ["dev", "local"]
    assert config.cache.enabled is False
    assert config.cache.directory == tmp_path.resolve() / ".cache" / "beanscan"
    assert config.output.path == "build/beans.xml"
    assert config.datasource.url == "jdbc:h2:mem:test"
    assert config.datasource.username == "sa"
    assert config.datasource.password == ""
    assert config.datasource.driver == "org.h2.Driver"
    assert config.exclude_paths == ["generated/"]


def test_load_config_accepts_a_sibling_path(tmp_path: Path) -> None:
    (tmp_path / ".beanscan.yml").write_text("output:\n  path: out.xml\n", encoding="utf-8")

    config = load_config(tmp_path / "pom.xml")

    assert config.output.path == "out.xml"


def test_load_config_treats_empty_file_as_defaults(tmp_path: Path) -> None:
    (tmp_path / ".beanscan.yml").write_text("\n", encoding="utf-8")

    assert load_config(tmp_path).scan.stereotypes == []


def test_load_config_rejects_invalid_yaml(tmp_path: Path) -> None:
    (tmp_path / ".beanscan.yml").write_text("scan: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_rejects_non_mapping_root(tmp_path: Path) -> None:
    (tmp_path / ".beanscan.yml").write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)
