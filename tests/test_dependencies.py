"""Tests for dependency extraction."""

from __future__ import annotations

from beanscan.dependencies import DependencyExtractor
from beanscan.models import ConstructorSymbol, FieldSymbol, ParameterSymbol

from tests._fixtures.symbols import (
    RESOURCE,
    bean_method,
    cls,
    configuration,
    ctor,
    injected,
    interface,
    plain_field,
)


def _names(symbols) -> list[str]:
    return [symbol.qualified_name for symbol in symbols]


def test_injected_fields_respect_modifiers(project) -> None:
    target = cls(
        "com.acme.OrderService",
        fields=[
            injected("repo", "com.acme.OrderRepo"),
            injected("audit", "com.acme.Audit", annotation=RESOURCE),
            injected("shared", "com.acme.Shared", static=True),
            injected("fixed", "com.acme.Fixed", final=True),
            plain_field("helper", "com.acme.Helper"),
        ],
    )
    model = project.model(
        [
            target,
            cls("com.acme.OrderRepo"),
            cls("com.acme.Audit"),
            cls("com.acme.Shared"),
            cls("com.acme.Fixed"),
            cls("com.acme.Helper"),
        ]
    )

    assert _names(DependencyExtractor(model).extract(target)) == [
        "com.acme.OrderRepo",
        "com.acme.Audit",
    ]


def test_constructor_parameters_and_library_types(project) -> None:
    target = cls(
        "com.acme.OrderService",
        constructors=[ctor("com.acme.Repo", "java.util.UUID", "com.vendor.Client", "com.acme.Missing")],
    )
    model = project.model(
        [target, cls("com.acme.Repo"), cls("com.vendor.Client", library=True)]
    )

    assert _names(DependencyExtractor(model).extract(target)) == ["com.acme.Repo"]


def test_configured_library_prefixes_are_dropped(project) -> None:
    target = cls("com.acme.Svc", constructors=[ctor("com.acme.Repo", "org.vendor.Thing")])
    model = project.model([target, cls("com.acme.Repo"), cls("org.vendor.Thing")])
    extractor = DependencyExtractor(model, library_prefixes=("java.", "org.vendor."))

    assert _names(extractor.extract(target)) == ["com.acme.Repo"]


def test_container_types_contribute_their_arguments(project) -> None:
    target = cls(
        "com.acme.Dispatcher",
        fields=[
            injected("handlers", "java.util.List", type_arguments=["com.acme.Handler"]),
            injected(
                "byName",
                "java.util.Map",
                type_arguments=["java.lang.String", "com.acme.Route"],
            ),
        ],
        constructors=[
            ConstructorSymbol(
                parameters=(
                    ParameterSymbol(
                        "clock", "java.util.Optional", type_arguments=("com.acme.Clock",)
                    ),
                )
            )
        ],
    )
    model = project.model(
        [target, interface("com.acme.Handler"), cls("com.acme.Route"), cls("com.acme.Clock")]
    )

    assert _names(DependencyExtractor(model).extract(target)) == [
        "com.acme.Handler",
        "com.acme.Route",
        "com.acme.Clock",
    ]


def test_inherited_injected_fields_are_included(project) -> None:
    base = cls("com.acme.BaseService", fields=[injected("audit", "com.acme.Audit")], abstract=True)
    target = cls(
        "com.acme.OrderService",
        fields=[injected("repo", "com.acme.Repo")],
        supertype="com.acme.BaseService",
    )
    model = project.model([base, target, cls("com.acme.Audit"), cls("com.acme.Repo")])

    assert _names(DependencyExtractor(model).extract(target)) == [
        "com.acme.Repo",
        "com.acme.Audit",
    ]


def test_lombok_constructors_use_fields(project) -> None:
    required = cls(
        "com.acme.Required",
        annotations=["lombok.RequiredArgsConstructor"],
        fields=[
            plain_field("repo", "com.acme.Repo", final=True),
            plain_field("cache", "com.acme.Cache"),
        ],
    )
    everything = cls(
        "com.acme.Everything",
        annotations=["lombok.AllArgsConstructor"],
        fields=[
            plain_field("repo", "com.acme.Repo", final=True),
            plain_field("cache", "com.acme.Cache"),
            FieldSymbol("LOG", "com.acme.Cache", static=True, final=True),
        ],
    )
    model = project.model([required, everything, cls("com.acme.Repo"), cls("com.acme.Cache")])
    extractor = DependencyExtractor(model)

    assert _names(extractor.extract(required)) == ["com.acme.Repo"]
    assert _names(extractor.extract(everything)) == ["com.acme.Repo", "com.acme.Cache"]


def test_configuration_classes_contribute_factory_types(project) -> None:
    config = configuration(
        "com.acme.AppConfig",
        bean_method("clock", "com.acme.Clock", "com.acme.Zone"),
    )
    model = project.model([config, cls("com.acme.Clock"), cls("com.acme.Zone")])

    assert _names(DependencyExtractor(model).extract(config)) == [
        "com.acme.Clock",
        "com.acme.Zone",
    ]


def test_duplicates_and_self_references_are_removed(project) -> None:
    target = cls(
        "com.acme.Node",
        fields=[injected("next", "com.acme.Node"), injected("repo", "com.acme.Repo")],
        constructors=[ctor("com.acme.Repo")],
    )
    model = project.model([target, cls("com.acme.Repo")])

    assert _names(DependencyExtractor(model).extract(target)) == ["com.acme.Repo"]
