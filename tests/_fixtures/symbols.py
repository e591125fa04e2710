"""Factories for class symbols used across the test-suite."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Union

from beanscan.models import (
    ClassKind,
    ClassSymbol,
    ConstructorSymbol,
    FieldSymbol,
    MethodSymbol,
    ParameterSymbol,
)

COMPONENT = "org.springframework.stereotype.Component"
SERVICE = "org.springframework.stereotype.Service"
REPOSITORY = "org.springframework.stereotype.Repository"
CONFIGURATION = "org.springframework.context.annotation.Configuration"
BEAN = "org.springframework.context.annotation.Bean"
AUTOWIRED = "org.springframework.beans.factory.annotation.Autowired"
RESOURCE = "javax.annotation.Resource"
MAPPER = "org.apache.ibatis.annotations.Mapper"

Annotations = Union[Iterable[str], Mapping[str, Mapping[str, Any]]]


def _annotations(value: Annotations) -> Dict[str, Dict[str, Any]]:
    if isinstance(value, Mapping):
        return {name: dict(attributes) for name, attributes in value.items()}
    return {name: {} for name in value}


def cls(
    name: str,
    *,
    annotations: Annotations = (),
    fields: Sequence[FieldSymbol] = (),
    constructors: Sequence[ConstructorSymbol] = (),
    methods: Sequence[MethodSymbol] = (),
    supertype: Optional[str] = None,
    interfaces: Sequence[str] = (),
    abstract: bool = False,
    library: bool = False,
    source_file: Optional[str] = None,
) -> ClassSymbol:
    return ClassSymbol(
        qualified_name=name,
        kind=ClassKind.CLASS,
        annotations=_annotations(annotations),
        fields=tuple(fields),
        constructors=tuple(constructors),
        methods=tuple(methods),
        supertype=supertype,
        interfaces=tuple(interfaces),
        abstract=abstract,
        library=library,
        source_file=source_file,
    )


def interface(
    name: str,
    *,
    annotations: Annotations = (),
    interfaces: Sequence[str] = (),
    source_file: Optional[str] = None,
) -> ClassSymbol:
    return ClassSymbol(
        qualified_name=name,
        kind=ClassKind.INTERFACE,
        annotations=_annotations(annotations),
        interfaces=tuple(interfaces),
        source_file=source_file,
    )


def service(name: str, *deps: str, **kwargs: Any) -> ClassSymbol:
    """A ``@Service`` class with one ``@Autowired`` field per dependency type."""
    fields = [injected(f"dep{index}", dep) for index, dep in enumerate(deps)]
    return cls(name, annotations=[SERVICE], fields=fields, **kwargs)


def injected(
    name: str,
    type_name: str,
    *,
    annotation: str = AUTOWIRED,
    static: bool = False,
    final: bool = False,
    type_arguments: Sequence[str] = (),
) -> FieldSymbol:
    return FieldSymbol(
        name=name,
        type_name=type_name,
        annotations={annotation: {}} if annotation else {},
        static=static,
        final=final,
        type_arguments=tuple(type_arguments),
    )


def plain_field(name: str, type_name: str, *, final: bool = False) -> FieldSymbol:
    return FieldSymbol(name=name, type_name=type_name, final=final)


def ctor(*types: str) -> ConstructorSymbol:
    return ConstructorSymbol(
        parameters=tuple(
            ParameterSymbol(name=f"arg{index}", type_name=type_name)
            for index, type_name in enumerate(types)
        )
    )


def bean_method(
    name: str,
    return_type: str,
    *parameter_types: str,
    bean_name: Optional[str] = None,
) -> MethodSymbol:
    attributes: Dict[str, Any] = {"name": bean_name} if bean_name else {}
    return MethodSymbol(
        name=name,
        return_type=return_type,
        parameters=tuple(
            ParameterSymbol(name=f"arg{index}", type_name=type_name)
            for index, type_name in enumerate(parameter_types)
        ),
        annotations={BEAN: attributes},
    )


def configuration(name: str, *methods: MethodSymbol, **kwargs: Any) -> ClassSymbol:
    return cls(name, annotations=[CONFIGURATION], methods=methods, **kwargs)


__all__ = [
    "AUTOWIRED",
    "BEAN",
    "COMPONENT",
    "CONFIGURATION",
    "MAPPER",
    "REPOSITORY",
    "RESOURCE",
    "SERVICE",
    "bean_method",
    "cls",
    "configuration",
    "ctor",
    "injected",
    "interface",
    "plain_field",
    "service",
]
