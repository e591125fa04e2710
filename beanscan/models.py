"""Core data models shared across beanscan components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

AnnotationMap = Mapping[str, Mapping[str, Any]]


class ClassKind(str, Enum):
    CLASS = "class"
    INTERFACE = "interface"
    ANNOTATION = "annotation"
    ENUM = "enum"


class BeanOrigin(str, Enum):
    """How a class came to be managed by the container."""

    ANNOTATION = "annotation"
    EXTERNAL_DECLARATION = "external_declaration"
    FACTORY_METHOD = "factory_method"
    MAPPER_CONVENTION = "mapper_convention"
    PLAIN = "plain"


class BuildTool(str, Enum):
    MAVEN = "maven"
    GRADLE = "gradle"
    UNKNOWN = "unknown"


def decapitalize(name: str) -> str:
    """Lower-case the first character, leaving the remainder untouched."""
    if not name:
        return name
    return name[0].lower() + name[1:]


@dataclass(frozen=True)
class ParameterSymbol:
    name: str
    type_name: str
    type_arguments: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FieldSymbol:
    name: str
    type_name: str
    annotations: AnnotationMap = field(default_factory=dict)
    static: bool = False
    final: bool = False
    type_arguments: Tuple[str, ...] = ()

    def has_annotation(self, name: str) -> bool:
        return name in self.annotations


@dataclass(frozen=True)
class ConstructorSymbol:
    parameters: Tuple[ParameterSymbol, ...] = ()
    annotations: AnnotationMap = field(default_factory=dict)


@dataclass(frozen=True)
class MethodSymbol:
    name: str
    return_type: Optional[str] = None
    parameters: Tuple[ParameterSymbol, ...] = ()
    annotations: AnnotationMap = field(default_factory=dict)
    static: bool = False
    return_type_arguments: Tuple[str, ...] = ()

    def has_annotation(self, name: str) -> bool:
        return name in self.annotations

    def annotation(self, name: str) -> Optional[Mapping[str, Any]]:
        return self.annotations.get(name)


@dataclass(frozen=True, eq=False)
class ClassSymbol:
    """Immutable view of a class as reported by the source model.

    Symbols compare and hash by qualified name so the same class reached
    through different lookups is treated as one node during traversal.
    """

    qualified_name: str
    kind: ClassKind = ClassKind.CLASS
    annotations: AnnotationMap = field(default_factory=dict)
    fields: Tuple[FieldSymbol, ...] = ()
    constructors: Tuple[ConstructorSymbol, ...] = ()
    methods: Tuple[MethodSymbol, ...] = ()
    supertype: Optional[str] = None
    interfaces: Tuple[str, ...] = ()
    source_file: Optional[str] = None
    modified_marker: Optional[int] = None
    library: bool = False
    abstract: bool = False

    @property
    def simple_name(self) -> str:
        return self.qualified_name.rsplit(".", 1)[-1]

    @property
    def package_name(self) -> str:
        if "." not in self.qualified_name:
            return ""
        return self.qualified_name.rsplit(".", 1)[0]

    @property
    def is_interface(self) -> bool:
        return self.kind is ClassKind.INTERFACE

    @property
    def is_concrete_class(self) -> bool:
        return self.kind is ClassKind.CLASS and not self.abstract

    def has_annotation(self, name: str) -> bool:
        return name in self.annotations

    def annotation(self, name: str) -> Optional[Mapping[str, Any]]:
        return self.annotations.get(name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ClassSymbol):
            return NotImplemented
        return self.qualified_name == other.qualified_name

    def __hash__(self) -> int:
        return hash(self.qualified_name)

    def __repr__(self) -> str:
        return f"ClassSymbol({self.qualified_name!r}, kind={self.kind.value})"


@dataclass(frozen=True)
class Classification:
    """Outcome of running a class through the resolver chain."""

    origin: BeanOrigin
    bean_id: Optional[str] = None
    resolver: Optional[str] = None
    evidence: Mapping[str, Any] = field(default_factory=dict)

    @property
    def managed(self) -> bool:
        return self.origin is not BeanOrigin.PLAIN

    @classmethod
    def plain(cls) -> "Classification":
        return cls(origin=BeanOrigin.PLAIN)


@dataclass(frozen=True)
class BeanDefinition:
    """A registered bean: identifier, origin and its configuration fragment."""

    bean_id: str
    origin: BeanOrigin
    fragment: str
    source: Optional[ClassSymbol] = None

    @property
    def class_name(self) -> Optional[str]:
        return self.source.qualified_name if self.source is not None else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.bean_id,
            "origin": self.origin.value,
            "fragment": self.fragment,
            "class_name": self.class_name,
        }


@dataclass(frozen=True)
class DataAccessConfig:
    """A named persistence configuration (session factory + mapper scan)."""

    name: str
    datasource_bean_id: str = "dataSource"
    factory_bean_id: str = "sqlSessionFactory"
    base_packages: Tuple[str, ...] = ()
    mapper_locations: Tuple[str, ...] = ()

    def merge(self, other: "DataAccessConfig") -> "DataAccessConfig":
        """Combine two partial views of the same logical configuration.

        Identifiers from ``other`` replace defaults; package and location
        lists are unioned preserving first-seen order.
        """
        defaults = DataAccessConfig(name=self.name)
        datasource = self.datasource_bean_id
        if other.datasource_bean_id != defaults.datasource_bean_id:
            datasource = other.datasource_bean_id
        factory = self.factory_bean_id
        if other.factory_bean_id != defaults.factory_bean_id:
            factory = other.factory_bean_id
        return DataAccessConfig(
            name=self.name,
            datasource_bean_id=datasource,
            factory_bean_id=factory,
            base_packages=_union(self.base_packages, other.base_packages),
            mapper_locations=_union(self.mapper_locations, other.mapper_locations),
        )

    def covers_package(self, package: str) -> int:
        """Return the length of the longest base package containing ``package``."""
        best = 0
        for base in self.base_packages:
            if package == base or package.startswith(base + "."):
                best = max(best, len(base))
        return best

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "datasource_bean_id": self.datasource_bean_id,
            "factory_bean_id": self.factory_bean_id,
            "base_packages": list(self.base_packages),
            "mapper_locations": list(self.mapper_locations),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DataAccessConfig":
        return cls(
            name=str(payload["name"]),
            datasource_bean_id=str(payload.get("datasource_bean_id") or "dataSource"),
            factory_bean_id=str(payload.get("factory_bean_id") or "sqlSessionFactory"),
            base_packages=tuple(str(item) for item in payload.get("base_packages") or ()),
            mapper_locations=tuple(
                str(item) for item in payload.get("mapper_locations") or ()
            ),
        )


@dataclass(frozen=True)
class DataSourceSettings:
    """Connection settings used to synthesize the datasource bean.

    ``mode`` is ``imported`` when an existing XML file already declares the
    datasource, ``explicit`` when application properties supplied the
    connection details, and ``default`` otherwise.
    """

    mode: str = "default"
    import_location: Optional[str] = None
    url: str = "jdbc:mysql://localhost:3306/test"
    username: str = "root"
    password: str = "root"
    driver: str = "com.mysql.cj.jdbc.Driver"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "import_location": self.import_location,
            "url": self.url,
            "username": self.username,
            "password": self.password,
            "driver": self.driver,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DataSourceSettings":
        defaults = cls()
        return cls(
            mode=str(payload.get("mode") or defaults.mode),
            import_location=payload.get("import_location") or None,
            url=str(payload.get("url") or defaults.url),
            username=str(payload.get("username") or defaults.username),
            password=str(payload.get("password") or defaults.password),
            driver=str(payload.get("driver") or defaults.driver),
        )


@dataclass(frozen=True)
class ProjectContext:
    """Static facts about the project, computed once per session."""

    root: Path
    modules: Tuple[Path, ...] = ()
    multi_module: bool = False
    build_tool: BuildTool = BuildTool.UNKNOWN

    @property
    def resource_roots(self) -> Tuple[Path, ...]:
        bases = self.modules or (self.root,)
        roots = []
        for base in bases:
            roots.append(base / "src" / "main" / "resources")
            roots.append(base / "src" / "test" / "resources")
        return tuple(roots)

    def classpath_location(self, path: Path) -> str:
        """Return ``path`` relative to its resource root, or to the project root."""
        resolved = path.resolve()
        for resource_root in self.resource_roots:
            try:
                return resolved.relative_to(resource_root.resolve()).as_posix()
            except ValueError:
                continue
        try:
            return resolved.relative_to(self.root.resolve()).as_posix()
        except ValueError:
            return resolved.as_posix()


def _union(first: Tuple[str, ...], second: Tuple[str, ...]) -> Tuple[str, ...]:
    seen: Dict[str, None] = {}
    for item in (*first, *second):
        seen.setdefault(item, None)
    return tuple(seen)


__all__ = [
    "AnnotationMap",
    "BeanDefinition",
    "BeanOrigin",
    "BuildTool",
    "ClassKind",
    "ClassSymbol",
    "Classification",
    "ConstructorSymbol",
    "DataAccessConfig",
    "DataSourceSettings",
    "FieldSymbol",
    "MethodSymbol",
    "ParameterSymbol",
    "ProjectContext",
    "decapitalize",
]
