"""Application property sources: YAML documents and ``.properties`` files.

Both formats are flattened into dotted keys so one interpreter handles
``mybatis.mapper-locations`` regardless of where it came from. Profile
blocks are selected the way Spring Boot does it: unprofiled documents always
apply, profiled ones only when one of their profiles is active.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import yaml

from ..errors import MalformedDocumentError
from ..models import DataAccessConfig
from ..resolvers.mappers import DEFAULT_FACTORY_BEAN_ID

APPLICATION_FILE = re.compile(
    r"^application(?:-(?P<profile>[\w.\-]+))?\.(?P<ext>ya?ml|properties)$"
)

_PROFILE_KEYS = ("spring.profiles", "spring.config.activate.on-profile")
_ACTIVE_KEY = "spring.profiles.active"
_MAPPER_ROOTS = ("mybatis", "mybatis-plus")
_PROPERTIES_SEPARATOR = re.compile(r"^\s*[#!]---\s*$")


@dataclass
class PropertyDocument:
    """One block of flattened properties and the profile it is bound to."""

    path: Path
    values: Dict[str, Any]
    profiles: Tuple[str, ...] = ()

    def applies(self, active: Sequence[str]) -> bool:
        if not self.profiles:
            return True
        for expression in self.profiles:
            if expression.startswith("!"):
                if expression[1:] not in active:
                    return True
            elif expression in active:
                return True
        return False


@dataclass
class DatasourceProperties:
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    driver: Optional[str] = None

    def any(self) -> bool:
        return any((self.url, self.username, self.password, self.driver))


@dataclass
class PropertyResult:
    configs: List[DataAccessConfig] = field(default_factory=list)
    datasource: DatasourceProperties = field(default_factory=DatasourceProperties)


def canonical_key(key: str) -> str:
    """Relaxed-binding form of a property key (case, dash and underscore insensitive)."""
    return key.replace("-", "").replace("_", "").lower()


def flatten(mapping: Mapping[str, Any], prefix: str = "") -> Dict[str, Any]:
    flat: Dict[str, Any] = {}
    for key, value in mapping.items():
        name = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(flatten(value, name))
        else:
            flat[name] = value
    return flat


def _split_profiles(value: Any) -> Tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        items = [str(item) for item in value]
    elif value is None:
        return ()
    else:
        items = re.split(r"[,|&]", str(value))
    return tuple(item.strip() for item in items if item.strip())


def parse_properties(text: str) -> Dict[str, str]:
    """Parse java.util.Properties syntax (comments, continuations, ``=``/``:`` separators)."""
    values: Dict[str, str] = {}
    logical = ""
    for raw_line in text.splitlines():
        line = raw_line.lstrip()
        if not logical and (not line or line[0] in "#!"):
            continue
        if line.endswith("\\") and not line.endswith("\\\\"):
            logical += line[:-1]
            continue
        logical += line
        key, value = _split_property(logical)
        if key:
            values[key] = value
        logical = ""
    if logical:
        key, value = _split_property(logical)
        if key:
            values[key] = value
    return values


def _split_property(line: str) -> Tuple[str, str]:
    index = 0
    while index < len(line):
        char = line[index]
        if char == "\\":
            index += 2
            continue
        if char in "=:" or char.isspace():
            break
        index += 1
    key = line[:index].replace("\\", "")
    rest = line[index:].lstrip(" \t\f")
    if rest[:1] in ("=", ":"):
        rest = rest[1:].lstrip(" \t\f")
    return key, rest.rstrip()


def read_property_documents(path: Path) -> List[PropertyDocument]:
    """Read an ``application*.yml|yaml|properties`` file into profile-tagged blocks."""
    match = APPLICATION_FILE.match(path.name)
    file_profile = match.group("profile") if match else None
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise MalformedDocumentError(path, str(exc)) from exc

    if path.suffix == ".properties":
        chunks = _split_properties_documents(text)
        raw_documents: List[Dict[str, Any]] = [parse_properties(chunk) for chunk in chunks]
    else:
        try:
            loaded = list(yaml.safe_load_all(text))
        except yaml.YAMLError as exc:
            raise MalformedDocumentError(path, str(exc)) from exc
        raw_documents = []
        for document in loaded:
            if document is None:
                continue
            if not isinstance(document, Mapping):
                raise MalformedDocumentError(path, "expected a mapping document")
            raw_documents.append(flatten(document))

    documents: List[PropertyDocument] = []
    for values in raw_documents:
        profiles: Tuple[str, ...] = ()
        for key in _PROFILE_KEYS:
            if key in values:
                profiles = _split_profiles(values[key])
                break
        if file_profile:
            profiles = profiles or (file_profile,)
        documents.append(PropertyDocument(path=path, values=values, profiles=profiles))
    return documents


def _split_properties_documents(text: str) -> List[str]:
    chunks: List[List[str]] = [[]]
    for line in text.splitlines():
        if _PROPERTIES_SEPARATOR.match(line):
            chunks.append([])
        else:
            chunks[-1].append(line)
    return ["\n".join(chunk) for chunk in chunks]


def active_profiles(
    documents: Iterable[PropertyDocument], override: Sequence[str] = ()
) -> List[str]:
    """Return the active profiles, preferring an explicit override."""
    if override:
        return list(override)
    active: List[str] = []
    for document in documents:
        if document.profiles:
            continue
        value = document.values.get(_ACTIVE_KEY)
        for profile in _split_profiles(value):
            if profile not in active:
                active.append(profile)
    return active


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    return [item.strip() for item in str(value).split(",") if item.strip()]


def interpret(documents: Sequence[PropertyDocument], active: Sequence[str]) -> PropertyResult:
    """Turn the applicable documents into data-access configs and datasource properties.

    Later documents override earlier ones key by key, so a profile block
    refines the base document it follows.
    """
    # canonical key -> (key as written, value)
    merged: Dict[str, Tuple[str, Any]] = {}
    for document in documents:
        if document.applies(active):
            for key, value in document.values.items():
                merged[canonical_key(key)] = (key, value)

    result = PropertyResult()
    named: Dict[str, List[str]] = {}
    for key, (written, value) in merged.items():
        for root in _MAPPER_ROOTS:
            prefix = canonical_key(root) + "."
            if not key.startswith(prefix):
                continue
            remainder = key[len(prefix):]
            if remainder == "mapperlocations":
                named.setdefault(DEFAULT_FACTORY_BEAN_ID, []).extend(_as_list(value))
            elif remainder.endswith(".mapperlocations") and remainder.count(".") == 1:
                name = written.split(".")[-2]
                named.setdefault(name, []).extend(_as_list(value))

    for name, locations in named.items():
        if name == DEFAULT_FACTORY_BEAN_ID:
            config = DataAccessConfig(name=name, mapper_locations=tuple(locations))
        else:
            config = DataAccessConfig(
                name=name,
                datasource_bean_id=f"{name}DataSource",
                factory_bean_id=f"{name}SqlSessionFactory",
                mapper_locations=tuple(locations),
            )
        result.configs.append(config)

    def _value(key: str) -> Optional[str]:
        entry = merged.get(canonical_key(key))
        if entry is None or entry[1] is None:
            return None
        return str(entry[1])

    result.datasource = DatasourceProperties(
        url=_value("spring.datasource.url"),
        username=_value("spring.datasource.username"),
        password=_value("spring.datasource.password"),
        driver=_value("spring.datasource.driver-class-name"),
    )
    return result


__all__ = [
    "APPLICATION_FILE",
    "DatasourceProperties",
    "PropertyDocument",
    "PropertyResult",
    "active_profiles",
    "canonical_key",
    "flatten",
    "interpret",
    "parse_properties",
    "read_property_documents",
]
