"""Ant-style matching of mapper resource locations."""

from __future__ import annotations

import re
from typing import Iterable, List, Pattern

_CLASSPATH_PREFIX = re.compile(r"^classpath\*?:")


def strip_classpath(location: str) -> str:
    return _CLASSPATH_PREFIX.sub("", location.strip()).lstrip("/")


def pattern_to_regex(pattern: str) -> Pattern[str]:
    """Translate ``classpath*:mapper/**/*.xml`` style patterns to a regex."""
    source = strip_classpath(pattern)
    parts: List[str] = []
    index = 0
    while index < len(source):
        if source.startswith("**/", index):
            parts.append("(?:.*/)?")
            index += 3
        elif source.startswith("**", index):
            parts.append(".*")
            index += 2
        elif source[index] == "*":
            parts.append("[^/]*")
            index += 1
        elif source[index] == "?":
            parts.append("[^/]")
            index += 1
        else:
            parts.append(re.escape(source[index]))
            index += 1
    return re.compile("^" + "".join(parts) + "$")


class MapperLocationMatcher:
    """Matches classpath-relative file locations against declared patterns."""

    def __init__(self, patterns: Iterable[str]) -> None:
        self.patterns = [pattern for pattern in patterns if pattern.strip()]
        self._compiled = [pattern_to_regex(pattern) for pattern in self.patterns]

    def __bool__(self) -> bool:
        return bool(self._compiled)

    def matches(self, location: str) -> bool:
        candidate = strip_classpath(location)
        return any(regex.match(candidate) for regex in self._compiled)


__all__ = ["MapperLocationMatcher", "pattern_to_regex", "strip_classpath"]
