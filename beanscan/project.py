"""Project layout detection and file walking."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Sequence

from .logging import get_logger
from .models import BuildTool, ProjectContext

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".idea",
    ".gradle",
    ".mvn",
    "node_modules",
    "target",
    "build",
    "out",
    "__pycache__",
}

_MAVEN_MARKERS = ("pom.xml",)
_GRADLE_MARKERS = ("build.gradle", "build.gradle.kts")

_LOGGER = get_logger("project")


@dataclass
class IgnoreRule:
    """Represents an ignore rule parsed from .gitignore or .beanscan.yml."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            if self.directory_only and rel_path.startswith(f"{self.pattern}/"):
                return True
            return False

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def _build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def _parse_gitignore(path: Path) -> List[IgnoreRule]:
    if not path.exists():
        return []

    rules: List[IgnoreRule] = []
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = _build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def load_ignore_rules(root: Path, exclude_paths: Sequence[str] = ()) -> List[IgnoreRule]:
    """Combine .gitignore rules with configured exclusions."""
    rules = _parse_gitignore(root / ".gitignore")
    for pattern in exclude_paths:
        rule = _build_ignore_rule(pattern)
        if rule is not None:
            rules.append(rule)
    return rules


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def iter_project_files(root: Path, rules: Sequence[IgnoreRule] = ()) -> Iterator[Path]:
    """Yield project files in a stable, sorted walk order."""
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        kept_dirs = []
        for name in sorted(dirnames):
            if name in _EXCLUDED_DIRS:
                continue
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if _should_ignore(rel_path, True, rules):
                continue
            kept_dirs.append(name)
        dirnames[:] = kept_dirs

        for filename in sorted(filenames):
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if _should_ignore(rel_path, False, rules):
                continue
            yield current_dir / filename


def detect_project(root: Path, rules: Sequence[IgnoreRule] = ()) -> ProjectContext:
    """Inspect build files under ``root`` and describe the module layout."""
    root = root.expanduser().resolve()
    if not root.exists():
        raise FileNotFoundError(f"Project path not found: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"Project path is not a directory: {root}")

    modules: List[Path] = []
    maven = gradle = False
    for path in iter_project_files(root, rules):
        if path.name in _MAVEN_MARKERS:
            maven = True
        elif path.name in _GRADLE_MARKERS:
            gradle = True
        else:
            continue
        if path.parent not in modules:
            modules.append(path.parent)

    if maven:
        build_tool = BuildTool.MAVEN
    elif gradle:
        build_tool = BuildTool.GRADLE
    else:
        build_tool = BuildTool.UNKNOWN

    # An aggregator pom at the root is not itself a code module.
    if len(modules) > 1 and root in modules:
        modules.remove(root)

    context = ProjectContext(
        root=root,
        modules=tuple(sorted(modules)),
        multi_module=len(modules) > 1,
        build_tool=build_tool,
    )
    _LOGGER.debug(
        "Detected %s project with %d module(s) at %s",
        build_tool.value,
        len(context.modules),
        root,
    )
    return context


__all__ = ["IgnoreRule", "detect_project", "iter_project_files", "load_ignore_rules"]
