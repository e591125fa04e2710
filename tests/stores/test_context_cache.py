"""Tests for the fingerprinted context cache."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List

import pytest

from beanscan.project import detect_project
from beanscan.stores import MISS, ContextCache, DiskMirror


def _write(path: Path, text: str, mtime_ns: int) -> None:
    path.write_text(text, encoding="utf-8")
    os.utime(path, ns=(mtime_ns, mtime_ns))


@pytest.fixture
def source(project) -> Path:
    path = project.path("A.java")
    _write(path, "class A {}", 1_000_000_000)
    return path


def test_entry_is_returned_until_its_file_changes(project, source) -> None:
    cache: ContextCache[None] = ContextCache(detect_project(project.root))
    cache.put("bean_classes:com.acme.A", {"beans": []}, cache.fingerprint([source]))

    assert cache.get("bean_classes:com.acme.A") == {"beans": []}

    _write(source, "class A { int changed; }", 2_000_000_000)

    assert cache.get("bean_classes:com.acme.A") is MISS
    assert cache.entries("bean_classes") == {}


def test_caller_fingerprint_detects_added_files(project, source) -> None:
    cache: ContextCache[None] = ContextCache(detect_project(project.root))
    cache.put("scan_packages:packages", ["com.acme"], cache.fingerprint([source]))
    added = project.path("B.java")
    _write(added, "class B {}", 1_000_000_000)

    assert cache.get("scan_packages:packages") == ["com.acme"]
    assert cache.get("scan_packages:packages", current=cache.fingerprint([source, added])) is MISS


def test_miss_is_falsy_and_distinct_from_none(project, source) -> None:
    cache: ContextCache[None] = ContextCache(detect_project(project.root))
    cache.put("bean_classes:nothing", None, cache.fingerprint([source]))

    assert cache.get("bean_classes:nothing") is None
    assert cache.get("bean_classes:unknown") is MISS
    assert not MISS


def test_put_bumps_the_entry_version(project, source) -> None:
    cache: ContextCache[None] = ContextCache(detect_project(project.root))
    fingerprint = cache.fingerprint([source])

    cache.put("mapper_index:a", "one", fingerprint)
    cache.put("mapper_index:a", "two", fingerprint)
    cache.invalidate("mapper_index:a")
    cache.put("mapper_index:a", "three", fingerprint)

    assert cache.get("mapper_index:a") == "three"


def test_replace_bucket_swaps_every_entry(project, source) -> None:
    cache: ContextCache[None] = ContextCache(detect_project(project.root))
    fingerprint = cache.fingerprint([source])
    cache.put("mapper_index:old.xml", "com.acme.Old", fingerprint)

    cache.replace_bucket(
        "mapper_index",
        {"b.xml": "com.acme.B", "a.xml": "com.acme.A"},
        {"a.xml": fingerprint, "b.xml": fingerprint},
    )

    assert cache.entries("mapper_index") == {"a.xml": "com.acme.A", "b.xml": "com.acme.B"}


def test_persisted_entries_survive_a_new_session(project, source) -> None:
    context = detect_project(project.root)
    with ContextCache(context, mirror=DiskMirror(project.cache_dir, project.root)) as first:
        first.put("bean_classes:com.acme.A", {"beans": ["a"]}, first.fingerprint([source]))
        first.put("transient", "memory only", first.fingerprint([source]))

    with ContextCache(context, mirror=DiskMirror(project.cache_dir, project.root)) as second:
        assert second.get("bean_classes:com.acme.A") == {"beans": ["a"]}
        assert second.get("transient") is MISS


def test_stale_persisted_entries_are_not_served(project, source) -> None:
    context = detect_project(project.root)
    with ContextCache(context, mirror=DiskMirror(project.cache_dir, project.root)) as first:
        first.put("bean_classes:com.acme.A", {"beans": ["a"]}, first.fingerprint([source]))

    _write(source, "class A { void edited() {} }", 5_000_000_000)

    with ContextCache(context, mirror=DiskMirror(project.cache_dir, project.root)) as second:
        assert second.get("bean_classes:com.acme.A") is MISS


def test_clear_drops_entries_and_the_mirror(project, source) -> None:
    context = detect_project(project.root)
    mirror = DiskMirror(project.cache_dir, project.root)
    cache: ContextCache[None] = ContextCache(context, mirror=mirror)
    cache.put("bean_classes:com.acme.A", {"beans": []}, cache.fingerprint([source]))
    cache.flush()

    cache.clear()

    assert cache.get("bean_classes:com.acme.A") is MISS
    assert not mirror.directory.exists()
    cache.close()


def test_indices_are_built_once_and_swapped_on_refresh(project) -> None:
    calls: List[int] = []

    def _builder(cache: ContextCache[int]) -> int:
        calls.append(1)
        return len(calls)

    cache: ContextCache[int] = ContextCache(detect_project(project.root), indices_builder=_builder)

    assert cache.indices() == 1
    assert cache.indices() == 1
    assert cache.generation == 1
    assert cache.refresh() == 2
    assert cache.indices() == 2
    assert cache.generation == 2


def test_refresh_without_builder_fails(project) -> None:
    cache: ContextCache[int] = ContextCache(detect_project(project.root))

    with pytest.raises(RuntimeError):
        cache.refresh()


def test_refresh_with_a_new_builder_keeps_using_it(project) -> None:
    cache: ContextCache[str] = ContextCache(
        detect_project(project.root), indices_builder=lambda _: "old"
    )

    assert cache.indices() == "old"
    assert cache.refresh(lambda _: "new") == "new"
    assert cache.refresh() == "new"
