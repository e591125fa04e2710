"""CLI parser and command behaviour tests."""

from __future__ import annotations

import pytest

from beanscan.cli import _build_parser, main
from beanscan.stores import project_key


def _write_project(project) -> str:
    project.write(
        {
            ".beanscan.yml": f"cache:\n  directory: {project.cache_dir}\n",
            "src/main/java/com/acme/OrderService.java": "class OrderService {}",
        }
    )
    snapshot = project.snapshot(
        [
            {
                "qualified_name": "com.acme.OrderService",
                "annotations": ["org.springframework.stereotype.Service"],
                "source_file": "src/main/java/com/acme/OrderService.java",
            }
        ]
    )
    return str(snapshot)


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "refresh", "--snapshot", "s.json"])
    assert args.verbose is True
    assert args.command == "refresh"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["scan", "com.acme.A", "--snapshot", "s.json", "--verbose"])
    assert args.verbose is True
    assert args.command == "scan"


def test_cli_scan_options() -> None:
    parser = _build_parser()
    args = parser.parse_args(
        [
            "scan",
            "com.acme.A",
            "--snapshot",
            "s.json",
            "--method",
            "run",
            "--timeout",
            "2.5",
            "--output",
            "out.xml",
            "--stdout",
        ]
    )
    assert args.target == "com.acme.A"
    assert args.root == "."
    assert args.method == "run"
    assert args.timeout == pytest.approx(2.5)
    assert args.output == "out.xml"
    assert args.stdout is True


def test_cli_scan_requires_a_snapshot() -> None:
    parser = _build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["scan", "com.acme.A"])


def test_cli_serve_defaults() -> None:
    args = _build_parser().parse_args(["serve"])
    assert args.host == "127.0.0.1"
    assert args.port == 8000


def test_scan_to_stdout(project, capsys) -> None:
    snapshot = _write_project(project)

    main(["scan", "com.acme.OrderService", "--root", str(project.root), "--snapshot", snapshot, "--stdout"])

    out = capsys.readouterr().out
    assert '<bean id="orderService" class="com.acme.OrderService"/>' in out
    assert "for com.acme.OrderService -->" in out


def test_scan_writes_the_document(project, capsys) -> None:
    snapshot = _write_project(project)
    output = project.path("out/beans.xml")

    main(
        [
            "scan",
            "com.acme.OrderService",
            "--root",
            str(project.root),
            "--snapshot",
            snapshot,
            "--output",
            str(output),
        ]
    )

    assert "Wrote 1 bean(s)" in capsys.readouterr().out
    assert output.exists()


def test_scan_of_unknown_class_fails(project, capsys) -> None:
    snapshot = _write_project(project)

    with pytest.raises(SystemExit) as excinfo:
        main(["scan", "com.acme.Missing", "--root", str(project.root), "--snapshot", snapshot])

    assert excinfo.value.code == 1
    assert "com.acme.Missing" in capsys.readouterr().err


def test_partial_scan_exits_with_status_two(project, capsys) -> None:
    snapshot = _write_project(project)

    with pytest.raises(SystemExit) as excinfo:
        main(
            [
                "scan",
                "com.acme.OrderService",
                "--root",
                str(project.root),
                "--snapshot",
                snapshot,
                "--timeout",
                "0",
                "--stdout",
            ]
        )

    assert excinfo.value.code == 2
    assert "timed_out" in capsys.readouterr().err


def test_refresh_and_clear_cache(project, capsys) -> None:
    snapshot = _write_project(project)

    main(["refresh", "--root", str(project.root), "--snapshot", snapshot])
    assert "Indexed 0 configuration class(es)" in capsys.readouterr().out
    assert (project.cache_dir / project_key(project.root)).exists()

    main(["clear-cache", "--root", str(project.root)])
    assert project_key(project.root) in capsys.readouterr().out
    assert not (project.cache_dir / project_key(project.root)).exists()
