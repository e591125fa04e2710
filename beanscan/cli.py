"""CLI entrypoints for beanscan commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import load_config
from .document import render_document
from .errors import BeanScanError
from .logging import configure_logging
from .project import detect_project, load_ignore_rules
from .stores import DiskMirror, project_key
from .session import open_session


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_project_options(parser: argparse.ArgumentParser, *, snapshot: bool = True) -> None:
    parser.add_argument(
        "--root",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )
    if snapshot:
        parser.add_argument(
            "--snapshot",
            required=True,
            help="JSON symbol snapshot exported for the project.",
        )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="beanscan",
        description="Compute the minimal bean configuration needed to run one class.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser(
        "scan",
        help="Discover the beans a class depends on and write them as a <beans> document.",
    )
    _add_verbose_option(scan_parser, suppress_default=True)
    scan_parser.add_argument("target", help="Fully qualified name of the target class.")
    _add_project_options(scan_parser)
    scan_parser.add_argument(
        "--method",
        default=None,
        help="Target method, recorded in the generated document.",
    )
    scan_parser.add_argument(
        "--output",
        default=None,
        help="Where to write the document (defaults to the configured output path).",
    )
    scan_parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Stop the scan after this many seconds and keep the partial result.",
    )
    scan_parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print the document instead of writing it.",
    )

    refresh_parser = subparsers.add_parser(
        "refresh",
        help="Rebuild cached project indices.",
    )
    _add_verbose_option(refresh_parser, suppress_default=True)
    _add_project_options(refresh_parser)

    clear_parser = subparsers.add_parser(
        "clear-cache",
        help="Delete persisted project indices and scan results.",
    )
    _add_verbose_option(clear_parser, suppress_default=True)
    _add_project_options(clear_parser, snapshot=False)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for beanscan commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    if args.command == "scan":
        try:
            with open_session(Path(args.root), Path(args.snapshot)) as session:
                result = session.scan(
                    args.target, target_method=args.method, timeout=args.timeout
                )
                if args.stdout:
                    label = args.target if not args.method else f"{args.target}#{args.method}"
                    sys.stdout.write(render_document(result.definitions, target=label))
                else:
                    output = Path(args.output) if args.output else None
                    path = session.write_document(result, output)
                    print(f"Wrote {len(result.definitions)} bean(s) to {_relativize(path)}")
        except (BeanScanError, OSError) as exc:
            parser.exit(1, f"beanscan scan failed: {exc}\nRun with --verbose for more details.\n")
        if not result.complete:
            print(f"Scan {result.status.value}; the document is partial.", file=sys.stderr)
            parser.exit(2)
    elif args.command == "refresh":
        try:
            with open_session(Path(args.root), Path(args.snapshot)) as session:
                indices = session.refresh()
        except (BeanScanError, OSError) as exc:
            parser.exit(1, f"beanscan refresh failed: {exc}\n")
        print(
            f"Indexed {len(indices.configuration_classes)} configuration class(es), "
            f"{len(indices.declarations)} declared bean(s), "
            f"{len(indices.mapper_namespaces)} mapper namespace(s)"
        )
    elif args.command == "clear-cache":
        try:
            root = Path(args.root).expanduser().resolve()
            config = load_config(root)
            detect_project(root, load_ignore_rules(root, config.exclude_paths))
        except (BeanScanError, OSError) as exc:
            parser.exit(1, f"beanscan clear-cache failed: {exc}\n")
        mirror = DiskMirror(config.cache.directory, root)
        try:
            mirror.clear()
        finally:
            mirror.close()
        print(f"Cleared cache {project_key(root)} for {root}")
    elif args.command == "serve":
        from .service.app import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
