"""CLI entrypoints for jsxlate commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .errors import JsxlateError
from .logging import configure_logging
from .orchestrator import Orchestrator


def _add_logging_options(parser: argparse.ArgumentParser, *, subcommand: bool = False) -> None:
    # Subcommands must not reset a flag given before the command name.
    default = argparse.SUPPRESS if subcommand else False
    group = parser.add_mutually_exclusive_group()
    group.add_argument("-v", "--verbose", action="store_true", default=default, help="Log debug details.")
    group.add_argument("-q", "--quiet", action="store_true", default=default, help="Only log warnings and errors.")


def _add_project_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-C",
        "--project",
        default=".",
        help="Path to the project root holding .jsxlate.yml (defaults to current directory).",
    )


def _add_dry_run_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the registry diff without writing anything.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jsxlate",
        description="Extract <T> translation tags from JSX sources and maintain the translations registry.",
    )
    _add_logging_options(parser)
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser(
        "init",
        help="Create the translations file and the import file if they are missing.",
    )
    _add_logging_options(init_parser, subcommand=True)
    _add_project_option(init_parser)

    update_parser = subparsers.add_parser(
        "update",
        help="Scan sources and synchronize the translations registry.",
    )
    _add_logging_options(update_parser, subcommand=True)
    _add_project_option(update_parser)
    _add_dry_run_option(update_parser)
    update_parser.add_argument(
        "--append",
        action="store_true",
        default=None,
        help="Append new translations at the end instead of next to related ones.",
    )

    hashes_parser = subparsers.add_parser(
        "hashes",
        help="Print the location and key of every translation tag.",
    )
    _add_logging_options(hashes_parser, subcommand=True)
    _add_project_option(hashes_parser)

    export_parser = subparsers.add_parser(
        "export",
        help="Export translation markers as a JSON patch document.",
    )
    _add_logging_options(export_parser, subcommand=True)
    _add_project_option(export_parser)
    export_parser.add_argument("-o", "--output", default=None, help="Output file (defaults to jsxlate-export.json).")

    import_parser = subparsers.add_parser(
        "import",
        help="Apply a JSON patch document to the translations registry.",
    )
    _add_logging_options(import_parser, subcommand=True)
    _add_project_option(import_parser)
    _add_dry_run_option(import_parser)
    import_parser.add_argument("patch", help="Path to the patch document.")

    rekey_parser = subparsers.add_parser(
        "rekey",
        help="Migrate registry keys between signature normalizer versions.",
    )
    _add_logging_options(rekey_parser, subcommand=True)
    _add_project_option(rekey_parser)
    _add_dry_run_option(rekey_parser)
    rekey_parser.add_argument("old_version", type=int, help="Normalizer version the registry keys use now.")
    rekey_parser.add_argument("new_version", type=int, help="Normalizer version to migrate to.")

    build_parser = subparsers.add_parser(
        "build",
        help="Key-tag or bake translation tags in the given files.",
    )
    _add_logging_options(build_parser, subcommand=True)
    _add_project_option(build_parser)
    build_parser.add_argument("files", nargs="+", help="Source files to transform.")
    build_parser.add_argument("--out-dir", default=None, help="Output directory (defaults to build/jsxlate).")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for jsxlate commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), quiet=bool(args.quiet), log_file=args.log_file)

    orchestrator = Orchestrator()
    command = args.command

    try:
        if command == "init":
            for created in orchestrator.run_init(args.project):
                print(f"Created {_relativize(created)}")
        elif command == "update":
            result = orchestrator.run_update(
                args.project,
                append=args.append,
                dry_run=bool(args.dry_run),
            )
            _report_update(result)
        elif command == "hashes":
            for line in orchestrator.dump_hashes(args.project):
                print(line)
        elif command == "export":
            target = orchestrator.run_export(args.project, args.output)
            print(f"Exported {_relativize(target)}")
        elif command == "import":
            result = orchestrator.run_import(args.project, args.patch, dry_run=bool(args.dry_run))
            _report_update(result)
        elif command == "rekey":
            outcome = orchestrator.run_rekey(
                args.project,
                args.old_version,
                args.new_version,
                dry_run=bool(args.dry_run),
            )
            for old_key, new_key in outcome.remap.items():
                print(f"{old_key} -> {new_key}")
            _report_update(outcome.update)
        elif command == "build":
            for written in orchestrator.run_build(args.project, args.files, out_dir=args.out_dir):
                print(_relativize(written))
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except (FileNotFoundError, FileExistsError) as exc:
        parser.exit(1, f"{exc}\n")
    except JsxlateError as exc:
        parser.exit(1, f"jsxlate {command} failed: {exc}\nRun with --verbose for more details.\n")


def _report_update(result) -> None:
    if result.dry_run:
        print("Registry changes (dry-run):")
        print(result.diff or "(no diff)")
        return
    if not result.changed:
        print("Translations already up to date")
        return
    print(f"Translations updated at {_relativize(result.path)}")
    print(f"  added:   {len(result.added)}")
    print(f"  deleted: {len(result.deleted)}")
    if result.restored:
        print(f"  restored: {len(result.restored)}")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
