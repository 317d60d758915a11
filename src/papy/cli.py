"""Command line interface.

Usage:
    papy incremental [project_file] [-w N] [--dry-run]
    papy unbound [project_file]
    papy unbuilt [project_file]
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from papy.compiler import PapyrusCompiler
from papy.config import Configuration, load_configuration, resolve_compiler
from papy.errors import PapyError
from papy.models import CompilerResult
from papy.observability import LogRecord, StructuredLogger
from papy.orphans import find_unbound_artifacts, find_unbuilt_sources
from papy.project import PROJECT_FILENAME, Project, check_folders, load_project
from papy.scanner import plan_compilation
from papy.scheduler import CompileScheduler

EXIT_ERROR = 2


def cmd_incremental(args: argparse.Namespace, logger: StructuredLogger) -> int:
    config = load_configuration(args.config)
    project = _load_checked_project(args, config)
    compiler_path = resolve_compiler(config)
    logger.log(operation="incremental", message=f"using compiler {compiler_path}")

    plan = plan_compilation(project, logger=logger)
    if args.dry_run:
        for item in plan:
            print(f"{item.source_path} -> {item.destination_folder}")
        return 0

    compiler = PapyrusCompiler(
        executable=compiler_path,
        project=project,
        flags_file=config.flags_file,
        timeout=args.timeout,
    )
    scheduler = CompileScheduler(
        compiler,
        workers=args.workers,
        logger=logger,
        on_result=_print_result,
    )
    report = scheduler.run(plan)
    logger.log(operation="incremental", message="done")
    return report.exit_code


def cmd_unbound(args: argparse.Namespace, logger: StructuredLogger) -> int:
    config = load_configuration(args.config)
    project = _load_checked_project(args, config)
    for output_folder in project.output_folders:
        names = find_unbound_artifacts(output_folder, project.folders)
        logger.log(
            operation="unbound",
            folder=output_folder,
            message=f"{len(names)} artifact(s) without source",
        )
        for name in names:
            print(output_folder / name)
    return 0


def cmd_unbuilt(args: argparse.Namespace, logger: StructuredLogger) -> int:
    config = load_configuration(args.config)
    project = _load_checked_project(args, config)
    names = find_unbuilt_sources(project.folders, project.output_folders)
    logger.log(operation="unbuilt", message=f"{len(names)} source(s) never compiled")
    for name in names:
        print(name)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="papy",
        description="Incremental compiler for Skyrim Special Edition Papyrus scripts",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--config", type=Path, default=None, help="Path to the configuration file")
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Write structured logs to this file as JSON lines",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    incremental_p = sub.add_parser(
        "incremental",
        help="Compile all new scripts and those that have been edited",
    )
    _add_project_argument(incremental_p)
    incremental_p.add_argument(
        "-w",
        "--workers",
        type=int,
        default=0,
        help="Number of workers, 0 for cpu cores",
    )
    incremental_p.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the scripts that would be compiled and exit",
    )
    incremental_p.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Abort a single compiler run after this many seconds",
    )
    incremental_p.set_defaults(handler=cmd_incremental)

    unbound_p = sub.add_parser("unbound", help="Print all pex files with no corresponding psc")
    _add_project_argument(unbound_p)
    unbound_p.set_defaults(handler=cmd_unbound)

    unbuilt_p = sub.add_parser("unbuilt", help="Print all psc files that were never compiled")
    _add_project_argument(unbuilt_p)
    unbuilt_p.set_defaults(handler=cmd_unbuilt)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logger = StructuredLogger(echo=_print_record if args.verbose else None)
    try:
        return args.handler(args, logger)
    except PapyError as exc:
        print(exc, file=sys.stderr)
        return EXIT_ERROR
    finally:
        if args.log_file is not None:
            logger.to_json_lines(args.log_file)


def run() -> None:
    sys.exit(main())


def _add_project_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "project_file",
        nargs="?",
        default=PROJECT_FILENAME,
        help=f"Project file (default: {PROJECT_FILENAME})",
    )


def _load_checked_project(args: argparse.Namespace, config: Configuration) -> Project:
    project = load_project(args.project_file, config=config)
    check_folders(project)
    return project


def _print_result(result: CompilerResult) -> None:
    if result.error is None:
        print(f"Compiled {result.source_path.name} -> {result.item.destination_folder}")
        return
    print(
        f"Error while compiling {result.source_path}:\n"
        f"{result.error}\n"
        f"{result.output}",
        file=sys.stderr,
    )


def _print_record(record: LogRecord) -> None:
    print(f"[{record['operation']}] {record['message']}")
