"""Staleness scanner: decide which sources need to be (re)compiled.

Each source folder is listed once (no recursion, Papyrus keeps every script
of a mod in a single flat folder). For every ``.psc`` entry the output
folders are probed in project order and the first one holding a ``.pex`` of
the same name decides the outcome:

* the source is strictly newer than that artifact -> rebuild into that folder;
* otherwise -> up to date, nothing to do;
* no output folder holds the artifact -> first build into the primary output.
"""

from __future__ import annotations

import os
import stat
from pathlib import Path

from papy.errors import ScanError
from papy.models import WorkItem, WorkPlan
from papy.observability import StructuredLogger
from papy.project import Project

SOURCE_SUFFIX = ".psc"
ARTIFACT_SUFFIX = ".pex"


def artifact_name(source_name: str) -> str:
    """``Foo.psc`` -> ``Foo.pex``."""
    return source_name[: -len(SOURCE_SUFFIX)] + ARTIFACT_SUFFIX


def plan_compilation(project: Project, *, logger: StructuredLogger | None = None) -> WorkPlan:
    items: list[WorkItem] = []
    for folder in project.folders:
        found = scan_source_folder(folder, project.output_folders)
        if logger is not None:
            logger.log(
                operation="scan",
                folder=folder,
                message=f"{len(found)} stale script(s)",
            )
        items.extend(found)

    plan = WorkPlan(items=tuple(items))
    if logger is not None:
        logger.log(
            operation="scan",
            message=f"{len(plan)} script(s) to compile",
            extra={"digest": plan.digest()},
        )
    return plan


def scan_source_folder(folder: Path, output_folders: tuple[Path, ...]) -> list[WorkItem]:
    if not output_folders:
        raise ScanError(
            "No output folders to compare against.",
            context={"operation": "scan", "folder": str(folder)},
        )

    items: list[WorkItem] = []
    for entry in _list_dir(folder):
        if entry.is_dir():
            continue
        if not entry.name.endswith(SOURCE_SUFFIX):
            continue

        source_path = folder / entry.name
        source_mtime = _entry_mtime(entry, source_path)
        match = _find_artifact(artifact_name(entry.name), output_folders)
        if match is None:
            items.append(WorkItem(source_path=source_path, destination_folder=output_folders[0]))
            continue

        output_folder, artifact_mtime = match
        if source_mtime > artifact_mtime:
            items.append(WorkItem(source_path=source_path, destination_folder=output_folder))
    return items


def _find_artifact(name: str, output_folders: tuple[Path, ...]) -> tuple[Path, int] | None:
    # First folder holding the artifact wins, later folders are never consulted.
    for output_folder in output_folders:
        artifact_path = output_folder / name
        try:
            info = os.stat(artifact_path)
        except FileNotFoundError:
            continue
        except OSError as exc:
            raise ScanError(
                f"Cannot stat file {artifact_path}.",
                hint=str(exc),
                context={"operation": "scan", "path": str(artifact_path)},
            ) from exc
        if stat.S_ISDIR(info.st_mode):
            raise ScanError(
                f"{artifact_path} is a directory, expected a file.",
                hint="Rename or remove the directory that shadows the compiled script.",
                context={"operation": "scan", "path": str(artifact_path)},
            )
        return output_folder, info.st_mtime_ns
    return None


def _list_dir(folder: Path) -> list[os.DirEntry[str]]:
    try:
        with os.scandir(folder) as entries:
            return sorted(entries, key=lambda entry: entry.name)
    except OSError as exc:
        raise ScanError(
            f"Cannot get directory entries for {folder}.",
            hint=str(exc),
            context={"operation": "scan", "folder": str(folder)},
        ) from exc


def _entry_mtime(entry: os.DirEntry[str], path: Path) -> int:
    try:
        return entry.stat().st_mtime_ns
    except OSError as exc:
        raise ScanError(
            f"Cannot stat file {path}.",
            hint=str(exc),
            context={"operation": "scan", "path": str(path)},
        ) from exc
