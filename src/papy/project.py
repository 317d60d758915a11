"""Project descriptor: parsing, path normalization and folder checks."""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from papy.config import Configuration
from papy.errors import ConfigurationError

PROJECT_FILENAME = "papy.yaml"
BASE_GAME_IMPORT = "$base_game"

_ALLOWED_KEYS = frozenset({"folders", "imports", "output_folders", "optimize"})


@dataclass(frozen=True, slots=True)
class Project:
    """A normalized project: every path absolute, sources folded into imports."""

    folders: tuple[Path, ...]
    imports: tuple[Path, ...]
    output_folders: tuple[Path, ...]
    optimize: bool = False

    @property
    def primary_output(self) -> Path:
        return self.output_folders[0]

    @classmethod
    def from_mapping(
        cls,
        payload: Any,
        *,
        base_dir: str | Path,
        config: Configuration,
    ) -> Project:
        if not isinstance(payload, dict):
            raise ConfigurationError(
                "Project file must contain a mapping.",
                context={"operation": "load_project"},
            )
        unknown = sorted(str(key) for key in payload if key not in _ALLOWED_KEYS)
        if unknown:
            raise ConfigurationError(
                f"Unknown project keys: {', '.join(unknown)}.",
                hint=f"Allowed keys are {', '.join(sorted(_ALLOWED_KEYS))}.",
                context={"operation": "load_project"},
            )

        root = Path(base_dir)
        folders = [_absolute(root, item) for item in _string_list(payload, "folders")]
        imports = [
            _absolute(root, _resolve_special(item, config))
            for item in _string_list(payload, "imports")
        ]
        output_folders = [_absolute(root, item) for item in _string_list(payload, "output_folders")]
        if not output_folders:
            raise ConfigurationError(
                "Project must declare at least one output folder.",
                hint="Add an `output_folders` list; the first entry is the primary output.",
                context={"operation": "load_project"},
            )

        optimize = payload.get("optimize", False)
        if not isinstance(optimize, bool):
            raise ConfigurationError(
                "Invalid project `optimize` value.",
                hint="Use true or false.",
                context={"operation": "load_project"},
            )

        return cls(
            folders=tuple(folders),
            imports=import_folders(folders, imports),
            output_folders=tuple(output_folders),
            optimize=optimize,
        )


def load_project(path: str | Path, *, config: Configuration) -> Project:
    project_path = Path(path)
    try:
        raw = project_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(
            f"Cannot open project file {project_path}.",
            hint=str(exc),
            context={"operation": "load_project", "path": str(project_path)},
        ) from exc
    try:
        payload = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigurationError(
            "Cannot parse project file.",
            hint=str(exc),
            context={"operation": "load_project", "path": str(project_path)},
        ) from exc

    base_dir = Path(os.path.abspath(project_path)).parent
    return Project.from_mapping(payload, base_dir=base_dir, config=config)


def import_folders(folders: Iterable[Path], imports: Iterable[Path]) -> tuple[Path, ...]:
    """Union of declared imports and source folders, deduplicated, order preserving.

    The compiler cannot resolve scripts that live next to the one being
    compiled unless their folder is on the import path.
    """
    merged: list[Path] = []
    for folder in (*imports, *folders):
        if folder not in merged:
            merged.append(folder)
    return tuple(merged)


def check_folders(project: Project) -> None:
    """Make sure every source, import and output folder exists."""
    groups = (
        ("folders", project.folders),
        ("imports", project.imports),
        ("output_folders", project.output_folders),
    )
    for group, folders in groups:
        for folder in folders:
            _check_folder(folder, group)


def _check_folder(folder: Path, group: str) -> None:
    if not str(folder):
        raise ConfigurationError(
            "Cannot have an empty folder.",
            context={"operation": "check_folders", "group": group},
        )
    try:
        is_dir = folder.is_dir()
        exists = is_dir or folder.exists()
    except OSError as exc:
        raise ConfigurationError(
            f"Cannot stat path {folder}.",
            hint=str(exc),
            context={"operation": "check_folders", "group": group, "path": str(folder)},
        ) from exc
    if not is_dir:
        raise ConfigurationError(
            f"Folder {folder} does not exist or is a file.",
            hint="Create the folder or fix the project file.",
            context={
                "operation": "check_folders",
                "group": group,
                "path": str(folder),
                "exists": str(exists).lower(),
            },
        )


def _resolve_special(value: str, config: Configuration) -> str:
    if value != BASE_GAME_IMPORT:
        return value
    if config.game_path is None:
        raise ConfigurationError(
            f"`{BASE_GAME_IMPORT}` import requires a configured game path.",
            hint="Set game_path in the configuration file.",
            context={"operation": "load_project"},
        )
    return str(config.game_path / "Data" / "Source" / "Scripts")


def _absolute(root: Path, value: str) -> Path:
    if not value:
        raise ConfigurationError(
            "Cannot have an empty folder.",
            context={"operation": "load_project"},
        )
    return Path(os.path.normpath(root / Path(value).expanduser()))


def _string_list(payload: dict[str, Any], key: str) -> list[str]:
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigurationError(
            f"Invalid project `{key}` value.",
            hint="Expected a list of folder paths.",
            context={"operation": "load_project"},
        )
    return list(value)
