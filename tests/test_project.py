from pathlib import Path

import pytest

from papy.config import Configuration
from papy.errors import ConfigurationError
from papy.project import Project, check_folders, import_folders, load_project


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_load_project_resolves_paths_against_project_file(tmp_path: Path) -> None:
    project_file = _write(
        tmp_path / "papy.yaml",
        "folders:\n  - scripts/source\n"
        "imports:\n  - ../shared\n"
        "output_folders:\n  - scripts\n  - extra\n"
        "optimize: true\n",
    )

    project = load_project(project_file, config=Configuration())

    assert project.folders == (tmp_path / "scripts" / "source",)
    assert project.output_folders == (tmp_path / "scripts", tmp_path / "extra")
    assert project.primary_output == tmp_path / "scripts"
    assert project.optimize is True
    assert all(path.is_absolute() for path in project.imports)


def test_source_folders_are_folded_into_imports(tmp_path: Path) -> None:
    project = Project.from_mapping(
        {
            "folders": ["a", "b"],
            "imports": ["lib", "b"],
            "output_folders": ["out"],
        },
        base_dir=tmp_path,
        config=Configuration(),
    )

    assert project.imports == (tmp_path / "lib", tmp_path / "b", tmp_path / "a")


def test_import_folders_deduplicates_in_order() -> None:
    merged = import_folders(
        [Path("/src/a"), Path("/src/b")],
        [Path("/lib"), Path("/src/a"), Path("/lib")],
    )

    assert merged == (Path("/lib"), Path("/src/a"), Path("/src/b"))


def test_base_game_import_uses_configured_game_path(tmp_path: Path) -> None:
    game = tmp_path / "Skyrim Special Edition"
    project = Project.from_mapping(
        {"imports": ["$base_game"], "output_folders": ["out"]},
        base_dir=tmp_path,
        config=Configuration(game_path=game),
    )

    assert project.imports == (game / "Data" / "Source" / "Scripts",)


def test_base_game_import_without_game_path_fails(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        Project.from_mapping(
            {"imports": ["$base_game"], "output_folders": ["out"]},
            base_dir=tmp_path,
            config=Configuration(),
        )

    assert excinfo.value.code == "E_CONFIGURATION"


@pytest.mark.parametrize(
    "payload",
    [
        {"output_folders": ["out"], "outputs": ["typo"]},
        {"folders": "source", "output_folders": ["out"]},
        {"output_folders": []},
        {"folders": ["source"]},
        {"output_folders": ["out"], "optimize": "yes"},
        {"output_folders": [""]},
        ["not", "a", "mapping"],
    ],
)
def test_invalid_project_payloads_are_rejected(tmp_path: Path, payload: object) -> None:
    with pytest.raises(ConfigurationError):
        Project.from_mapping(payload, base_dir=tmp_path, config=Configuration())


def test_missing_project_file_is_reported(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        load_project(tmp_path / "papy.yaml", config=Configuration())

    assert "Cannot open project file" in str(excinfo.value)


def test_malformed_yaml_is_reported(tmp_path: Path) -> None:
    project_file = _write(tmp_path / "papy.yaml", "folders: [unterminated\n")

    with pytest.raises(ConfigurationError) as excinfo:
        load_project(project_file, config=Configuration())

    assert "Cannot parse project file" in str(excinfo.value)


def test_check_folders_accepts_existing_directories(tmp_path: Path) -> None:
    for name in ("source", "out"):
        (tmp_path / name).mkdir()
    project = Project(
        folders=(tmp_path / "source",),
        imports=(tmp_path / "source",),
        output_folders=(tmp_path / "out",),
    )

    check_folders(project)


def test_check_folders_rejects_missing_output(tmp_path: Path) -> None:
    (tmp_path / "source").mkdir()
    project = Project(
        folders=(tmp_path / "source",),
        imports=(tmp_path / "source",),
        output_folders=(tmp_path / "out",),
    )

    with pytest.raises(ConfigurationError) as excinfo:
        check_folders(project)

    assert excinfo.value.context["group"] == "output_folders"
    assert excinfo.value.context["exists"] == "false"


def test_check_folders_rejects_file_in_place_of_folder(tmp_path: Path) -> None:
    (tmp_path / "source").write_text("", encoding="utf-8")
    (tmp_path / "out").mkdir()
    project = Project(
        folders=(tmp_path / "source",),
        imports=(tmp_path / "source",),
        output_folders=(tmp_path / "out",),
    )

    with pytest.raises(ConfigurationError) as excinfo:
        check_folders(project)

    assert excinfo.value.context["group"] == "folders"
    assert excinfo.value.context["exists"] == "true"
