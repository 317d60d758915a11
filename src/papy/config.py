"""Global tool configuration: where the compiler and the game live."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from papy.errors import ConfigurationError

CONFIG_FILENAME = ".papy.yaml"
DEFAULT_FLAGS_FILE = "TESV_Papyrus_Flags.flg"
COMPILER_RELATIVE_PATH = Path("Papyrus Compiler") / "PapyrusCompiler.exe"

_ALLOWED_KEYS = frozenset({"compiler_path", "game_path", "flags_file"})


@dataclass(frozen=True, slots=True)
class Configuration:
    """Per-user settings shared by every command of a single run."""

    compiler_path: Path | None = None
    game_path: Path | None = None
    flags_file: str = DEFAULT_FLAGS_FILE


def default_config_path() -> Path:
    return Path.home() / CONFIG_FILENAME


def load_configuration(path: str | Path | None = None) -> Configuration:
    """Read the configuration file, falling back to defaults when it does not exist."""
    config_path = Path(path) if path is not None else default_config_path()
    if not config_path.exists():
        return Configuration()
    if config_path.is_dir():
        raise ConfigurationError(
            "Configuration path is a directory.",
            hint="Remove the directory or point --config at a YAML file.",
            context={"operation": "load_configuration", "path": str(config_path)},
        )
    try:
        payload = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(
            "Cannot read configuration file.",
            hint=str(exc),
            context={"operation": "load_configuration", "path": str(config_path)},
        ) from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(
            "Configuration file is not valid YAML.",
            hint=str(exc),
            context={"operation": "load_configuration", "path": str(config_path)},
        ) from exc
    return configuration_from_mapping(payload or {}, source=str(config_path))


def configuration_from_mapping(payload: Any, *, source: str = "<memory>") -> Configuration:
    if not isinstance(payload, dict):
        raise ConfigurationError(
            "Configuration must be a mapping.",
            context={"operation": "load_configuration", "path": source},
        )
    unknown = sorted(str(key) for key in payload if key not in _ALLOWED_KEYS)
    if unknown:
        raise ConfigurationError(
            f"Unknown configuration keys: {', '.join(unknown)}.",
            hint=f"Allowed keys are {', '.join(sorted(_ALLOWED_KEYS))}.",
            context={"operation": "load_configuration", "path": source},
        )
    compiler_path = _optional_path(payload, "compiler_path", source)
    game_path = _optional_path(payload, "game_path", source)
    flags_file = payload.get("flags_file", DEFAULT_FLAGS_FILE)
    if not isinstance(flags_file, str) or not flags_file:
        raise ConfigurationError(
            "Invalid configuration `flags_file` value.",
            context={"operation": "load_configuration", "path": source},
        )
    if any(ord(char) < 32 or ord(char) == 127 for char in flags_file):
        raise ConfigurationError(
            "Configuration `flags_file` contains control characters.",
            hint="Use a plain file name such as TESV_Papyrus_Flags.flg.",
            context={"operation": "load_configuration", "path": source},
        )
    return Configuration(compiler_path=compiler_path, game_path=game_path, flags_file=flags_file)


def discover_compiler(game_path: str | Path) -> Path:
    """Locate PapyrusCompiler.exe inside a game installation."""
    compiler_path = Path(game_path) / COMPILER_RELATIVE_PATH
    if not compiler_path.exists():
        raise ConfigurationError(
            f"Cannot find {COMPILER_RELATIVE_PATH} in the game folder.",
            hint="Install the Creation Kit or set compiler_path explicitly.",
            context={"operation": "discover_compiler", "game_path": str(game_path)},
        )
    if compiler_path.is_dir():
        raise ConfigurationError(
            "Expected compiler path is a directory, it should be a file.",
            context={"operation": "discover_compiler", "path": str(compiler_path)},
        )
    return compiler_path


def resolve_compiler(config: Configuration) -> Path:
    """Return the compiler executable to use, validating that it is a file."""
    if config.compiler_path is None:
        if config.game_path is None:
            raise ConfigurationError(
                "No compiler configured.",
                hint=f"Set compiler_path or game_path in ~/{CONFIG_FILENAME}.",
                context={"operation": "resolve_compiler"},
            )
        return discover_compiler(config.game_path)

    compiler_path = config.compiler_path
    if not compiler_path.exists() or compiler_path.is_dir():
        raise ConfigurationError(
            "Configured compiler does not exist or is a directory.",
            hint="Point compiler_path at PapyrusCompiler.exe.",
            context={"operation": "resolve_compiler", "path": str(compiler_path)},
        )
    return compiler_path


def _optional_path(payload: dict[str, Any], key: str, source: str) -> Path | None:
    value = payload.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ConfigurationError(
            f"Invalid configuration `{key}` value.",
            context={"operation": "load_configuration", "path": source},
        )
    return Path(value).expanduser()
