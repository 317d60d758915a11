"""Compiler invocation: one external process per work item."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from papy.config import DEFAULT_FLAGS_FILE
from papy.errors import CompilationError
from papy.models import CompilerResult, WorkItem
from papy.project import Project

IMPORT_SEPARATOR = ";"
OPTIMIZE_FLAG = "-op"


class Compiler(Protocol):
    name: str

    def compile(self, item: WorkItem) -> CompilerResult:
        """Compile one item; failures are returned on the result, never raised."""


def flag(name: str, value: str | Path) -> str:
    return f"-{name}={value}"


@dataclass(slots=True)
class PapyrusCompiler:
    executable: Path
    project: Project
    flags_file: str = DEFAULT_FLAGS_FILE
    timeout: float | None = None
    name: str = "papyrus"

    def command_for(self, item: WorkItem) -> list[str]:
        argv = [
            str(self.executable),
            str(item.source_path),
            flag("o", item.destination_folder),
            flag("i", IMPORT_SEPARATOR.join(str(folder) for folder in self.project.imports)),
            flag("f", self.flags_file),
        ]
        if self.project.optimize:
            argv.append(OPTIMIZE_FLAG)
        return argv

    def compile(self, item: WorkItem) -> CompilerResult:
        argv = self.command_for(item)
        command = " ".join(argv)
        try:
            completed = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                check=False,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            return CompilerResult(
                item=item,
                command=command,
                output=_decode(exc.output),
                error=CompilationError(
                    f"Compiler timed out after {self.timeout} seconds.",
                    source=item.source_path,
                    command=command,
                ),
            )
        except (OSError, ValueError) as exc:
            # ValueError: an argument the OS cannot accept, such as an embedded NUL.
            return CompilerResult(
                item=item,
                command=command,
                error=CompilationError(
                    "Cannot start the compiler.",
                    source=item.source_path,
                    command=command,
                    hint=str(exc),
                ),
            )

        output = completed.stdout or ""
        if completed.returncode != 0:
            return CompilerResult(
                item=item,
                command=command,
                output=output,
                error=CompilationError(
                    f"Compiler exited with status {completed.returncode}.",
                    source=item.source_path,
                    command=command,
                    returncode=completed.returncode,
                ),
            )
        return CompilerResult(item=item, command=command, output=output)


def _decode(raw: str | bytes | None) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw
