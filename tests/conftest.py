"""Shared test fixtures."""

from __future__ import annotations

import os
import stat
import sys
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from papy.errors import CompilationError
from papy.models import CompilerResult, WorkItem
from papy.project import Project

FAKE_COMPILER_SCRIPT = """#!/bin/sh
src="$1"
dest=""
for arg in "$@"; do
  case "$arg" in
    -o=*) dest="${arg#-o=}" ;;
  esac
done
name=$(basename "$src" .psc)
if grep -q FAIL "$src"; then
  echo "syntax error in $name"
  exit 1
fi
echo "compiled $name"
: > "$dest/$name.pex"
"""


@dataclass
class FakeCompiler:
    """In-process compiler that records every call and fails on request."""

    failing: frozenset[str] = frozenset()
    raising: frozenset[str] = frozenset()
    delay: float = 0.0
    name: str = "fake"
    calls: list[WorkItem] = field(default_factory=list)
    max_active: int = 0
    _active: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def compile(self, item: WorkItem) -> CompilerResult:
        with self._lock:
            self.calls.append(item)
            self._active += 1
            self.max_active = max(self.max_active, self._active)
        try:
            if self.delay:
                time.sleep(self.delay)
            name = item.source_path.name
            if name in self.raising:
                raise RuntimeError(f"compiler crashed on {name}")
            command = f"fake {item.source_path}"
            if name in self.failing:
                return CompilerResult(
                    item=item,
                    command=command,
                    output=f"error in {name}",
                    error=CompilationError(
                        "Compiler exited with status 1.",
                        source=item.source_path,
                        command=command,
                        returncode=1,
                    ),
                )
            return CompilerResult(item=item, command=command, output=f"compiled {name}")
        finally:
            with self._lock:
                self._active -= 1


@pytest.fixture
def fake_compiler() -> FakeCompiler:
    return FakeCompiler()


@pytest.fixture
def project(tmp_path: Path) -> Project:
    """Project with one source folder and two output folders, all empty."""
    source = tmp_path / "source"
    primary = tmp_path / "out"
    secondary = tmp_path / "out-extra"
    for folder in (source, primary, secondary):
        folder.mkdir()
    return Project(
        folders=(source,),
        imports=(source,),
        output_folders=(primary, secondary),
    )


@pytest.fixture
def fake_compiler_script(tmp_path: Path) -> Path:
    if os.name != "posix" or sys.platform.startswith("win"):
        pytest.skip("Fake compiler script requires a POSIX shell.")
    script = tmp_path / "bin" / "PapyrusCompiler"
    script.parent.mkdir(parents=True, exist_ok=True)
    script.write_text(FAKE_COMPILER_SCRIPT, encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script


def write_file(path: Path, *, mtime_ns: int, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    os.utime(path, ns=(mtime_ns, mtime_ns))
    return path
