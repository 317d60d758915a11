"""Core typed dataclasses passed between the scanner, compiler and scheduler."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

import cbor2

from papy.errors import CompilationError


@dataclass(frozen=True, slots=True)
class WorkItem:
    """One stale source file and the output folder its artifact belongs in."""

    source_path: Path
    destination_folder: Path


@dataclass(frozen=True, slots=True)
class WorkPlan:
    items: tuple[WorkItem, ...] = ()
    schema_version: int = 1

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[WorkItem]:
        return iter(self.items)

    def to_payload(self) -> dict[str, object]:
        return {
            "schema_version": self.schema_version,
            "items": [
                {"source": str(item.source_path), "destination": str(item.destination_folder)}
                for item in self.items
            ],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_payload(), indent=2, sort_keys=True) + "\n"

    def digest(self) -> str:
        """SHA-256 of the canonical CBOR encoding; equal plans share a digest."""
        encoded = cbor2.dumps(self.to_payload(), canonical=True)
        return hashlib.sha256(encoded).hexdigest()


@dataclass(frozen=True, slots=True)
class CompilerResult:
    item: WorkItem
    command: str
    output: str = ""
    error: CompilationError | None = None

    @property
    def source_path(self) -> Path:
        return self.item.source_path

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class CompileReport:
    results: tuple[CompilerResult, ...] = field(default_factory=tuple)
    dispatched: int = 0

    @property
    def failures(self) -> tuple[CompilerResult, ...]:
        return tuple(result for result in self.results if not result.ok)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1
