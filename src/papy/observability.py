"""Structured logging and observability helpers."""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

LogRecord = dict[str, Any]


@dataclass(slots=True)
class StructuredLogger:
    records: list[LogRecord] = field(default_factory=list)
    echo: Callable[[LogRecord], None] | None = None

    def log(
        self,
        *,
        operation: str,
        message: str,
        folder: str | Path | None = None,
        source: str | Path | None = None,
        destination: str | Path | None = None,
        level: str = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        record: LogRecord = {
            "level": level,
            "operation": operation,
            "folder": _as_text(folder),
            "source": _as_text(source),
            "destination": _as_text(destination),
            "message": message,
        }
        if extra is not None:
            record["extra"] = extra
        self.records.append(record)
        if self.echo is not None:
            self.echo(record)

    def records_for(self, operation: str) -> list[LogRecord]:
        return [record for record in self.records if record.get("operation") == operation]

    def failures(self) -> list[LogRecord]:
        return [record for record in self.records if record.get("level") == "error"]

    def to_json_lines(self, path: str | Path) -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(record, sort_keys=True) for record in self.records]
        output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return output_path


def _as_text(value: str | Path | None) -> str | None:
    return None if value is None else str(value)
