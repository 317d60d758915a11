"""Typed error model with stable, machine-readable error codes.

Configuration and scan errors abort a run before anything is compiled.
Compilation errors never abort: they travel on a ``CompilerResult`` and are
reported per script. Scheduler errors mean the pipeline itself broke.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from pathlib import Path


class ErrorCode(StrEnum):
    """Stable error identifiers used across commands."""

    CONFIGURATION = "E_CONFIGURATION"
    SCAN = "E_SCAN"
    COMPILATION = "E_COMPILATION"
    SCHEDULER = "E_SCHEDULER"


class PapyError(Exception):
    """Base error class that carries code, optional hint, and context.

    Subclasses set ``default_hint``; it is used when no hint is given.
    """

    code: str
    hint: str | None
    context: Mapping[str, str]
    default_hint: str | None = None

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint if hint is not None else self.default_hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.context:
            for k, v in self.context.items():
                if v:
                    parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ConfigurationError(PapyError):
    default_hint = "Fix the project file or ~/.papy.yaml and run again."

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.CONFIGURATION, hint=hint, context=context)


class ScanError(PapyError):
    default_hint = "Make sure every source and output folder is readable."

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.SCAN, hint=hint, context=context)


class CompilationError(PapyError):
    """One script failed to compile; always tied to a source and a command line."""

    def __init__(
        self,
        message: str,
        *,
        source: str | Path,
        command: str,
        returncode: int | None = None,
        hint: str | None = None,
    ) -> None:
        context = {"operation": "compile", "source": str(source), "command": command}
        if returncode is not None:
            context["returncode"] = str(returncode)
        super().__init__(message, code=ErrorCode.COMPILATION, hint=hint, context=context)

    @property
    def source(self) -> str:
        return self.context["source"]

    @property
    def command(self) -> str:
        return self.context["command"]

    @property
    def returncode(self) -> int | None:
        value = self.context.get("returncode")
        return None if value is None else int(value)


class SchedulerError(PapyError):
    default_hint = "The compilation pipeline stopped; no build report was produced."

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.SCHEDULER, hint=hint, context=context)


__all__ = [
    "CompilationError",
    "ConfigurationError",
    "ErrorCode",
    "PapyError",
    "ScanError",
    "SchedulerError",
]
