"""Incremental build orchestrator for Papyrus scripts."""

from .compiler import Compiler, PapyrusCompiler
from .config import Configuration, load_configuration, resolve_compiler
from .errors import (
    CompilationError,
    ConfigurationError,
    ErrorCode,
    PapyError,
    ScanError,
    SchedulerError,
)
from .models import CompileReport, CompilerResult, WorkItem, WorkPlan
from .observability import StructuredLogger
from .orphans import find_unbound_artifacts, find_unbuilt_sources
from .project import Project, check_folders, load_project
from .scanner import plan_compilation
from .scheduler import CompileScheduler

__all__ = [
    "CompilationError",
    "CompileReport",
    "CompileScheduler",
    "Compiler",
    "CompilerResult",
    "Configuration",
    "ConfigurationError",
    "ErrorCode",
    "PapyError",
    "PapyrusCompiler",
    "Project",
    "ScanError",
    "SchedulerError",
    "StructuredLogger",
    "WorkItem",
    "WorkPlan",
    "check_folders",
    "find_unbound_artifacts",
    "find_unbuilt_sources",
    "load_configuration",
    "load_project",
    "plan_compilation",
    "resolve_compiler",
]
