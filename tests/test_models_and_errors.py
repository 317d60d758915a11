from pathlib import Path

from papy.errors import (
    CompilationError,
    ConfigurationError,
    ErrorCode,
    ScanError,
    SchedulerError,
)
from papy.models import CompileReport, CompilerResult, WorkItem, WorkPlan


def test_error_codes_are_stable_and_machine_readable() -> None:
    errors = [
        ConfigurationError("bad folder"),
        ScanError("unreadable"),
        CompilationError("compiler failed", source="/src/A.psc", command="papyrus A.psc"),
        SchedulerError("worker crashed"),
    ]
    assert [error.code for error in errors] == [
        ErrorCode.CONFIGURATION.value,
        ErrorCode.SCAN.value,
        ErrorCode.COMPILATION.value,
        ErrorCode.SCHEDULER.value,
    ]


def test_error_rendering_includes_hint_and_context() -> None:
    error = ScanError(
        "Cannot stat file.",
        hint="Check permissions.",
        context={"path": "/out/Quest.pex", "empty": ""},
    )

    rendered = str(error)
    assert rendered.splitlines() == [
        "Cannot stat file.",
        "Hint: Check permissions.",
        "  path: /out/Quest.pex",
    ]
    assert error.to_dict()["hint"] == "Check permissions."
    assert error.to_dict()["code"] == "E_SCAN"


def test_default_hints_apply_unless_overridden() -> None:
    assert ConfigurationError("bad").hint == ConfigurationError.default_hint
    assert ScanError("bad").hint == ScanError.default_hint
    assert SchedulerError("bad").hint == SchedulerError.default_hint
    assert ScanError("bad", hint="Check permissions.").hint == "Check permissions."
    assert str(SchedulerError("bad")).splitlines()[1].startswith("Hint: ")


def test_compilation_error_carries_structured_context() -> None:
    error = CompilationError(
        "Compiler exited with status 3.",
        source=Path("/src/Quest.psc"),
        command="papyrus /src/Quest.psc -o=/out",
        returncode=3,
    )

    assert error.context == {
        "operation": "compile",
        "source": str(Path("/src/Quest.psc")),
        "command": "papyrus /src/Quest.psc -o=/out",
        "returncode": "3",
    }
    assert error.source == str(Path("/src/Quest.psc"))
    assert error.command == "papyrus /src/Quest.psc -o=/out"
    assert error.returncode == 3
    assert error.hint is None
    assert CompilationError("no run", source="a.psc", command="c").returncode is None


def test_report_exit_code_follows_failures() -> None:
    item = WorkItem(source_path=Path("/src/A.psc"), destination_folder=Path("/out"))
    ok = CompilerResult(item=item, command="c")
    failed = CompilerResult(
        item=item,
        command="c",
        error=CompilationError("boom", source=item.source_path, command="c"),
    )

    assert CompileReport().exit_code == 0
    assert CompileReport(results=(ok,), dispatched=1).exit_code == 0
    report = CompileReport(results=(ok, failed), dispatched=2)
    assert report.failures == (failed,)
    assert report.exit_code == 1


def test_plan_payload_and_digest() -> None:
    plan = WorkPlan(
        items=(WorkItem(source_path=Path("/src/A.psc"), destination_folder=Path("/out")),),
    )

    assert plan.to_payload()["items"] == [{"source": "/src/A.psc", "destination": "/out"}]
    assert len(plan.digest()) == 64
    assert plan.digest() != WorkPlan().digest()
    assert '"schema_version": 1' in plan.to_json()
