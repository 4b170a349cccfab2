from pathlib import Path

from lessbuild.errors import (
    ArtifactIOError,
    BackendExecutionError,
    CompilationError,
    ConfigurationError,
    ErrorCode,
    LessBuildError,
    WatchInterruptedError,
)
from lessbuild.models import PassReport, UnitOutcome, UnitState


def test_error_codes_are_stable_and_machine_readable() -> None:
    errors = [
        ConfigurationError("bad options"),
        ArtifactIOError("cannot write"),
        BackendExecutionError("backend failed"),
        WatchInterruptedError("interrupted"),
        CompilationError("pass failed"),
    ]
    assert [error.code for error in errors] == [
        ErrorCode.CONFIGURATION.value,
        ErrorCode.IO.value,
        ErrorCode.BACKEND_EXECUTION.value,
        ErrorCode.INTERRUPTED.value,
        ErrorCode.COMPILATION.value,
    ]
    assert all(isinstance(error, LessBuildError) for error in errors)


def test_error_str_includes_hint_and_non_empty_context() -> None:
    error = ArtifactIOError(
        "Cannot create output directory",
        hint="Check permissions.",
        context={"path": "/out", "operation": ""},
    )
    rendered = str(error)
    assert rendered.splitlines()[0] == "Cannot create output directory"
    assert "Hint: Check permissions." in rendered
    assert "  path: /out" in rendered
    assert "operation" not in rendered


def test_error_to_dict_omits_missing_hint() -> None:
    payload = ConfigurationError("bad", context={"option": "x"}).to_dict()
    assert payload == {"code": "E_CONFIGURATION", "message": "bad\n  option: x", "context": {"option": "x"}}


def test_backend_error_carries_location() -> None:
    error = BackendExecutionError("parse error", line=4, column=2)
    assert (error.line, error.column) == (4, 2)
    assert (BackendExecutionError("no location").line, BackendExecutionError("x").column) == (0, 0)


def test_compilation_error_records_failing_unit() -> None:
    error = CompilationError("Error while compiling LESS source: a.less", unit="a.less")
    assert error.unit == "a.less"
    assert error.context["unit"] == "a.less"
    assert error.report is None


def test_compilation_error_to_dict_summarises_pass() -> None:
    error = CompilationError("Error while compiling LESS source: b.less", unit="b.less")
    assert error.to_dict()["unit"] == "b.less"
    assert "report" not in error.to_dict()

    error.report = PassReport(
        [
            UnitOutcome("a.less", Path("/out/a.css"), UnitState.SUCCEEDED),
            UnitOutcome("b.less", Path("/out/b.css"), UnitState.FAILED),
        ]
    )

    assert error.to_dict()["report"] == {"compiled": ["a.less"], "skipped": [], "failed": ["b.less"]}
    assert error.to_dict()["code"] == "E_COMPILATION"
