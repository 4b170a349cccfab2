"""One compilation pass over a sequence of source units.

Units are handled strictly in order. The first failing unit is reported to
the build context and aborts the pass; units compiled before it keep their
new artifacts and later units are not attempted. The backend is shut down
exactly once when the pass ends, whatever the outcome.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from pathlib import Path

from lessbuild.backends.base import CompilerBackend
from lessbuild.config import CompilerConfig
from lessbuild.diagnostics import BuildContext, MessageLog, Severity
from lessbuild.errors import ArtifactIOError, BackendExecutionError, CompilationError
from lessbuild.freshness import is_stale
from lessbuild.models import (
    CauseKind,
    CompilationUnit,
    CompileResult,
    OutputArtifact,
    PassReport,
    SourceUnit,
    UnitOutcome,
    UnitState,
)
from lessbuild.observability import StructuredLogger
from lessbuild.paths import FILE_NAME_PLACEHOLDER, ensure_parent_directory, resolve_output_path

GENERIC_FAILURE_MESSAGE = "Error compiling LESS source"


def plan_unit(unit: SourceUnit, output_root: Path, config: CompilerConfig) -> CompilationUnit:
    destination = resolve_output_path(unit.relative_path, output_root, config.output_file_format)
    return CompilationUnit(source=unit, artifact=OutputArtifact(destination))


def run_pass(
    units: Iterable[SourceUnit],
    output_root: Path,
    backend: CompilerBackend,
    config: CompilerConfig,
    *,
    context: BuildContext | None = None,
    logger: StructuredLogger | None = None,
) -> PassReport:
    logger = logger if logger is not None else StructuredLogger()
    context = context if context is not None else MessageLog(logger=logger)
    report = PassReport()

    if config.output_file_format is not None and FILE_NAME_PLACEHOLDER not in config.output_file_format:
        logger.log(
            operation="output_template",
            phase="plan",
            level="warning",
            message=(
                f"Output file format {config.output_file_format!r} has no {FILE_NAME_PLACEHOLDER} "
                "placeholder; every source compiles to the same file."
            ),
        )

    try:
        for unit in units:
            context.remove_messages(unit.path)
            planned = plan_unit(unit, output_root, config)
            outcome = UnitOutcome(unit=unit.relative_path, output=planned.artifact.path)
            report.outcomes.append(outcome)
            _compile_unit(planned, outcome, report, backend, config, context, logger)
    finally:
        backend.shutdown()
    return report


def _compile_unit(
    planned: CompilationUnit,
    outcome: UnitOutcome,
    report: PassReport,
    backend: CompilerBackend,
    config: CompilerConfig,
    context: BuildContext,
    logger: StructuredLogger,
) -> None:
    unit = planned.source
    destination = planned.artifact.path
    outcome.state = UnitState.CHECKING
    try:
        ensure_parent_directory(destination)
    except ArtifactIOError as exc:
        result = CompileResult.failure(str(exc), cause=CauseKind.IO, exception=exc)
        raise _fail(unit, outcome, result, report, context, logger, backend.name) from exc

    if not is_stale(unit, planned.artifact, config.force, encoding=config.encoding):
        outcome.state = UnitState.SKIPPED
        if not config.watch:
            logger.log(
                operation="unit_skipped",
                unit=unit.relative_path,
                phase="check",
                backend=backend.name,
                message=f"Bypassing LESS source: {unit.relative_path} (not modified)",
            )
        return

    outcome.state = UnitState.COMPILING
    logger.log(
        operation="unit_compile_start",
        unit=unit.relative_path,
        phase="compile",
        backend=backend.name,
        message=f"Compiling LESS source: {unit.relative_path}...",
    )
    started = time.perf_counter()
    try:
        result = backend.compile(unit, destination, config.force)
    except BackendExecutionError as exc:
        result = CompileResult.failure(
            str(exc),
            cause=CauseKind.BACKEND,
            line=exc.line,
            column=exc.column,
            exception=exc,
        )
    except Exception as exc:
        result = CompileResult.failure(
            f"{type(exc).__name__}: {exc}",
            cause=CauseKind.BACKEND,
            exception=exc,
        )
    outcome.elapsed_ms = (time.perf_counter() - started) * 1000

    if not result.ok:
        raise _fail(unit, outcome, result, report, context, logger, backend.name) from result.exception

    outcome.state = UnitState.SUCCEEDED
    context.refresh(destination)
    logger.log(
        operation="unit_compile_complete",
        unit=unit.relative_path,
        phase="compile",
        backend=backend.name,
        message=f"Finished compilation to {destination.parent} in {outcome.elapsed_ms:.0f} ms",
        extra={"elapsed_ms": outcome.elapsed_ms, "output": str(destination)},
    )


def _fail(
    unit: SourceUnit,
    outcome: UnitOutcome,
    result: CompileResult,
    report: PassReport,
    context: BuildContext,
    logger: StructuredLogger,
    backend_name: str,
) -> CompilationError:
    outcome.state = UnitState.FAILED
    message = result.message or GENERIC_FAILURE_MESSAGE
    context.add_message(unit.path, result.line, result.column, message, Severity.ERROR, result.exception)
    extra: dict[str, object] = {"line": result.line, "column": result.column}
    if outcome.elapsed_ms is not None:
        extra["elapsed_ms"] = outcome.elapsed_ms
    logger.log(
        operation="unit_compile_failed",
        unit=unit.relative_path,
        phase="compile",
        backend=backend_name,
        level="error",
        message=f"Error while compiling LESS source: {unit.relative_path}: {message}",
        extra=extra,
    )
    error = CompilationError(
        f"Error while compiling LESS source: {unit.relative_path}",
        unit=unit.relative_path,
        hint=message,
        context={
            "cause": str(result.cause or CauseKind.BACKEND),
            "line": str(result.line),
            "column": str(result.column),
        },
    )
    error.report = report
    return error
