"""Typed error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lessbuild.models import PassReport


class ErrorCode(StrEnum):
    """Stable error identifiers used across API surfaces."""

    CONFIGURATION = "E_CONFIGURATION"
    IO = "E_IO"
    BACKEND_EXECUTION = "E_BACKEND_EXECUTION"
    INTERRUPTED = "E_INTERRUPTED"
    COMPILATION = "E_COMPILATION"


class LessBuildError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: Mapping[str, str]

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
        self.hint = hint
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


class ConfigurationError(LessBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.CONFIGURATION, hint=hint, context=context)


class ArtifactIOError(LessBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.IO, hint=hint, context=context)


class BackendExecutionError(LessBuildError):
    """Transformation failure reported by a backend, with best-effort location."""

    def __init__(
        self,
        message: str,
        *,
        line: int = 0,
        column: int = 0,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.BACKEND_EXECUTION, hint=hint, context=context)
        self.line = line
        self.column = column


class WatchInterruptedError(LessBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.INTERRUPTED, hint=hint, context=context)


class CompilationError(LessBuildError):
    """Engine-level failure raised when a pass aborts on a unit."""

    def __init__(
        self,
        message: str,
        *,
        unit: str | None = None,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        merged = dict(context or {})
        if unit is not None:
            merged.setdefault("unit", unit)
        super().__init__(message, code=ErrorCode.COMPILATION, hint=hint, context=merged)
        self.unit = unit
        self.report: PassReport | None = None

    def to_dict(self) -> dict[str, object]:
        payload = super().to_dict()
        payload["unit"] = self.unit
        if self.report is not None:
            payload["report"] = {
                "compiled": self.report.compiled,
                "skipped": self.report.skipped,
                "failed": self.report.failed,
            }
        return payload


__all__ = [
    "ArtifactIOError",
    "BackendExecutionError",
    "CompilationError",
    "ConfigurationError",
    "ErrorCode",
    "LessBuildError",
    "WatchInterruptedError",
]
