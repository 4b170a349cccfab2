"""Core typed dataclasses for source units, artifacts and pass results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path, PurePosixPath

SOURCE_SUFFIX = ".less"
TARGET_SUFFIX = ".css"


class CauseKind(StrEnum):
    """Category of the underlying cause of a failed compilation."""

    IO = "io"
    SYNTAX = "syntax"
    BACKEND = "backend"
    TIMEOUT = "timeout"
    INTERRUPTED = "interrupted"


class UnitState(StrEnum):
    PENDING = "pending"
    CHECKING = "checking"
    SKIPPED = "skipped"
    COMPILING = "compiling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class SourceUnit:
    """A stylesheet input identified by its path relative to the source root."""

    relative_path: str
    path: Path

    @classmethod
    def from_root(cls, root: str | Path, relative_path: str | Path) -> SourceUnit:
        relative = PurePosixPath(Path(relative_path).as_posix())
        return cls(relative_path=str(relative), path=Path(root).resolve() / relative)

    @property
    def last_modified(self) -> int:
        """Modification time in nanoseconds; raises ``OSError`` if unreadable."""
        return self.path.stat().st_mtime_ns

    def __str__(self) -> str:
        return self.relative_path


@dataclass(frozen=True, slots=True)
class OutputArtifact:
    """A destination file. State is always read from the filesystem."""

    path: Path

    @property
    def exists(self) -> bool:
        return self.path.is_file()

    @property
    def last_modified(self) -> int:
        return self.path.stat().st_mtime_ns


@dataclass(frozen=True, slots=True)
class CompilationUnit:
    source: SourceUnit
    artifact: OutputArtifact


@dataclass(frozen=True, slots=True)
class CompileResult:
    """Outcome of one backend invocation.

    A failure carries a message, a best-effort location (``0``/``0`` when
    unknown) and the category of the underlying cause.
    """

    ok: bool
    message: str | None = None
    line: int = 0
    column: int = 0
    cause: CauseKind | None = None
    exception: BaseException | None = field(default=None, compare=False)

    @classmethod
    def success(cls) -> CompileResult:
        return cls(ok=True)

    @classmethod
    def failure(
        cls,
        message: str | None,
        *,
        cause: CauseKind,
        line: int = 0,
        column: int = 0,
        exception: BaseException | None = None,
    ) -> CompileResult:
        return cls(
            ok=False,
            message=message,
            line=line,
            column=column,
            cause=cause,
            exception=exception,
        )


@dataclass(slots=True)
class UnitOutcome:
    unit: str
    output: Path
    state: UnitState = UnitState.PENDING
    elapsed_ms: float | None = None


@dataclass(slots=True)
class PassReport:
    """Per-unit outcomes of one pass, in pass order."""

    outcomes: list[UnitOutcome] = field(default_factory=list)

    @property
    def compiled(self) -> list[str]:
        return [o.unit for o in self.outcomes if o.state == UnitState.SUCCEEDED]

    @property
    def skipped(self) -> list[str]:
        return [o.unit for o in self.outcomes if o.state == UnitState.SKIPPED]

    @property
    def failed(self) -> list[str]:
        return [o.unit for o in self.outcomes if o.state == UnitState.FAILED]

    def outcome_for(self, unit: str) -> UnitOutcome | None:
        for outcome in self.outcomes:
            if outcome.unit == unit:
                return outcome
        return None
