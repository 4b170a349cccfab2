"""Public package entrypoint for the incremental LESS compiler driver."""

from .backends import CompilerBackend, ExternalProcessBackend, InProcessBackend, select_backend
from .config import BackendConfig, CompilerConfig
from .diagnostics import BuildContext, MessageLog, Severity
from .discovery import discover_sources
from .driver import run_pass
from .engine import LessCompiler
from .errors import (
    ArtifactIOError,
    BackendExecutionError,
    CompilationError,
    ConfigurationError,
    LessBuildError,
    WatchInterruptedError,
)
from .freshness import is_stale, last_modified_including_imports
from .models import (
    CauseKind,
    CompilationUnit,
    CompileResult,
    OutputArtifact,
    PassReport,
    SourceUnit,
    UnitOutcome,
    UnitState,
)
from .observability import StructuredLogger
from .paths import ensure_parent_directory, resolve_output_path
from .watch import watch

__all__ = [
    "ArtifactIOError",
    "BackendConfig",
    "BackendExecutionError",
    "BuildContext",
    "CauseKind",
    "CompilationError",
    "CompilationUnit",
    "CompileResult",
    "CompilerBackend",
    "CompilerConfig",
    "ConfigurationError",
    "ExternalProcessBackend",
    "InProcessBackend",
    "LessBuildError",
    "LessCompiler",
    "MessageLog",
    "OutputArtifact",
    "PassReport",
    "Severity",
    "SourceUnit",
    "StructuredLogger",
    "UnitOutcome",
    "UnitState",
    "WatchInterruptedError",
    "discover_sources",
    "ensure_parent_directory",
    "is_stale",
    "last_modified_including_imports",
    "resolve_output_path",
    "run_pass",
    "select_backend",
    "watch",
]
