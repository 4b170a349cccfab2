"""Protocol for compiler backends."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Protocol

from lessbuild.models import CauseKind, CompileResult, SourceUnit


class CompilerBackend(Protocol):
    name: str

    def compile(self, source: SourceUnit, destination: Path, force: bool) -> CompileResult:
        """Transform *source* into *destination* and report the outcome."""

    def shutdown(self) -> None:
        """Release backend runtime resources at the end of a pass."""


def read_source(source: SourceUnit, encoding: str) -> str | CompileResult:
    """Return the source text, or a failed result if it cannot be read."""
    try:
        return source.path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        return CompileResult.failure(
            f"Cannot read LESS source {source.path}: {exc}",
            cause=CauseKind.IO,
            exception=exc,
        )


def write_artifact(destination: Path, css: str, encoding: str) -> CompileResult:
    """Atomically replace *destination* with *css*."""
    temp_path = destination.with_name(destination.name + ".tmp")
    try:
        temp_path.write_text(css, encoding=encoding)
        os.replace(temp_path, destination)
    except (OSError, UnicodeEncodeError) as exc:
        temp_path.unlink(missing_ok=True)
        return CompileResult.failure(
            f"Cannot write CSS output {destination}: {exc}",
            cause=CauseKind.IO,
            exception=exc,
        )
    return CompileResult.success()
