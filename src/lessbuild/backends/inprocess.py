"""In-process compiler backend.

Compiles sources inside the current interpreter, either with ``lesscpy`` or
with a custom runtime script. A runtime script is a Python file exposing::

    def compile(text: str, *, filename: str, compress: bool) -> str: ...
"""

from __future__ import annotations

import importlib.util
import io
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import lesscpy

from lessbuild.backends.base import read_source, write_artifact
from lessbuild.config import BackendConfig
from lessbuild.errors import ConfigurationError
from lessbuild.models import CauseKind, CompileResult, SourceUnit

Engine = Callable[..., str]

_LINE_RE = re.compile(r"line:?\s*(\d+)", re.IGNORECASE)


def lesscpy_engine(text: str, *, filename: str, compress: bool) -> str:
    stream = io.StringIO(text)
    # lesscpy resolves @import relative to the stream name.
    stream.name = filename
    return lesscpy.compile(stream, minify=compress)


def load_runtime_script(path: Path) -> Engine:
    """Load the ``compile`` callable from a custom runtime script."""
    if not path.is_file():
        raise ConfigurationError(
            f"Custom runtime script not found: {path}",
            context={"custom_runtime_script": str(path)},
        )
    spec = importlib.util.spec_from_file_location(f"lessbuild_runtime_{path.stem}", path)
    if spec is None or spec.loader is None:
        raise ConfigurationError(
            f"Error while loading custom runtime script: {path}",
            context={"custom_runtime_script": str(path)},
        )
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        raise ConfigurationError(
            f"Error while loading custom runtime script: {path}",
            hint=str(exc),
            context={"custom_runtime_script": str(path)},
        ) from exc
    engine = getattr(module, "compile", None)
    if not callable(engine):
        raise ConfigurationError(
            f"Custom runtime script does not define a compile() function: {path}",
            context={"custom_runtime_script": str(path)},
        )
    return engine


@dataclass(slots=True)
class InProcessBackend:
    """Backend that calls a compilation function directly."""

    config: BackendConfig = field(default_factory=BackendConfig)
    name: str = "inprocess"
    engine: Engine = field(init=False)

    def __post_init__(self) -> None:
        if self.config.custom_runtime_script is not None:
            self.engine = load_runtime_script(self.config.custom_runtime_script)
        else:
            self.engine = lesscpy_engine

    def compile(self, source: SourceUnit, destination: Path, force: bool) -> CompileResult:
        text = read_source(source, self.config.encoding)
        if isinstance(text, CompileResult):
            return text
        try:
            css = self.engine(text, filename=str(source.path), compress=self.config.compress)
        except Exception as exc:
            line = getattr(exc, "lineno", None)
            if not isinstance(line, int):
                match = _LINE_RE.search(str(exc))
                line = int(match.group(1)) if match else 0
            return CompileResult.failure(
                str(exc),
                cause=CauseKind.SYNTAX,
                line=line,
                exception=exc,
            )
        if not isinstance(css, str):
            return CompileResult.failure(
                f"Compiler returned {type(css).__name__}, expected str.",
                cause=CauseKind.BACKEND,
            )
        return write_artifact(destination, css, self.config.encoding)

    def shutdown(self) -> None:
        pass
