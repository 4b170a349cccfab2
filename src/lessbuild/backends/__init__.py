"""Compiler backend interfaces and implementations."""

from lessbuild.config import BackendConfig

from .base import CompilerBackend, read_source, write_artifact
from .external import BRIDGE_SCRIPT, ExternalProcessBackend
from .inprocess import InProcessBackend, lesscpy_engine, load_runtime_script


def select_backend(config: BackendConfig) -> CompilerBackend:
    """Return the backend variant implied by *config*.

    An interpreter executable selects the external-process backend; otherwise
    compilation happens in-process.
    """
    if config.uses_external_process:
        return ExternalProcessBackend(config=config)
    return InProcessBackend(config=config)


__all__ = [
    "BRIDGE_SCRIPT",
    "BackendConfig",
    "CompilerBackend",
    "ExternalProcessBackend",
    "InProcessBackend",
    "lesscpy_engine",
    "load_runtime_script",
    "read_source",
    "select_backend",
    "write_artifact",
]
