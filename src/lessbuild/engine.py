"""Top-level entry point tying discovery, backends, passes and watch mode together."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field

from lessbuild.backends import CompilerBackend, select_backend
from lessbuild.config import CompilerConfig
from lessbuild.diagnostics import BuildContext, MessageLog
from lessbuild.discovery import discover_sources
from lessbuild.driver import run_pass
from lessbuild.errors import ConfigurationError
from lessbuild.models import PassReport, SourceUnit
from lessbuild.observability import StructuredLogger
from lessbuild.watch import watch


@dataclass(slots=True)
class LessCompiler:
    """Compiles the configured source tree once, or repeatedly in watch mode."""

    config: CompilerConfig
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    context: BuildContext | None = None
    backend: CompilerBackend | None = None

    def __post_init__(self) -> None:
        if self.context is None:
            self.context = MessageLog(logger=self.logger)

    def execute(self, cancel: threading.Event | None = None) -> list[PassReport]:
        self.logger.log(
            operation="configuration",
            phase="setup",
            level="debug",
            message="Compiler configuration.",
            extra=self.config.describe(),
        )
        if self.config.skip:
            self.logger.log(
                operation="skip",
                phase="setup",
                message="Skipping execution per configuration",
            )
            return []
        return self._execute_internal(cancel if cancel is not None else threading.Event())

    def discover(self) -> list[SourceUnit]:
        if self.config.source_directory is None:
            raise ConfigurationError(
                "source_directory is required to discover LESS sources.",
                hint="Set sourceDirectory to the root of the LESS source tree.",
            )
        return discover_sources(
            self.config.source_directory,
            self.config.includes,
            self.config.excludes,
        )

    def _execute_internal(self, cancel: threading.Event) -> list[PassReport]:
        started = time.perf_counter()
        units = self.discover()
        if not units:
            self.logger.log(
                operation="discover",
                phase="setup",
                message="Nothing to compile - no LESS sources found",
            )
            return []
        self.logger.log(
            operation="discover",
            phase="setup",
            level="debug",
            message=f"Included files = {[unit.relative_path for unit in units]}",
        )

        backend = self.backend if self.backend is not None else select_backend(self.config.backend_config())
        if self.config.watch:
            self.logger.log(
                operation="watch_start",
                phase="watch",
                backend=backend.name,
                message=f"Watching {self.config.source_directory}",
            )
            reports = watch(
                self.discover,
                self.config.watch_interval,
                backend,
                self.config,
                cancel,
                context=self.context,
                logger=self.logger,
            )
        else:
            reports = [
                run_pass(
                    units,
                    self.config.output_directory,
                    backend,
                    self.config,
                    context=self.context,
                    logger=self.logger,
                )
            ]

        elapsed_ms = (time.perf_counter() - started) * 1000
        self.logger.log(
            operation="complete",
            phase="setup",
            backend=backend.name,
            message=f"Complete Less compile job finished in {elapsed_ms:.0f} ms",
            extra={"elapsed_ms": elapsed_ms, "passes": len(reports)},
        )
        return reports
