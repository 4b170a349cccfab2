"""Repeated compilation passes at a fixed interval until cancelled."""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from dataclasses import replace

from lessbuild.backends.base import CompilerBackend
from lessbuild.config import CompilerConfig
from lessbuild.diagnostics import BuildContext, MessageLog
from lessbuild.driver import run_pass
from lessbuild.errors import WatchInterruptedError
from lessbuild.models import PassReport, SourceUnit
from lessbuild.observability import StructuredLogger

UnitSource = Sequence[SourceUnit] | Callable[[], Sequence[SourceUnit]]


def watch_config(config: CompilerConfig, logger: StructuredLogger) -> CompilerConfig:
    """Return *config* as used in watch mode: ``force`` off, ``watch`` on."""
    if config.force:
        logger.log(
            operation="watch_force_disabled",
            phase="watch",
            message="Disabled the 'force' flag in watch mode.",
        )
        config = replace(config, force=False)
    if not config.watch:
        config = replace(config, watch=True)
    return config


def watch(
    units: UnitSource,
    interval: int,
    backend: CompilerBackend,
    config: CompilerConfig,
    cancel: threading.Event,
    *,
    context: BuildContext | None = None,
    logger: StructuredLogger | None = None,
    max_passes: int | None = None,
) -> list[PassReport]:
    """Run passes every *interval* milliseconds until *cancel* is set.

    *units* may be a callable, in which case it is called before every pass
    to pick up added or removed sources. A failing pass raises
    :class:`~lessbuild.errors.CompilationError` and ends the loop.
    ``KeyboardInterrupt`` while sleeping sets *cancel* and ends the loop.
    """
    logger = logger if logger is not None else StructuredLogger()
    context = context if context is not None else MessageLog(logger=logger)
    config = watch_config(config, logger)
    reports: list[PassReport] = []

    while not cancel.is_set():
        current = units() if callable(units) else units
        reports.append(
            run_pass(
                current,
                config.output_directory,
                backend,
                config,
                context=context,
                logger=logger,
            )
        )
        if max_passes is not None and len(reports) >= max_passes:
            break
        try:
            if cancel.wait(interval / 1000):
                break
        except KeyboardInterrupt:
            cancel.set()
            interrupted = WatchInterruptedError(
                "Watch interrupted while waiting for the next pass.",
                context={"passes": str(len(reports))},
            )
            logger.log(
                operation="watch_interrupted",
                phase="watch",
                level="warning",
                message=str(interrupted),
                extra=interrupted.to_dict(),
            )
            break

    logger.log(
        operation="watch_stopped",
        phase="watch",
        message=f"Stopped watching after {len(reports)} pass(es).",
    )
    return reports
