"""Diagnostics sink and artifact-change notifier used by the driver."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Protocol

from lessbuild.observability import StructuredLogger


class Severity(IntEnum):
    WARNING = 1
    ERROR = 2


@dataclass(frozen=True, slots=True)
class Message:
    path: Path
    line: int
    column: int
    message: str
    severity: Severity
    cause: BaseException | None = None


class BuildContext(Protocol):
    def remove_messages(self, path: Path) -> None:
        """Clear previously reported messages for *path* before a new attempt."""

    def add_message(
        self,
        path: Path,
        line: int,
        column: int,
        message: str,
        severity: Severity,
        cause: BaseException | None,
    ) -> None:
        """Report a diagnostic against *path*."""

    def refresh(self, path: Path) -> None:
        """Notify that *path* was (re)written."""


@dataclass(slots=True)
class MessageLog:
    """In-memory :class:`BuildContext` that forwards to a structured logger."""

    logger: StructuredLogger = field(default_factory=StructuredLogger)
    messages: list[Message] = field(default_factory=list)
    refreshed: list[Path] = field(default_factory=list)

    def remove_messages(self, path: Path) -> None:
        self.messages = [m for m in self.messages if m.path != path]

    def add_message(
        self,
        path: Path,
        line: int,
        column: int,
        message: str,
        severity: Severity,
        cause: BaseException | None,
    ) -> None:
        self.messages.append(
            Message(
                path=path,
                line=line,
                column=column,
                message=message,
                severity=severity,
                cause=cause,
            )
        )
        self.logger.log(
            operation="diagnostic",
            phase="report",
            level="error" if severity == Severity.ERROR else "warning",
            message=f"{path}:{line}:{column}: {message}",
            extra={"path": str(path), "line": line, "column": column},
        )

    def refresh(self, path: Path) -> None:
        self.refreshed.append(path)

    def messages_for(self, path: Path) -> list[Message]:
        return [m for m in self.messages if m.path == path]
