"""Structured logging and observability helpers."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass(slots=True)
class StructuredLogger:
    """Collects structured records and mirrors them to :mod:`logging`."""

    records: list[dict[str, Any]] = field(default_factory=list)
    name: str = "lessbuild"

    def log(
        self,
        *,
        operation: str,
        message: str,
        unit: str | None = None,
        phase: str | None = None,
        backend: str | None = None,
        level: str = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        record: dict[str, Any] = {
            "level": level,
            "operation": operation,
            "unit": unit,
            "phase": phase,
            "backend": backend,
            "message": message,
        }
        if extra is not None:
            record["extra"] = extra
        self.records.append(record)
        logging.getLogger(self.name).log(_LEVELS.get(level, logging.INFO), message)

    def records_for_unit(self, unit: str) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("unit") == unit]

    def records_for_operation(self, operation: str) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("operation") == operation]

    def to_json_lines(self, path: str | Path) -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(record, sort_keys=True, default=str) for record in self.records]
        output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return output_path
