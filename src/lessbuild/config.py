"""Compiler configuration surface and backend selection data."""

from __future__ import annotations

import codecs
from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from lessbuild.errors import ConfigurationError

DEFAULT_INCLUDES = ("**/*.less",)
DEFAULT_WATCH_INTERVAL_MS = 1000
DEFAULT_ENCODING = "utf-8"
DEFAULT_REQUEST_TIMEOUT = 30.0

# Option names as used by build-tool configuration files.
OPTION_ALIASES: dict[str, str] = {
    "sourceDirectory": "source_directory",
    "outputDirectory": "output_directory",
    "watchInterval": "watch_interval",
    "customRuntimeScript": "custom_runtime_script",
    "lessJs": "custom_runtime_script",
    "interpreterExecutable": "interpreter_executable",
    "nodeExecutable": "interpreter_executable",
    "bridgeScript": "bridge_script",
    "outputFileFormat": "output_file_format",
    "requestTimeout": "request_timeout",
}

_PATH_FIELDS = ("source_directory", "output_directory", "custom_runtime_script", "bridge_script")
_BOOL_FIELDS = ("compress", "watch", "force", "skip")


def _check_conflicts(custom_runtime_script: Path | None, interpreter_executable: str | None) -> None:
    if custom_runtime_script is not None and interpreter_executable is not None:
        raise ConfigurationError(
            "A custom runtime script is not supported together with an interpreter executable.",
            hint="Remove either custom_runtime_script or interpreter_executable.",
            context={
                "custom_runtime_script": str(custom_runtime_script),
                "interpreter_executable": interpreter_executable,
            },
        )


def _check_encoding(encoding: str) -> None:
    try:
        codecs.lookup(encoding)
    except LookupError as exc:
        raise ConfigurationError(
            f"Unknown text encoding: {encoding!r}.",
            context={"encoding": encoding},
        ) from exc


@dataclass(frozen=True, slots=True)
class BackendConfig:
    """Read-only options shared by every unit compiled with one backend."""

    compress: bool = False
    encoding: str = DEFAULT_ENCODING
    custom_runtime_script: Path | None = None
    interpreter_executable: str | None = None
    bridge_script: Path | None = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def __post_init__(self) -> None:
        _check_conflicts(self.custom_runtime_script, self.interpreter_executable)
        _check_encoding(self.encoding)
        if self.request_timeout <= 0:
            raise ConfigurationError(
                "request_timeout must be positive.",
                context={"request_timeout": str(self.request_timeout)},
            )

    @property
    def uses_external_process(self) -> bool:
        return self.interpreter_executable is not None


@dataclass(frozen=True, slots=True)
class CompilerConfig:
    output_directory: Path
    source_directory: Path | None = None
    includes: tuple[str, ...] = DEFAULT_INCLUDES
    excludes: tuple[str, ...] = ()
    compress: bool = False
    watch: bool = False
    watch_interval: int = DEFAULT_WATCH_INTERVAL_MS
    encoding: str = DEFAULT_ENCODING
    force: bool = False
    custom_runtime_script: Path | None = None
    interpreter_executable: str | None = None
    bridge_script: Path | None = None
    output_file_format: str | None = None
    skip: bool = False
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def __post_init__(self) -> None:
        for name in _PATH_FIELDS:
            value = getattr(self, name)
            if value is not None and not isinstance(value, Path):
                object.__setattr__(self, name, Path(value))
        object.__setattr__(self, "includes", tuple(self.includes))
        object.__setattr__(self, "excludes", tuple(self.excludes))

        if isinstance(self.watch_interval, bool) or not isinstance(self.watch_interval, int):
            raise ConfigurationError(
                "watch_interval must be an integer number of milliseconds.",
                context={"watch_interval": repr(self.watch_interval)},
            )
        if self.watch_interval <= 0:
            raise ConfigurationError(
                "watch_interval must be positive.",
                context={"watch_interval": str(self.watch_interval)},
            )
        _check_conflicts(self.custom_runtime_script, self.interpreter_executable)
        _check_encoding(self.encoding)

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> CompilerConfig:
        """Build a config from a flat mapping of option names.

        Both snake_case field names and the camelCase names used by build-tool
        configuration files are accepted.
        """
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in options.items():
            name = OPTION_ALIASES.get(key, key)
            if name not in known:
                raise ConfigurationError(
                    f"Unknown configuration option: {key!r}.",
                    hint=f"Known options: {', '.join(sorted(known))}",
                )
            if name in values:
                raise ConfigurationError(
                    f"Configuration option {name!r} was given more than once.",
                    context={"option": key},
                )
            values[name] = value

        if values.get("output_directory") is None:
            raise ConfigurationError(
                "output_directory is required.",
                hint="Set outputDirectory to the destination root for compiled stylesheets.",
            )
        for name in _BOOL_FIELDS:
            if name in values:
                values[name] = _as_bool(name, values[name])
        if "watch_interval" in values:
            values["watch_interval"] = _as_int("watch_interval", values["watch_interval"])
        if "request_timeout" in values:
            values["request_timeout"] = float(values["request_timeout"])
        for name in ("includes", "excludes"):
            if isinstance(values.get(name), str):
                values[name] = (values[name],)
        return cls(**values)

    def backend_config(self) -> BackendConfig:
        return BackendConfig(
            compress=self.compress,
            encoding=self.encoding,
            custom_runtime_script=self.custom_runtime_script,
            interpreter_executable=self.interpreter_executable,
            bridge_script=self.bridge_script,
            request_timeout=self.request_timeout,
        )

    def describe(self) -> dict[str, str]:
        return {f.name: str(getattr(self, f.name)) for f in fields(self)}


def _as_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    raise ConfigurationError(
        f"Option {name!r} must be a boolean.",
        context={name: repr(value)},
    )


def _as_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"Option {name!r} must be an integer.", context={name: repr(value)})
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(
            f"Option {name!r} must be an integer.",
            context={name: repr(value)},
        ) from exc
