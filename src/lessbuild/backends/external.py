"""Out-of-process compiler backend.

Drives one long-lived interpreter process (``node`` running the bundled
``lessc_bridge.js`` by default) per pass. Each unit is one JSON request line
on the process's stdin answered by one JSON response line on its stdout::

    -> {"id": 1, "source": "/abs/site.less", "compress": false, "encoding": "utf-8"}
    <- {"id": 1, "ok": true, "css": "..."}
    <- {"id": 1, "ok": false, "message": "...", "line": 3, "column": 7}

The process is started lazily on the first compile and torn down by
:meth:`ExternalProcessBackend.shutdown`.

The bundled bridge needs the ``less`` npm package resolvable from the
working directory (``npm install less``). Node only decodes a handful of
encodings, so with the bundled bridge ``encoding`` must be one of
:data:`NODE_ENCODINGS`; a custom bridge receives the configured name as is.
"""

from __future__ import annotations

import codecs
import collections
import json
import queue
import subprocess
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any

from lessbuild.backends.base import write_artifact
from lessbuild.config import BackendConfig
from lessbuild.errors import BackendExecutionError, ConfigurationError
from lessbuild.models import CauseKind, CompileResult, SourceUnit

BRIDGE_SCRIPT = Path(__file__).with_name("lessc_bridge.js")
STDERR_TAIL_LINES = 50

# Python codec name -> Node.js Buffer encoding.
NODE_ENCODINGS = {
    "utf-8": "utf8",
    "utf-16-le": "utf16le",
    "iso8859-1": "latin1",
    "ascii": "ascii",
}


def _pump(stream: IO[str], sink: queue.Queue[str | None]) -> None:
    for line in stream:
        sink.put(line)
    sink.put(None)


def _drain(stream: IO[str], tail: collections.deque[str]) -> None:
    for line in stream:
        tail.append(line)


def _location(value: Any) -> int:
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError):
        return 0


@dataclass(slots=True)
class ExternalProcessBackend:
    config: BackendConfig
    name: str = "external"
    shutdown_timeout: float = 5.0
    _process: subprocess.Popen[str] | None = field(default=None, init=False, repr=False)
    _responses: queue.Queue[str | None] = field(default_factory=queue.Queue, init=False, repr=False)
    _stderr: collections.deque[str] = field(
        default_factory=lambda: collections.deque(maxlen=STDERR_TAIL_LINES),
        init=False,
        repr=False,
    )
    _threads: list[threading.Thread] = field(default_factory=list, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _next_id: int = field(default=0, init=False, repr=False)
    _wire_encoding: str = field(default="", init=False, repr=False)
    launches: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        if self.config.interpreter_executable is None:
            raise ConfigurationError(
                "The external backend requires an interpreter executable.",
                hint="Set interpreter_executable, or use the in-process backend.",
            )
        if self.config.custom_runtime_script is not None:
            raise ConfigurationError(
                "A custom runtime script is not supported when using an interpreter executable.",
                context={"custom_runtime_script": str(self.config.custom_runtime_script)},
            )
        self._wire_encoding = self.config.encoding
        if self.config.bridge_script is None:
            codec = codecs.lookup(self.config.encoding).name
            if codec not in NODE_ENCODINGS:
                raise ConfigurationError(
                    f"Encoding {self.config.encoding!r} is not supported by the bundled LESS bridge.",
                    hint=f"Use one of {', '.join(sorted(NODE_ENCODINGS))}, or supply a bridge_script.",
                    context={"encoding": self.config.encoding},
                )
            self._wire_encoding = NODE_ENCODINGS[codec]

    @property
    def command(self) -> list[str]:
        bridge = self.config.bridge_script or BRIDGE_SCRIPT
        return [str(self.config.interpreter_executable), str(bridge)]

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def compile(self, source: SourceUnit, destination: Path, force: bool) -> CompileResult:
        with self._lock:
            self._ensure_started()
            self._next_id += 1
            request = {
                "id": self._next_id,
                "source": str(source.path),
                "compress": self.config.compress,
                "encoding": self._wire_encoding,
            }
            response = self._exchange(request)
        if isinstance(response, CompileResult):
            return response
        if response.get("id") != request["id"]:
            return CompileResult.failure(
                f"Out-of-order response from {self.command[0]}: {response.get('id')!r}",
                cause=CauseKind.BACKEND,
            )
        if not response.get("ok"):
            return CompileResult.failure(
                response.get("message") or None,
                cause=CauseKind.SYNTAX,
                line=_location(response.get("line")),
                column=_location(response.get("column")),
            )
        css = response.get("css")
        if not isinstance(css, str):
            return CompileResult.failure(
                "Response is missing the compiled CSS.",
                cause=CauseKind.BACKEND,
            )
        return write_artifact(destination, css, self.config.encoding)

    def shutdown(self) -> None:
        with self._lock:
            self._stop()

    def _ensure_started(self) -> None:
        if self.running:
            return
        self._stop()
        try:
            process = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                bufsize=1,
            )
        except OSError as exc:
            raise BackendExecutionError(
                f"Cannot start interpreter: {exc}",
                hint="Check that interpreter_executable points to an installed runtime.",
                context={"backend": self.name, "operation": "start", "command": " ".join(self.command)},
            ) from exc
        self._process = process
        self._responses = queue.Queue()
        self._stderr.clear()
        if process.stdout is None or process.stderr is None:
            self._stop(kill=True)
            raise BackendExecutionError(
                "Interpreter started without output pipes.",
                context={"backend": self.name, "operation": "start", "command": " ".join(self.command)},
            )
        self._threads = [
            threading.Thread(target=_pump, args=(process.stdout, self._responses), daemon=True),
            threading.Thread(target=_drain, args=(process.stderr, self._stderr), daemon=True),
        ]
        for thread in self._threads:
            thread.start()
        self.launches += 1

    def _exchange(self, request: dict[str, Any]) -> dict[str, Any] | CompileResult:
        process = self._process
        if process is None or process.stdin is None:
            raise BackendExecutionError(
                "Interpreter is not running.",
                context={"backend": self.name, "operation": "request"},
            )
        try:
            process.stdin.write(json.dumps(request) + "\n")
            process.stdin.flush()
        except OSError as exc:
            return self._exited(exc)

        try:
            line = self._responses.get(timeout=self.config.request_timeout)
        except queue.Empty:
            self._stop(kill=True)
            return CompileResult.failure(
                f"No response from {self.command[0]} within {self.config.request_timeout}s.",
                cause=CauseKind.TIMEOUT,
            )
        if line is None:
            return self._exited(None)
        try:
            payload = json.loads(line)
        except json.JSONDecodeError as exc:
            return CompileResult.failure(
                f"Invalid response from {self.command[0]}: {line.strip()[:200]}",
                cause=CauseKind.BACKEND,
                exception=exc,
            )
        if not isinstance(payload, dict):
            return CompileResult.failure(
                f"Invalid response from {self.command[0]}: {line.strip()[:200]}",
                cause=CauseKind.BACKEND,
            )
        return payload

    def _exited(self, exc: BaseException | None) -> CompileResult:
        self._stop(kill=True)
        stderr = "".join(self._stderr).strip()
        message = f"{self.command[0]} exited unexpectedly."
        if stderr:
            message = f"{message}\n{stderr}"
        return CompileResult.failure(message, cause=CauseKind.BACKEND, exception=exc)

    def _stop(self, *, kill: bool = False) -> None:
        process = self._process
        if process is None:
            return
        self._process = None
        if process.stdin is not None:
            try:
                process.stdin.close()
            except OSError:
                pass
        if kill:
            process.kill()
        try:
            process.wait(timeout=self.shutdown_timeout)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()
        for thread in self._threads:
            thread.join(timeout=self.shutdown_timeout)
        self._threads = []
        for stream in (process.stdout, process.stderr):
            if stream is not None:
                stream.close()
