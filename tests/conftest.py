"""Shared test fixtures."""

from __future__ import annotations

import textwrap
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from lessbuild.config import CompilerConfig
from lessbuild.models import CauseKind, CompileResult, SourceUnit

RUNTIME_SCRIPT = textwrap.dedent(
    """\
    def compile(text, *, filename, compress):
        if "@fail" in text:
            raise ValueError("Unrecognised input at line 2")
        body = text.replace("@color", "red")
        if compress:
            body = "".join(body.split())
        return "/* runtime */\\n" + body
    """
)

BRIDGE_SCRIPT = textwrap.dedent(
    """\
    import json
    import sys
    import time

    while True:
        line = sys.stdin.readline()
        if not line:
            break
        request = json.loads(line)
        with open(request["source"], encoding=request["encoding"]) as fh:
            text = fh.read()
        if "@hang" in text:
            time.sleep(60)
        if "@crash" in text:
            sys.stderr.write("bridge crashed\\n")
            sys.stderr.flush()
            sys.exit(3)
        if "@fail" in text:
            response = {
                "id": request["id"],
                "ok": False,
                "message": "Unrecognised input",
                "line": 2,
                "column": 5,
            }
        elif "@badloc" in text:
            response = {"id": request["id"], "ok": False, "message": "Bad location", "line": "3:4"}
        else:
            css = text if not request["compress"] else "".join(text.split())
            response = {"id": request["id"], "ok": True, "css": "/* bridge */\\n" + css}
        sys.stdout.write(json.dumps(response) + "\\n")
        sys.stdout.flush()
    """
)

TreeFactory = Callable[[dict[str, str]], list[SourceUnit]]


@dataclass
class SpyBackend:
    """Backend double that records calls and writes a marker artifact."""

    fail_on: set[str] = field(default_factory=set)
    message: str | None = "boom"
    name: str = "spy"
    calls: list[tuple[str, bool]] = field(default_factory=list)
    shutdowns: int = 0

    @property
    def compiled(self) -> list[str]:
        return [unit for unit, _ in self.calls]

    def compile(self, source: SourceUnit, destination: Path, force: bool) -> CompileResult:
        self.calls.append((source.relative_path, force))
        if source.relative_path in self.fail_on:
            return CompileResult.failure(self.message, cause=CauseKind.SYNTAX, line=3, column=1)
        destination.write_text(f"/* {source.relative_path} */\n", encoding="utf-8")
        return CompileResult.success()

    def shutdown(self) -> None:
        self.shutdowns += 1


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    path = tmp_path / "less"
    path.mkdir()
    return path


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "css"


@pytest.fixture
def make_tree(source_dir: Path) -> TreeFactory:
    """Write ``{relative path: content}`` under the source dir and return its units."""

    def factory(files: dict[str, str]) -> list[SourceUnit]:
        for relative, content in files.items():
            path = source_dir / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return [SourceUnit.from_root(source_dir, relative) for relative in sorted(files)]

    return factory


@pytest.fixture
def config(source_dir: Path, output_dir: Path) -> CompilerConfig:
    return CompilerConfig(source_directory=source_dir, output_directory=output_dir)


@pytest.fixture
def spy_backend() -> SpyBackend:
    return SpyBackend()


@pytest.fixture
def runtime_script(tmp_path: Path) -> Path:
    path = tmp_path / "runtime.py"
    path.write_text(RUNTIME_SCRIPT, encoding="utf-8")
    return path


@pytest.fixture
def bridge_script(tmp_path: Path) -> Path:
    path = tmp_path / "bridge.py"
    path.write_text(BRIDGE_SCRIPT, encoding="utf-8")
    return path
