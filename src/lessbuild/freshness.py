"""Dependency-aware freshness checks for LESS sources.

A source is stale when its output is missing or older than the newest file
in the source's ``@import`` closure. The closure is found by a lightweight
scan of import directives that follows files relative to the importing
file; it does not parse the stylesheet language beyond that.
"""

from __future__ import annotations

import re
from pathlib import Path

from lessbuild.models import SOURCE_SUFFIX, OutputArtifact, SourceUnit

_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT_RE = re.compile(r"^\s*//.*$", re.MULTILINE)
_IMPORT_RE = re.compile(
    r"""@import\s*
        (?:\((?P<options>[^)]*)\)\s*)?
        (?:url\(\s*)?
        (?P<quote>["']?)(?P<target>[^"'()\s;]+)(?P=quote)
        \s*\)?
        [^;]*;""",
    re.VERBOSE,
)


def _is_followed(target: str, options: set[str]) -> bool:
    if "://" in target or target.startswith("//") or target.startswith("data:"):
        return False
    if "css" in options:
        return False
    if "less" in options or "inline" in options:
        return True
    return not target.lower().endswith(".css")


def scan_imports(path: Path, *, encoding: str = "utf-8") -> list[Path]:
    """Return the files directly imported by *path*, in order of appearance.

    Returned paths may not exist; callers decide how to treat them.
    """
    text = path.read_text(encoding=encoding, errors="replace")
    text = _LINE_COMMENT_RE.sub("", _BLOCK_COMMENT_RE.sub("", text))
    imports: list[Path] = []
    for match in _IMPORT_RE.finditer(text):
        target = match.group("target")
        options = {
            opt.strip().lower() for opt in (match.group("options") or "").split(",") if opt.strip()
        }
        if not _is_followed(target, options):
            continue
        candidate = path.parent / target
        if not candidate.suffix:
            candidate = candidate.with_suffix(SOURCE_SUFFIX)
        imports.append(candidate)
    return imports


def transitive_imports(path: Path, *, encoding: str = "utf-8") -> list[Path]:
    """Return every existing file in the import closure of *path*, excluding itself."""
    root = path.resolve()
    visited: set[Path] = {root}
    ordered: list[Path] = []
    stack = [root]
    while stack:
        current = stack.pop()
        try:
            children = scan_imports(current, encoding=encoding)
        except OSError:
            continue
        for child in reversed(children):
            resolved = child.resolve()
            if resolved in visited or not resolved.is_file():
                continue
            visited.add(resolved)
            ordered.append(resolved)
            stack.append(resolved)
    return ordered


def last_modified_including_imports(unit: SourceUnit, *, encoding: str = "utf-8") -> int:
    """Newest modification time (ns) over *unit* and its import closure."""
    newest = unit.last_modified
    for imported in transitive_imports(unit.path, encoding=encoding):
        try:
            newest = max(newest, imported.stat().st_mtime_ns)
        except OSError:
            continue
    return newest


def is_stale(
    unit: SourceUnit,
    artifact: OutputArtifact,
    force: bool,
    *,
    encoding: str = "utf-8",
) -> bool:
    if force or not artifact.exists:
        return True
    try:
        if unit.path.stat().st_size == 0:
            return True
        return artifact.last_modified < last_modified_including_imports(unit, encoding=encoding)
    except OSError:
        # Unreadable sources are attempted so the backend reports the failure.
        return True
