"""Discovery of LESS sources under a source directory."""

from __future__ import annotations

import fnmatch
from collections.abc import Sequence
from pathlib import Path

from lessbuild.config import DEFAULT_INCLUDES
from lessbuild.errors import ArtifactIOError
from lessbuild.models import SourceUnit


def _matches(relative: str, pattern: str) -> bool:
    if fnmatch.fnmatchcase(relative, pattern):
        return True
    # "**/" also matches files directly under the root.
    return pattern.startswith("**/") and fnmatch.fnmatchcase(relative, pattern[3:])


def discover_sources(
    root: str | Path,
    includes: Sequence[str] = DEFAULT_INCLUDES,
    excludes: Sequence[str] = (),
) -> list[SourceUnit]:
    """Return source units under *root* in sorted relative-path order."""
    source_root = Path(root)
    if not source_root.is_dir():
        raise ArtifactIOError(
            f"Source directory does not exist: {source_root}",
            context={"operation": "discover", "path": str(source_root)},
        )
    found: set[str] = set()
    for pattern in includes:
        for path in source_root.glob(pattern):
            if path.is_file():
                found.add(path.relative_to(source_root).as_posix())
    selected = sorted(rel for rel in found if not any(_matches(rel, p) for p in excludes))
    return [SourceUnit.from_root(source_root, rel) for rel in selected]
