"""Mapping of source paths to output artifact paths."""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from lessbuild.errors import ArtifactIOError
from lessbuild.models import SOURCE_SUFFIX, TARGET_SUFFIX

FILE_NAME_PLACEHOLDER = "{fileName}"


def _strip_source_suffix(name: str) -> str:
    if name.endswith(SOURCE_SUFFIX):
        return name[: -len(SOURCE_SUFFIX)]
    return name


def resolve_output_path(
    source_relative_path: str | Path,
    output_root: str | Path,
    name_template: str | None = None,
) -> Path:
    """Return the absolute destination for a source path relative to its root.

    With *name_template*, each ``{fileName}`` token is replaced by the source
    base name without its extension. A template without the token is used as
    a literal file name, so every source maps to the same output.
    """
    relative = PurePosixPath(Path(source_relative_path).as_posix())
    file_name = _strip_source_suffix(relative.name) + TARGET_SUFFIX
    if name_template is not None:
        templated = name_template.replace(FILE_NAME_PLACEHOLDER, _strip_source_suffix(relative.name))
        if templated.endswith(SOURCE_SUFFIX):
            templated = _strip_source_suffix(templated) + TARGET_SUFFIX
        elif not templated.endswith(TARGET_SUFFIX):
            templated += TARGET_SUFFIX
        file_name = templated
    return Path(output_root).resolve() / relative.parent / file_name


def ensure_parent_directory(path: Path) -> Path:
    parent = path.parent
    try:
        parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        # Another process may have created it in the meantime.
        if parent.is_dir():
            return parent
        raise ArtifactIOError(
            f"Cannot create output directory {parent}",
            hint="Check that the output directory is writable.",
            context={"operation": "ensure_parent_directory", "path": str(parent)},
        ) from exc
    return parent
