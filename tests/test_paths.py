from pathlib import Path

import pytest

from lessbuild.errors import ArtifactIOError
from lessbuild.paths import ensure_parent_directory, resolve_output_path


def test_extension_is_replaced_under_mapped_directory(tmp_path: Path) -> None:
    resolved = resolve_output_path("theme/site.less", tmp_path)
    assert resolved == tmp_path.resolve() / "theme" / "site.css"


def test_template_substitutes_base_name(tmp_path: Path) -> None:
    resolved = resolve_output_path("foo/bar.less", tmp_path, "pre-{fileName}-post")
    assert resolved == tmp_path.resolve() / "foo" / "pre-bar-post.css"


def test_template_with_explicit_extension(tmp_path: Path) -> None:
    assert resolve_output_path("a.less", tmp_path, "{fileName}.min.css").name == "a.min.css"
    assert resolve_output_path("a.less", tmp_path, "{fileName}.min.less").name == "a.min.css"


def test_template_without_placeholder_collapses_outputs(tmp_path: Path) -> None:
    first = resolve_output_path("a.less", tmp_path, "bundle")
    second = resolve_output_path("b.less", tmp_path, "bundle")
    assert first == second == tmp_path.resolve() / "bundle.css"


def test_ensure_parent_directory_is_idempotent(tmp_path: Path) -> None:
    target = tmp_path / "out" / "nested" / "site.css"
    ensure_parent_directory(target)
    ensure_parent_directory(target)
    assert target.parent.is_dir()


def test_ensure_parent_directory_fails_when_blocked_by_file(tmp_path: Path) -> None:
    blocker = tmp_path / "out"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(ArtifactIOError) as excinfo:
        ensure_parent_directory(blocker / "site.css")

    assert excinfo.value.code == "E_IO"
    assert excinfo.value.context["path"] == str(blocker)
