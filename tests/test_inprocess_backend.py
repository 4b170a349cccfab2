from pathlib import Path

import pytest
from conftest import TreeFactory

from lessbuild.backends import InProcessBackend, lesscpy_engine, select_backend
from lessbuild.config import BackendConfig
from lessbuild.errors import ConfigurationError
from lessbuild.models import CauseKind, SourceUnit


def test_default_engine_is_lesscpy() -> None:
    assert InProcessBackend().engine is lesscpy_engine


def test_lesscpy_compiles_variables(tmp_path: Path, make_tree: TreeFactory) -> None:
    (unit,) = make_tree({"site.less": "@w: 10px;\n.box { width: @w; }\n"})
    destination = tmp_path / "site.css"

    result = InProcessBackend().compile(unit, destination, False)

    assert result.ok
    css = destination.read_text(encoding="utf-8")
    assert "10px" in css
    assert "@w" not in css


def test_runtime_script_is_used_and_honours_compress(
    tmp_path: Path, make_tree: TreeFactory, runtime_script: Path
) -> None:
    (unit,) = make_tree({"site.less": ".a { color: @color; }\n"})
    backend = InProcessBackend(BackendConfig(custom_runtime_script=runtime_script, compress=True))
    destination = tmp_path / "site.css"

    result = backend.compile(unit, destination, False)

    assert result.ok
    assert destination.read_text(encoding="utf-8") == "/* runtime */\n.a{color:red;}"


def test_runtime_script_errors_become_syntax_failures(
    tmp_path: Path, make_tree: TreeFactory, runtime_script: Path
) -> None:
    (unit,) = make_tree({"broken.less": "@fail\n"})
    backend = InProcessBackend(BackendConfig(custom_runtime_script=runtime_script))
    destination = tmp_path / "broken.css"

    result = backend.compile(unit, destination, False)

    assert not result.ok
    assert result.cause == CauseKind.SYNTAX
    assert result.line == 2
    assert result.message == "Unrecognised input at line 2"
    assert isinstance(result.exception, ValueError)
    assert not destination.exists()


def test_unreadable_source_is_io_failure(tmp_path: Path, source_dir: Path, runtime_script: Path) -> None:
    backend = InProcessBackend(BackendConfig(custom_runtime_script=runtime_script))
    result = backend.compile(SourceUnit.from_root(source_dir, "missing.less"), tmp_path / "x.css", False)

    assert not result.ok
    assert result.cause == CauseKind.IO
    assert (result.line, result.column) == (0, 0)


def test_sources_are_read_and_written_with_configured_encoding(
    tmp_path: Path, source_dir: Path, runtime_script: Path
) -> None:
    (source_dir / "latin.less").write_bytes(".a { content: 'caf\xe9'; }\n".encode("latin-1"))
    backend = InProcessBackend(BackendConfig(custom_runtime_script=runtime_script, encoding="latin-1"))
    destination = tmp_path / "latin.css"

    result = backend.compile(SourceUnit.from_root(source_dir, "latin.less"), destination, False)

    assert result.ok
    assert "caf\xe9".encode("latin-1") in destination.read_bytes()


def test_missing_runtime_script_is_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        InProcessBackend(BackendConfig(custom_runtime_script=tmp_path / "nope.py"))


def test_runtime_script_without_compile_is_rejected(tmp_path: Path) -> None:
    script = tmp_path / "empty_runtime.py"
    script.write_text("VALUE = 1\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="compile"):
        InProcessBackend(BackendConfig(custom_runtime_script=script))


def test_runtime_script_import_error_is_configuration_error(tmp_path: Path) -> None:
    script = tmp_path / "bad_runtime.py"
    script.write_text("raise RuntimeError('cannot load')\n", encoding="utf-8")

    with pytest.raises(ConfigurationError) as excinfo:
        InProcessBackend(BackendConfig(custom_runtime_script=script))

    assert excinfo.value.hint == "cannot load"


def test_select_backend_without_interpreter_is_inprocess() -> None:
    backend = select_backend(BackendConfig())
    assert isinstance(backend, InProcessBackend)
    backend.shutdown()


def test_lesscpy_syntax_errors_carry_line(tmp_path: Path, make_tree: TreeFactory) -> None:
    (unit,) = make_tree({"bad.less": ".a {\n color: ;;; }}\n"})
    destination = tmp_path / "bad.css"

    result = InProcessBackend().compile(unit, destination, False)

    assert not result.ok
    assert result.cause == CauseKind.SYNTAX
    assert result.line == 2
    assert result.message
    assert not destination.exists()


def test_lesscpy_resolves_imports_relative_to_source(tmp_path: Path, make_tree: TreeFactory) -> None:
    units = make_tree(
        {
            "main.less": '@import "lib/vars";\n.a { w: @w; }\n',
            "lib/vars.less": "@w: 3px;\n",
        }
    )
    main = next(unit for unit in units if unit.relative_path == "main.less")
    destination = tmp_path / "main.css"

    result = InProcessBackend().compile(main, destination, False)

    assert result.ok
    assert "w: 3px" in destination.read_text(encoding="utf-8")
