from __future__ import annotations

import sys
from typing import TYPE_CHECKING

import pytest

from loaders.require import (
    file_module_name,
    module_name_for,
    require_dependency,
    require_file,
    require_helper,
    safe_require,
)

if TYPE_CHECKING:
    from pathlib import Path


def _counter_script(path: Path, journal: Path) -> Path:
    path.write_text(
        f"with open({str(journal)!r}, 'a', encoding='utf-8') as f:\n    f.write('x')\n",
        encoding="utf-8",
    )
    return path


def test_safe_require_imports_existing_module() -> None:
    assert safe_require("json") is True


def test_safe_require_skips_missing_module() -> None:
    assert safe_require("depstubs_nowhere.sub") is False


def test_safe_require_propagates_missing_transitive_import(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    (tmp_path / "depstubs_needs_missing.py").write_text(
        "import depstubs_definitely_missing\n", encoding="utf-8"
    )
    monkeypatch.syspath_prepend(str(tmp_path))

    with pytest.raises(ModuleNotFoundError):
        safe_require("depstubs_needs_missing")


def test_require_file_runs_once(tmp_path: Path) -> None:
    journal = tmp_path / "journal"
    script = _counter_script(tmp_path / "once.py", journal)

    assert require_file(script) is True
    assert require_file(tmp_path / "." / "once.py") is False
    assert journal.read_text(encoding="utf-8") == "x"
    assert file_module_name(script.resolve()) in sys.modules


def test_require_file_missing_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        require_file(tmp_path / "missing.py")


def test_require_file_failure_can_be_retried(tmp_path: Path) -> None:
    script = tmp_path / "flaky.py"
    script.write_text("raise ValueError('nope')\n", encoding="utf-8")

    with pytest.raises(ValueError, match="nope"):
        require_file(script)

    assert file_module_name(script.resolve()) not in sys.modules


def test_require_helper_skips_absent_paths(tmp_path: Path) -> None:
    assert require_helper(None) is False
    assert require_helper("") is False
    assert require_helper(str(tmp_path / "absent.py")) is False


def test_module_name_for_uses_sys_path(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    package = tmp_path / "depstubs_lookup"
    package.mkdir()
    monkeypatch.syspath_prepend(str(tmp_path))

    assert module_name_for(package / "models.py") == "depstubs_lookup.models"
    assert module_name_for(package / "__init__.py") == "depstubs_lookup"


def test_require_dependency_falls_back_to_the_file(tmp_path: Path) -> None:
    journal = tmp_path / "journal"
    script = _counter_script(tmp_path / "not-importable.py", journal)

    require_dependency(script)

    assert journal.read_text(encoding="utf-8") == "x"
