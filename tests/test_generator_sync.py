from __future__ import annotations

import io
from pathlib import Path

import pytest

from manifest.resolver import Dependency
from scan.artifacts import DuplicateArtifactError
from stubs.generator import Generator, UnknownDependencyError
from stubs.report import Reporter


class FakeManifest:
    def __init__(self, root: Path, versions: dict[str, str]) -> None:
        self.root = root
        self.versions = versions

    def dependencies(self) -> list[Dependency]:
        return [Dependency(name, version) for name, version in self.versions.items()]

    def dependency(self, name: str) -> Dependency | None:
        version = self.versions.get(name)
        return None if version is None else Dependency(name, version)

    def activate(self) -> None:
        pass


class FakeCompiler:
    def __init__(self) -> None:
        self.compiled: list[str] = []

    def compile(self, dependency: Dependency) -> str:
        self.compiled.append(dependency.name)
        return f"# {dependency.name}@{dependency.version}\n"


class FakeBootstrapper:
    def __init__(self) -> None:
        self.loads = 0

    def load(self) -> None:
        self.loads += 1


def _generator(
    tmp_path: Path, versions: dict[str, str]
) -> tuple[Generator, FakeCompiler, FakeBootstrapper, io.StringIO]:
    stream = io.StringIO()
    compiler = FakeCompiler()
    bootstrapper = FakeBootstrapper()
    generator = Generator(
        out_dir=tmp_path / "stubs",
        manifest=FakeManifest(tmp_path, versions),
        bootstrapper=bootstrapper,
        compiler=compiler,
        reporter=Reporter(stream, color=False),
    )
    return generator, compiler, bootstrapper, stream


def _write_stub(tmp_path: Path, filename: str, content: str = "old\n") -> Path:
    out_dir = tmp_path / "stubs"
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / filename
    path.write_text(content, encoding="utf-8")
    return path


def _stub_names(tmp_path: Path) -> list[str]:
    return sorted(path.name for path in (tmp_path / "stubs").iterdir())


def test_sync_removes_stale_and_adds_new(tmp_path: Path) -> None:
    _write_stub(tmp_path, "foo@1.0.0.pyi")
    _write_stub(tmp_path, "bar@2.0.0.pyi")
    generator, compiler, bootstrapper, stream = _generator(
        tmp_path, {"bar": "2.0.0", "baz": "0.1.0"}
    )

    assert generator.sync_stubs_with_manifest() is True

    assert _stub_names(tmp_path) == ["bar@2.0.0.pyi", "baz@0.1.0.pyi"]
    assert compiler.compiled == ["baz"]
    assert bootstrapper.loads == 1
    output = stream.getvalue()
    assert "-- Removing: " in output
    assert "++ Adding: " in output
    assert "All operations performed in working directory." in output


def test_sync_renames_outdated_stub_before_regenerating(tmp_path: Path) -> None:
    _write_stub(tmp_path, "foo@1.0.0.pyi")
    generator, _, _, stream = _generator(tmp_path, {"foo": "1.1.0"})

    generator.sync_stubs_with_manifest()

    assert _stub_names(tmp_path) == ["foo@1.1.0.pyi"]
    new_stub = tmp_path / "stubs" / "foo@1.1.0.pyi"
    assert new_stub.read_text(encoding="utf-8") == "# foo@1.1.0\n"
    assert "-> Moving: " in stream.getvalue()


def test_sync_without_changes_reports_up_to_date(tmp_path: Path) -> None:
    stub = _write_stub(tmp_path, "foo@1.0.0.pyi")
    generator, compiler, bootstrapper, stream = _generator(tmp_path, {"foo": "1.0.0"})

    assert generator.sync_stubs_with_manifest() is False

    assert stub.read_text(encoding="utf-8") == "old\n"
    assert compiler.compiled == []
    assert bootstrapper.loads == 0
    output = stream.getvalue()
    assert output.count("Nothing to do.") == 2
    assert "No operations performed, all stubs are up-to-date." in output


def test_sync_is_idempotent(tmp_path: Path) -> None:
    _write_stub(tmp_path, "gone@1.0.0.pyi")
    generator, compiler, _, _ = _generator(tmp_path, {"foo": "1.0.0"})

    assert generator.sync_stubs_with_manifest() is True
    assert generator.sync_stubs_with_manifest() is False

    assert _stub_names(tmp_path) == ["foo@1.0.0.pyi"]
    assert compiler.compiled == ["foo"]


def test_sync_with_removals_only_reports_change(tmp_path: Path) -> None:
    _write_stub(tmp_path, "foo@1.0.0.pyi")
    generator, _, bootstrapper, _ = _generator(tmp_path, {})

    assert generator.sync_stubs_with_manifest() is True

    assert _stub_names(tmp_path) == []
    assert bootstrapper.loads == 0


def test_sync_rejects_duplicate_stubs_without_writing(tmp_path: Path) -> None:
    _write_stub(tmp_path, "foo@1.0.0.pyi")
    _write_stub(tmp_path, "foo@2.0.0.pyi")
    generator, compiler, bootstrapper, _ = _generator(tmp_path, {"bar": "1.0.0"})

    with pytest.raises(DuplicateArtifactError):
        generator.sync_stubs_with_manifest()

    assert _stub_names(tmp_path) == ["foo@1.0.0.pyi", "foo@2.0.0.pyi"]
    assert compiler.compiled == []
    assert bootstrapper.loads == 0


def test_generate_all_writes_every_dependency(tmp_path: Path) -> None:
    generator, compiler, bootstrapper, stream = _generator(
        tmp_path, {"foo": "1.0.0", "bar": "2.0.0"}
    )

    written = generator.build_dependency_stubs()

    assert [path.name for path in written] == ["foo@1.0.0.pyi", "bar@2.0.0.pyi"]
    assert compiler.compiled == ["foo", "bar"]
    assert bootstrapper.loads == 1
    assert "Processing 'foo' dependency:" in stream.getvalue()


def test_generate_named_dependency_only(tmp_path: Path) -> None:
    _write_stub(tmp_path, "foo@0.9.0.pyi")
    generator, compiler, _, _ = _generator(tmp_path, {"foo": "1.0.0", "bar": "2.0.0"})

    generator.build_dependency_stubs(["foo"])

    assert compiler.compiled == ["foo"]
    assert _stub_names(tmp_path) == ["foo@1.0.0.pyi"]


def test_generate_unknown_dependency_fails_before_any_work(tmp_path: Path) -> None:
    generator, compiler, bootstrapper, _ = _generator(tmp_path, {"foo": "1.0.0"})

    with pytest.raises(UnknownDependencyError, match="Cannot find dependency 'nope'"):
        generator.build_dependency_stubs(["foo", "nope"])

    assert not (tmp_path / "stubs").exists()
    assert compiler.compiled == []
    assert bootstrapper.loads == 0


def test_generate_twice_leaves_the_same_files(tmp_path: Path) -> None:
    generator, _, _, _ = _generator(tmp_path, {"foo": "1.0.0"})

    generator.build_dependency_stubs()
    first = _stub_names(tmp_path)
    generator.build_dependency_stubs()

    assert _stub_names(tmp_path) == first == ["foo@1.0.0.pyi"]


def test_removing_an_already_deleted_stub_is_a_no_op(tmp_path: Path) -> None:
    stale = _write_stub(tmp_path, "gone@1.0.0.pyi")
    generator, _, _, _ = _generator(tmp_path, {})
    plan = generator.plan()
    stale.unlink()

    assert generator.apply(plan) is True

    assert _stub_names(tmp_path) == []
