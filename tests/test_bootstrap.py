from __future__ import annotations

import logging
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any

import pytest

from loaders.bootstrap import Bootstrapper
from loaders.framework import HostFramework, detect_host_framework
from loaders.states import BootstrapState

if TYPE_CHECKING:
    from collections.abc import Iterator


class RecordingManifest:
    def __init__(self, root: Path, journal: Path, *, fail: bool = False) -> None:
        self.root = root
        self.journal = journal
        self.fail = fail
        self.activations = 0

    def dependencies(self) -> list[Any]:
        return []

    def dependency(self, name: str) -> None:
        return None

    def activate(self) -> None:
        self.activations += 1
        _append(self.journal, "bundle")
        if self.fail:
            msg = "bundle exploded"
            raise RuntimeError(msg)


def _append(journal: Path, entry: str) -> None:
    with journal.open("a", encoding="utf-8") as f:
        f.write(entry + "\n")


def _entries(journal: Path) -> list[str]:
    if not journal.exists():
        return []
    return journal.read_text(encoding="utf-8").split()


def _write_script(path: Path, journal: Path, entry: str, *, fail: bool = False) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [
        "from pathlib import Path",
        f"with Path({str(journal)!r}).open('a', encoding='utf-8') as f:",
        f"    f.write({entry + chr(10)!r})",
    ]
    if fail:
        lines.append(f"raise RuntimeError({entry + ' failed'!r})")
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def _no_framework() -> HostFramework:
    return HostFramework()


@pytest.fixture(autouse=True)
def _restore_sys_path(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "path", list(sys.path))


@pytest.fixture
def host_package() -> Iterator[str]:
    name = "depstubs_host_support"
    yield name
    sys.modules.pop(name, None)


def test_bootstrap_without_host_application_skips_it(tmp_path: Path) -> None:
    manifest = RecordingManifest(tmp_path, tmp_path / "journal")

    report = Bootstrapper(manifest, detect=_no_framework, install_dirs=[]).load()

    assert report.states == [
        BootstrapState.NOT_STARTED,
        BootstrapState.PRE_HOOK_RUN,
        BootstrapState.HOST_SKIPPED,
        BootstrapState.BUNDLE_ACTIVATED,
        BootstrapState.POST_HOOK_RUN,
        BootstrapState.DONE,
    ]
    assert report.host_loaded is False
    assert report.failures == []
    assert manifest.activations == 1


def test_hooks_run_around_the_bundle(tmp_path: Path) -> None:
    journal = tmp_path / "journal"
    pre = _write_script(tmp_path / "hooks" / "pre.py", journal, "pre")
    post = _write_script(tmp_path / "hooks" / "post.py", journal, "post")
    manifest = RecordingManifest(tmp_path, journal)

    Bootstrapper(
        manifest,
        prerequire=str(pre),
        postrequire=str(post),
        detect=_no_framework,
        install_dirs=[],
    ).load()

    assert _entries(journal) == ["pre", "bundle", "post"]


def test_missing_hook_is_skipped(tmp_path: Path) -> None:
    manifest = RecordingManifest(tmp_path, tmp_path / "journal")

    report = Bootstrapper(
        manifest,
        prerequire=str(tmp_path / "missing.py"),
        detect=_no_framework,
        install_dirs=[],
    ).load()

    assert report.failures == []
    assert report.state is BootstrapState.DONE


def test_failing_hook_is_reported_and_bootstrap_continues(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    journal = tmp_path / "journal"
    pre = _write_script(tmp_path / "pre.py", journal, "pre", fail=True)
    manifest = RecordingManifest(tmp_path, journal)

    with caplog.at_level(logging.WARNING):
        report = Bootstrapper(
            manifest, prerequire=str(pre), detect=_no_framework, install_dirs=[]
        ).load()

    assert _entries(journal) == ["pre", "bundle"]
    assert [failure.label for failure in report.failures] == [f"hook:{pre}"]
    assert "pre failed" in caplog.text


def test_broken_host_application_is_reported_and_skipped(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    journal = tmp_path / "journal"
    _write_script(tmp_path / "config" / "application.py", journal, "app", fail=True)
    manifest = RecordingManifest(tmp_path, journal)

    with caplog.at_level(logging.WARNING):
        report = Bootstrapper(manifest, detect=_no_framework, install_dirs=[]).load()

    assert report.host_loaded is False
    assert BootstrapState.HOST_SKIPPED in report.states
    assert report.state is BootstrapState.DONE
    assert _entries(journal) == ["app", "bundle"]
    assert "app failed" in caplog.text
    assert "Continuing stub generation without loading the host application." in caplog.text


def test_host_application_is_loaded(tmp_path: Path) -> None:
    journal = tmp_path / "journal"
    _write_script(tmp_path / "config" / "application.py", journal, "app")
    manifest = RecordingManifest(tmp_path, journal)

    report = Bootstrapper(manifest, detect=_no_framework, install_dirs=[]).load()

    assert report.host_loaded is True
    assert BootstrapState.HOST_LOADED in report.states
    assert _entries(journal) == ["app", "bundle"]


def test_environment_load_uses_the_environment_file(tmp_path: Path) -> None:
    journal = tmp_path / "journal"
    _write_script(tmp_path / "config" / "application.py", journal, "app")
    _write_script(tmp_path / "config" / "environment.py", journal, "env")
    manifest = RecordingManifest(tmp_path, journal)

    Bootstrapper(
        manifest, environment_load=True, detect=_no_framework, install_dirs=[]
    ).load()

    assert _entries(journal) == ["env", "bundle"]


def test_app_root_overrides_project_root(tmp_path: Path) -> None:
    journal = tmp_path / "journal"
    app_root = tmp_path / "web"
    _write_script(app_root / "config" / "application.py", journal, "app")
    manifest = RecordingManifest(tmp_path, journal)

    report = Bootstrapper(
        manifest, app_root=app_root, detect=_no_framework, install_dirs=[]
    ).load()

    assert report.host_loaded is True


def test_failing_bundle_activation_is_contained(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    manifest = RecordingManifest(tmp_path, tmp_path / "journal", fail=True)

    with caplog.at_level(logging.WARNING):
        report = Bootstrapper(manifest, detect=_no_framework, install_dirs=[]).load()

    assert report.state is BootstrapState.DONE
    assert [failure.label for failure in report.failures] == ["bundle"]
    assert "bundle exploded" in caplog.text


def test_load_runs_once(tmp_path: Path) -> None:
    manifest = RecordingManifest(tmp_path, tmp_path / "journal")
    bootstrapper = Bootstrapper(manifest, detect=_no_framework, install_dirs=[])

    first = bootstrapper.load()
    second = bootstrapper.load()

    assert first is second
    assert manifest.activations == 1


def _framework_module(calls: list[str]) -> SimpleNamespace:
    def run_load_hooks(name: str, base: Any = None) -> None:
        calls.append(name)
        msg = "hook failed"
        raise RuntimeError(msg)

    def eager_load_all() -> None:
        calls.append("eager_load_all")

    namespace = SimpleNamespace(eager_load=lambda: calls.append("namespace"))
    application = SimpleNamespace(config=SimpleNamespace(eager_load_namespaces=[namespace]))
    return SimpleNamespace(
        deprecation=SimpleNamespace(silenced=False),
        run_load_hooks=run_load_hooks,
        eager_load_all=eager_load_all,
        registry=SimpleNamespace(loaders=[]),
        handle=SimpleNamespace(current=application),
    )


def test_eager_load_steps_are_isolated(tmp_path: Path) -> None:
    journal = tmp_path / "journal"
    _write_script(tmp_path / "config" / "application.py", journal, "app")
    manifest = RecordingManifest(tmp_path, journal)
    calls: list[str] = []
    module = _framework_module(calls)

    report = Bootstrapper(
        manifest,
        eager_load=True,
        detect=lambda: detect_host_framework(modules={"appkit": module}),
        install_dirs=[],
    ).load()

    assert calls == ["before_eager_load", "eager_load_all", "namespace"]
    assert [failure.label for failure in report.failures] == ["before_eager_load"]
    assert module.deprecation.silenced is True
    assert report.state is BootstrapState.DONE


def test_eager_load_is_off_by_default(tmp_path: Path) -> None:
    journal = tmp_path / "journal"
    _write_script(tmp_path / "config" / "application.py", journal, "app")
    manifest = RecordingManifest(tmp_path, journal)
    calls: list[str] = []
    module = _framework_module(calls)

    Bootstrapper(
        manifest,
        detect=lambda: detect_host_framework(modules={"appkit": module}),
        install_dirs=[],
    ).load()

    assert calls == []


def test_host_application_imports_sibling_packages(
    tmp_path: Path, host_package: str
) -> None:
    app_root = tmp_path / "web"
    (app_root / host_package).mkdir(parents=True)
    (app_root / host_package / "__init__.py").write_text(
        "READY = True\n", encoding="utf-8"
    )
    (app_root / "config").mkdir()
    (app_root / "config" / "application.py").write_text(
        f"import {host_package}\nassert {host_package}.READY\n", encoding="utf-8"
    )
    manifest = RecordingManifest(tmp_path, tmp_path / "journal")

    report = Bootstrapper(
        manifest, app_root=app_root, detect=_no_framework, install_dirs=[]
    ).load()

    assert report.host_loaded is True
    assert sys.path[0] == str(app_root.resolve())
