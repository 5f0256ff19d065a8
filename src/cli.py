"""Command-line interface for depstubs."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import orjson

from loaders.bootstrap import Bootstrapper
from manifest.resolver import Manifest, ManifestError
from scan.artifacts import DuplicateArtifactError
from settings.config import ConfigError, DepStubsConfig, load_config, resolve_output_dir
from stubs.generator import Generator, UnknownDependencyError
from stubs.report import Reporter
from utils import configure_logging
from verify.verify import verify_sync


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--root",
        default=".",
        help="Project root (default: .)",
    )
    parser.add_argument(
        "--out-dir",
        default=None,
        help="Output directory for stub files (default: config output_dir)",
    )
    parser.add_argument(
        "--manifest",
        default=None,
        help="Manifest declaring the dependencies (default: config manifest)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )


def _add_bootstrap_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--prerequire",
        default=None,
        help="File to load before the host application",
    )
    parser.add_argument(
        "--postrequire",
        default=None,
        help="File to load after the dependencies are imported",
    )
    parser.add_argument(
        "--environment-load",
        action="store_true",
        help="Load config/environment.py instead of config/application.py",
    )
    parser.add_argument(
        "--eager-load",
        action="store_true",
        help="Eager load the host application",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="depstubs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate", help="Generate stubs for dependencies"
    )
    generate_parser.add_argument(
        "names",
        nargs="*",
        help="Dependencies to generate (default: all of them)",
    )
    _add_common_options(generate_parser)
    _add_bootstrap_options(generate_parser)

    sync_parser = subparsers.add_parser(
        "sync", help="Sync stubs with the dependency manifest"
    )
    _add_common_options(sync_parser)
    _add_bootstrap_options(sync_parser)

    check_parser = subparsers.add_parser(
        "check", help="Check that stubs are in sync with the manifest"
    )
    _add_common_options(check_parser)
    check_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON",
    )

    return parser


def _resolve_out_dir(root: Path, out_dir: str | None, config: DepStubsConfig) -> Path:
    if out_dir is None:
        return resolve_output_dir(root, config.output_dir)
    path = Path(out_dir).expanduser()
    return path.resolve() if path.is_absolute() else (root / path).resolve()


def _build_manifest(
    root: Path, manifest_path: str | None, config: DepStubsConfig
) -> Manifest:
    path = Path(manifest_path or config.manifest).expanduser()
    if not path.is_absolute():
        path = root / path
    return Manifest(path, exclude=config.exclude, transitive=config.transitive)


def _config_hook(root: Path, hook: str | None) -> str | None:
    if not hook:
        return None
    path = Path(hook).expanduser()
    return str(path if path.is_absolute() else root / path)


def _build_bootstrapper(
    root: Path, manifest: Manifest, args: argparse.Namespace, config: DepStubsConfig
) -> Bootstrapper:
    # Flags are relative to the working directory, config values to the root.
    return Bootstrapper(
        manifest,
        app_root=(root / config.app_root).resolve(),
        prerequire=args.prerequire or _config_hook(root, config.prerequire),
        postrequire=args.postrequire or _config_hook(root, config.postrequire),
        environment_load=args.environment_load or config.environment_load,
        eager_load=args.eager_load or config.eager_load,
    )


def _build_generator(root: Path, args: argparse.Namespace) -> Generator:
    config = load_config(root)
    manifest = _build_manifest(root, args.manifest, config)
    return Generator(
        out_dir=_resolve_out_dir(root, args.out_dir, config),
        manifest=manifest,
        bootstrapper=_build_bootstrapper(root, manifest, args, config),
    )


def _error(message: str) -> None:
    Reporter(sys.stderr).say(f"Error: {message}", "red", "bold")


def _write_duplicates(exc: DuplicateArtifactError) -> None:
    _error(str(exc))
    for name, paths in sorted(exc.duplicates.items()):
        for path in paths:
            sys.stderr.write(f"duplicate: {name}: {path}\n")


def _write_out_dir_error(out_dir: Path, exc: NotADirectoryError) -> None:
    sys.stderr.write(f"out-dir: {out_dir}\n")
    sys.stderr.write(f"error: {exc}\n")


def _handle_generate(root: Path, args: argparse.Namespace) -> int:
    generator = _build_generator(root, args)
    try:
        generator.build_dependency_stubs(args.names)
    except UnknownDependencyError as exc:
        _error(str(exc))
        return 1
    except DuplicateArtifactError as exc:
        _write_duplicates(exc)
        return 1
    except NotADirectoryError as exc:
        _write_out_dir_error(generator.out_dir, exc)
        return 2
    return 0


def _handle_sync(root: Path, args: argparse.Namespace) -> int:
    generator = _build_generator(root, args)
    try:
        generator.sync_stubs_with_manifest()
    except DuplicateArtifactError as exc:
        _write_duplicates(exc)
        return 1
    except NotADirectoryError as exc:
        _write_out_dir_error(generator.out_dir, exc)
        return 2
    return 0


def _handle_check(root: Path, args: argparse.Namespace) -> int:
    config = load_config(root)
    out_dir = _resolve_out_dir(root, args.out_dir, config)
    manifest = _build_manifest(root, args.manifest, config)

    try:
        result = verify_sync(out_dir=out_dir, manifest=manifest)
    except NotADirectoryError as exc:
        _write_out_dir_error(out_dir, exc)
        return 2
    except DuplicateArtifactError as exc:
        _write_duplicates(exc)
        return 1

    if args.json:
        sys.stdout.write(
            orjson.dumps(result.to_dict(), option=orjson.OPT_SORT_KEYS).decode() + "\n"
        )
    elif not result.ok:
        for label, names in (("remove", result.removals), ("update", result.updates)):
            for name in names:
                sys.stderr.write(f"{label}: {name}\n")

    return 0 if result.ok else 1


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    root = Path(args.root).expanduser().resolve()

    try:
        if args.command == "generate":
            return _handle_generate(root, args)

        if args.command == "sync":
            return _handle_sync(root, args)

        if args.command == "check":
            return _handle_check(root, args)
    except (ConfigError, ManifestError) as exc:
        _error(str(exc))
        return 2

    raise AssertionError


if __name__ == "__main__":
    raise SystemExit(main())
