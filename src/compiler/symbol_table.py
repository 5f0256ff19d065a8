"""Stub rendering from the modules a dependency has loaded into the process."""

from __future__ import annotations

import inspect
import sys
from types import ModuleType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from manifest.resolver import Dependency

HEADER = (
    "# This file is autogenerated. Do not edit it by hand.\n"
    "# Regenerate it with `depstubs generate {name}`.\n"
    "#\n"
    "# {name}@{version}\n"
)

_CONSTANT_TYPES = (bool, int, float, complex, str, bytes)
_INDENT = "    "


class _Verbatim:
    """Renders as its text inside ``str(signature)``."""

    def __init__(self, text: str) -> None:
        self.text = text

    def __repr__(self) -> str:
        return self.text


_ELIDED = _Verbatim("...")


def _annotation(value: Any) -> Any:
    if isinstance(value, str):
        return _Verbatim(value)
    return value


def render_signature(obj: Any) -> str:
    """Signature of ``obj`` with defaults elided, or a catch-all when unknown."""
    try:
        signature = inspect.signature(obj)
    except Exception:  # noqa: BLE001
        return "(*args, **kwargs)"

    parameters = [
        parameter.replace(
            default=_ELIDED if parameter.default is not parameter.empty else parameter.empty,
            annotation=_annotation(parameter.annotation),
        )
        for parameter in signature.parameters.values()
    ]
    return str(
        signature.replace(
            parameters=parameters,
            return_annotation=_annotation(signature.return_annotation),
        )
    )


def _is_public(name: str) -> bool:
    return not name.startswith("_") or (name.startswith("__") and name.endswith("__"))


def _qualified(cls: type, module: ModuleType) -> str:
    if cls.__module__ in (module.__name__, "builtins"):
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


class SymbolTableCompiler:
    """Renders a ``.pyi``-style stub for one dependency.

    Only modules already imported are rendered, so the bootstrap decides how
    much of the dependency is visible.
    """

    def compile(self, dependency: Dependency) -> str:
        lines = [HEADER.format(name=dependency.name, version=dependency.version)]
        for module in self.modules_for(dependency):
            lines.append("")
            lines.extend(self.render_module(module))
        return "\n".join(lines).rstrip("\n") + "\n"

    def modules_for(self, dependency: Dependency) -> list[ModuleType]:
        roots = dependency.modules
        selected = [
            module
            for name, module in list(sys.modules.items())
            if isinstance(module, ModuleType)
            and any(name == root or name.startswith(f"{root}.") for root in roots)
        ]
        return sorted(selected, key=lambda module: module.__name__)

    def render_module(self, module: ModuleType) -> list[str]:
        lines = [f"# module: {module.__name__}"]
        exported = getattr(module, "__all__", None)
        for name, value in sorted(vars(module).items()):
            if name.startswith("_"):
                continue
            if inspect.isclass(value) and value.__module__ == module.__name__:
                lines.extend(self.render_class(value, module))
            elif inspect.isfunction(value) and value.__module__ == module.__name__:
                lines.append(f"def {name}{render_signature(value)}: ...")
            elif isinstance(value, _CONSTANT_TYPES) and (exported is None or name in exported):
                lines.append(f"{name}: {type(value).__name__}")
        return lines

    def render_class(self, cls: type, module: ModuleType, depth: int = 0) -> list[str]:
        indent = _INDENT * depth
        bases = [_qualified(base, module) for base in cls.__bases__ if base is not object]
        parents = f"({', '.join(bases)})" if bases else ""
        header = f"{indent}class {cls.__name__}{parents}:"
        body: list[str] = []
        member_indent = indent + _INDENT
        for name, value in sorted(vars(cls).items()):
            if not _is_public(name) or name in ("__dict__", "__weakref__", "__module__"):
                continue
            if isinstance(value, staticmethod):
                body.append(f"{member_indent}@staticmethod")
                body.append(f"{member_indent}def {name}{render_signature(value.__func__)}: ...")
            elif isinstance(value, classmethod):
                body.append(f"{member_indent}@classmethod")
                body.append(f"{member_indent}def {name}{render_signature(value.__func__)}: ...")
            elif isinstance(value, property):
                body.append(f"{member_indent}@property")
                body.append(f"{member_indent}def {name}(self): ...")
            elif inspect.isfunction(value):
                body.append(f"{member_indent}def {name}{render_signature(value)}: ...")
            elif inspect.isclass(value) and value.__qualname__.startswith(f"{cls.__qualname__}."):
                body.extend(self.render_class(value, module, depth + 1))

        return [header, *(body or [f"{member_indent}..."])]
