"""Fault-isolated execution of best-effort loading steps."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class IsolatedResult:
    """Outcome of one isolated step."""

    ok: bool
    label: str = ""
    error: BaseException | None = None


def run_isolated(fn: Callable[..., Any], *args: Any, label: str = "") -> IsolatedResult:
    """Call ``fn(*args)`` and contain any ``Exception`` it raises.

    Import errors and syntax errors in loaded files are ``Exception``
    subclasses, so a broken file never escapes the boundary. ``SystemExit``
    and ``KeyboardInterrupt`` still propagate.
    """
    step = label or getattr(fn, "__qualname__", repr(fn))
    try:
        fn(*args)
    except Exception as exc:  # noqa: BLE001
        log.debug("Isolated step %s failed: %s", step, exc, exc_info=True)
        return IsolatedResult(ok=False, label=step, error=exc)
    return IsolatedResult(ok=True, label=step)


def failures(results: list[IsolatedResult]) -> list[IsolatedResult]:
    return [result for result in results if not result.ok]


__all__ = ["IsolatedResult", "failures", "run_isolated"]
