"""Dependency stub generation and synchronization."""

from stubs.generator import Generator, UnknownDependencyError
from stubs.plan import ReconciliationPlan, compute_plan
from stubs.report import Reporter

__all__ = [
    "Generator",
    "ReconciliationPlan",
    "Reporter",
    "UnknownDependencyError",
    "compute_plan",
]
