"""Graph algorithms for initializer ordering."""

from __future__ import annotations

import heapq
from collections import defaultdict


class CycleError(ValueError):
    """Raised when a dependency graph that must be acyclic contains a cycle."""

    def __init__(self, cycles: list[list[str]]) -> None:
        self.cycles = cycles
        rendered = "; ".join(" -> ".join(cycle) for cycle in cycles)
        super().__init__(f"Dependency cycle detected: {rendered}")


class _TarjanState:
    """Mutable state container for Tarjan's SCC algorithm."""

    def __init__(self) -> None:
        self.index = 0
        self.indices: dict[str, int] = {}
        self.low_link: dict[str, int] = {}
        self.on_stack: set[str] = set()
        self.stack: list[str] = []
        self.sccs: list[list[str]] = []


def _extract_scc(state: _TarjanState, root: str) -> list[str]:
    """Extract a strongly connected component from the stack."""
    scc: list[str] = []
    while state.stack:
        w = state.stack.pop()
        state.on_stack.remove(w)
        scc.append(w)
        if w == root:
            break
    if root not in scc:
        msg = (
            f"Tarjan algorithm invariant violated: root node {root!r} "
            "not found in stack during SCC extraction."
        )
        raise RuntimeError(msg)
    return scc


def _strongconnect(node: str, graph: dict[str, set[str]], state: _TarjanState) -> None:
    """Process a node in Tarjan's algorithm."""
    state.indices[node] = state.index
    state.low_link[node] = state.index
    state.index += 1
    state.stack.append(node)
    state.on_stack.add(node)

    for neighbor in sorted(graph.get(node, set())):
        if neighbor not in state.indices:
            _strongconnect(neighbor, graph, state)
            state.low_link[node] = min(state.low_link[node], state.low_link[neighbor])
        elif neighbor in state.on_stack:
            state.low_link[node] = min(state.low_link[node], state.indices[neighbor])

    if state.low_link[node] == state.indices[node]:
        scc = _extract_scc(state, node)
        if len(scc) > 1 or node in graph.get(node, set()):
            state.sccs.append(scc)


def find_cycles(graph: dict[str, set[str]]) -> list[list[str]]:
    """Find cycles in a directed graph using Tarjan's algorithm.

    Args:
        graph: Dictionary representing the graph

    Returns:
        List of cycles, where each cycle is a list of nodes
    """
    state = _TarjanState()

    for node in graph:
        if node not in state.indices:
            _strongconnect(node, graph, state)

    return state.sccs


def topological_order(graph: dict[str, set[str]]) -> list[str]:
    """Order nodes so that every node comes after the nodes it depends on.

    Args:
        graph: Mapping of node -> nodes that must come before it. Edges to
            nodes that are not keys of the mapping are ignored.

    Returns:
        Every key of ``graph`` exactly once. Among nodes whose prerequisites
        are satisfied, the one inserted first into ``graph`` comes first, so
        an unconstrained graph keeps its declaration order.

    Raises:
        CycleError: If the constrained graph contains a cycle.
    """
    edges = {node: {dep for dep in deps if dep in graph} for node, deps in graph.items()}

    cycles = find_cycles(edges)
    if cycles:
        raise CycleError(cycles)

    position = {node: index for index, node in enumerate(edges)}
    dependents: dict[str, list[str]] = defaultdict(list)
    remaining = {node: len(deps) for node, deps in edges.items()}
    for node, deps in edges.items():
        for dep in deps:
            dependents[dep].append(node)

    ready = [(position[node], node) for node, count in remaining.items() if count == 0]
    heapq.heapify(ready)

    order: list[str] = []
    while ready:
        _, node = heapq.heappop(ready)
        order.append(node)
        for dependent in dependents[node]:
            remaining[dependent] -= 1
            if remaining[dependent] == 0:
                heapq.heappush(ready, (position[dependent], dependent))

    return order


__all__ = [
    "CycleError",
    "_TarjanState",
    "_extract_scc",
    "_strongconnect",
    "find_cycles",
    "topological_order",
]
