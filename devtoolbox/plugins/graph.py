"""Dependency graph ordering for batch plugin operations."""

from typing import Dict, Iterable, List, Mapping, Optional

from devtoolbox.errors import DependencyCycleError


def find_cycle(graph: Mapping[str, Iterable[str]]) -> Optional[List[str]]:
    """Return one cycle as a path (first node repeated at the end), or None.

    Edges to nodes outside the graph are ignored.
    """
    WHITE, GREY, BLACK = 0, 1, 2
    color: Dict[str, int] = {node: WHITE for node in graph}
    stack: List[str] = []

    def visit(node: str) -> Optional[List[str]]:
        color[node] = GREY
        stack.append(node)
        for dep in graph[node]:
            if dep not in color:
                continue
            if color[dep] == GREY:
                return stack[stack.index(dep):] + [dep]
            if color[dep] == WHITE:
                cycle = visit(dep)
                if cycle:
                    return cycle
        stack.pop()
        color[node] = BLACK
        return None

    for node in graph:
        if color[node] == WHITE:
            cycle = visit(node)
            if cycle:
                return cycle
    return None


def topological_order(graph: Mapping[str, Iterable[str]]) -> List[str]:
    """Order nodes so every node comes after the dependencies it lists.

    Ties keep the input order. Dependencies outside the graph are treated
    as already satisfied.

    Raises:
        DependencyCycleError: if the graph has a cycle
    """
    deps = {node: [d for d in graph[node] if d in graph] for node in graph}
    cycle = find_cycle(deps)
    if cycle:
        raise DependencyCycleError(cycle)

    ordered: List[str] = []
    placed = set()
    remaining = list(deps)
    while remaining:
        for node in remaining:
            if all(d in placed for d in deps[node]):
                ordered.append(node)
                placed.add(node)
                remaining.remove(node)
                break
    return ordered
