"""
Cycle Detector — directed-cycle checks over a workflow edge list.

The vertex set is rebuilt from the edges themselves: an isolated node
can never sit on a cycle, so it does not need to be visited.

Edges may be ``WorkflowEdge`` objects, mappings with ``source`` /
``target`` keys, or plain ``(source, target)`` pairs. Anything else
is skipped.
"""

from __future__ import annotations

from logging import getLogger
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Set, Tuple

logger = getLogger(__name__)


def _endpoints(edge: Any) -> Optional[Tuple[str, str]]:
    if isinstance(edge, tuple) and len(edge) == 2:
        return edge[0], edge[1]
    if isinstance(edge, Mapping):
        source, target = edge.get("source"), edge.get("target")
    else:
        source = getattr(edge, "source", None)
        target = getattr(edge, "target", None)
    if source is None or target is None:
        return None
    return source, target


def build_adjacency(edges: Iterable[Any]) -> Dict[str, List[str]]:
    """Adjacency lists keyed by node ID, in first-appearance order."""
    adjacency: Dict[str, List[str]] = {}
    for edge in edges:
        pair = _endpoints(edge)
        if pair is None:
            logger.debug(f"Skipping malformed edge: {edge!r}")
            continue
        source, target = pair
        adjacency.setdefault(source, []).append(target)
        adjacency.setdefault(target, [])
    return adjacency


def has_cycle(edges: Iterable[Any]) -> bool:
    """True if the directed graph formed by ``edges`` contains a cycle.

    Depth-first search with a visited set and an on-stack set. Uses an
    explicit stack, so long chains do not hit the recursion limit.
    """
    adjacency = build_adjacency(edges)
    visited: Set[str] = set()
    on_stack: Set[str] = set()

    for start in adjacency:
        if start in visited:
            continue
        visited.add(start)
        on_stack.add(start)
        stack: List[Tuple[str, Iterator[str]]] = [(start, iter(adjacency[start]))]

        while stack:
            node, children = stack[-1]
            for child in children:
                if child in on_stack:
                    return True
                if child not in visited:
                    visited.add(child)
                    on_stack.add(child)
                    stack.append((child, iter(adjacency[child])))
                    break
            else:
                stack.pop()
                on_stack.discard(node)

    return False


def would_create_cycle(source_id: str, target_id: str, edges: Iterable[Any]) -> bool:
    """True if adding ``source_id → target_id`` to ``edges`` closes a cycle."""
    if source_id == target_id:
        return True
    return has_cycle([*edges, (source_id, target_id)])


def _cycle_key(cycle: Sequence[str]) -> Tuple[str, ...]:
    # Rotate so the smallest ID leads; [a, b, a] and [b, a, b] are one cycle.
    ring = list(cycle[:-1])
    pivot = ring.index(min(ring))
    return tuple(ring[pivot:] + ring[:pivot])


def find_cycles(node_ids: Iterable[str], edges: Iterable[Any]) -> List[List[str]]:
    """Return each distinct cycle as a closed path, e.g. ``["a", "b", "a"]``.

    Roots are visited in ``node_ids`` order, then any remaining node that
    only appears in ``edges``.
    """
    adjacency = build_adjacency(edges)
    roots = [n for n in dict.fromkeys(node_ids) if n in adjacency]
    listed = set(roots)
    roots.extend(n for n in adjacency if n not in listed)

    cycles: List[List[str]] = []
    seen_keys: Set[Tuple[str, ...]] = set()
    visited: Set[str] = set()

    for start in roots:
        if start in visited:
            continue
        visited.add(start)
        path: List[str] = [start]
        on_path: Set[str] = {start}
        stack: List[Iterator[str]] = [iter(adjacency[start])]

        while stack:
            for child in stack[-1]:
                if child in on_path:
                    cycle = path[path.index(child):] + [child]
                    key = _cycle_key(cycle)
                    if key not in seen_keys:
                        seen_keys.add(key)
                        cycles.append(cycle)
                    continue
                if child not in visited:
                    visited.add(child)
                    path.append(child)
                    on_path.add(child)
                    stack.append(iter(adjacency[child]))
                    break
            else:
                stack.pop()
                on_path.discard(path.pop())

    return cycles
