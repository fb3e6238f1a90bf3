"""
Connection Rule Engine — decide whether a proposed edge may be added.

Called by the editor on every drag-to-connect gesture. Checks run in a
fixed order and stop at the first failure:

    1. self-connection
    2. category compatibility
    3. duplicate edge
    4. fan-out limit
    5. cycle introduction

The engine is advisory and side-effect free: it never touches the
edge list it is given. The editor materializes the edge.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from flowbuilder.config.rules_config import RulesConfig, get_rules_config
from flowbuilder.workflow.cycle_detector import would_create_cycle
from flowbuilder.workflow.node_taxonomy import allowed_targets, category_of, max_outgoing

logger = getLogger(__name__)

REASON_SELF_CONNECTION = "nodes cannot connect to themselves"
REASON_DUPLICATE = "connection already exists between these nodes"
REASON_CYCLE = "connection would create a circular dependency"
REASON_NOT_FOUND = "source or target node not found"

VALID_COLOR = "#10b981"
INVALID_COLOR = "#ef4444"


@dataclass(frozen=True)
class ConnectionCheck:
    """Decision for a single proposed edge."""
    valid: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"valid": self.valid}
        if self.reason:
            out["reason"] = self.reason
        return out


@dataclass(frozen=True)
class ConnectionFeedback:
    """Connection decision dressed for the canvas (edge color + message)."""
    valid: bool
    color: str
    message: str
    reason: Optional[str] = None


# ── Field access (nodes and edges may be models or plain dicts) ──


def _get(obj: Any, key: str, alias: Optional[str] = None) -> Any:
    if isinstance(obj, Mapping):
        value = obj.get(key)
        if value is None and alias:
            value = obj.get(alias)
        return value
    return getattr(obj, key, None)


def _node_id(node: Any) -> Any:
    return _get(node, "id")


def _is_duplicate(
    existing_handle: Optional[str],
    new_handle: Optional[str],
    handle_aware: bool,
) -> bool:
    # Only two explicit, distinct handles tell parallel edges apart.
    if not handle_aware or existing_handle is None or new_handle is None:
        return True
    return existing_handle == new_handle


# ============================================================================
# Public API
# ============================================================================


def can_connect(
    source: Any,
    target: Any,
    existing_edges: Optional[Iterable[Any]] = None,
    source_handle: Optional[str] = None,
    config: Optional[RulesConfig] = None,
) -> ConnectionCheck:
    """Decide whether ``source → target`` may be added to ``existing_edges``."""
    cfg = config or get_rules_config()
    edges: List[Any] = list(existing_edges or [])
    source_id = _node_id(source)
    target_id = _node_id(target)

    # 1. Self-connection
    if source_id == target_id:
        return _reject(source_id, target_id, REASON_SELF_CONNECTION)

    # 2. Category compatibility
    source_category = category_of(source)
    target_category = category_of(target)
    if target_category not in allowed_targets(source_category):
        return _reject(
            source_id, target_id,
            f"{source_category.value} nodes cannot connect to "
            f"{target_category.value} nodes",
        )

    # 3. Duplicate edge
    handle = source_handle or None
    outgoing = [e for e in edges if _get(e, "source") == source_id]
    for edge in outgoing:
        if _get(edge, "target") != target_id:
            continue
        existing_handle = _get(edge, "source_handle", alias="sourceHandle") or None
        if _is_duplicate(existing_handle, handle, cfg.handle_aware_duplicates):
            return _reject(source_id, target_id, REASON_DUPLICATE)

    # 4. Fan-out limit
    limit = max_outgoing(source_category, cfg)
    if len(outgoing) >= limit:
        return _reject(
            source_id, target_id,
            f"{source_category.value} nodes can have maximum "
            f"{limit} outgoing connections",
        )

    # 5. Cycle introduction
    if would_create_cycle(source_id, target_id, edges):
        return _reject(source_id, target_id, REASON_CYCLE)

    return ConnectionCheck(valid=True)


def validate_connection(
    source_id: Optional[str],
    target_id: Optional[str],
    nodes: Sequence[Any],
    edges: Sequence[Any],
    source_handle: Optional[str] = None,
    config: Optional[RulesConfig] = None,
) -> ConnectionCheck:
    """Resolve node IDs against ``nodes`` and run ``can_connect``."""
    if not source_id or not target_id:
        return ConnectionCheck(valid=False, reason=REASON_NOT_FOUND)

    source = target = None
    for node in nodes:
        nid = _node_id(node)
        if nid == source_id:
            source = node
        if nid == target_id:
            target = node
    if source is None or target is None:
        return ConnectionCheck(valid=False, reason=REASON_NOT_FOUND)

    return can_connect(source, target, edges, source_handle=source_handle, config=config)


def connection_feedback(
    source_id: Optional[str],
    target_id: Optional[str],
    nodes: Sequence[Any],
    edges: Sequence[Any],
    source_handle: Optional[str] = None,
    config: Optional[RulesConfig] = None,
) -> ConnectionFeedback:
    """Connection decision plus the color/message shown while dragging."""
    check = validate_connection(
        source_id, target_id, nodes, edges,
        source_handle=source_handle, config=config,
    )
    if check.valid:
        return ConnectionFeedback(valid=True, color=VALID_COLOR, message="Valid connection")

    reason = check.reason or "invalid connection"
    return ConnectionFeedback(
        valid=False,
        color=INVALID_COLOR,
        message=reason[0].upper() + reason[1:],
        reason=check.reason,
    )


def available_targets(
    source: Any,
    nodes: Sequence[Any],
    edges: Sequence[Any],
    source_handle: Optional[str] = None,
    config: Optional[RulesConfig] = None,
) -> List[str]:
    """IDs of the nodes ``source`` may connect to right now."""
    return [
        _node_id(node) for node in nodes
        if can_connect(source, node, edges, source_handle=source_handle, config=config).valid
    ]


def _reject(source_id: Any, target_id: Any, reason: str) -> ConnectionCheck:
    logger.debug(f"Connection {source_id} → {target_id} rejected: {reason}")
    return ConnectionCheck(valid=False, reason=reason)
