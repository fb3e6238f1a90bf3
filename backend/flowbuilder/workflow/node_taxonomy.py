"""
Node Taxonomy — categories, subtype mapping, and per-category rules.

Every node on the canvas belongs to one of four closed categories.
The category decides which categories it may connect to and how many
outgoing connections it may have.

Category resolution happens once, when a ``WorkflowNode`` is built:
    1. Declared ``type`` that names a category wins.
    2. Known subtype → category via ``SUBTYPE_CATEGORIES``.
    3. Substring match of the subtype / declared type against the
       category names (``trigger``, ``action``, ``logic``, ``ai``).
    4. Fallback: ``action``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from logging import getLogger
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from flowbuilder.config.rules_config import RulesConfig, get_rules_config

logger = getLogger(__name__)


class NodeCategory(str, Enum):
    """Coarse behavioral class of a node."""
    TRIGGER = "trigger"
    ACTION = "action"
    LOGIC = "logic"
    AI = "ai"


DEFAULT_CATEGORY = NodeCategory.ACTION

# Substring probes are tried in this order. ``trigger`` must come before
# ``ai`` because "email-trigger" contains "ai".
_INFERENCE_ORDER: Tuple[NodeCategory, ...] = (
    NodeCategory.TRIGGER,
    NodeCategory.ACTION,
    NodeCategory.LOGIC,
    NodeCategory.AI,
)


# ============================================================================
# Subtype Mapping
# ============================================================================

SUBTYPE_CATEGORIES: Dict[str, NodeCategory] = {
    # Triggers
    "email-trigger": NodeCategory.TRIGGER,
    "gmail-trigger": NodeCategory.TRIGGER,
    "schedule-trigger": NodeCategory.TRIGGER,
    "webhook-trigger": NodeCategory.TRIGGER,
    # Actions
    "trello-action": NodeCategory.ACTION,
    "asana-action": NodeCategory.ACTION,
    "email-action": NodeCategory.ACTION,
    # Logic
    "condition": NodeCategory.LOGIC,
    "condition-logic": NodeCategory.LOGIC,
    "filter-logic": NodeCategory.LOGIC,
    "delay-logic": NodeCategory.LOGIC,
    # AI
    "ai-classification": NodeCategory.AI,
    "ai-tagging": NodeCategory.AI,
    "ai-summary": NodeCategory.AI,
}


# ============================================================================
# Category Rules
# ============================================================================

_ALLOWED_TARGETS: Dict[NodeCategory, FrozenSet[NodeCategory]] = {
    NodeCategory.TRIGGER: frozenset({NodeCategory.ACTION, NodeCategory.LOGIC, NodeCategory.AI}),
    NodeCategory.ACTION: frozenset({NodeCategory.ACTION, NodeCategory.LOGIC, NodeCategory.AI}),
    NodeCategory.LOGIC: frozenset({NodeCategory.ACTION, NodeCategory.AI}),
    NodeCategory.AI: frozenset({NodeCategory.ACTION, NodeCategory.AI}),
}

_OUTPUT_HANDLES: Dict[NodeCategory, Tuple[str, ...]] = {
    NodeCategory.TRIGGER: ("default",),
    NodeCategory.ACTION: ("default",),
    NodeCategory.LOGIC: ("true", "false"),
    NodeCategory.AI: ("default",),
}


@dataclass(frozen=True)
class CategoryRules:
    """Connection rules for one category."""
    category: NodeCategory
    allowed_targets: FrozenSet[NodeCategory]
    max_outgoing: int
    output_handles: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "allowed_targets": sorted(c.value for c in self.allowed_targets),
            "max_outgoing": self.max_outgoing,
            "output_handles": list(self.output_handles),
        }


def parse_category(value: Any) -> Optional[NodeCategory]:
    if isinstance(value, NodeCategory):
        return value
    if isinstance(value, str):
        try:
            return NodeCategory(value.strip().lower())
        except ValueError:
            return None
    return None


def _read_type_fields(node: Any) -> Tuple[Optional[str], Optional[str]]:
    """Pull (declared type, subtype) out of a node-like object."""
    if isinstance(node, Mapping):
        declared = node.get("type")
        subtype = node.get("node_type") or node.get("nodeType")
        data = node.get("data")
        if not subtype and isinstance(data, Mapping):
            subtype = data.get("nodeType") or data.get("node_type")
    else:
        declared = getattr(node, "type", None)
        subtype = getattr(node, "node_type", None)
    if not isinstance(declared, str):
        declared = None
    if not isinstance(subtype, str):
        subtype = None
    return declared, subtype


# ============================================================================
# Public API
# ============================================================================


def infer_category(declared: Optional[str], subtype: Optional[str]) -> NodeCategory:
    """Resolve a category from a declared type and a subtype string."""
    category = parse_category(declared)
    if category is not None:
        return category

    if subtype:
        key = subtype.strip().lower()
        if key in SUBTYPE_CATEGORIES:
            return SUBTYPE_CATEGORIES[key]

    for probe in (subtype, declared):
        if not probe:
            continue
        lowered = probe.lower()
        for candidate in _INFERENCE_ORDER:
            if candidate.value in lowered:
                return candidate

    logger.debug(
        f"No category for type={declared!r} subtype={subtype!r}; "
        f"defaulting to {DEFAULT_CATEGORY.value}"
    )
    return DEFAULT_CATEGORY


def category_of(node: Any) -> NodeCategory:
    """Return the category of a node. Never raises.

    Accepts a ``WorkflowNode`` (uses its resolved ``category``), any
    object with ``type`` / ``node_type`` attributes, or a mapping
    (flat, or React-Flow shaped with ``data.nodeType``). An explicit
    ``category`` key or attribute wins, as it does for ``WorkflowNode``.
    """
    if isinstance(node, Mapping):
        explicit = node.get("category")
    else:
        explicit = getattr(node, "category", None)
    resolved = parse_category(explicit)
    if resolved is not None:
        return resolved
    declared, subtype = _read_type_fields(node)
    return infer_category(declared, subtype)


def allowed_targets(category: NodeCategory) -> FrozenSet[NodeCategory]:
    """Categories that ``category`` may connect to. Never includes trigger."""
    return _ALLOWED_TARGETS[NodeCategory(category)]


def max_outgoing(category: NodeCategory, config: Optional[RulesConfig] = None) -> int:
    """Maximum outgoing edges for a node of ``category``."""
    cfg = config or get_rules_config()
    return cfg.max_outgoing_for(NodeCategory(category).value)


def output_handles(category: NodeCategory) -> Tuple[str, ...]:
    """Named output terminals exposed by a category."""
    return _OUTPUT_HANDLES[NodeCategory(category)]


def get_category_rules(
    category: NodeCategory,
    config: Optional[RulesConfig] = None,
) -> CategoryRules:
    category = NodeCategory(category)
    return CategoryRules(
        category=category,
        allowed_targets=allowed_targets(category),
        max_outgoing=max_outgoing(category, config),
        output_handles=output_handles(category),
    )


def describe_taxonomy(config: Optional[RulesConfig] = None) -> List[Dict[str, Any]]:
    """Serialize the rules of every category (for the node library panel)."""
    return [get_category_rules(c, config).to_dict() for c in NodeCategory]
