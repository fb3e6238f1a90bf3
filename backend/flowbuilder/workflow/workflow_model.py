"""
Workflow Data Models — definitions, node instances, and edges.

These are the serializable data structures that describe a
user-designed automation graph. The editor and the template
catalog produce them; the rule engine and validator only read them.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from logging import getLogger
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Set

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from flowbuilder.workflow.node_taxonomy import NodeCategory, parse_category, infer_category

if TYPE_CHECKING:
    from flowbuilder.config.rules_config import RulesConfig
    from flowbuilder.workflow.connection_rules import ConnectionCheck
    from flowbuilder.workflow.workflow_validator import ValidationResult

logger = getLogger(__name__)


def _short_id() -> str:
    return str(uuid.uuid4())[:8]


class WorkflowNode(BaseModel):
    """A single node placed on the workflow canvas.

    ``type`` is the declared category (may be free-form), ``node_type``
    the concrete subtype (``"email-trigger"``, ``"trello-action"``).
    ``category`` is resolved from both when the node is built.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=_short_id)
    type: Optional[str] = None
    node_type: str = Field(default="", alias="nodeType")
    label: str = ""
    config: Dict[str, Any] = Field(default_factory=dict)
    position: Dict[str, float] = Field(
        default_factory=lambda: {"x": 0, "y": 0}
    )
    category: NodeCategory = NodeCategory.ACTION

    @model_validator(mode="before")
    @classmethod
    def _resolve_category(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        if parse_category(data.get("category")) is not None:
            return data
        data = dict(data)
        subtype = data.get("node_type") or data.get("nodeType")
        declared = data.get("type")
        data["category"] = infer_category(
            declared if isinstance(declared, str) else None,
            subtype if isinstance(subtype, str) else None,
        )
        return data

    @field_validator("config", mode="before")
    @classmethod
    def _config_as_map(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("node_type", mode="before")
    @classmethod
    def _subtype_as_str(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def display_label(self) -> str:
        return self.label or self.node_type or self.id

    @property
    def is_configured(self) -> bool:
        return bool(self.config)

    def to_flow_dict(self) -> Dict[str, Any]:
        """Render as a React-Flow node (``data`` holds label/subtype/config)."""
        return {
            "id": self.id,
            "type": self.category.value,
            "position": dict(self.position),
            "data": {
                "label": self.label,
                "nodeType": self.node_type,
                "config": dict(self.config),
            },
        }

    @classmethod
    def from_flow_dict(cls, raw: Dict[str, Any]) -> "WorkflowNode":
        """Build from a React-Flow node dict."""
        data = raw.get("data") or {}
        return cls(
            id=raw["id"],
            type=raw.get("type"),
            node_type=data.get("nodeType") or "",
            label=data.get("label") or "",
            config=data.get("config") or {},
            position=raw.get("position") or {"x": 0, "y": 0},
        )


class WorkflowEdge(BaseModel):
    """A directed edge between two node instances.

    ``source_handle`` names the output terminal on the source node
    (``"true"`` / ``"false"`` on logic nodes). ``None`` means the
    node's single default terminal.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=_short_id)
    source: str  # source node instance ID
    target: str  # target node instance ID
    source_handle: Optional[str] = Field(default=None, alias="sourceHandle")
    label: str = ""

    @field_validator("source_handle", mode="before")
    @classmethod
    def _blank_handle_is_default(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def to_flow_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "source": self.source,
            "target": self.target,
        }
        if self.source_handle is not None:
            out["sourceHandle"] = self.source_handle
        if self.label:
            out["label"] = self.label
        return out

    @classmethod
    def from_flow_dict(cls, raw: Dict[str, Any]) -> "WorkflowEdge":
        return cls(
            id=raw["id"],
            source=raw["source"],
            target=raw["target"],
            source_handle=raw.get("sourceHandle"),
            label=raw.get("label") or "",
        )


def _coerce(raw: Any, model: Any) -> Any:
    if isinstance(raw, model):
        return raw
    if not isinstance(raw, Mapping):
        logger.debug(f"Skipping unreadable {model.__name__}: {raw!r}")
        return None
    try:
        if "data" in raw:
            return model.from_flow_dict(dict(raw))
        return model.model_validate(dict(raw))
    except (ValidationError, AttributeError, KeyError, TypeError) as e:
        logger.debug(f"Skipping malformed {model.__name__}: {e}")
        return None


def coerce_nodes(nodes: Iterable[Any]) -> List[WorkflowNode]:
    """Read nodes given as models, flat dicts or React-Flow dicts.

    Unreadable entries are skipped; on duplicate IDs the first wins.
    """
    out: List[WorkflowNode] = []
    seen: Set[str] = set()
    for raw in nodes:
        node = _coerce(raw, WorkflowNode)
        if node is None:
            continue
        if node.id in seen:
            logger.warning(f"Duplicate node id {node.id!r}; keeping the first")
            continue
        seen.add(node.id)
        out.append(node)
    return out


def coerce_edges(edges: Iterable[Any]) -> List[WorkflowEdge]:
    """Read edges given as models or dicts. Unreadable entries are skipped."""
    out: List[WorkflowEdge] = []
    for raw in edges:
        edge = _coerce(raw, WorkflowEdge)
        if edge is not None:
            out.append(edge)
    return out


class WorkflowDefinition(BaseModel):
    """A complete workflow graph definition.

    Contains all node instances, edges, and metadata.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = "Untitled Workflow"
    description: str = ""
    nodes: List[WorkflowNode] = Field(default_factory=list)
    edges: List[WorkflowEdge] = Field(default_factory=list)
    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    updated_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    is_active: bool = False
    template_id: Optional[str] = None

    def touch(self) -> None:
        """Update the ``updated_at`` timestamp."""
        self.updated_at = datetime.now(timezone.utc).isoformat()

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        """Find a node instance by ID."""
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def get_edges_from(self, node_id: str) -> List[WorkflowEdge]:
        """Get all edges originating from a node."""
        return [e for e in self.edges if e.source == node_id]

    def get_edges_to(self, node_id: str) -> List[WorkflowEdge]:
        """Get all edges pointing to a node."""
        return [e for e in self.edges if e.target == node_id]

    def get_nodes_by_category(self, category: NodeCategory) -> List[WorkflowNode]:
        return [n for n in self.nodes if n.category == category]

    def validate_graph(self, config: Optional["RulesConfig"] = None) -> "ValidationResult":
        """Run the full validator over this workflow."""
        from flowbuilder.workflow.workflow_validator import validate_workflow

        return validate_workflow(self.nodes, self.edges, config=config)

    def check_connection(
        self,
        source_id: str,
        target_id: str,
        source_handle: Optional[str] = None,
        config: Optional["RulesConfig"] = None,
    ) -> "ConnectionCheck":
        """Ask the rule engine whether ``source_id → target_id`` may be added."""
        from flowbuilder.workflow.connection_rules import validate_connection

        return validate_connection(
            source_id, target_id, self.nodes, self.edges,
            source_handle=source_handle, config=config,
        )
