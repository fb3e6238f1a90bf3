"""
Workflow Import/Export — the ``.flow.json`` file format.

Layout (version ``1.0.0``)::

    {
      "version": "1.0.0",
      "metadata": {"name", "description", "createdAt", "exportedAt"},
      "workflow": {
        "nodes": [React-Flow nodes],
        "edges": [React-Flow edges],
        "state": {"id", "name", "status", "isValid", "validationErrors"}
      }
    }

Exports are always written with status ``draft``. Imports are checked
structurally before any node or edge is built; the first problem found
is raised as a ``WorkflowImportError``.
"""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from logging import getLogger
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from flowbuilder.config.rules_config import RulesConfig
from flowbuilder.workflow.workflow_model import (
    WorkflowDefinition,
    WorkflowEdge,
    WorkflowNode,
)
from flowbuilder.workflow.workflow_validator import validate_workflow

logger = getLogger(__name__)

FORMAT_VERSION = "1.0.0"
FILE_SUFFIX = ".flow.json"


class WorkflowImportError(ValueError):
    """Raised when a workflow file cannot be imported."""


# ============================================================================
# File-format models
# ============================================================================


class ExportMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str = ""
    created_at: str = Field(alias="createdAt")
    exported_at: str = Field(alias="exportedAt")


class ExportState(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    status: str = "draft"
    is_valid: bool = Field(alias="isValid")
    validation_errors: List[str] = Field(default_factory=list, alias="validationErrors")


class ExportPayload(BaseModel):
    nodes: List[Dict[str, Any]] = Field(default_factory=list)
    edges: List[Dict[str, Any]] = Field(default_factory=list)
    state: ExportState


class WorkflowExport(BaseModel):
    version: str = FORMAT_VERSION
    metadata: ExportMetadata
    workflow: ExportPayload


# ============================================================================
# Export
# ============================================================================


def export_workflow(
    workflow: WorkflowDefinition,
    description: Optional[str] = None,
    config: Optional[RulesConfig] = None,
) -> Dict[str, Any]:
    """Render ``workflow`` as a ``.flow.json`` document (a plain dict)."""
    result = validate_workflow(workflow.nodes, workflow.edges, config=config)
    default_description = (
        workflow.description
        or f"Exported workflow with {len(workflow.nodes)} nodes "
        f"and {len(workflow.edges)} connections"
    )

    document = WorkflowExport(
        metadata=ExportMetadata(
            name=workflow.name or "Untitled Workflow",
            description=description or default_description,
            created_at=workflow.created_at,
            exported_at=datetime.now(timezone.utc).isoformat(),
        ),
        workflow=ExportPayload(
            nodes=[n.to_flow_dict() for n in workflow.nodes],
            edges=[e.to_flow_dict() for e in workflow.edges],
            state=ExportState(
                id=workflow.id,
                name=workflow.name,
                is_valid=result.is_valid,
                validation_errors=[e.message for e in result.errors],
            ),
        ),
    )
    return document.model_dump(by_alias=True, mode="json")


def export_workflow_json(
    workflow: WorkflowDefinition,
    description: Optional[str] = None,
    config: Optional[RulesConfig] = None,
) -> str:
    return json.dumps(
        export_workflow(workflow, description=description, config=config),
        indent=2,
        ensure_ascii=False,
    )


def export_filename(name: str) -> str:
    """File name for a workflow export, e.g. ``"my_flow.flow.json"``."""
    safe = re.sub(r"[^a-z0-9]", "_", name or "", flags=re.IGNORECASE)
    safe = re.sub(r"_+", "_", safe).strip("_").lower()
    return f"{safe or 'workflow'}{FILE_SUFFIX}"


# ============================================================================
# Import
# ============================================================================


def import_workflow(text: str) -> WorkflowDefinition:
    """Parse a ``.flow.json`` document into a new ``WorkflowDefinition``.

    Raises:
        WorkflowImportError: on invalid JSON or a malformed document.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise WorkflowImportError(f"Invalid JSON format: {e.msg}") from e

    _check_document(data)

    metadata = data["metadata"]
    payload = data["workflow"]
    state = payload.get("state") if isinstance(payload.get("state"), dict) else {}

    if data["version"] != FORMAT_VERSION:
        logger.warning(
            f"Importing workflow file version {data['version']!r} "
            f"(expected {FORMAT_VERSION})"
        )

    try:
        nodes = [WorkflowNode.from_flow_dict(n) for n in payload["nodes"]]
        edges = [WorkflowEdge.from_flow_dict(e) for e in payload["edges"]]
    except (ValueError, TypeError, AttributeError) as e:
        raise WorkflowImportError(f"Invalid node structure detected: {e}") from e

    fields: Dict[str, Any] = {
        "name": metadata["name"],
        "description": metadata.get("description") or "",
        "nodes": nodes,
        "edges": edges,
    }
    if state.get("id"):
        fields["id"] = state["id"]
    if metadata.get("createdAt"):
        fields["created_at"] = metadata["createdAt"]

    try:
        workflow = WorkflowDefinition(**fields)
    except ValidationError as e:
        raise WorkflowImportError(f"Invalid workflow metadata: {e}") from e
    logger.info(
        f"Workflow imported: {workflow.name} "
        f"({len(workflow.nodes)} nodes, {len(workflow.edges)} edges)"
    )
    return workflow


def _check_document(data: Any) -> None:
    """Structural checks, in order; raise on the first failure."""
    if not data or not isinstance(data, dict):
        raise WorkflowImportError("Invalid file format")
    if not data.get("version"):
        raise WorkflowImportError("Missing version information")

    payload = data.get("workflow")
    if not payload or not isinstance(payload, dict):
        raise WorkflowImportError("Missing workflow data")
    if not isinstance(payload.get("nodes"), list):
        raise WorkflowImportError("Invalid nodes data")
    if not isinstance(payload.get("edges"), list):
        raise WorkflowImportError("Invalid edges data")

    metadata = data.get("metadata")
    if not isinstance(metadata, dict) or not metadata.get("name"):
        raise WorkflowImportError("Missing workflow metadata")

    for node in payload["nodes"]:
        if not isinstance(node, dict) or not all(
            node.get(k) for k in ("id", "type", "position", "data")
        ):
            raise WorkflowImportError("Invalid node structure detected")

    for edge in payload["edges"]:
        if not isinstance(edge, dict) or not all(
            edge.get(k) for k in ("id", "source", "target")
        ):
            raise WorkflowImportError("Invalid edge structure detected")
