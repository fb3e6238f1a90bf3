"""
Workflow Inspector — a structured, per-node view of a workflow graph
as the rule engine sees it.

Produces a report for the diagnostics panel that shows:

* The resolved category of every node
* Fan-out per node and the capacity left under the category limit
* Which categories each node may still connect to
* How edges are wired (simple vs branch) and which edges dangle
* The full validator result
"""

from __future__ import annotations

from collections import Counter
from logging import getLogger
from typing import Any, Dict, List, Optional

from flowbuilder.config.rules_config import RulesConfig, get_rules_config
from flowbuilder.workflow.node_taxonomy import (
    NodeCategory,
    allowed_targets,
    max_outgoing,
    output_handles,
)
from flowbuilder.workflow.workflow_model import (
    WorkflowDefinition,
    WorkflowEdge,
    WorkflowNode,
)
from flowbuilder.workflow.workflow_validator import validate_workflow

logger = getLogger(__name__)


# ====================================================================
# Public API
# ====================================================================


def inspect_workflow(
    workflow: WorkflowDefinition,
    config: Optional[RulesConfig] = None,
) -> Dict[str, Any]:
    """Inspect a workflow and produce the diagnostics report.

    Returns a dict containing:
        - ``nodes``      : Per-node detail list
        - ``edges``      : Per-edge detail list
        - ``summary``    : High-level stats
        - ``validation`` : Validator result as a dict
    """
    cfg = config or get_rules_config()
    result = validate_workflow(workflow.nodes, workflow.edges, config=cfg)

    instance_map: Dict[str, WorkflowNode] = {n.id: n for n in workflow.nodes}

    # Group edges by source
    edges_by_source: Dict[str, List[WorkflowEdge]] = {}
    for edge in workflow.edges:
        edges_by_source.setdefault(edge.source, []).append(edge)

    node_details = _build_node_details(
        workflow.nodes, instance_map, edges_by_source, cfg,
    )
    edge_details = _build_edge_details(workflow.edges, instance_map)

    category_counts = Counter(n.category.value for n in workflow.nodes)
    dangling = sum(1 for d in edge_details if d["dangling"])
    branch_count = sum(1 for d in edge_details if d["wiring"] == "branch")

    return {
        "nodes": node_details,
        "edges": edge_details,
        "summary": {
            "workflow_name": workflow.name,
            "workflow_id": workflow.id,
            "total_nodes": len(workflow.nodes),
            "total_edges": len(workflow.edges),
            "nodes_by_category": {
                c.value: category_counts.get(c.value, 0) for c in NodeCategory
            },
            "branch_edges": branch_count,
            "simple_edges": len(edge_details) - branch_count - dangling,
            "dangling_edges": dangling,
            "is_valid": result.is_valid,
            "score": result.score,
        },
        "validation": result.to_dict(),
    }


# ====================================================================
# Node detail builder
# ====================================================================


def _build_node_details(
    nodes: List[WorkflowNode],
    instance_map: Dict[str, WorkflowNode],
    edges_by_source: Dict[str, List[WorkflowEdge]],
    config: RulesConfig,
) -> List[Dict[str, Any]]:
    details = []
    for inst in nodes:
        outgoing = edges_by_source.get(inst.id, [])
        limit = max_outgoing(inst.category, config)

        targets = []
        for e in outgoing:
            tgt_inst = instance_map.get(e.target)
            targets.append({
                "handle": e.source_handle or "default",
                "target_id": e.target,
                "target_label": tgt_inst.display_label if tgt_inst else e.target,
                "target_category": tgt_inst.category.value if tgt_inst else None,
                "label": e.label,
            })

        details.append({
            "id": inst.id,
            "label": inst.display_label,
            "node_type": inst.node_type,
            "category": inst.category.value,
            "is_configured": inst.is_configured,
            "output_handles": list(output_handles(inst.category)),
            "allowed_targets": sorted(c.value for c in allowed_targets(inst.category)),
            "fan_out": len(outgoing),
            "max_outgoing": limit,
            "remaining_capacity": max(0, limit - len(outgoing)),
            "fan_in": sum(
                1 for edges in edges_by_source.values()
                for e in edges if e.target == inst.id
            ),
            "targets": targets,
        })

    return details


# ====================================================================
# Edge detail builder
# ====================================================================


def _build_edge_details(
    edges: List[WorkflowEdge],
    instance_map: Dict[str, WorkflowNode],
) -> List[Dict[str, Any]]:
    details = []
    for edge in edges:
        src = instance_map.get(edge.source)
        tgt = instance_map.get(edge.target)

        if src is None or tgt is None:
            logger.debug(f"Inspector: dangling edge {edge.id}")
            details.append({
                "id": edge.id,
                "source": edge.source,
                "target": edge.target,
                "handle": edge.source_handle,
                "wiring": "dangling",
                "dangling": True,
                "allowed": False,
            })
            continue

        is_branch = src.category == NodeCategory.LOGIC and edge.source_handle is not None
        details.append({
            "id": edge.id,
            "source": edge.source,
            "source_label": src.display_label,
            "target": edge.target,
            "target_label": tgt.display_label,
            "handle": edge.source_handle,
            "wiring": "branch" if is_branch else "simple",
            "dangling": False,
            "allowed": tgt.category in allowed_targets(src.category),
            "description": (
                f"{src.display_label} --[{edge.source_handle}]--> {tgt.display_label}"
                if is_branch
                else f"{src.display_label} --> {tgt.display_label}"
            ),
        })

    return details
