"""
Workflow Validator — holistic diagnostics over a complete graph.

Produces three ordered lists (errors, warnings, info), a validity flag
and a 0-100 quality score. Used to gate save / activate / run-test and
to populate the diagnostics panel.

Checks:
    structure      — empty graph, missing trigger/action, disconnected
                     and unreachable nodes
    logic          — cycles, dead ends, incomplete branches
    connection     — stored edges that break the category table or
                     exceed a fan-out limit
    configuration  — empty configs, subtype-specific hints
    execution      — oversized workflows

Scoring: start at 100, subtract ``error_penalty`` for every distinct
error check that fired and ``warning_penalty`` for every distinct
warning check, clamp to [0, 100]. Info never costs points. An empty
workflow scores 0.

The validator is a pure function of its inputs. Edges that point at
unknown nodes are skipped: a graph under edit is often transiently
inconsistent.
"""

from __future__ import annotations

from collections import Counter, deque
from enum import Enum
from logging import getLogger
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from pydantic import BaseModel, Field

from flowbuilder.config.rules_config import RulesConfig, get_rules_config
from flowbuilder.workflow.cycle_detector import find_cycles
from flowbuilder.workflow.node_taxonomy import NodeCategory, allowed_targets, max_outgoing
from flowbuilder.workflow.workflow_model import (
    WorkflowEdge,
    WorkflowNode,
    coerce_edges,
    coerce_nodes,
)

logger = getLogger(__name__)


class IssueLevel(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class IssueCategory(str, Enum):
    STRUCTURE = "structure"
    CONFIGURATION = "configuration"
    CONNECTION = "connection"
    LOGIC = "logic"
    EXECUTION = "execution"


class ValidationIssue(BaseModel):
    """One diagnostics entry.

    ``check`` names the rule that produced the entry; the score is
    charged once per distinct check. Aggregate entries list every
    offending node in ``node_ids`` and point ``node_id`` at the first.
    """

    id: str
    level: IssueLevel
    category: IssueCategory
    check: str
    message: str
    suggestion: Optional[str] = None
    node_id: Optional[str] = None
    node_label: Optional[str] = None
    node_ids: List[str] = Field(default_factory=list)
    edge_id: Optional[str] = None


class ValidationResult(BaseModel):
    """Full validator report."""

    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)
    info: List[ValidationIssue] = Field(default_factory=list)
    score: int = 100

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def issue_count(self) -> int:
        return len(self.errors) + len(self.warnings)

    def all_issues(self) -> List[ValidationIssue]:
        return [*self.errors, *self.warnings, *self.info]

    def issues_for_node(self, node_id: str) -> List[ValidationIssue]:
        """Entries that reference ``node_id`` (drives "jump to node")."""
        return [
            i for i in self.all_issues()
            if i.node_id == node_id or node_id in i.node_ids
        ]

    def summary(self) -> str:
        if not self.errors and not self.warnings:
            return f"Workflow is valid (Score: {self.score}/100)"

        parts: List[str] = []
        if self.errors:
            parts.append(_plural(len(self.errors), "error"))
        if self.warnings:
            parts.append(_plural(len(self.warnings), "warning"))
        if self.info:
            parts.append(f"{len(self.info)} info")
        return f"{', '.join(parts)} (Score: {self.score}/100)"

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json")
        data["is_valid"] = self.is_valid
        return data


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


# ============================================================================
# Public API
# ============================================================================


def validate_workflow(
    nodes: Iterable[Any],
    edges: Iterable[Any],
    config: Optional[RulesConfig] = None,
) -> ValidationResult:
    """Validate a whole graph. Never raises for well-formed input.

    ``nodes`` / ``edges`` may be models or dicts (flat or React-Flow
    shaped). Entries that cannot be read are skipped.
    """
    cfg = config or get_rules_config()
    node_list = coerce_nodes(nodes)
    edge_list = coerce_edges(edges)

    if not node_list:
        return ValidationResult(
            errors=[ValidationIssue(
                id="no-nodes",
                level=IssueLevel.ERROR,
                category=IssueCategory.STRUCTURE,
                check="no-nodes",
                message="Workflow must have at least one node",
                suggestion="Add a trigger node to start building your workflow",
            )],
            score=0,
        )

    node_map: Dict[str, WorkflowNode] = {n.id: n for n in node_list}
    live_edges: List[WorkflowEdge] = []
    for edge in edge_list:
        if edge.source in node_map and edge.target in node_map:
            live_edges.append(edge)
        else:
            logger.debug(
                f"Skipping dangling edge {edge.id}: {edge.source} → {edge.target}"
            )

    ctx = _Context(node_list, node_map, live_edges, cfg)
    for check in _CHECKS:
        check(ctx)

    return ValidationResult(
        errors=ctx.errors,
        warnings=ctx.warnings,
        info=ctx.info,
        score=calculate_quality_score(ctx.errors, ctx.warnings, cfg),
    )


def calculate_quality_score(
    errors: List[ValidationIssue],
    warnings: List[ValidationIssue],
    config: Optional[RulesConfig] = None,
) -> int:
    cfg = config or get_rules_config()
    score = 100
    score -= cfg.error_penalty * len({e.check for e in errors})
    score -= cfg.warning_penalty * len({w.check for w in warnings})
    return max(0, min(100, score))


def get_validation_summary(result: ValidationResult) -> str:
    return result.summary()


# ============================================================================
# Check context
# ============================================================================


class _Context:
    """Shared, read-only view of the graph plus the output lists."""

    def __init__(
        self,
        nodes: List[WorkflowNode],
        node_map: Dict[str, WorkflowNode],
        edges: List[WorkflowEdge],
        config: RulesConfig,
    ) -> None:
        self.nodes = nodes
        self.node_map = node_map
        self.edges = edges
        self.config = config
        self.errors: List[ValidationIssue] = []
        self.warnings: List[ValidationIssue] = []
        self.info: List[ValidationIssue] = []

        self.outgoing: Dict[str, List[WorkflowEdge]] = {}
        self.connected: Set[str] = set()
        for e in edges:
            self.outgoing.setdefault(e.source, []).append(e)
            self.connected.add(e.source)
            self.connected.add(e.target)

    def of_category(self, category: NodeCategory) -> List[WorkflowNode]:
        return [n for n in self.nodes if n.category == category]

    def add(
        self,
        level: IssueLevel,
        category: IssueCategory,
        check: str,
        message: str,
        issue_id: Optional[str] = None,
        suggestion: Optional[str] = None,
        nodes: Optional[List[WorkflowNode]] = None,
        edge_id: Optional[str] = None,
    ) -> None:
        nodes = nodes or []
        issue = ValidationIssue(
            id=issue_id or check,
            level=level,
            category=category,
            check=check,
            message=message,
            suggestion=suggestion,
            node_id=nodes[0].id if nodes else None,
            node_label=nodes[0].display_label if nodes else None,
            node_ids=[n.id for n in nodes],
            edge_id=edge_id,
        )
        {
            IssueLevel.ERROR: self.errors,
            IssueLevel.WARNING: self.warnings,
            IssueLevel.INFO: self.info,
        }[level].append(issue)


def _label_list(nodes: List[WorkflowNode], limit: int = 5) -> str:
    labels = [f'"{n.display_label}"' for n in nodes[:limit]]
    if len(nodes) > limit:
        labels.append(f"and {len(nodes) - limit} more")
    return ", ".join(labels)


# ============================================================================
# Structure checks
# ============================================================================


def _check_required_categories(ctx: _Context) -> None:
    if not ctx.of_category(NodeCategory.TRIGGER):
        ctx.add(
            IssueLevel.ERROR, IssueCategory.STRUCTURE, "no-trigger",
            "Workflow must have at least one trigger node",
            suggestion="Add an email trigger or other trigger node to start your workflow",
        )
    if not ctx.of_category(NodeCategory.ACTION):
        ctx.add(
            IssueLevel.ERROR, IssueCategory.STRUCTURE, "no-action",
            "Workflow must have at least one action node",
            suggestion="Add action nodes to perform tasks when the workflow is triggered",
        )


def _check_disconnected(ctx: _Context) -> None:
    if len(ctx.nodes) < 2:
        return
    isolated = [n for n in ctx.nodes if n.id not in ctx.connected]
    if not isolated:
        return
    ctx.add(
        IssueLevel.WARNING, IssueCategory.STRUCTURE, "disconnected-nodes",
        f"{_plural(len(isolated), 'node')} not connected to any other node: "
        f"{_label_list(isolated)}",
        suggestion="Connect these nodes to the workflow or remove them if not needed",
        nodes=isolated,
    )


def _check_unreachable(ctx: _Context) -> None:
    triggers = ctx.of_category(NodeCategory.TRIGGER)
    if not triggers:
        return

    reachable: Set[str] = set()
    queue = deque(t.id for t in triggers)
    while queue:
        nid = queue.popleft()
        if nid in reachable:
            continue
        reachable.add(nid)
        queue.extend(e.target for e in ctx.outgoing.get(nid, []))

    # Isolated nodes are already reported as disconnected.
    unreachable = [
        n for n in ctx.nodes
        if n.id not in reachable
        and n.id in ctx.connected
        and n.category != NodeCategory.TRIGGER
    ]
    if not unreachable:
        return
    ctx.add(
        IssueLevel.WARNING, IssueCategory.STRUCTURE, "unreachable-nodes",
        f"{_plural(len(unreachable), 'node')} not reachable from any trigger: "
        f"{_label_list(unreachable)}",
        suggestion="Connect these nodes to a path that starts from a trigger node",
        nodes=unreachable,
    )


# ============================================================================
# Logic checks
# ============================================================================


def _check_cycles(ctx: _Context) -> None:
    for cycle in find_cycles([n.id for n in ctx.nodes], ctx.edges):
        members = [ctx.node_map[nid] for nid in dict.fromkeys(cycle)]
        ctx.add(
            IssueLevel.ERROR, IssueCategory.LOGIC, "cycle",
            "Circular dependency detected: " + " → ".join(
                ctx.node_map[nid].display_label for nid in cycle
            ),
            issue_id="cycle-" + "-".join(cycle),
            suggestion="Remove connections that create circular dependencies",
            nodes=members,
        )


def _check_dead_ends(ctx: _Context) -> None:
    for node in ctx.of_category(NodeCategory.ACTION):
        if node.id in ctx.outgoing:
            continue
        ctx.add(
            IssueLevel.INFO, IssueCategory.LOGIC, "dead-end",
            f'Action "{node.display_label}" has no follow-up actions',
            issue_id=f"dead-end-{node.id}",
            suggestion="This is fine if this action completes your workflow",
            nodes=[node],
        )


def _check_branches(ctx: _Context) -> None:
    for node in ctx.of_category(NodeCategory.LOGIC):
        if len(ctx.outgoing.get(node.id, [])) >= 2:
            continue
        ctx.add(
            IssueLevel.INFO, IssueCategory.LOGIC, "incomplete-branches",
            f'Condition "{node.display_label}" should have both true and false branches',
            issue_id=f"incomplete-branches-{node.id}",
            suggestion="Add connections for both condition outcomes",
            nodes=[node],
        )


# ============================================================================
# Connection checks
# ============================================================================


def _check_stored_connections(ctx: _Context) -> None:
    for edge in ctx.edges:
        source = ctx.node_map[edge.source]
        target = ctx.node_map[edge.target]
        if target.category in allowed_targets(source.category):
            continue
        ctx.add(
            IssueLevel.ERROR, IssueCategory.CONNECTION, "incompatible-connection",
            f"{source.category.value.capitalize()} \"{source.display_label}\" cannot "
            f"connect to {target.category.value} \"{target.display_label}\"",
            issue_id=f"invalid-connection-{edge.id}",
            suggestion="Remove this connection or route it through a compatible node",
            nodes=[source],
            edge_id=edge.id,
        )


def _check_fan_out(ctx: _Context) -> None:
    counts = Counter(e.source for e in ctx.edges)
    for node in ctx.nodes:
        limit = max_outgoing(node.category, ctx.config)
        if counts.get(node.id, 0) <= limit:
            continue
        ctx.add(
            IssueLevel.WARNING, IssueCategory.CONNECTION, "fan-out",
            f'{node.category.value.capitalize()} "{node.display_label}" has '
            f"{counts[node.id]} outgoing connections (maximum {limit})",
            issue_id=f"fan-out-{node.id}",
            suggestion="Consider using condition nodes to organize complex flows",
            nodes=[node],
        )


# ============================================================================
# Configuration checks
# ============================================================================


def _check_unconfigured(ctx: _Context) -> None:
    empty = [n for n in ctx.nodes if not n.config]
    if not empty:
        return
    ctx.add(
        IssueLevel.WARNING, IssueCategory.CONFIGURATION, "unconfigured-nodes",
        f"{_plural(len(empty), 'node')} not configured: {_label_list(empty)}",
        suggestion="Open each node and fill in its settings",
        nodes=empty,
    )


def _hint_email_trigger(config: Dict[str, Any]) -> List[Tuple[str, str]]:
    filters = config.get("emailFilters") or config.get("filters") or {}
    if not isinstance(filters, Mapping):
        filters = {}
    # Config is free-form; only a list of keywords counts.
    keywords = filters.get("keywords")
    if not isinstance(keywords, (list, tuple)):
        keywords = []
    hints: List[Tuple[str, str]] = []
    if not filters.get("subject") and not filters.get("sender") and not keywords:
        hints.append((
            "has no email filters configured",
            "Add at least one filter to avoid processing all emails",
        ))
    if len(keywords) > 10:
        hints.append((
            "has too many keywords",
            "Consider reducing keywords for better performance",
        ))
    return hints


def _hint_trello_action(config: Dict[str, Any]) -> List[Tuple[str, str]]:
    hints: List[Tuple[str, str]] = []
    if not config.get("board"):
        hints.append(("has no board selected", "Select a Trello board for card creation"))
    if not config.get("list"):
        hints.append(("has no list selected", "Select a list within the Trello board"))
    template = config.get("cardTemplate")
    has_title = config.get("cardTitle") or (
        isinstance(template, Mapping) and template.get("title")
    )
    if not has_title:
        hints.append(("has no card title template", "Configure a title template for created cards"))
    return hints


def _hint_asana_action(config: Dict[str, Any]) -> List[Tuple[str, str]]:
    hints: List[Tuple[str, str]] = []
    if not config.get("taskName"):
        hints.append(("has no task name template", "Configure a task name template for created tasks"))
    if not config.get("projectId") and not config.get("project"):
        hints.append((
            "has no project selected",
            "Select a project, or tasks will be created in the main dashboard",
        ))
    return hints


def _hint_condition(config: Dict[str, Any]) -> List[Tuple[str, str]]:
    if config.get("conditions") or config.get("condition"):
        return []
    return [("has no conditions configured", "Add at least one condition to evaluate")]


def _hint_ai_classification(config: Dict[str, Any]) -> List[Tuple[str, str]]:
    if config.get("classificationRules") or config.get("categories"):
        return []
    return [("has no classification rules configured", "Configure classification rules for better accuracy")]


_CONFIG_HINTS: Dict[str, Callable[[Dict[str, Any]], List[Tuple[str, str]]]] = {
    "email-trigger": _hint_email_trigger,
    "trello-action": _hint_trello_action,
    "asana-action": _hint_asana_action,
    "condition": _hint_condition,
    "condition-logic": _hint_condition,
    "ai-classification": _hint_ai_classification,
}


def _check_config_hints(ctx: _Context) -> None:
    for node in ctx.nodes:
        hinter = _CONFIG_HINTS.get(node.node_type)
        # Empty configs are covered by the unconfigured-nodes warning.
        if hinter is None or not node.config:
            continue
        for idx, (problem, suggestion) in enumerate(hinter(node.config)):
            ctx.add(
                IssueLevel.INFO, IssueCategory.CONFIGURATION, f"config-{node.node_type}",
                f'"{node.display_label}" {problem}',
                issue_id=f"config-{node.id}-{idx}",
                suggestion=suggestion,
                nodes=[node],
            )


# ============================================================================
# Execution checks
# ============================================================================


def _check_complexity(ctx: _Context) -> None:
    threshold = ctx.config.complex_workflow_threshold
    if len(ctx.nodes) <= threshold:
        return
    ctx.add(
        IssueLevel.INFO, IssueCategory.EXECUTION, "complex-workflow",
        f"Workflow is quite complex with {len(ctx.nodes)} nodes",
        suggestion="Consider breaking into smaller workflows for better maintainability",
    )


_CHECKS: Tuple[Callable[[_Context], None], ...] = (
    _check_required_categories,
    _check_disconnected,
    _check_unreachable,
    _check_cycles,
    _check_stored_connections,
    _check_fan_out,
    _check_unconfigured,
    _check_config_hints,
    _check_dead_ends,
    _check_branches,
    _check_complexity,
)
