"""
Workflow Engine — graph rules for the visual automation builder.

Decides what a valid workflow graph is, approves or rejects edges while
the user draws them, and scores whole graphs for save / activate / test.

Architecture:
    node_taxonomy      — Node categories, subtype mapping, per-category rules
    workflow_model     — Data models for workflow definitions
    cycle_detector     — Directed-cycle checks over edge lists
    connection_rules   — Edit-time edge approval
    workflow_validator — Whole-graph diagnostics and quality score
    validation_cache   — Content-hash memoizer around the validator
    workflow_inspector — Per-node / per-edge diagnostics report
    templates          — Pre-built workflow templates
    workflow_io        — .flow.json import / export
"""

from flowbuilder.workflow.node_taxonomy import (
    NodeCategory,
    CategoryRules,
    SUBTYPE_CATEGORIES,
    category_of,
    infer_category,
    allowed_targets,
    max_outgoing,
    output_handles,
    get_category_rules,
    describe_taxonomy,
)
from flowbuilder.workflow.workflow_model import (
    WorkflowDefinition,
    WorkflowNode,
    WorkflowEdge,
)
from flowbuilder.workflow.cycle_detector import (
    has_cycle,
    would_create_cycle,
    find_cycles,
)
from flowbuilder.workflow.connection_rules import (
    ConnectionCheck,
    ConnectionFeedback,
    can_connect,
    validate_connection,
    connection_feedback,
    available_targets,
)
from flowbuilder.workflow.workflow_validator import (
    IssueLevel,
    IssueCategory,
    ValidationIssue,
    ValidationResult,
    validate_workflow,
    calculate_quality_score,
    get_validation_summary,
)
from flowbuilder.workflow.validation_cache import ValidationCache, workflow_hash
from flowbuilder.workflow.workflow_inspector import inspect_workflow
from flowbuilder.workflow.templates import (
    TemplateCategory,
    TemplateDifficulty,
    WorkflowTemplate,
    list_templates,
    get_template,
    get_templates_by_category,
    get_featured_templates,
    search_templates,
    create_workflow_from_template,
)
from flowbuilder.workflow.workflow_io import (
    WorkflowImportError,
    export_workflow,
    export_workflow_json,
    import_workflow,
    export_filename,
)

__all__ = [
    "NodeCategory",
    "CategoryRules",
    "SUBTYPE_CATEGORIES",
    "category_of",
    "infer_category",
    "allowed_targets",
    "max_outgoing",
    "output_handles",
    "get_category_rules",
    "describe_taxonomy",
    "WorkflowDefinition",
    "WorkflowNode",
    "WorkflowEdge",
    "has_cycle",
    "would_create_cycle",
    "find_cycles",
    "ConnectionCheck",
    "ConnectionFeedback",
    "can_connect",
    "validate_connection",
    "connection_feedback",
    "available_targets",
    "IssueLevel",
    "IssueCategory",
    "ValidationIssue",
    "ValidationResult",
    "validate_workflow",
    "calculate_quality_score",
    "get_validation_summary",
    "ValidationCache",
    "workflow_hash",
    "inspect_workflow",
    "TemplateCategory",
    "TemplateDifficulty",
    "WorkflowTemplate",
    "list_templates",
    "get_template",
    "get_templates_by_category",
    "get_featured_templates",
    "search_templates",
    "create_workflow_from_template",
    "WorkflowImportError",
    "export_workflow",
    "export_workflow_json",
    "import_workflow",
    "export_filename",
]
