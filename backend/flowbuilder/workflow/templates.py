"""
Pre-built Workflow Templates.

Provides factory functions that return ready-made
``WorkflowTemplate`` objects for the common email automation
topologies (email → Trello, email → Asana, AI routing).

Every built-in template passes the validator without errors under
the default rules. ``multi-platform-sync`` ships unconfigured on
purpose, so it carries configuration warnings until the user fills
in its nodes.
"""

from __future__ import annotations

from enum import Enum
from logging import getLogger
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from flowbuilder.workflow.workflow_model import (
    WorkflowDefinition,
    WorkflowEdge,
    WorkflowNode,
)

logger = getLogger(__name__)


class TemplateCategory(str, Enum):
    EMAIL_AUTOMATION = "email-automation"
    AI_PROCESSING = "ai-processing"
    TASK_MANAGEMENT = "task-management"
    ADVANCED = "advanced"


class TemplateDifficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class WorkflowTemplate(BaseModel):
    """A catalog entry: metadata plus the graph it instantiates."""

    id: str
    name: str
    description: str
    category: TemplateCategory
    icon: str = ""
    difficulty: TemplateDifficulty = TemplateDifficulty.BEGINNER
    estimated_setup_time: str = ""
    tags: List[str] = Field(default_factory=list)
    featured: bool = False
    nodes: List[WorkflowNode] = Field(default_factory=list)
    edges: List[WorkflowEdge] = Field(default_factory=list)

    def matches(self, query: str) -> bool:
        q = query.lower()
        return (
            q in self.name.lower()
            or q in self.description.lower()
            or any(q in tag.lower() for tag in self.tags)
        )

    def build(self, name: Optional[str] = None) -> WorkflowDefinition:
        """Instantiate a fresh, independent workflow from this template."""
        return WorkflowDefinition(
            name=name or self.name,
            description=self.description,
            nodes=[n.model_copy(deep=True) for n in self.nodes],
            edges=[e.model_copy(deep=True) for e in self.edges],
            template_id=self.id,
        )


class _GraphBuilder:
    """Collects nodes and edges for one template."""

    def __init__(self) -> None:
        self.nodes: List[WorkflowNode] = []
        self.edges: List[WorkflowEdge] = []

    def add(
        self,
        ntype: str,
        nid: str,
        label: str,
        x: float,
        y: float,
        cfg: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.nodes.append(WorkflowNode(
            id=nid, node_type=ntype, label=label,
            position={"x": x, "y": y}, config=cfg or {},
        ))

    def edge(self, eid: str, src: str, tgt: str, handle: Optional[str] = None, lbl: str = "") -> None:
        self.edges.append(WorkflowEdge(
            id=eid, source=src, target=tgt, source_handle=handle, label=lbl,
        ))


def _email_filters(subject: str = "", sender: str = "", keywords: Optional[List[str]] = None) -> Dict[str, Any]:
    return {"filters": {"subject": subject, "sender": sender, "keywords": keywords or []}}


# ============================================================================
# Email Automation
# ============================================================================


def create_email_to_trello_template() -> WorkflowTemplate:
    """New email → Trello card."""
    g = _GraphBuilder()
    g.add("email-trigger", "email-trigger-1", "New Email", 100, 150,
          _email_filters(subject="project", keywords=["urgent", "important"]))
    g.add("trello-action", "trello-action-1", "Create Trello Card", 450, 150, {
        "board": "Work Projects",
        "list": "To Do",
        "cardTitle": "{{email.subject}}",
        "cardDescription": "{{email.body}}",
    })
    g.edge("email-to-trello-edge", "email-trigger-1", "trello-action-1")

    return WorkflowTemplate(
        id="email-to-trello",
        name="Email → Trello Card",
        description=(
            "Automatically create Trello cards from new emails with specific "
            "keywords or from specific senders."
        ),
        category=TemplateCategory.EMAIL_AUTOMATION,
        icon="📧",
        difficulty=TemplateDifficulty.BEGINNER,
        estimated_setup_time="2 minutes",
        featured=True,
        tags=["email", "trello", "automation", "productivity"],
        nodes=g.nodes,
        edges=g.edges,
    )


def create_email_to_asana_template() -> WorkflowTemplate:
    """New email from a client → Asana task."""
    g = _GraphBuilder()
    g.add("email-trigger", "email-trigger-2", "New Email", 100, 150,
          _email_filters(sender="client@company.com", keywords=["task", "todo", "action"]))
    g.add("asana-action", "asana-action-1", "Create Asana Task", 450, 150, {
        "project": "Client Requests",
        "taskName": "{{email.subject}}",
        "taskNotes": "{{email.body}}",
        "priority": "normal",
    })
    g.edge("email-to-asana-edge", "email-trigger-2", "asana-action-1")

    return WorkflowTemplate(
        id="email-to-asana",
        name="Email → Asana Task",
        description=(
            "Convert important emails into Asana tasks with automatic priority "
            "detection and project assignment."
        ),
        category=TemplateCategory.EMAIL_AUTOMATION,
        icon="📋",
        difficulty=TemplateDifficulty.BEGINNER,
        estimated_setup_time="2 minutes",
        featured=True,
        tags=["email", "asana", "tasks", "project-management"],
        nodes=g.nodes,
        edges=g.edges,
    )


# ============================================================================
# AI Processing
# ============================================================================


def create_ai_email_classification_template() -> WorkflowTemplate:
    """Route emails by condition, classifying the urgent branch with AI.

    Topology::
        email-trigger → condition
          [true]  → ai-classification → trello-action
          [false] → asana-action
    """
    g = _GraphBuilder()
    g.add("email-trigger", "email-trigger-3", "New Email", 50, 200,
          _email_filters(keywords=["urgent", "project", "meeting"]))
    g.add("condition-logic", "condition-logic-1", "If Urgent", 300, 200, {
        "condition": 'email.subject contains "urgent"',
    })
    g.add("ai-classification", "ai-classification-1", "AI Classification", 550, 100, {
        "categories": ["urgent", "project", "meeting", "general"],
        "confidence": 0.8,
    })
    g.add("trello-action", "trello-urgent-1", "Urgent Trello Card", 800, 100, {
        "board": "Urgent Tasks",
        "list": "High Priority",
        "cardTitle": "🚨 {{email.subject}}",
        "cardDescription": "{{ai.category}}\n\n{{email.body}}",
    })
    g.add("asana-action", "asana-regular-1", "Regular Asana Task", 550, 300, {
        "project": "General Tasks",
        "taskName": "{{email.subject}}",
        "taskNotes": "{{email.body}}",
        "priority": "normal",
    })

    g.edge("email-to-condition-edge", "email-trigger-3", "condition-logic-1")
    g.edge("condition-to-ai-edge", "condition-logic-1", "ai-classification-1", handle="true", lbl="Urgent")
    g.edge("ai-to-urgent-edge", "ai-classification-1", "trello-urgent-1")
    g.edge("condition-to-regular-edge", "condition-logic-1", "asana-regular-1", handle="false", lbl="Regular")

    return WorkflowTemplate(
        id="ai-email-classification",
        name="AI Email Classification",
        description=(
            "Use AI to automatically classify and route emails to different "
            "task management systems based on content."
        ),
        category=TemplateCategory.AI_PROCESSING,
        icon="🤖",
        difficulty=TemplateDifficulty.INTERMEDIATE,
        estimated_setup_time="5 minutes",
        featured=True,
        tags=["ai", "email", "classification", "automation"],
        nodes=g.nodes,
        edges=g.edges,
    )


def create_budget_detection_template() -> WorkflowTemplate:
    """Tag budget mentions over $5,000 and open a high-priority card."""
    g = _GraphBuilder()
    g.add("email-trigger", "email-trigger-4", "New Email", 50, 150,
          _email_filters(keywords=["$", "budget", "cost", "price"]))
    g.add("ai-tagging", "ai-tagging-1", "AI Budget Detection", 300, 150, {
        "extractBudget": True,
        "threshold": 5000,
        "tags": ["high-value", "budget-review"],
    })
    g.add("trello-action", "trello-budget-1", "High Priority Card", 550, 150, {
        "board": "Budget Reviews",
        "list": "High Priority",
        "cardTitle": "💰 {{email.subject}}",
        "cardDescription": "Budget: {{ai.extractedBudget}}\n\n{{email.body}}",
        "labels": ["high-priority", "budget-review"],
    })

    g.edge("email-to-ai-budget-edge", "email-trigger-4", "ai-tagging-1")
    g.edge("ai-to-trello-budget-edge", "ai-tagging-1", "trello-budget-1")

    return WorkflowTemplate(
        id="budget-detection",
        name="High-Value Email Detection",
        description=(
            "Automatically detect emails mentioning budgets over $5,000 and "
            "create high-priority tasks with special tagging."
        ),
        category=TemplateCategory.AI_PROCESSING,
        icon="💰",
        difficulty=TemplateDifficulty.INTERMEDIATE,
        estimated_setup_time="4 minutes",
        tags=["ai", "budget", "high-priority", "detection"],
        nodes=g.nodes,
        edges=g.edges,
    )


# ============================================================================
# Advanced
# ============================================================================


def create_multi_platform_sync_template() -> WorkflowTemplate:
    """Create tasks in both Trello and Asana depending on priority.

    Topology::
        email-trigger → condition
          [true]  → ai-classification → trello-action
          [false] → asana-action

    Nodes ship without configuration.
    """
    g = _GraphBuilder()
    g.add("email-trigger", "email-trigger-5", "New Email", 50, 250)
    g.add("condition-logic", "condition-priority", "Priority Check", 250, 250)
    g.add("ai-classification", "ai-classification-2", "Priority Analysis", 450, 150)
    g.add("trello-action", "trello-high-priority", "Trello (High)", 650, 150)
    g.add("asana-action", "asana-normal-priority", "Asana (Normal)", 650, 350)

    g.edge("email-to-condition-multi-edge", "email-trigger-5", "condition-priority")
    g.edge("condition-to-ai-multi-edge", "condition-priority", "ai-classification-2", handle="true", lbl="High")
    g.edge("ai-to-trello-multi-edge", "ai-classification-2", "trello-high-priority")
    g.edge("condition-to-asana-multi-edge", "condition-priority", "asana-normal-priority", handle="false", lbl="Normal")

    return WorkflowTemplate(
        id="multi-platform-sync",
        name="Multi-Platform Task Sync",
        description=(
            "Advanced workflow that creates tasks in both Trello and Asana "
            "based on email priority and content analysis."
        ),
        category=TemplateCategory.ADVANCED,
        icon="🔄",
        difficulty=TemplateDifficulty.ADVANCED,
        estimated_setup_time="8 minutes",
        tags=["multi-platform", "sync", "advanced", "conditional"],
        nodes=g.nodes,
        edges=g.edges,
    )


# ============================================================================
# Template Registry
# ============================================================================

ALL_TEMPLATES = [
    create_email_to_trello_template,
    create_email_to_asana_template,
    create_ai_email_classification_template,
    create_budget_detection_template,
    create_multi_platform_sync_template,
]


def list_templates() -> List[WorkflowTemplate]:
    return [factory() for factory in ALL_TEMPLATES]


def get_template(template_id: str) -> Optional[WorkflowTemplate]:
    for template in list_templates():
        if template.id == template_id:
            return template
    return None


def get_templates_by_category(category: TemplateCategory) -> List[WorkflowTemplate]:
    category = TemplateCategory(category)
    return [t for t in list_templates() if t.category == category]


def get_featured_templates() -> List[WorkflowTemplate]:
    return [t for t in list_templates() if t.featured]


def search_templates(query: str) -> List[WorkflowTemplate]:
    """Case-insensitive match against name, description and tags."""
    return [t for t in list_templates() if t.matches(query)]


def create_workflow_from_template(
    template_id: str,
    name: Optional[str] = None,
) -> WorkflowDefinition:
    """Instantiate a template as a new workflow.

    Raises:
        ValueError: if ``template_id`` is not in the catalog.
    """
    template = get_template(template_id)
    if template is None:
        raise ValueError(f"Unknown template: {template_id}")
    workflow = template.build(name=name)
    logger.info(f"Workflow created from template {template_id}: {workflow.name} ({workflow.id})")
    return workflow
