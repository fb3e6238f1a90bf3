"""Pytest configuration and fixtures."""

from typing import Any, Callable, Dict, Optional

import pytest

from flowbuilder.config.rules_config import RulesConfig, set_rules_config
from flowbuilder.workflow.workflow_model import WorkflowEdge, WorkflowNode


@pytest.fixture(autouse=True)
def reset_rules_config():
    """Each test starts from the default rules."""
    set_rules_config(RulesConfig())
    yield
    set_rules_config(None)


@pytest.fixture
def make_node() -> Callable[..., WorkflowNode]:
    """Factory for nodes; config defaults to a non-empty map."""

    def _make(
        nid: str,
        node_type: str,
        label: str = "",
        config: Optional[Dict[str, Any]] = None,
        type: Optional[str] = None,
    ) -> WorkflowNode:
        return WorkflowNode(
            id=nid,
            type=type,
            node_type=node_type,
            label=label or nid,
            config={"configured": True} if config is None else config,
        )

    return _make


@pytest.fixture
def make_edge() -> Callable[..., WorkflowEdge]:
    def _make(source: str, target: str, handle: Optional[str] = None, eid: str = "") -> WorkflowEdge:
        return WorkflowEdge(
            id=eid or f"{source}-{target}{'-' + handle if handle else ''}",
            source=source,
            target=target,
            source_handle=handle,
        )

    return _make


@pytest.fixture
def trigger(make_node) -> WorkflowNode:
    return make_node("t1", "email-trigger", "New Email")


@pytest.fixture
def action(make_node) -> WorkflowNode:
    return make_node("a1", "trello-action", "Create Card")


@pytest.fixture
def logic(make_node) -> WorkflowNode:
    return make_node("l1", "condition-logic", "If Urgent")


@pytest.fixture
def ai(make_node) -> WorkflowNode:
    return make_node("ai1", "ai-classification", "Classify")
