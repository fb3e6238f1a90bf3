"""Tests for the workflow inspection report."""

from flowbuilder.config.rules_config import RulesConfig
from flowbuilder.workflow.templates import create_workflow_from_template
from flowbuilder.workflow.workflow_inspector import inspect_workflow
from flowbuilder.workflow.workflow_model import WorkflowDefinition, WorkflowEdge


def test_report_sections():
    report = inspect_workflow(create_workflow_from_template("email-to-trello"))
    assert set(report) == {"nodes", "edges", "summary", "validation"}
    assert report["validation"]["is_valid"] is True


def test_summary_counts():
    workflow = create_workflow_from_template("ai-email-classification")
    summary = inspect_workflow(workflow)["summary"]
    assert summary["total_nodes"] == 5
    assert summary["total_edges"] == 4
    assert summary["nodes_by_category"] == {"trigger": 1, "action": 2, "logic": 1, "ai": 1}
    assert summary["branch_edges"] == 2
    assert summary["simple_edges"] == 2
    assert summary["dangling_edges"] == 0
    assert summary["score"] == 100


def test_node_capacity():
    workflow = create_workflow_from_template("ai-email-classification")
    nodes = {d["id"]: d for d in inspect_workflow(workflow)["nodes"]}

    trigger = nodes["email-trigger-3"]
    assert trigger["category"] == "trigger"
    assert trigger["fan_out"] == 1
    assert trigger["remaining_capacity"] == 2
    assert trigger["fan_in"] == 0

    logic = nodes["condition-logic-1"]
    assert logic["remaining_capacity"] == 0
    assert logic["output_handles"] == ["true", "false"]
    assert logic["allowed_targets"] == ["action", "ai"]
    assert sorted(t["handle"] for t in logic["targets"]) == ["false", "true"]


def test_capacity_follows_config():
    workflow = create_workflow_from_template("email-to-trello")
    report = inspect_workflow(workflow, config=RulesConfig(trigger_max_outgoing=1))
    trigger = report["nodes"][0]
    assert trigger["max_outgoing"] == 1
    assert trigger["remaining_capacity"] == 0


def test_dangling_and_disallowed_edges():
    workflow = create_workflow_from_template("email-to-trello")
    workflow.edges.append(WorkflowEdge(id="ghost", source="trello-action-1", target="missing"))
    workflow.edges.append(WorkflowEdge(id="back", source="trello-action-1", target="email-trigger-1"))

    report = inspect_workflow(workflow)
    edges = {d["id"]: d for d in report["edges"]}
    assert edges["ghost"]["dangling"] is True
    assert edges["ghost"]["wiring"] == "dangling"
    assert edges["back"]["allowed"] is False
    assert report["summary"]["dangling_edges"] == 1
    assert report["summary"]["is_valid"] is False


def test_empty_workflow():
    report = inspect_workflow(WorkflowDefinition())
    assert report["nodes"] == []
    assert report["summary"]["score"] == 0
    assert report["validation"]["errors"][0]["id"] == "no-nodes"
