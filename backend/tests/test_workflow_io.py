"""Tests for .flow.json import / export."""

import json

import pytest

from flowbuilder.workflow.node_taxonomy import NodeCategory
from flowbuilder.workflow.templates import create_workflow_from_template
from flowbuilder.workflow.workflow_io import (
    FORMAT_VERSION,
    WorkflowImportError,
    export_filename,
    export_workflow,
    export_workflow_json,
    import_workflow,
)
from flowbuilder.workflow.workflow_model import WorkflowDefinition


@pytest.fixture
def workflow():
    return create_workflow_from_template("ai-email-classification", name="Inbox Router")


def _document(**overrides):
    doc = {
        "version": "1.0.0",
        "metadata": {"name": "Imported", "createdAt": "2024-01-01T00:00:00+00:00"},
        "workflow": {
            "nodes": [
                {"id": "t", "type": "trigger", "position": {"x": 0, "y": 0},
                 "data": {"label": "Email", "nodeType": "email-trigger", "config": {}}},
            ],
            "edges": [],
            "state": {"id": "wf-1", "name": "Imported", "status": "draft"},
        },
    }
    doc.update(overrides)
    return doc


class TestExport:
    def test_layout(self, workflow):
        data = export_workflow(workflow)
        assert data["version"] == FORMAT_VERSION
        assert data["metadata"]["name"] == "Inbox Router"
        assert "createdAt" in data["metadata"]
        assert "exportedAt" in data["metadata"]
        assert len(data["workflow"]["nodes"]) == 5
        assert len(data["workflow"]["edges"]) == 4

        state = data["workflow"]["state"]
        assert state == {
            "id": workflow.id,
            "name": "Inbox Router",
            "status": "draft",
            "isValid": True,
            "validationErrors": [],
        }

    def test_nodes_are_react_flow_shaped(self, workflow):
        node = export_workflow(workflow)["workflow"]["nodes"][0]
        assert node["type"] == "trigger"
        assert node["data"]["nodeType"] == "email-trigger"
        assert node["position"] == {"x": 50, "y": 200}

    def test_branch_handles_exported(self, workflow):
        edges = export_workflow(workflow)["workflow"]["edges"]
        assert {e.get("sourceHandle") for e in edges} == {None, "true", "false"}

    def test_validation_errors_recorded(self):
        data = export_workflow(WorkflowDefinition(name="Empty"))
        assert data["workflow"]["state"]["isValid"] is False
        assert data["workflow"]["state"]["validationErrors"] == [
            "Workflow must have at least one node"
        ]

    def test_description(self, workflow):
        assert export_workflow(workflow, description="Mine")["metadata"]["description"] == "Mine"
        bare = WorkflowDefinition(name="Bare")
        assert export_workflow(bare)["metadata"]["description"] == (
            "Exported workflow with 0 nodes and 0 connections"
        )

    def test_json_round_trip(self, workflow):
        imported = import_workflow(export_workflow_json(workflow))
        assert imported.id == workflow.id
        assert imported.name == "Inbox Router"
        assert [n.id for n in imported.nodes] == [n.id for n in workflow.nodes]
        assert [n.category for n in imported.nodes] == [n.category for n in workflow.nodes]
        assert [e.source_handle for e in imported.edges] == [e.source_handle for e in workflow.edges]
        assert imported.validate_graph().is_valid


class TestImport:
    def test_minimal_document(self):
        workflow = import_workflow(json.dumps(_document()))
        assert workflow.id == "wf-1"
        assert workflow.name == "Imported"
        assert workflow.created_at == "2024-01-01T00:00:00+00:00"
        assert workflow.nodes[0].category == NodeCategory.TRIGGER

    def test_invalid_json(self):
        with pytest.raises(WorkflowImportError, match="Invalid JSON format"):
            import_workflow("{not json")

    def test_is_a_value_error(self):
        with pytest.raises(ValueError):
            import_workflow("[]")

    @pytest.mark.parametrize(
        "text,message",
        [
            ("null", "Invalid file format"),
            ('"hello"', "Invalid file format"),
            (json.dumps({"workflow": {}}), "Missing version information"),
            (json.dumps({"version": "1.0.0"}), "Missing workflow data"),
        ],
    )
    def test_top_level_errors(self, text, message):
        with pytest.raises(WorkflowImportError, match=message):
            import_workflow(text)

    def test_invalid_nodes(self):
        doc = _document()
        doc["workflow"]["nodes"] = {}
        with pytest.raises(WorkflowImportError, match="Invalid nodes data"):
            import_workflow(json.dumps(doc))

    def test_invalid_edges(self):
        doc = _document()
        del doc["workflow"]["edges"]
        with pytest.raises(WorkflowImportError, match="Invalid edges data"):
            import_workflow(json.dumps(doc))

    def test_missing_metadata(self):
        doc = _document(metadata={"description": "no name"})
        with pytest.raises(WorkflowImportError, match="Missing workflow metadata"):
            import_workflow(json.dumps(doc))

    def test_invalid_node_structure(self):
        doc = _document()
        del doc["workflow"]["nodes"][0]["position"]
        with pytest.raises(WorkflowImportError, match="Invalid node structure detected"):
            import_workflow(json.dumps(doc))

    def test_invalid_edge_structure(self):
        doc = _document()
        doc["workflow"]["edges"] = [{"id": "e", "source": "t"}]
        with pytest.raises(WorkflowImportError, match="Invalid edge structure detected"):
            import_workflow(json.dumps(doc))

    def test_metadata_checked_before_nodes(self):
        doc = _document(metadata={})
        doc["workflow"]["nodes"] = [{"id": "broken"}]
        with pytest.raises(WorkflowImportError, match="Missing workflow metadata"):
            import_workflow(json.dumps(doc))

    def test_non_string_name_is_an_import_error(self):
        doc = _document(metadata={"name": 123})
        with pytest.raises(WorkflowImportError, match="Invalid workflow metadata"):
            import_workflow(json.dumps(doc))

    def test_non_string_state_id_is_an_import_error(self):
        doc = _document()
        doc["workflow"]["state"]["id"] = 5
        with pytest.raises(WorkflowImportError, match="Invalid workflow metadata"):
            import_workflow(json.dumps(doc))


@pytest.mark.parametrize(
    "name,expected",
    [
        ("My Workflow", "my_workflow.flow.json"),
        ("  Email → Trello!! ", "email_trello.flow.json"),
        ("", "workflow.flow.json"),
        ("***", "workflow.flow.json"),
    ],
)
def test_export_filename(name, expected):
    assert export_filename(name) == expected
