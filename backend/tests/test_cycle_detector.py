"""Tests for cycle detection."""

from flowbuilder.workflow.cycle_detector import (
    build_adjacency,
    find_cycles,
    has_cycle,
    would_create_cycle,
)
from flowbuilder.workflow.workflow_model import WorkflowEdge


class TestHasCycle:
    def test_empty(self):
        assert has_cycle([]) is False

    def test_chain_is_acyclic(self):
        assert has_cycle([("a", "b"), ("b", "c"), ("c", "d")]) is False

    def test_diamond_is_acyclic(self):
        edges = [("a", "b"), ("a", "c"), ("b", "d"), ("c", "d")]
        assert has_cycle(edges) is False

    def test_triangle(self):
        assert has_cycle([("a", "b"), ("b", "c"), ("c", "a")]) is True

    def test_self_loop(self):
        assert has_cycle([("a", "a")]) is True

    def test_accepts_models_and_mappings(self):
        edges = [
            WorkflowEdge(id="e1", source="a", target="b"),
            {"id": "e2", "source": "b", "target": "a"},
        ]
        assert has_cycle(edges) is True

    def test_malformed_edges_are_skipped(self):
        assert has_cycle([{"source": "a"}, ("a", "b"), None]) is False

    def test_long_chain_does_not_recurse(self):
        edges = [(str(i), str(i + 1)) for i in range(5000)]
        assert has_cycle(edges) is False
        assert has_cycle(edges + [("5000", "0")]) is True


class TestWouldCreateCycle:
    def test_closing_edge(self):
        edges = [("a", "b"), ("b", "c")]
        assert would_create_cycle("c", "a", edges) is True

    def test_forward_edge(self):
        edges = [("a", "b"), ("b", "c")]
        assert would_create_cycle("a", "c", edges) is False

    def test_self_connection(self):
        assert would_create_cycle("a", "a", []) is True

    def test_does_not_mutate_input(self):
        edges = [("a", "b")]
        would_create_cycle("b", "a", edges)
        assert edges == [("a", "b")]


class TestFindCycles:
    def test_no_cycles(self):
        assert find_cycles(["a", "b"], [("a", "b")]) == []

    def test_reports_closed_path(self):
        cycles = find_cycles(["a", "b", "c"], [("a", "b"), ("b", "c"), ("c", "a")])
        assert cycles == [["a", "b", "c", "a"]]

    def test_two_disjoint_cycles(self):
        edges = [("a", "b"), ("b", "a"), ("x", "y"), ("y", "x")]
        cycles = find_cycles(["a", "b", "x", "y"], edges)
        assert len(cycles) == 2
        assert ["a", "b", "a"] in cycles
        assert ["x", "y", "x"] in cycles

    def test_roots_follow_node_order(self):
        cycles = find_cycles(["b", "a"], [("a", "b"), ("b", "a")])
        assert cycles == [["b", "a", "b"]]

    def test_nodes_only_in_edges_are_visited(self):
        assert find_cycles([], [("p", "q"), ("q", "p")]) == [["p", "q", "p"]]


def test_build_adjacency_keeps_first_appearance_order():
    adjacency = build_adjacency([("b", "c"), ("a", "b")])
    assert list(adjacency) == ["b", "c", "a"]
    assert adjacency["c"] == []
