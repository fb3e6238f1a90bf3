"""Tests for the validation memoizer."""

import pytest

from flowbuilder.config.rules_config import RulesConfig, set_rules_config
from flowbuilder.workflow.validation_cache import ValidationCache, workflow_hash
from flowbuilder.workflow.workflow_validator import validate_workflow


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class CountingValidator:
    def __init__(self):
        self.calls = 0

    def __call__(self, nodes, edges, config=None):
        self.calls += 1
        return validate_workflow(nodes, edges, config=config)


@pytest.fixture
def graph(trigger, action, make_edge):
    return [trigger, action], [make_edge("t1", "a1")]


class TestWorkflowHash:
    def test_stable(self, graph):
        nodes, edges = graph
        assert workflow_hash(nodes, edges) == workflow_hash(nodes, edges)

    def test_order_independent(self, graph):
        nodes, edges = graph
        assert workflow_hash(nodes, edges) == workflow_hash(list(reversed(nodes)), edges)

    def test_ignores_position(self, graph):
        nodes, edges = graph
        moved = [n.model_copy(update={"position": {"x": 500, "y": 500}}) for n in nodes]
        assert workflow_hash(nodes, edges) == workflow_hash(moved, edges)

    def test_config_changes_hash(self, graph):
        nodes, edges = graph
        changed = [nodes[0], nodes[1].model_copy(update={"config": {}})]
        assert workflow_hash(nodes, edges) != workflow_hash(changed, edges)


class TestValidationCache:
    def test_hit_and_miss(self, graph):
        validator = CountingValidator()
        cache = ValidationCache(validator=validator)
        first = cache.get(*graph)
        second = cache.get(*graph)
        assert validator.calls == 1
        assert first.model_dump() == second.model_dump()
        stats = cache.stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 0.5

    def test_returns_copies(self, graph):
        cache = ValidationCache()
        result = cache.get(*graph)
        result.score = 0
        result.info.clear()
        again = cache.get(*graph)
        assert again.score == 100
        assert again.info

    def test_ttl_expiry(self, graph):
        clock = FakeClock()
        validator = CountingValidator()
        cache = ValidationCache(ttl_seconds=10, validator=validator, clock=clock)
        cache.get(*graph)
        clock.now = 9.9
        cache.get(*graph)
        assert validator.calls == 1
        clock.now = 10.0
        cache.get(*graph)
        assert validator.calls == 2

    def test_lru_eviction(self, make_node, trigger, make_edge):
        validator = CountingValidator()
        cache = ValidationCache(max_size=2, validator=validator)
        graphs = [
            ([trigger, make_node(f"a{i}", "trello-action")], [make_edge("t1", f"a{i}")])
            for i in range(3)
        ]
        cache.get(*graphs[0])
        cache.get(*graphs[1])
        cache.get(*graphs[0])  # refresh 0, so 1 is least recently used
        cache.get(*graphs[2])
        assert len(cache) == 2
        assert cache.stats()["evictions"] == 1

        cache.get(*graphs[0])
        assert validator.calls == 3
        cache.get(*graphs[1])
        assert validator.calls == 4

    def test_invalidate_and_clear(self, graph):
        cache = ValidationCache()
        cache.get(*graph)
        assert cache.invalidate(*graph) is True
        assert cache.invalidate(*graph) is False
        cache.get(*graph)
        cache.clear()
        assert len(cache) == 0

    def test_sizing_defaults_from_config(self):
        cache = ValidationCache(config=RulesConfig(cache_max_size=7))
        assert cache.stats()["max_size"] == 7

    def test_rejects_bad_size(self):
        with pytest.raises(ValueError, match="max_size"):
            ValidationCache(max_size=0)

    def test_global_rules_swap_is_not_served_stale(self, trigger, action):
        validator = CountingValidator()
        cache = ValidationCache(validator=validator)
        assert cache.get([trigger, action], []).score == 90
        set_rules_config(RulesConfig(warning_penalty=30))
        assert cache.get([trigger, action], []).score == 70
        assert validator.calls == 2

    def test_explicit_config_ignores_global_swap(self, trigger, action):
        validator = CountingValidator()
        cache = ValidationCache(validator=validator, config=RulesConfig())
        assert cache.get([trigger, action], []).score == 90
        set_rules_config(RulesConfig(warning_penalty=30))
        assert cache.get([trigger, action], []).score == 90
        assert validator.calls == 1
