"""Tests for dependency ordering and cycle detection."""

import pytest

from devtoolbox.errors import DependencyCycleError, ErrorCode
from devtoolbox.plugins.graph import find_cycle, topological_order


class TestTopologicalOrder:
    def test_dependencies_come_first(self):
        graph = {"c": ["b"], "b": ["a"], "a": []}
        order = topological_order(graph)
        assert order == ["a", "b", "c"]

    def test_ties_keep_input_order(self):
        graph = {"x": [], "y": [], "z": ["x"]}
        assert topological_order(graph) == ["x", "y", "z"]

    def test_diamond(self):
        graph = {"d": ["b", "c"], "b": ["a"], "c": ["a"], "a": []}
        order = topological_order(graph)
        for node, deps in graph.items():
            for dep in deps:
                assert order.index(dep) < order.index(node)

    def test_external_dependencies_ignored(self):
        assert topological_order({"b": ["a"]}) == ["b"]

    def test_cycle_raises(self):
        with pytest.raises(DependencyCycleError) as exc_info:
            topological_order({"a": ["b"], "b": ["a"], "c": []})
        error = exc_info.value
        assert error.code == ErrorCode.PLUGIN_LOAD_FAILED
        assert error.cycle[0] == error.cycle[-1]
        assert set(error.cycle) == {"a", "b"}
        assert "dependency cycle" in error.message


class TestFindCycle:
    def test_no_cycle(self):
        assert find_cycle({"a": [], "b": ["a"]}) is None

    def test_three_node_cycle(self):
        cycle = find_cycle({"a": ["b"], "b": ["c"], "c": ["a"]})
        assert cycle is not None
        assert len(cycle) == 4
        assert cycle[0] == cycle[-1]
