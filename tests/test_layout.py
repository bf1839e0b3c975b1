"""Tests for the tree and force-directed layouts."""

from __future__ import annotations

import math

from markview.graph import GraphEdge, GraphNode, LinkGraph
from markview.layout import (
    H_SPACING,
    NODE_WIDTH,
    PADDING,
    layout_tree,
    simulate_force_layout,
    tree_bounds,
)
from markview.outline import build_outline


class TestTreeLayout:
    def test_depth_sets_x(self):
        root = layout_tree(build_outline("# A\n## B\n## C"))
        a = root.children[0]
        b, c = a.children
        assert root.x == PADDING
        assert a.x == PADDING + H_SPACING
        assert b.x == c.x == PADDING + 2 * H_SPACING

    def test_parent_centered_on_children(self):
        root = layout_tree(build_outline("# A\n## B\n## C"))
        a = root.children[0]
        b, c = a.children
        assert b.y < c.y
        assert a.y == (b.y + c.y) / 2

    def test_siblings_do_not_overlap(self):
        root = layout_tree(build_outline("# A\n## A1\n## A2\n# B\n## B1\n### B1a\n### B1b"))
        leaves = sorted((node for node in root.walk() if not node.children), key=lambda n: n.y)
        for upper, lower in zip(leaves, leaves[1:]):
            assert lower.y - upper.y >= 36

    def test_bounds(self):
        root = layout_tree(build_outline("# A\n## B\n## C"))
        bounds = tree_bounds(root)
        assert bounds.min_x == PADDING
        assert bounds.max_x == PADDING + 2 * H_SPACING + NODE_WIDTH
        assert bounds.min_y == PADDING


class TestForceLayout:
    def _pair(self) -> LinkGraph:
        return LinkGraph(
            [GraphNode("a", "a", "a.md", x=390.0, y=300.0), GraphNode("b", "b", "b.md", x=410.0, y=300.0)],
            [GraphEdge("a", "b")],
        )

    def test_two_nodes_settle_apart(self):
        result = simulate_force_layout(self._pair(), 800, 600)
        a, b = result.nodes
        distance = math.hypot(a.x - b.x, a.y - b.y)
        assert math.isfinite(distance)
        assert distance > 0

    def test_input_is_not_mutated(self):
        graph = self._pair()
        simulate_force_layout(graph, 800, 600)
        assert (graph.nodes[0].x, graph.nodes[0].vx) == (390.0, 0.0)

    def test_coincident_nodes_stay_finite(self):
        graph = LinkGraph([GraphNode("a", "a", "a.md", 10, 10), GraphNode("b", "b", "b.md", 10, 10)], [])
        result = simulate_force_layout(graph, 800, 600, iterations=20)
        for node in result.nodes:
            assert math.isfinite(node.x) and math.isfinite(node.y)

    def test_zero_iterations_is_identity(self):
        graph = self._pair()
        result = simulate_force_layout(graph, 800, 600, iterations=0)
        assert [(n.x, n.y) for n in result.nodes] == [(390.0, 300.0), (410.0, 300.0)]
