"""Geometry for the outline tree view and the link graph view."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

from .graph import GraphNode, LinkGraph
from .outline import HeadingNode

NODE_WIDTH = 150
NODE_HEIGHT = 36
H_SPACING = 180
V_SPACING = 50
PADDING = 40

REPULSION = 5000.0
ATTRACTION = 0.01
CENTER_GRAVITY = 0.02
VELOCITY_STEP = 0.5
DAMPING = 0.8
DEFAULT_ITERATIONS = 100


@dataclass(frozen=True)
class Bounds:
    min_x: float
    min_y: float
    max_x: float
    max_y: float


def _subtree_extents(node: HeadingNode, extents: dict[int, float]) -> float:
    if not node.children:
        extent = float(NODE_HEIGHT)
    else:
        extent = sum(_subtree_extents(child, extents) for child in node.children)
        extent += (len(node.children) - 1) * V_SPACING
    extents[id(node)] = extent
    return extent


def _assign_positions(
    node: HeadingNode, x: float, y_start: float, y_end: float, extents: dict[int, float]
) -> None:
    node.x = x
    node.y = (y_start + y_end) / 2
    if not node.children:
        return

    current_y = node.y - extents[id(node)] / 2
    for child in node.children:
        child_extent = extents[id(child)]
        _assign_positions(child, x + H_SPACING, current_y, current_y + child_extent, extents)
        current_y += child_extent + V_SPACING


def layout_tree(root: HeadingNode) -> HeadingNode:
    """Assign x by depth and y by centering each node within its subtree's extent."""
    extents: dict[int, float] = {}
    total = _subtree_extents(root, extents)
    _assign_positions(root, PADDING, PADDING, PADDING + total, extents)
    return root


def tree_bounds(root: HeadingNode) -> Bounds:
    min_x = min_y = math.inf
    max_x = max_y = -math.inf
    for node in root.walk():
        min_x = min(min_x, node.x)
        min_y = min(min_y, node.y - NODE_HEIGHT / 2)
        max_x = max(max_x, node.x + NODE_WIDTH)
        max_y = max(max_y, node.y + NODE_HEIGHT / 2)
    return Bounds(min_x, min_y, max_x, max_y)


def simulate_force_layout(
    graph: LinkGraph, width: float, height: float, iterations: int = DEFAULT_ITERATIONS
) -> LinkGraph:
    """Run a cooling force-directed simulation on a copy of ``graph``.

    Per iteration: Coulomb-like repulsion between every pair, spring
    attraction along edges, a pull toward the canvas center, then velocity
    integration with damping. The input graph is left untouched.
    """
    nodes: list[GraphNode] = [replace(node) for node in graph.nodes]
    by_id = {node.id: node for node in nodes}
    center_x = width / 2
    center_y = height / 2

    for iteration in range(iterations):
        alpha = 1 - iteration / iterations
        repulsion = REPULSION * alpha
        attraction = ATTRACTION * alpha
        gravity = CENTER_GRAVITY * alpha

        for i, first in enumerate(nodes):
            for second in nodes[i + 1 :]:
                dx = first.x - second.x
                dy = first.y - second.y
                dist = math.hypot(dx, dy) or 1.0
                force = repulsion / (dist * dist)
                fx = dx / dist * force
                fy = dy / dist * force
                first.vx += fx
                first.vy += fy
                second.vx -= fx
                second.vy -= fy

        for edge in graph.edges:
            source = by_id.get(edge.source)
            target = by_id.get(edge.target)
            if source is None or target is None:
                continue
            dx = target.x - source.x
            dy = target.y - source.y
            dist = math.hypot(dx, dy) or 1.0
            force = dist * attraction
            fx = dx / dist * force
            fy = dy / dist * force
            source.vx += fx
            source.vy += fy
            target.vx -= fx
            target.vy -= fy

        for node in nodes:
            node.vx += (center_x - node.x) * gravity
            node.vy += (center_y - node.y) * gravity

        for node in nodes:
            node.x += node.vx * VELOCITY_STEP
            node.y += node.vy * VELOCITY_STEP
            node.vx *= DAMPING
            node.vy *= DAMPING

    return LinkGraph(nodes, list(graph.edges))
