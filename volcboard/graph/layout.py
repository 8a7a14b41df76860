"""Graph layout: the engine protocol, a built-in layered engine, and the
reconciler that applies engine results to a node list.

Layout is the one asynchronous step in graph handling.  A request suspends
until the engine resolves; the reconciler stamps every request with a
version number and drops any result that a newer request has superseded,
so a slow layout can never overwrite a fresher one.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any, Protocol

import structlog

from volcboard.graph.models import GraphEdge, GraphNode, Position

_log = structlog.get_logger(component="graph.layout")

DEFAULT_OPTIONS: dict[str, Any] = {
    "elk.algorithm": "layered",
    "elk.direction": "DOWN",
    "elk.layered.spacing.nodeNodeBetweenLayers": 100,
    "elk.spacing.nodeNode": 80,
}

DEFAULT_NODE_WIDTH = 150.0
DEFAULT_NODE_HEIGHT = 40.0


class LayoutError(Exception):
    """Raised when the layout options cannot be honoured."""


class LayoutEngine(Protocol):
    async def layout(
        self,
        nodes: Sequence[GraphNode],
        edges: Sequence[GraphEdge],
        options: Mapping[str, Any],
    ) -> dict[str, Position]: ...


def assign_layers(nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> dict[str, int]:
    """Longest-path layering from the roots.

    Cycles are broken by dropping the edges between their members, so
    everything a cycle leads to keeps its depth below it.
    """
    ids = {n.id for n in nodes}
    children: dict[str, list[str]] = {n.id: [] for n in nodes}
    indegree: dict[str, int] = {n.id: 0 for n in nodes}
    for edge in edges:
        if edge.source in ids and edge.target in ids:
            children[edge.source].append(edge.target)
            indegree[edge.target] += 1

    layers = {n.id: 0 for n in nodes}
    queued = {nid for nid, degree in indegree.items() if degree == 0}
    ready = [n.id for n in nodes if n.id in queued]
    while True:
        while ready:
            current = ready.pop(0)
            for child in children[current]:
                if child in queued:
                    continue
                layers[child] = max(layers[child], layers[current] + 1)
                indegree[child] -= 1
                if indegree[child] == 0:
                    queued.add(child)
                    ready.append(child)
        stalled = [n.id for n in nodes if n.id not in queued]
        if not stalled:
            return layers
        released = _cycle_members(stalled, children, queued)
        queued.update(released)
        ready.extend(released)


def _cycle_members(stalled: list[str], children: Mapping[str, list[str]], queued: set[str]) -> list[str]:
    """Stalled nodes that can reach themselves through other stalled nodes."""
    members: list[str] = []
    for start in stalled:
        stack = [c for c in children[start] if c not in queued]
        seen: set[str] = set()
        while stack:
            nid = stack.pop()
            if nid == start:
                members.append(start)
                break
            if nid in seen:
                continue
            seen.add(nid)
            stack.extend(c for c in children[nid] if c not in queued)
    return members


class LayeredLayout:
    """Top-down (or rotated) layered placement, ELK option names."""

    async def layout(
        self,
        nodes: Sequence[GraphNode],
        edges: Sequence[GraphEdge],
        options: Mapping[str, Any],
    ) -> dict[str, Position]:
        merged = {**DEFAULT_OPTIONS, **options}
        algorithm = str(merged["elk.algorithm"])
        if algorithm != "layered":
            raise LayoutError(f"Unsupported layout algorithm: {algorithm}")
        direction = str(merged["elk.direction"]).upper()
        if direction not in ("DOWN", "UP", "RIGHT", "LEFT"):
            raise LayoutError(f"Unsupported layout direction: {direction}")
        return await asyncio.to_thread(
            self._compute,
            list(nodes),
            list(edges),
            direction,
            float(merged["elk.layered.spacing.nodeNodeBetweenLayers"]),
            float(merged["elk.spacing.nodeNode"]),
        )

    def _compute(
        self,
        nodes: list[GraphNode],
        edges: list[GraphEdge],
        direction: str,
        layer_spacing: float,
        node_spacing: float,
    ) -> dict[str, Position]:
        if not nodes:
            return {}
        layer_of = assign_layers(nodes, edges)
        size = {n.id: (n.width or DEFAULT_NODE_WIDTH, n.height or DEFAULT_NODE_HEIGHT) for n in nodes}
        vertical = direction in ("DOWN", "UP")

        parents: dict[str, list[str]] = {}
        for edge in edges:
            parents.setdefault(edge.target, []).append(edge.source)

        layers: list[list[str]] = [[] for _ in range(max(layer_of.values()) + 1)]
        for node in nodes:
            layers[layer_of[node.id]].append(node.id)

        # Order each layer by the mean slot of its parents to keep subtrees together.
        slot: dict[str, int] = {}
        for depth, layer in enumerate(layers):
            if depth:
                layer.sort(key=lambda nid: _mean_slot(parents.get(nid, []), slot))
            for index, nid in enumerate(layer):
                slot[nid] = index

        def across(nid: str) -> float:
            return size[nid][0] if vertical else size[nid][1]

        def along(nid: str) -> float:
            return size[nid][1] if vertical else size[nid][0]

        spans = [sum(across(nid) for nid in layer) + node_spacing * (len(layer) - 1) for layer in layers]
        widest = max(spans)

        thickness = [max(along(nid) for nid in layer) for layer in layers]
        total_depth = sum(thickness) + layer_spacing * (len(layers) - 1)

        positions: dict[str, Position] = {}
        offset_along = 0.0
        for depth, layer in enumerate(layers):
            cursor = (widest - spans[depth]) / 2
            layer_along = offset_along
            if direction in ("UP", "LEFT"):
                layer_along = total_depth - offset_along - thickness[depth]
            for nid in layer:
                if vertical:
                    positions[nid] = Position(x=cursor, y=layer_along)
                else:
                    positions[nid] = Position(x=layer_along, y=cursor)
                cursor += across(nid) + node_spacing
            offset_along += thickness[depth] + layer_spacing
        return positions


def _mean_slot(parent_ids: list[str], slot: dict[str, int]) -> float:
    placed = [slot[p] for p in parent_ids if p in slot]
    if not placed:
        return float("inf")
    return sum(placed) / len(placed)


class LayoutReconciler:
    """Applies engine results to nodes, discarding superseded results."""

    def __init__(self, engine: LayoutEngine, defaults: Mapping[str, Any] | None = None) -> None:
        self._engine = engine
        self._defaults = dict(defaults or DEFAULT_OPTIONS)
        self._version = 0

    @property
    def version(self) -> int:
        return self._version

    async def apply(
        self,
        nodes: Sequence[GraphNode],
        edges: Sequence[GraphEdge],
        options: Mapping[str, Any] | None = None,
    ) -> list[GraphNode] | None:
        """Lay out *nodes*; returns None if a newer request finished the race."""
        self._version += 1
        version = self._version
        positions = await self._engine.layout(nodes, edges, {**self._defaults, **(options or {})})
        if version != self._version:
            _log.debug("stale_layout_discarded", version=version, current=self._version)
            return None
        return [replace(node, position=positions.get(node.id, node.position)) for node in nodes]
