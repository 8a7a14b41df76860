"""Tests for the layered layout engine and the layout reconciler."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from typing import Any

import pytest

from volcboard.graph.layout import LayeredLayout, LayoutError, LayoutReconciler, assign_layers
from volcboard.graph.models import GraphEdge, GraphNode, NodeType, Position


def _node(node_id: str, width: float | None = None, height: float | None = None) -> GraphNode:
    return GraphNode(
        id=node_id,
        type=NodeType.QUEUE,
        data={"label": node_id, "selected": False},
        width=width,
        height=height,
    )


def _edge(source: str, target: str) -> GraphEdge:
    return GraphEdge(id=f"{source}-{target}", source=source, target=target)


_TREE_NODES = [_node("root"), _node("a"), _node("b"), _node("a1")]
_TREE_EDGES = [_edge("root", "a"), _edge("root", "b"), _edge("a", "a1")]


class TestAssignLayers:
    def test_tree_depths(self) -> None:
        assert assign_layers(_TREE_NODES, _TREE_EDGES) == {"root": 0, "a": 1, "b": 1, "a1": 2}

    def test_longest_path_wins(self) -> None:
        nodes = [_node("r"), _node("m"), _node("x")]
        edges = [_edge("r", "m"), _edge("m", "x"), _edge("r", "x")]
        assert assign_layers(nodes, edges)["x"] == 2

    def test_cycle_members_stay_on_layer_zero(self) -> None:
        nodes = [_node("a"), _node("b")]
        assert assign_layers(nodes, [_edge("a", "b"), _edge("b", "a")]) == {"a": 0, "b": 0}

    def test_subtree_below_cycle_keeps_its_depth(self) -> None:
        nodes = [_node("a"), _node("b"), _node("child"), _node("job"), _node("task")]
        edges = [
            _edge("a", "b"),
            _edge("b", "a"),
            _edge("a", "child"),
            _edge("child", "job"),
            _edge("job", "task"),
        ]
        assert assign_layers(nodes, edges) == {"a": 0, "b": 0, "child": 1, "job": 2, "task": 3}

    def test_edges_to_unknown_nodes_are_ignored(self) -> None:
        assert assign_layers([_node("a")], [_edge("a", "ghost")]) == {"a": 0}


class TestLayeredLayout:
    async def test_down_places_layers_top_to_bottom(self) -> None:
        positions = await LayeredLayout().layout(_TREE_NODES, _TREE_EDGES, {})
        assert positions["root"].y == 0
        assert positions["a"].y == positions["b"].y == 40 + 100
        assert positions["a1"].y == 2 * (40 + 100)

    async def test_siblings_are_spaced_by_node_spacing(self) -> None:
        positions = await LayeredLayout().layout(_TREE_NODES, _TREE_EDGES, {"elk.spacing.nodeNode": 10})
        assert abs(positions["b"].x - positions["a"].x) == 150 + 10

    async def test_narrow_layers_are_centred(self) -> None:
        positions = await LayeredLayout().layout(_TREE_NODES, _TREE_EDGES, {})
        # Layer 1 spans 150 + 80 + 150 = 380; a single 150-wide root sits in the middle.
        assert positions["root"].x == (380 - 150) / 2

    async def test_right_swaps_axes(self) -> None:
        positions = await LayeredLayout().layout(_TREE_NODES, _TREE_EDGES, {"elk.direction": "RIGHT"})
        assert positions["root"].x == 0
        assert positions["a"].x == 150 + 100

    async def test_up_reverses_layers(self) -> None:
        positions = await LayeredLayout().layout(_TREE_NODES, _TREE_EDGES, {"elk.direction": "UP"})
        assert positions["a1"].y == 0
        assert positions["root"].y > positions["a"].y > positions["a1"].y

    async def test_measured_sizes_are_used(self) -> None:
        nodes = [_node("r", height=10), _node("c")]
        positions = await LayeredLayout().layout(nodes, [_edge("r", "c")], {})
        assert positions["c"].y == 10 + 100

    async def test_empty_graph(self) -> None:
        assert await LayeredLayout().layout([], [], {}) == {}

    async def test_unknown_algorithm_rejected(self) -> None:
        with pytest.raises(LayoutError):
            await LayeredLayout().layout(_TREE_NODES, _TREE_EDGES, {"elk.algorithm": "force"})

    async def test_unknown_direction_rejected(self) -> None:
        with pytest.raises(LayoutError):
            await LayeredLayout().layout(_TREE_NODES, _TREE_EDGES, {"elk.direction": "SIDEWAYS"})


class _GatedEngine:
    """Engine whose calls complete only when the test releases them."""

    def __init__(self) -> None:
        self.gates: list[asyncio.Event] = []

    async def layout(
        self,
        nodes: Sequence[GraphNode],
        edges: Sequence[GraphEdge],
        options: Mapping[str, Any],
    ) -> dict[str, Position]:
        gate = asyncio.Event()
        marker = float(len(self.gates))
        self.gates.append(gate)
        await gate.wait()
        return {n.id: Position(x=marker, y=marker) for n in nodes}


class TestLayoutReconciler:
    async def test_positions_applied(self) -> None:
        reconciler = LayoutReconciler(LayeredLayout())
        nodes = await reconciler.apply(_TREE_NODES, _TREE_EDGES)
        assert nodes is not None
        assert {n.id for n in nodes} == {"root", "a", "b", "a1"}
        assert next(n for n in nodes if n.id == "a1").position.y > 0
        assert reconciler.version == 1

    async def test_stale_result_is_discarded(self) -> None:
        engine = _GatedEngine()
        reconciler = LayoutReconciler(engine)
        first = asyncio.create_task(reconciler.apply(_TREE_NODES, _TREE_EDGES))
        await asyncio.sleep(0)
        second = asyncio.create_task(reconciler.apply(_TREE_NODES, _TREE_EDGES))
        await asyncio.sleep(0)

        # The older request resolves last-but-one; the newer one still wins.
        engine.gates[1].set()
        newer = await second
        engine.gates[0].set()
        older = await first

        assert older is None
        assert newer is not None
        assert all(n.position == Position(x=1.0, y=1.0) for n in newer)

    async def test_options_override_defaults(self) -> None:
        seen: dict[str, Any] = {}

        class _Recorder:
            async def layout(self, nodes, edges, options):  # type: ignore[no-untyped-def]
                seen.update(options)
                return {}

        await LayoutReconciler(_Recorder(), {"elk.direction": "DOWN", "x": 1}).apply([], [], {"elk.direction": "LEFT"})
        assert seen == {"elk.direction": "LEFT", "x": 1}
