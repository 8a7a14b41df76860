"""Selection reconciliation over a projected node list.

The selected node is never stored on its own; it is re-derived from the
per-node ``selected`` flags, which are rewritten for every node on every
activation or deactivation event.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from volcboard.graph.models import GraphNode


def _with_selected(node: GraphNode, selected: bool) -> GraphNode:
    return replace(node, data={**node.data, "selected": selected})


def select_node(nodes: Iterable[GraphNode], node_id: str) -> list[GraphNode]:
    """Mark *node_id* selected and every other node unselected.

    An id that matches no node leaves nothing selected.
    """
    return [_with_selected(node, node.id == node_id) for node in nodes]


def clear_selection(nodes: Iterable[GraphNode]) -> list[GraphNode]:
    """Handle a background click: nothing is selected afterwards."""
    return [_with_selected(node, False) for node in nodes]


def selected_node(nodes: Iterable[GraphNode]) -> GraphNode | None:
    for node in nodes:
        if node.selected:
            return node
    return None
