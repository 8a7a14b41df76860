"""Node/edge graph projected from the queue hierarchy.

Provides the projector, selection reconciliation, and layout.
"""

from volcboard.graph.layout import LayeredLayout, LayoutEngine, LayoutError, LayoutReconciler
from volcboard.graph.models import Graph, GraphEdge, GraphNode, NodeType, Position
from volcboard.graph.projector import project_hierarchy
from volcboard.graph.selection import clear_selection, select_node, selected_node

__all__ = [
    "Graph",
    "GraphEdge",
    "GraphNode",
    "LayeredLayout",
    "LayoutEngine",
    "LayoutError",
    "LayoutReconciler",
    "NodeType",
    "Position",
    "clear_selection",
    "project_hierarchy",
    "select_node",
    "selected_node",
]
