"""Data structures for the renderable node/edge graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class NodeType(StrEnum):
    """Kinds of node the dashboard knows how to draw."""

    QUEUE = "queue"
    JOB = "job"
    TASK = "task"
    POD = "pod"


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class GraphNode:
    """A node in the projected graph.

    ``data`` is the opaque payload handed to the renderer: ``label``,
    ``type``, ``selected`` and the entity's own fields.
    """

    id: str
    type: NodeType
    data: dict[str, Any]
    position: Position = field(default_factory=Position)
    width: float | None = None
    height: float | None = None

    @property
    def selected(self) -> bool:
        return bool(self.data.get("selected", False))

    @property
    def label(self) -> str:
        return str(self.data.get("label", ""))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "data": dict(self.data),
            "position": self.position.to_dict(),
        }


@dataclass(frozen=True)
class GraphEdge:
    """A parent → child edge between two projected nodes."""

    id: str
    source: str
    target: str
    animated: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "animated": self.animated,
        }


@dataclass
class Graph:
    """Result of projecting a hierarchy."""

    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)
    dangling: int = 0  # edges skipped because an endpoint was never projected

    def node(self, node_id: str) -> GraphNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def nodes_of(self, node_type: NodeType) -> list[GraphNode]:
        return [n for n in self.nodes if n.type == node_type]

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "dangling": self.dangling,
        }
