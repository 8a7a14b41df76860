"""Project a composed hierarchy into a flat node/edge graph.

Node ids are fresh per projection unless stable ids are requested, in which
case they are derived from the entity's natural key so that the same queue,
job, task or pod gets the same id across refreshes.
"""

from __future__ import annotations

import hashlib
from collections.abc import Callable
from uuid import uuid4

import structlog

from volcboard.graph.models import Graph, GraphEdge, GraphNode, NodeType
from volcboard.hierarchy.models import Hierarchy, pod_map_key

_log = structlog.get_logger(component="graph.projector")

IdFactory = Callable[[str], str]


def fresh_id(_natural_key: str) -> str:
    return uuid4().hex


def stable_id(natural_key: str) -> str:
    return hashlib.sha1(natural_key.encode("utf-8")).hexdigest()[:16]


class _Builder:
    def __init__(self, id_factory: IdFactory) -> None:
        self._id_factory = id_factory
        self.graph = Graph()

    def add_node(self, natural_key: str, node_type: NodeType, label: str, fields: dict[str, object]) -> str:
        node_id = self._id_factory(f"{node_type.value}:{natural_key}")
        data: dict[str, object] = {"label": label, "selected": False, "type": node_type.value}
        data.update(fields)
        self.graph.nodes.append(GraphNode(id=node_id, type=node_type, data=data))
        return node_id

    def add_edge(self, source: str | None, target: str | None) -> None:
        if source is None or target is None:
            self.graph.dangling += 1
            return
        edge_id = self._id_factory(f"edge:{source}->{target}")
        self.graph.edges.append(GraphEdge(id=edge_id, source=source, target=target, animated=True))


def project_hierarchy(
    hierarchy: Hierarchy,
    id_factory: IdFactory | None = None,
    stable_ids: bool = False,
) -> Graph:
    """Build one node per queue, job, task and correlated pod, plus edges.

    Edges: parent queue → queue, queue → job, job → task, task → pod.  An
    edge whose endpoint was never projected is skipped and counted in
    ``Graph.dangling``; correlated pods whose task was never projected get
    no node at all.
    """
    if id_factory is None:
        id_factory = stable_id if stable_ids else fresh_id
    builder = _Builder(id_factory)

    queue_ids: dict[str, str] = {}
    task_ids: dict[str, str] = {}
    namespaced_task_ids: dict[tuple[str | None, str], str] = {}

    for qname, queue in hierarchy.queues.items():
        queue_ids[qname] = builder.add_node(
            qname,
            NodeType.QUEUE,
            qname,
            {
                "uid": queue.uid,
                "creationTimestamp": queue.creation_timestamp,
                "state": queue.state,
                "weight": queue.weight,
                "reclaimable": queue.reclaimable,
                "inCycle": queue.in_cycle,
            },
        )

    for qname, queue in hierarchy.queues.items():
        if queue.parent is not None:
            builder.add_edge(queue_ids.get(queue.parent), queue_ids[qname])

        for job in queue.jobs:
            job_key = f"{job.namespace or ''}/{job.name}"
            job_id = builder.add_node(
                job_key,
                NodeType.JOB,
                job.name,
                {
                    "namespace": job.namespace,
                    "creationTimestamp": job.creation_timestamp,
                    "uid": job.uid,
                    "state": job.state,
                    "tasksCount": job.tasks_count,
                },
            )
            builder.add_edge(queue_ids[qname], job_id)

            for task in job.tasks:
                key = pod_map_key(job.name, task.name)
                task_id = builder.add_node(f"{job_key}::{task.name}", NodeType.TASK, task.name, task.to_dict())
                namespaced_task_ids.setdefault((job.namespace, key), task_id)
                # Without a namespace match, the first job to claim a key owns its pods.
                task_ids.setdefault(key, task_id)
                builder.add_edge(job_id, task_id)

    for key, pods in hierarchy.pod_map.items():
        for pod in pods:
            task_id = namespaced_task_ids.get((pod.namespace, key)) or task_ids.get(key)
            if task_id is None:
                builder.graph.dangling += 1
                continue
            pod_id = builder.add_node(
                f"{pod.namespace or ''}/{pod.name}",
                NodeType.POD,
                pod.name,
                pod.to_dict(),
            )
            builder.add_edge(task_id, pod_id)

    graph = builder.graph
    if graph.dangling:
        _log.debug("dangling_edges_skipped", count=graph.dangling)
    return graph
