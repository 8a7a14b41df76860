"""Data structures for the composed queue → job → task → pod hierarchy."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

POD_KEY_SEPARATOR = "::"


def pod_map_key(job_name: str, task_name: str) -> str:
    """Return the ``"job::task"`` key used by the pod correlation map."""
    return f"{job_name}{POD_KEY_SEPARATOR}{task_name}"


@dataclass(frozen=True)
class TaskSummary:
    name: str
    replicas: int | None = None
    min_available: int | None = None
    max_retry: int | None = None
    containers: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "replicas": self.replicas,
            "minAvailable": self.min_available,
            "maxRetry": self.max_retry,
            "containers": self.containers,
        }


@dataclass(frozen=True)
class PodSummary:
    name: str
    namespace: str | None = None
    uid: str | None = None
    phase: str | None = None
    start_time: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "namespace": self.namespace,
            "uid": self.uid,
            "phase": self.phase,
            "startTime": self.start_time,
        }


@dataclass(frozen=True)
class JobSummary:
    """A job as attached to its queue, with its state already resolved."""

    name: str
    namespace: str | None
    uid: str | None
    creation_timestamp: str | None
    state: str
    queue: str | None = None
    tasks: tuple[TaskSummary, ...] = ()

    @property
    def tasks_count(self) -> int:
        return len(self.tasks)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "namespace": self.namespace,
            "creationTimestamp": self.creation_timestamp,
            "uid": self.uid,
            "state": self.state,
            "queue": self.queue,
            "tasksCount": self.tasks_count,
            "tasks": [t.to_dict() for t in self.tasks],
        }


@dataclass
class HierarchyQueueNode:
    """One queue in the hierarchy, carrying the jobs submitted to it."""

    name: str
    parent: str | None = None
    uid: str | None = None
    creation_timestamp: str | None = None
    state: str | None = None
    weight: int | None = None
    reclaimable: bool | None = None
    jobs: list[JobSummary] = field(default_factory=list)
    in_cycle: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "parent": self.parent,
            "uid": self.uid,
            "creationTimestamp": self.creation_timestamp,
            "state": self.state,
            "weight": self.weight,
            "reclaimable": self.reclaimable,
            "inCycle": self.in_cycle,
            "jobs": [j.to_dict() for j in self.jobs],
        }


@dataclass
class Hierarchy:
    """Derived aggregate of queues, their jobs and the pod correlation map.

    Recomputed wholesale on every fetch; never diffed or patched in place.
    """

    queues: dict[str, HierarchyQueueNode] = field(default_factory=dict)
    pod_map: dict[str, list[PodSummary]] = field(default_factory=dict)
    orphans: list[JobSummary] = field(default_factory=list)
    cycles: list[list[str]] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return len(self.queues)

    def to_dict(self) -> dict[str, Any]:
        """Serialise in the shape the dashboard frontend consumes."""
        return {
            "queues": {name: node.to_dict() for name, node in self.queues.items()},
            "podMap": {key: [p.to_dict() for p in pods] for key, pods in self.pod_map.items()},
            "orphans": [j.to_dict() for j in self.orphans],
            "cycles": [list(c) for c in self.cycles],
            "totalCount": self.total_count,
        }
