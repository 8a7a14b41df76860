"""Read-only snapshots of the Volcano / Kubernetes resources VolcBoard reads.

Every ``from_raw`` constructor accepts the plain dict the API server returns
(camelCase keys, as produced by the custom objects API or by
``ApiClient.sanitize_for_serialization``) and never raises on a missing or
mistyped field: absent values become ``None`` or empty.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Annotation / label keys the Volcano controller stamps on every pod it creates.
JOB_NAME_KEY = "volcano.sh/job-name"
TASK_SPEC_KEY = "volcano.sh/task-spec"


def _dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    return None


@dataclass(frozen=True)
class Queue:
    """A ``scheduling.volcano.sh/v1beta1`` Queue."""

    name: str
    uid: str | None = None
    creation_timestamp: str | None = None
    state: str | None = None
    weight: int | None = None
    reclaimable: bool | None = None
    parent: str | None = None

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> Queue | None:
        """Parse a raw queue object.  Returns None when it has no name."""
        metadata = _dict(raw.get("metadata"))
        spec = _dict(raw.get("spec"))
        status = _dict(raw.get("status"))
        name = _str(metadata.get("name"))
        if not name:
            return None
        return cls(
            name=name,
            uid=_str(metadata.get("uid")),
            creation_timestamp=_str(metadata.get("creationTimestamp")),
            state=_str(status.get("state")),
            weight=_int(spec.get("weight")),
            reclaimable=_bool(spec.get("reclaimable")),
            parent=_str(spec.get("parent")) or None,
        )


@dataclass(frozen=True)
class Task:
    """A homogeneous replica group embedded in a Volcano Job."""

    name: str
    replicas: int | None = None
    min_available: int | None = None
    max_retry: int | None = None
    containers: int = 0

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> Task | None:
        name = _str(raw.get("name"))
        if not name:
            return None
        pod_spec = _dict(_dict(raw.get("template")).get("spec"))
        containers = pod_spec.get("containers")
        return cls(
            name=name,
            replicas=_int(raw.get("replicas")),
            min_available=_int(raw.get("minAvailable")),
            max_retry=_int(raw.get("maxRetry")),
            containers=len(containers) if isinstance(containers, list) else 0,
        )


@dataclass(frozen=True)
class Job:
    """A ``batch.volcano.sh/v1alpha1`` Job.

    ``status_state`` holds the explicit ``status.state`` (either a bare string
    or the ``phase`` of a ``{"phase": ...}`` object).  ``raw_status`` is only
    set when ``status`` itself is a plain string, which older controllers and
    hand-written fixtures produce.
    """

    name: str
    namespace: str | None = None
    uid: str | None = None
    creation_timestamp: str | None = None
    queue: str | None = None
    tasks: tuple[Task, ...] = ()
    status_state: str | None = None
    raw_status: str | None = None
    status_phase: str | None = None
    min_available: int | None = None

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> Job | None:
        metadata = _dict(raw.get("metadata"))
        spec = _dict(raw.get("spec"))
        name = _str(metadata.get("name"))
        if not name:
            return None

        status = raw.get("status")
        status_state: str | None = None
        status_phase: str | None = None
        raw_status: str | None = None
        if isinstance(status, dict):
            state = status.get("state")
            if isinstance(state, dict):
                status_state = _str(state.get("phase")) or None
            elif state:
                status_state = _str(state)
            status_phase = _str(status.get("phase")) or None
        elif isinstance(status, str) and status:
            raw_status = status

        tasks: list[Task] = []
        raw_tasks = spec.get("tasks")
        if isinstance(raw_tasks, list):
            for raw_task in raw_tasks:
                task = Task.from_raw(raw_task) if isinstance(raw_task, dict) else None
                if task is not None:
                    tasks.append(task)

        return cls(
            name=name,
            namespace=_str(metadata.get("namespace")),
            uid=_str(metadata.get("uid")),
            creation_timestamp=_str(metadata.get("creationTimestamp")),
            queue=_str(spec.get("queue")) or None,
            tasks=tuple(tasks),
            status_state=status_state,
            raw_status=raw_status,
            status_phase=status_phase,
            min_available=_int(spec.get("minAvailable")),
        )


@dataclass(frozen=True)
class Pod:
    """A core/v1 Pod, reduced to what the hierarchy view needs."""

    name: str
    namespace: str | None = None
    uid: str | None = None
    phase: str | None = None
    start_time: str | None = None
    job_name: str | None = None
    task_name: str | None = None

    @property
    def correlation_key(self) -> tuple[str, str] | None:
        """``(job_name, task_name)`` or None when either half is missing."""
        if not self.job_name or not self.task_name:
            return None
        return (self.job_name, self.task_name)

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> Pod | None:
        metadata = _dict(raw.get("metadata"))
        status = _dict(raw.get("status"))
        name = _str(metadata.get("name"))
        if not name:
            return None
        annotations = _dict(metadata.get("annotations"))
        labels = _dict(metadata.get("labels"))
        return cls(
            name=name,
            namespace=_str(metadata.get("namespace")),
            uid=_str(metadata.get("uid")),
            phase=_str(status.get("phase")),
            start_time=_str(status.get("startTime")),
            job_name=_str(annotations.get(JOB_NAME_KEY) or labels.get(JOB_NAME_KEY)) or None,
            task_name=_str(annotations.get(TASK_SPEC_KEY) or labels.get(TASK_SPEC_KEY)) or None,
        )


@dataclass
class ResourceSet:
    """The three flat collections the hierarchy is composed from."""

    queues: list[Queue] = field(default_factory=list)
    jobs: list[Job] = field(default_factory=list)
    pods: list[Pod] = field(default_factory=list)

    @classmethod
    def from_raw(
        cls,
        queues: list[dict[str, Any]],
        jobs: list[dict[str, Any]],
        pods: list[dict[str, Any]],
    ) -> ResourceSet:
        """Parse raw item lists, silently dropping entries without a name."""
        return cls(
            queues=[q for q in (Queue.from_raw(r) for r in queues if isinstance(r, dict)) if q is not None],
            jobs=[j for j in (Job.from_raw(r) for r in jobs if isinstance(r, dict)) if j is not None],
            pods=[p for p in (Pod.from_raw(r) for r in pods if isinstance(r, dict)) if p is not None],
        )
