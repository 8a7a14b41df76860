"""Hierarchy composer: turns flat queue / job / pod lists into a tree.

Composition is a pure, synchronous transformation.  Malformed or
uncorrelated input is dropped, never raised: a pod without both
correlation keys is skipped, a job whose queue is unknown ends up in
``Hierarchy.orphans``, and queue-parent cycles are flagged rather than
rejected.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import TYPE_CHECKING

import structlog

from volcboard.hierarchy.models import (
    Hierarchy,
    HierarchyQueueNode,
    JobSummary,
    PodSummary,
    TaskSummary,
    pod_map_key,
)
from volcboard.models.resources import Job, Pod, Queue, ResourceSet

if TYPE_CHECKING:
    from volcboard.kube.fetcher import ResourceFetcher

_log = structlog.get_logger(component="hierarchy.composer")

_PASSTHROUGH_STATES = frozenset({"Running", "Completed", "Failed"})


def resolve_job_state(explicit: str | None, raw: str | None) -> str:
    """Resolve the displayed state of a job.

    Order matters and changes what users see:
      1. an explicit ``status.state`` wins;
      2. raw status ``Running`` / ``Completed`` / ``Failed`` passes through;
      3. raw status ``Pending`` is shown as ``Running``;
      4. otherwise the raw status string, or ``Unknown`` when absent.

    Re-resolving an already resolved value returns it unchanged.
    """
    if explicit:
        return explicit
    if raw in _PASSTHROUGH_STATES:
        return raw
    if raw == "Pending":
        return "Running"
    return raw or "Unknown"


def summarize_job(job: Job) -> JobSummary:
    return JobSummary(
        name=job.name,
        namespace=job.namespace,
        uid=job.uid,
        creation_timestamp=job.creation_timestamp,
        state=resolve_job_state(job.status_state, job.raw_status),
        queue=job.queue,
        tasks=tuple(
            TaskSummary(
                name=task.name,
                replicas=task.replicas,
                min_available=task.min_available,
                max_retry=task.max_retry,
                containers=task.containers,
            )
            for task in job.tasks
        ),
    )


def build_pod_map(pods: Iterable[Pod]) -> dict[str, list[PodSummary]]:
    """Group pods under their ``"job::task"`` key, dropping uncorrelated pods."""
    pod_map: dict[str, list[PodSummary]] = {}
    for pod in pods:
        key = pod.correlation_key
        if key is None:
            continue
        pod_map.setdefault(pod_map_key(*key), []).append(
            PodSummary(
                name=pod.name,
                namespace=pod.namespace,
                uid=pod.uid,
                phase=pod.phase,
                start_time=pod.start_time,
            )
        )
    return pod_map


def find_parent_cycles(queues: dict[str, HierarchyQueueNode]) -> list[list[str]]:
    """Return every cycle in the queue ``parent`` relation.

    Each queue has at most one parent, so every walk up the chain either
    leaves the known set, reaches a root, or loops.
    """
    cycles: list[list[str]] = []
    settled: set[str] = set()
    for start in queues:
        path: list[str] = []
        position: dict[str, int] = {}
        current: str | None = start
        while current is not None and current in queues and current not in settled:
            if current in position:
                cycles.append(path[position[current]:])
                break
            position[current] = len(path)
            path.append(current)
            current = queues[current].parent
        settled.update(path)
    return cycles


def compose_hierarchy(
    queues: Iterable[Queue],
    jobs: Iterable[Job],
    pods: Iterable[Pod],
) -> Hierarchy:
    """Compose the queue → job → task hierarchy and the pod correlation map."""
    hierarchy = Hierarchy()
    for queue in queues:
        hierarchy.queues[queue.name] = HierarchyQueueNode(
            name=queue.name,
            parent=queue.parent,
            uid=queue.uid,
            creation_timestamp=queue.creation_timestamp,
            state=queue.state,
            weight=queue.weight,
            reclaimable=queue.reclaimable,
        )

    for job in jobs:
        summary = summarize_job(job)
        node = hierarchy.queues.get(job.queue) if job.queue else None
        if node is None:
            hierarchy.orphans.append(summary)
        else:
            node.jobs.append(summary)

    hierarchy.pod_map = build_pod_map(pods)

    hierarchy.cycles = find_parent_cycles(hierarchy.queues)
    for cycle in hierarchy.cycles:
        for name in cycle:
            hierarchy.queues[name].in_cycle = True

    if hierarchy.orphans:
        _log.debug("orphan_jobs", count=len(hierarchy.orphans))
    if hierarchy.cycles:
        _log.warning("queue_parent_cycles", cycles=hierarchy.cycles)
    return hierarchy


async def build_hierarchy(fetcher: ResourceFetcher) -> Hierarchy:
    """Fetch queues, jobs and pods through *fetcher* and compose them.

    Any failed fetch aborts the whole composition; the ``FetchError``
    propagates to the caller and no partial hierarchy is built.
    """
    raw_queues, raw_jobs, raw_pods = await asyncio.gather(
        fetcher.list_queues(),
        fetcher.list_jobs(),
        fetcher.list_pods(),
    )
    resources = ResourceSet.from_raw(raw_queues, raw_jobs, raw_pods)
    hierarchy = compose_hierarchy(resources.queues, resources.jobs, resources.pods)
    _log.info(
        "hierarchy_composed",
        queues=len(hierarchy.queues),
        jobs=len(resources.jobs),
        orphans=len(hierarchy.orphans),
        pod_groups=len(hierarchy.pod_map),
    )
    return hierarchy
