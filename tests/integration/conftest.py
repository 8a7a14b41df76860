"""Shared fixtures for VolcBoard integration tests.

Provides a fixture-backed ResourceFetcher holding a small but realistic
Volcano cluster (hierarchical queues, multi-task jobs, scheduler-annotated
pods) so the whole fetch → compose → project → layout pipeline can run
without touching a real cluster.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from typing import Any

import pytest

from volcboard.kube.fetcher import FetchError
from volcboard.models.resources import JOB_NAME_KEY, TASK_SPEC_KEY

# ---------------------------------------------------------------------------
# Raw object factories
# ---------------------------------------------------------------------------


def make_queue(name: str, parent: str | None = None, weight: int = 1, state: str = "Open") -> dict[str, Any]:
    spec: dict[str, Any] = {"weight": weight, "reclaimable": True}
    if parent is not None:
        spec["parent"] = parent
    return {
        "apiVersion": "scheduling.volcano.sh/v1beta1",
        "kind": "Queue",
        "metadata": {"name": name, "uid": f"uid-queue-{name}", "creationTimestamp": "2026-03-01T08:00:00Z"},
        "spec": spec,
        "status": {"state": state},
    }


def make_job(
    name: str,
    queue: str,
    tasks: dict[str, int],
    namespace: str = "ml",
    phase: str | None = "Running",
) -> dict[str, Any]:
    job: dict[str, Any] = {
        "apiVersion": "batch.volcano.sh/v1alpha1",
        "kind": "Job",
        "metadata": {
            "name": name,
            "namespace": namespace,
            "uid": f"uid-job-{name}",
            "creationTimestamp": "2026-03-01T09:00:00Z",
        },
        "spec": {
            "queue": queue,
            "minAvailable": sum(tasks.values()),
            "schedulerName": "volcano",
            "tasks": [
                {
                    "name": task,
                    "replicas": replicas,
                    "template": {"spec": {"containers": [{"name": task, "image": "busybox"}]}},
                }
                for task, replicas in tasks.items()
            ],
        },
    }
    if phase is not None:
        job["status"] = {"state": {"phase": phase}}
    return job


def make_pod(
    name: str,
    job: str | None,
    task: str | None,
    namespace: str = "ml",
    phase: str = "Running",
) -> dict[str, Any]:
    annotations: dict[str, str] = {}
    if job is not None:
        annotations[JOB_NAME_KEY] = job
    if task is not None:
        annotations[TASK_SPEC_KEY] = task
    return {
        "metadata": {"name": name, "namespace": namespace, "uid": f"uid-pod-{name}", "annotations": annotations},
        "status": {"phase": phase, "startTime": "2026-03-01T09:01:00Z"},
    }


# ---------------------------------------------------------------------------
# Fixture fetcher
# ---------------------------------------------------------------------------


class FixtureFetcher:
    """In-memory ResourceFetcher.  ``fail`` names a collection whose fetch raises."""

    def __init__(
        self,
        queues: list[dict[str, Any]],
        jobs: list[dict[str, Any]],
        pods: list[dict[str, Any]],
        fail: str | None = None,
    ) -> None:
        self.queues = queues
        self.jobs = jobs
        self.pods = pods
        self.fail = fail
        self.calls: list[str] = []

    def _check(self, resource: str) -> None:
        self.calls.append(resource)
        if self.fail == resource:
            raise FetchError(resource, ConnectionError("api server unreachable"))

    async def list_queues(self) -> list[dict[str, Any]]:
        self._check("queues")
        return self.queues

    async def get_queue(self, name: str) -> dict[str, Any]:
        self._check("queue")
        for queue in self.queues:
            if queue["metadata"]["name"] == name:
                return queue
        raise FetchError(f"queue/{name}", LookupError("not found"), status=404)

    async def list_jobs(self, namespace: str | None = None) -> list[dict[str, Any]]:
        self._check("jobs")
        return [j for j in self.jobs if namespace is None or j["metadata"]["namespace"] == namespace]

    async def get_job(self, namespace: str, name: str) -> dict[str, Any]:
        self._check("job")
        for job in self.jobs:
            if job["metadata"]["namespace"] == namespace and job["metadata"]["name"] == name:
                return job
        raise FetchError(f"job/{namespace}/{name}", LookupError("not found"), status=404)

    async def list_pods(self, namespace: str | None = None) -> list[dict[str, Any]]:
        self._check("pods")
        return [p for p in self.pods if namespace is None or p["metadata"]["namespace"] == namespace]

    async def read_pod(self, namespace: str, name: str) -> dict[str, Any]:
        self._check("pod")
        return next(p for p in self.pods if p["metadata"]["name"] == name)

    async def list_namespaces(self) -> list[dict[str, Any]]:
        return [{"metadata": {"name": "ml"}}, {"metadata": {"name": "etl"}}]

    async def node_metrics(self) -> dict[str, Any]:
        return {"items": []}

    async def stream_pod_logs(self, namespace: str, pod: str, container: str) -> AsyncIterator[str]:
        for i in range(3):
            yield f"2026-03-01T09:02:0{i}Z {pod}/{container} line {i}"

    async def verify_volcano(self) -> bool:
        return self.fail != "jobs"


@pytest.fixture
def cluster_objects() -> dict[str, list[dict[str, Any]]]:
    """root ─┬─ research ── train (ps x1, worker x2), eval (runner x1)
             └─ batch    ── nightly-etl (extract x1)
    plus an orphaned job, an uncorrelated pod and a half-annotated pod."""
    return {
        "queues": [
            make_queue("root", weight=1),
            make_queue("research", parent="root", weight=3),
            make_queue("batch", parent="root", weight=1),
        ],
        "jobs": [
            make_job("train", "research", {"ps": 1, "worker": 2}),
            make_job("eval", "research", {"runner": 1}, phase=None),
            make_job("nightly-etl", "batch", {"extract": 1}, namespace="etl", phase="Completed"),
            make_job("forgotten", "decommissioned", {"main": 1}),
        ],
        "pods": [
            make_pod("train-ps-0", "train", "ps"),
            make_pod("train-worker-0", "train", "worker"),
            make_pod("train-worker-1", "train", "worker", phase="Pending"),
            make_pod("eval-runner-0", "eval", "runner", phase="Succeeded"),
            make_pod("nightly-etl-extract-0", "nightly-etl", "extract", namespace="etl", phase="Succeeded"),
            make_pod("forgotten-main-0", "forgotten", "main"),
            make_pod("debug-shell", None, None),
            make_pod("half-annotated", "train", None),
        ],
    }


@pytest.fixture
def fixture_fetcher(cluster_objects: dict[str, list[dict[str, Any]]]) -> FixtureFetcher:
    return FixtureFetcher(**cluster_objects)


@pytest.fixture
def make_fetcher(cluster_objects: dict[str, list[dict[str, Any]]]) -> Callable[..., FixtureFetcher]:
    """Build a FixtureFetcher over the fixture cluster, optionally failing one collection."""

    def _make(fail: str | None = None) -> FixtureFetcher:
        return FixtureFetcher(**cluster_objects, fail=fail)

    return _make
