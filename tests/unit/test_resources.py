"""Tests for parsing raw Kubernetes objects into resource snapshots."""

from __future__ import annotations

from volcboard.models.resources import JOB_NAME_KEY, TASK_SPEC_KEY, Job, Pod, Queue, ResourceSet


class TestQueue:
    def test_full_queue(self) -> None:
        queue = Queue.from_raw(
            {
                "metadata": {"name": "q1", "uid": "u1", "creationTimestamp": "2026-01-01T00:00:00Z"},
                "spec": {"weight": 4, "reclaimable": False, "parent": "root"},
                "status": {"state": "Open"},
            }
        )
        assert queue == Queue(
            name="q1",
            uid="u1",
            creation_timestamp="2026-01-01T00:00:00Z",
            state="Open",
            weight=4,
            reclaimable=False,
            parent="root",
        )

    def test_empty_parent_is_none(self) -> None:
        queue = Queue.from_raw({"metadata": {"name": "q"}, "spec": {"parent": ""}})
        assert queue is not None
        assert queue.parent is None

    def test_nameless_queue_is_dropped(self) -> None:
        assert Queue.from_raw({"metadata": {"uid": "x"}}) is None

    def test_non_numeric_weight(self) -> None:
        queue = Queue.from_raw({"metadata": {"name": "q"}, "spec": {"weight": "heavy", "reclaimable": "yes"}})
        assert queue is not None
        assert queue.weight is None
        assert queue.reclaimable is None


class TestJob:
    def test_state_object_phase(self) -> None:
        job = Job.from_raw(
            {
                "metadata": {"name": "j", "namespace": "ns"},
                "spec": {
                    "queue": "q",
                    "minAvailable": 3,
                    "tasks": [
                        {
                            "name": "worker",
                            "replicas": 3,
                            "template": {"spec": {"containers": [{"name": "a"}, {"name": "b"}]}},
                        },
                        {"replicas": 1},
                    ],
                },
                "status": {"state": {"phase": "Running"}},
            }
        )
        assert job is not None
        assert job.status_state == "Running"
        assert job.raw_status is None
        assert job.min_available == 3
        assert [t.name for t in job.tasks] == ["worker"]
        assert job.tasks[0].containers == 2

    def test_plain_string_status(self) -> None:
        job = Job.from_raw({"metadata": {"name": "j"}, "status": "Pending"})
        assert job is not None
        assert job.status_state is None
        assert job.raw_status == "Pending"

    def test_string_state(self) -> None:
        job = Job.from_raw({"metadata": {"name": "j"}, "status": {"state": "Completed"}})
        assert job is not None
        assert job.status_state == "Completed"


class TestPod:
    def test_annotations_take_precedence_over_labels(self) -> None:
        pod = Pod.from_raw(
            {
                "metadata": {
                    "name": "p",
                    "annotations": {JOB_NAME_KEY: "from-annotation", TASK_SPEC_KEY: "t"},
                    "labels": {JOB_NAME_KEY: "from-label"},
                },
                "status": {"phase": "Running", "startTime": "2026-01-01T00:00:00Z"},
            }
        )
        assert pod is not None
        assert pod.correlation_key == ("from-annotation", "t")
        assert pod.start_time == "2026-01-01T00:00:00Z"

    def test_half_correlated_pod_has_no_key(self) -> None:
        pod = Pod.from_raw({"metadata": {"name": "p", "annotations": {JOB_NAME_KEY: "j"}}})
        assert pod is not None
        assert pod.correlation_key is None


def test_resource_set_drops_unparseable_items() -> None:
    resources = ResourceSet.from_raw(
        [{"metadata": {"name": "q"}}, {}],
        [{"metadata": {"name": "j"}}, None],  # type: ignore[list-item]
        [{"metadata": {"name": "p"}}, {"metadata": {}}],
    )
    assert [q.name for q in resources.queues] == ["q"]
    assert [j.name for j in resources.jobs] == ["j"]
    assert [p.name for p in resources.pods] == ["p"]
