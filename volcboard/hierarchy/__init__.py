"""Queue → job → task → pod hierarchy composition."""

from volcboard.hierarchy.composer import (
    build_hierarchy,
    build_pod_map,
    compose_hierarchy,
    find_parent_cycles,
    resolve_job_state,
)
from volcboard.hierarchy.models import (
    Hierarchy,
    HierarchyQueueNode,
    JobSummary,
    PodSummary,
    TaskSummary,
    pod_map_key,
)

__all__ = [
    "Hierarchy",
    "HierarchyQueueNode",
    "JobSummary",
    "PodSummary",
    "TaskSummary",
    "build_hierarchy",
    "build_pod_map",
    "compose_hierarchy",
    "find_parent_cycles",
    "pod_map_key",
    "resolve_job_state",
]
