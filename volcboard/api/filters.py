"""Client-side filtering and pagination over raw Kubernetes item lists.

The API server returns whole collections; the dashboard's search boxes and
drop-downs are applied here.  An empty value or the literal ``"All"`` means
"no filter" everywhere.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from typing import Any

from volcboard.hierarchy.composer import resolve_job_state
from volcboard.models.resources import Job

ALL = "All"


def _active(value: str | None) -> bool:
    return bool(value) and value != ALL


def _get(obj: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def filter_by_name(items: Iterable[dict[str, Any]], search: str | None) -> list[dict[str, Any]]:
    """Case-insensitive substring match on ``metadata.name``."""
    if not search:
        return list(items)
    needle = search.lower()
    return [item for item in items if needle in str(_get(item, "metadata", "name") or "").lower()]


def filter_jobs(
    items: Iterable[dict[str, Any]],
    search: str | None = None,
    queue: str | None = None,
    status: str | None = None,
) -> list[dict[str, Any]]:
    jobs = filter_by_name(items, search)
    if _active(queue):
        jobs = [j for j in jobs if _get(j, "spec", "queue") == queue]
    if _active(status):
        jobs = [j for j in jobs if _get(j, "status", "state", "phase") == status]
    return jobs


def filter_pods(
    items: Iterable[dict[str, Any]],
    search: str | None = None,
    status: str | None = None,
) -> list[dict[str, Any]]:
    pods = filter_by_name(items, search)
    if _active(status):
        pods = [p for p in pods if _get(p, "status", "phase") == status]
    return pods


def filter_queues(
    items: Iterable[dict[str, Any]],
    search: str | None = None,
    state: str | None = None,
) -> list[dict[str, Any]]:
    queues = filter_by_name(items, search)
    if _active(state):
        queues = [q for q in queues if _get(q, "status", "state") == state]
    return queues


def parse_positive_int(value: str | None, default: int) -> int:
    """Parse a query value, falling back to *default* for junk or values below 1."""
    try:
        parsed = int(value) if value is not None else default
    except ValueError:
        return default
    return parsed if parsed >= 1 else default


def paginate(items: list[dict[str, Any]], page: int, limit: int) -> dict[str, Any]:
    total = len(items)
    start = (page - 1) * limit
    return {
        "items": items[start : min(start + limit, total)],
        "totalCount": total,
        "page": page,
        "limit": limit,
        "totalPages": math.ceil(total / limit),
    }


def normalize_job_status(raw: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *raw* whose ``status`` is ``{state, phase}``.

    ``state`` follows the job state-resolution rules; ``phase`` is
    ``Running`` whenever the job reports a phase or declares
    ``spec.minAvailable``, and ``Unknown`` otherwise.
    """
    job = Job.from_raw(raw)
    explicit = _get(raw, "status", "state")
    if explicit:
        state: Any = explicit
    else:
        state = resolve_job_state(None, job.raw_status if job else None)
    running = bool(_get(raw, "status", "phase")) or bool(_get(raw, "spec", "minAvailable"))
    return {**raw, "status": {"state": state, "phase": "Running" if running else "Unknown"}}
