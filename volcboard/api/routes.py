"""Route handlers for the VolcBoard REST / SSE API.

Every handler reads its collaborators from ``request.app.state``; none of
them touches a module-level client.  Fetch failures are not caught here:
``FetchError`` propagates to the exception handler in ``volcboard.api.app``
which renders the error envelope.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse

from volcboard import __version__
from volcboard.api.filters import (
    filter_jobs,
    filter_pods,
    filter_queues,
    normalize_job_status,
    paginate,
    parse_positive_int,
)
from volcboard.api.schemas import (
    ErrorResponse,
    HealthResponse,
    ItemsResponse,
    NamespacesResponse,
    PaginatedResponse,
    UsageResponse,
)
from volcboard.api.serializers import to_yaml
from volcboard.graph import LayoutReconciler, project_hierarchy, select_node, selected_node
from volcboard.hierarchy import build_hierarchy
from volcboard.kube.fetcher import FetchError, ResourceFetcher
from volcboard.models.config import VolcBoardConfig

_log = structlog.get_logger(component="api.routes")

router = APIRouter()


def _fetcher(request: Request) -> ResourceFetcher:
    return request.app.state.fetcher  # type: ignore[no-any-return]


def _config(request: Request) -> VolcBoardConfig:
    return request.app.state.config or VolcBoardConfig()  # type: ignore[no-any-return]


def _items(items: list[dict[str, Any]]) -> dict[str, Any]:
    return ItemsResponse(items=items, totalCount=len(items)).model_dump(by_alias=True)


def _yaml(obj: Any) -> PlainTextResponse:
    return PlainTextResponse(to_yaml(obj), media_type="text/yaml")


def _namespace(value: str | None) -> str | None:
    if not value or value == "All":
        return None
    return value


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    volcano = await _fetcher(request).verify_volcano()
    return HealthResponse(status="ok" if volcano else "degraded", volcano=volcano, version=__version__)


# ---------------------------------------------------------------------------
# Pods
# ---------------------------------------------------------------------------


@router.get("/pod/logs", response_model=None)
async def pod_logs(
    request: Request,
    namespace: str | None = None,
    pod: str | None = None,
    container: str | None = None,
) -> StreamingResponse | JSONResponse:
    """Stream a container's log as server-sent events, one line per event."""
    if not namespace or not pod or not container:
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                error="Missing namespace, pod, or container",
                detail="namespace, pod and container query parameters are required",
            ).model_dump(),
        )

    lines = _fetcher(request).stream_pod_logs(namespace, pod, container)
    # Wait for the first line so that failing to open the stream is a
    # FetchError for the exception handler, not an in-band event.
    try:
        first: str | None = await anext(lines)
    except StopAsyncIteration:
        first = None

    async def _events() -> AsyncIterator[str]:
        _log.info("log_stream_opened", namespace=namespace, pod=pod, container=container)
        try:
            async with aclosing(lines):
                if first is not None:
                    yield f"data: {first}\n\n"
                async for line in lines:
                    yield f"data: {line}\n\n"
        except FetchError as exc:
            # Headers are already sent; report the failure in-band.
            _log.warning("log_stream_failed", resource=exc.resource, status=exc.status, error=str(exc.cause))
            yield f"event: error\ndata: {exc}\n\n"
        finally:
            _log.info("log_stream_ended", namespace=namespace, pod=pod)

    return StreamingResponse(
        _events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.get("/pods")
async def list_pods(
    request: Request,
    namespace: str | None = None,
    search: str | None = None,
    status: str | None = None,
) -> dict[str, Any]:
    _log.debug("fetching_pods", namespace=namespace, search=search, status=status)
    pods = await _fetcher(request).list_pods(_namespace(namespace))
    return _items(filter_pods(pods, search=search, status=status))


@router.get("/pod/{namespace}/{name}/yaml")
async def pod_yaml(request: Request, namespace: str, name: str) -> PlainTextResponse:
    return _yaml(await _fetcher(request).read_pod(namespace, name))


@router.get("/all-pods")
async def all_pods(request: Request) -> dict[str, Any]:
    return _items(await _fetcher(request).list_pods())


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


@router.get("/jobs")
async def list_jobs(
    request: Request,
    namespace: str | None = None,
    search: str | None = None,
    queue: str | None = None,
    status: str | None = None,
) -> dict[str, Any]:
    _log.debug("fetching_jobs", namespace=namespace, search=search, queue=queue, status=status)
    jobs = await _fetcher(request).list_jobs(_namespace(namespace))
    return _items(filter_jobs(jobs, search=search, queue=queue, status=status))


@router.get("/jobs/{namespace}/{name}")
async def get_job(request: Request, namespace: str, name: str) -> dict[str, Any]:
    return await _fetcher(request).get_job(namespace, name)


@router.get("/job/{namespace}/{name}/yaml")
async def job_yaml(request: Request, namespace: str, name: str) -> PlainTextResponse:
    return _yaml(await _fetcher(request).get_job(namespace, name))


@router.get("/all-jobs")
async def all_jobs(request: Request) -> dict[str, Any]:
    jobs = await _fetcher(request).list_jobs()
    return _items([normalize_job_status(job) for job in jobs])


# ---------------------------------------------------------------------------
# Queues
# ---------------------------------------------------------------------------


@router.get("/queues")
async def list_queues(
    request: Request,
    page: str | None = None,
    limit: str | None = None,
    search: str | None = None,
    state: str | None = None,
) -> dict[str, Any]:
    page_no = parse_positive_int(page, 1)
    page_size = parse_positive_int(limit, _config(request).api.queues_page_limit)
    _log.debug("fetching_queues", page=page_no, limit=page_size, search=search, state=state)
    queues = filter_queues(await _fetcher(request).list_queues(), search=search, state=state)
    return PaginatedResponse(**paginate(queues, page_no, page_size)).model_dump(by_alias=True)


@router.get("/queues/{name}")
async def get_queue(request: Request, name: str) -> dict[str, Any]:
    return await _fetcher(request).get_queue(name)


@router.get("/queue/{name}/yaml")
async def queue_yaml(request: Request, name: str) -> PlainTextResponse:
    return _yaml(await _fetcher(request).get_queue(name))


@router.get("/all-queues")
async def all_queues(request: Request) -> dict[str, Any]:
    return _items(await _fetcher(request).list_queues())


# ---------------------------------------------------------------------------
# Cluster
# ---------------------------------------------------------------------------


@router.get("/namespaces")
async def list_namespaces(request: Request) -> dict[str, Any]:
    return NamespacesResponse(items=await _fetcher(request).list_namespaces()).model_dump()


@router.get("/usage", response_model=None)
async def usage(request: Request) -> dict[str, Any] | JSONResponse:
    try:
        metrics = await _fetcher(request).node_metrics()
    except FetchError as exc:
        _log.warning("node_metrics_unavailable", status=exc.status, error=str(exc.cause))
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="Failed to fetch metric data | Install the metric server",
                detail=str(exc.cause),
            ).model_dump(),
        )
    return UsageResponse(message="Kubernetes api usage data.", nodeMetrics=metrics).model_dump(by_alias=True)


# ---------------------------------------------------------------------------
# Hierarchy and graph
# ---------------------------------------------------------------------------


@router.get("/hierarchical-queues")
@router.get("/heirarchical-queues", include_in_schema=False)
async def hierarchical_queues(request: Request) -> dict[str, Any]:
    hierarchy = await build_hierarchy(_fetcher(request))
    return hierarchy.to_dict()


@router.get("/graph")
async def graph(
    request: Request,
    stable_ids: bool = False,
    selected: str | None = None,
    layout: bool = False,
    direction: str | None = None,
) -> dict[str, Any]:
    """Project the hierarchy into nodes and edges, optionally laid out.

    With ``stable_ids`` the node ids survive a refresh, so a ``selected``
    id taken from an earlier response still resolves.
    """
    hierarchy = await build_hierarchy(_fetcher(request))
    projected = project_hierarchy(hierarchy, stable_ids=stable_ids)
    nodes = select_node(projected.nodes, selected) if selected else projected.nodes

    if layout:
        config = _config(request)
        options: dict[str, Any] = {}
        if direction:
            options["elk.direction"] = direction.upper()
        reconciler = LayoutReconciler(request.app.state.layout_engine, config.layout.as_options())
        laid_out = await reconciler.apply(nodes, projected.edges, options)
        if laid_out is not None:
            nodes = laid_out

    projected.nodes = nodes
    body = projected.to_dict()
    current = selected_node(nodes)
    body["selected"] = current.id if current is not None else None
    return body
