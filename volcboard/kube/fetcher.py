"""Resource fetcher: the only component that talks to the Kubernetes API.

``ResourceFetcher`` is the capability handed to the composer and the REST
layer; ``KubeResourceFetcher`` implements it with kubernetes-asyncio.  Every
call returns plain dicts in the API server's camelCase shape, and every
failure surfaces as ``FetchError`` so callers never see client-library
exception types.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable
from typing import Any, Protocol, TypeVar

import structlog

_log = structlog.get_logger(component="kube.fetcher")

VOLCANO_JOB = ("batch.volcano.sh", "v1alpha1", "jobs")
VOLCANO_QUEUE = ("scheduling.volcano.sh", "v1beta1", "queues")
NODE_METRICS = ("metrics.k8s.io", "v1beta1", "nodes")

T = TypeVar("T")


class FetchError(Exception):
    """Raised when a read from the API server fails.

    Attributes:
        resource: What was being fetched, e.g. ``"jobs"`` or ``"queue/q1"``.
        status:   HTTP status reported by the API server, or None if the
                  request never got a response.
        cause:    The underlying exception.
    """

    def __init__(self, resource: str, cause: Exception, status: int | None = None) -> None:
        super().__init__(f"Failed to fetch {resource}: {cause}")
        self.resource = resource
        self.status = status
        self.cause = cause


class ResourceFetcher(Protocol):
    async def list_queues(self) -> list[dict[str, Any]]: ...

    async def get_queue(self, name: str) -> dict[str, Any]: ...

    async def list_jobs(self, namespace: str | None = None) -> list[dict[str, Any]]: ...

    async def get_job(self, namespace: str, name: str) -> dict[str, Any]: ...

    async def list_pods(self, namespace: str | None = None) -> list[dict[str, Any]]: ...

    async def read_pod(self, namespace: str, name: str) -> dict[str, Any]: ...

    async def list_namespaces(self) -> list[dict[str, Any]]: ...

    async def node_metrics(self) -> dict[str, Any]: ...

    def stream_pod_logs(self, namespace: str, pod: str, container: str) -> AsyncIterator[str]: ...

    async def verify_volcano(self) -> bool: ...


class KubeResourceFetcher:
    """ResourceFetcher backed by a kubernetes-asyncio ``ApiClient``.

    The client configuration must already be loaded (in-cluster or
    kubeconfig); see ``volcboard.app``.
    """

    def __init__(self, api_client: Any = None) -> None:
        from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

        self._api_client = api_client or k8s_client.ApiClient()
        self._custom = k8s_client.CustomObjectsApi(self._api_client)
        self._core = k8s_client.CoreV1Api(self._api_client)

    async def close(self) -> None:
        await self._api_client.close()

    async def stop(self) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Volcano custom resources
    # ------------------------------------------------------------------

    async def list_queues(self) -> list[dict[str, Any]]:
        group, version, plural = VOLCANO_QUEUE
        response = await _call("queues", self._custom.list_cluster_custom_object(group, version, plural))
        return _items(response)

    async def get_queue(self, name: str) -> dict[str, Any]:
        group, version, plural = VOLCANO_QUEUE
        return await _call(f"queue/{name}", self._custom.get_cluster_custom_object(group, version, plural, name))

    async def list_jobs(self, namespace: str | None = None) -> list[dict[str, Any]]:
        group, version, plural = VOLCANO_JOB
        if namespace:
            request = self._custom.list_namespaced_custom_object(group, version, namespace, plural)
        else:
            request = self._custom.list_cluster_custom_object(group, version, plural)
        return _items(await _call("jobs", request))

    async def get_job(self, namespace: str, name: str) -> dict[str, Any]:
        group, version, plural = VOLCANO_JOB
        return await _call(
            f"job/{namespace}/{name}",
            self._custom.get_namespaced_custom_object(group, version, namespace, plural, name),
        )

    # ------------------------------------------------------------------
    # Core resources
    # ------------------------------------------------------------------

    async def list_pods(self, namespace: str | None = None) -> list[dict[str, Any]]:
        if namespace:
            request = self._core.list_namespaced_pod(namespace)
        else:
            request = self._core.list_pod_for_all_namespaces()
        return _items(self._serialize(await _call("pods", request)))

    async def read_pod(self, namespace: str, name: str) -> dict[str, Any]:
        pod = await _call(f"pod/{namespace}/{name}", self._core.read_namespaced_pod(name, namespace))
        return self._serialize(pod)

    async def list_namespaces(self) -> list[dict[str, Any]]:
        return _items(self._serialize(await _call("namespaces", self._core.list_namespace())))

    async def node_metrics(self) -> dict[str, Any]:
        group, version, plural = NODE_METRICS
        return await _call("node metrics", self._custom.list_cluster_custom_object(group, version, plural))

    async def stream_pod_logs(self, namespace: str, pod: str, container: str) -> AsyncIterator[str]:
        """Follow a container's log, yielding one timestamped line at a time.

        A read that breaks after the stream opened raises ``FetchError`` too.
        """
        resource = f"logs/{namespace}/{pod}/{container}"
        response = await _call(
            resource,
            self._core.read_namespaced_pod_log(
                pod,
                namespace,
                container=container,
                follow=True,
                timestamps=True,
                _preload_content=False,
            ),
        )
        try:
            async for raw_line in response.content:
                line = raw_line.decode("utf-8", errors="replace").rstrip("\n")
                if line:
                    yield line
        except Exception as exc:
            raise FetchError(resource, exc) from exc
        finally:
            response.release()
            _log.debug("log_stream_closed", namespace=namespace, pod=pod, container=container)

    async def verify_volcano(self) -> bool:
        """Check that the Volcano job CRD is served and readable."""
        try:
            await self.list_jobs()
        except FetchError as exc:
            _log.warning("volcano_verification_failed", error=str(exc.cause), status=exc.status)
            return False
        return True

    def _serialize(self, obj: Any) -> Any:
        return self._api_client.sanitize_for_serialization(obj)


async def _call(resource: str, request: Awaitable[T]) -> T:
    from kubernetes_asyncio.client.exceptions import ApiException  # type: ignore[import-untyped]

    try:
        return await request
    except ApiException as exc:
        raise FetchError(resource, exc, status=exc.status) from exc
    except Exception as exc:
        raise FetchError(resource, exc) from exc


def _items(response: Any) -> list[dict[str, Any]]:
    if not isinstance(response, dict):
        return []
    items = response.get("items")
    return items if isinstance(items, list) else []
