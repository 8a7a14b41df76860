"""Kubernetes / Volcano API access for VolcBoard."""

from volcboard.kube.fetcher import FetchError, KubeResourceFetcher, ResourceFetcher

__all__ = ["FetchError", "KubeResourceFetcher", "ResourceFetcher"]
