"""Pydantic response models for the VolcBoard REST API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Error envelope returned by every failing endpoint."""

    error: str
    detail: str = ""


class HealthResponse(BaseModel):
    status: str
    volcano: bool
    version: str


class ItemsResponse(BaseModel):
    """A filtered, unpaginated list of raw Kubernetes objects."""

    model_config = ConfigDict(populate_by_name=True)

    items: list[dict[str, Any]]
    total_count: int = Field(alias="totalCount")


class PaginatedResponse(ItemsResponse):
    page: int
    limit: int
    total_pages: int = Field(alias="totalPages")


class NamespacesResponse(BaseModel):
    items: list[dict[str, Any]]


class UsageResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    node_metrics: dict[str, Any] = Field(alias="nodeMetrics")
