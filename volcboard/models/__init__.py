"""Core data structures for VolcBoard."""

from volcboard.models.config import APIConfig, LayoutConfig, LogConfig, VolcBoardConfig
from volcboard.models.resources import (
    JOB_NAME_KEY,
    TASK_SPEC_KEY,
    Job,
    Pod,
    Queue,
    ResourceSet,
    Task,
)

__all__ = [
    "APIConfig",
    "JOB_NAME_KEY",
    "Job",
    "LayoutConfig",
    "LogConfig",
    "Pod",
    "Queue",
    "ResourceSet",
    "TASK_SPEC_KEY",
    "Task",
    "VolcBoardConfig",
]
