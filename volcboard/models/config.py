"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class APIConfig:
    """REST API configuration."""

    host: str = "0.0.0.0"
    port: int = 3001
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    queues_page_limit: int = 10


@dataclass
class LayoutConfig:
    """Default options handed to the layout engine."""

    algorithm: str = "layered"
    direction: str = "DOWN"
    layer_spacing: int = 100
    node_spacing: int = 80

    def as_options(self) -> dict[str, object]:
        """Render as ELK-style option keys."""
        return {
            "elk.algorithm": self.algorithm,
            "elk.direction": self.direction,
            "elk.layered.spacing.nodeNodeBetweenLayers": self.layer_spacing,
            "elk.spacing.nodeNode": self.node_spacing,
        }


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"
    format: str = "json"


@dataclass
class VolcBoardConfig:
    """Top-level VolcBoard configuration."""

    api: APIConfig = field(default_factory=APIConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    log: LogConfig = field(default_factory=LogConfig)
