"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from volcboard.models.config import APIConfig, LayoutConfig, LogConfig, VolcBoardConfig

LAYOUT_DIRECTIONS = ("DOWN", "UP", "RIGHT", "LEFT")
LAYOUT_ALGORITHMS = ("layered",)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"VOLCBOARD_{key}", default)


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_list(key: str, default: str) -> list[str]:
    return [item.strip() for item in _env(key, default).split(",") if item.strip()]


def _validate_choice(name: str, value: str, valid: tuple[str, ...]) -> str:
    if value not in valid:
        raise ValueError(f"Invalid {name}: {value}. Must be one of {valid}")
    return value


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def load_config() -> VolcBoardConfig:
    """Load configuration from VOLCBOARD_* environment variables."""
    return VolcBoardConfig(
        api=APIConfig(
            host=_env("API_HOST", "0.0.0.0"),
            port=_env_int("API_PORT", 3001, min_val=1024, max_val=65535),
            cors_origins=_env_list("CORS_ORIGINS", "*"),
            queues_page_limit=_env_int("QUEUES_PAGE_LIMIT", 10, min_val=1, max_val=500),
        ),
        layout=LayoutConfig(
            algorithm=_validate_choice("layout algorithm", _env("LAYOUT_ALGORITHM", "layered"), LAYOUT_ALGORITHMS),
            direction=_validate_choice(
                "layout direction", _env("LAYOUT_DIRECTION", "DOWN").upper(), LAYOUT_DIRECTIONS
            ),
            layer_spacing=_env_int("LAYOUT_LAYER_SPACING", 100, min_val=0),
            node_spacing=_env_int("LAYOUT_NODE_SPACING", 80, min_val=0),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
            format=_validate_choice("log format", _env("LOG_FORMAT", "json").lower(), ("json", "console")),
        ),
    )
