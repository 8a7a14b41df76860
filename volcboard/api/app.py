"""FastAPI application factory for VolcBoard.

Usage::

    from volcboard.api.app import create_app

    app = create_app(fetcher=fetcher, config=config)

The factory is designed for use by both the production bootstrap
(``volcboard.app``) and unit tests, which pass a fixture fetcher instead of
a live Kubernetes client.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from volcboard.api.routes import router
from volcboard.api.schemas import ErrorResponse
from volcboard.graph.layout import LayeredLayout, LayoutError
from volcboard.kube.fetcher import FetchError
from volcboard.models.config import VolcBoardConfig
from volcboard.observability.logging import bind_request, clear_request

_log = structlog.get_logger(component="api.app")

_API_PREFIX = "/api"


def create_app(
    fetcher: Any,
    config: VolcBoardConfig | None = None,
    layout_engine: Any = None,
) -> FastAPI:
    """Create and configure the VolcBoard FastAPI application.

    Args:
        fetcher:       ResourceFetcher used by every route.
        config:        VolcBoardConfig.  Defaults apply when omitted.
        layout_engine: LayoutEngine for ``/api/graph?layout=true``.
                       Defaults to the built-in LayeredLayout.

    Returns:
        Configured FastAPI application, ready to be served by uvicorn.
    """
    from volcboard import __version__

    config = config or VolcBoardConfig()

    app = FastAPI(
        title="VolcBoard",
        summary="Volcano batch scheduler dashboard API",
        version=__version__,
        description=(
            "Read-only views of Volcano jobs, queues and pods, including the "
            "queue → job → task → pod hierarchy and its graph projection."
        ),
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    app.state.fetcher = fetcher
    app.state.config = config
    app.state.layout_engine = layout_engine or LayeredLayout()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix=_API_PREFIX)

    @app.middleware("http")
    async def request_context(request: Request, call_next: Any) -> Any:
        bind_request(request.method, request.url.path)
        try:
            response = await call_next(request)
            _log.debug("request_served", status_code=response.status_code)
            return response
        finally:
            clear_request()

    # -----------------------------------------------------------------------
    # Exception handlers
    # -----------------------------------------------------------------------

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        _request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Map Pydantic validation errors to our error envelope."""
        errors = exc.errors()
        first_field = ""
        first_msg = ""
        if errors:
            locs = errors[0].get("loc", ())
            first_field = str(locs[-1]) if locs else ""
            first_msg = str(errors[0].get("msg", ""))

        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                error="INVALID_QUERY",
                detail=f"{first_field}: {first_msg}" if first_field else first_msg,
            ).model_dump(),
        )

    @app.exception_handler(FetchError)
    async def fetch_exception_handler(
        request: Request,
        exc: FetchError,
    ) -> JSONResponse:
        """Report an API-server failure; 404 passes through, all else is 500."""
        status_code = 404 if exc.status == 404 else 500
        _log.error(
            "fetch_failed",
            path=str(request.url.path),
            resource=exc.resource,
            upstream_status=exc.status,
            error=str(exc.cause),
        )
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=f"Failed to fetch {exc.resource}",
                detail=str(exc.cause),
            ).model_dump(),
        )

    @app.exception_handler(LayoutError)
    async def layout_exception_handler(
        _request: Request,
        exc: LayoutError,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(error="INVALID_LAYOUT", detail=str(exc)).model_dump(),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Catch-all for unhandled exceptions; never expose stack traces."""
        _log.error(
            "unhandled_exception",
            path=str(request.url.path),
            method=request.method,
            error=str(exc),
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="INTERNAL_ERROR",
                detail="An unexpected error occurred.",
            ).model_dump(),
        )

    return app
