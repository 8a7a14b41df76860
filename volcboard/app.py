"""Application bootstrap for VolcBoard.

Wires all components in dependency order and manages the asyncio lifecycle.
Startup order: config → logging → K8s client → fetcher → Volcano check → REST

Shutdown is graceful: components are stopped in reverse startup order, and
each component's stop error is caught and logged independently.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING

from volcboard.config import load_config
from volcboard.models.config import VolcBoardConfig
from volcboard.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    import structlog

_SHUTDOWN_GRACE_SECONDS = 15


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class VolcBoardApp:
    """Application root.  Owns every component and coordinates their lifecycle.

    Calling ``stop()`` on an app that was never started (or already stopped)
    is safe.
    """

    def __init__(self, config: VolcBoardConfig | None = None) -> None:
        self.config: VolcBoardConfig | None = config

        self._fetcher: object | None = None
        self._rest_server: object | None = None
        self._volcano_ready = False

        self._background_tasks: list[asyncio.Task[None]] = []

        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start all components in dependency order.

        Raises _ComponentError if a mandatory component cannot start.
        """
        if self.config is None:
            self.config = load_config()

        setup_logging(self.config.log.level, self.config.log.format)
        self._log = get_logger("app")
        self._log.info("volcboard starting", version=_volcboard_version())

        await self._load_k8s_config()
        await self._start_fetcher()
        await self._verify_volcano()
        await self._start_rest()

        self._running = True
        self._log.info(
            "volcboard started",
            host=self.config.api.host,
            port=self.config.api.port,
            volcano=self._volcano_ready,
        )

    async def _load_k8s_config(self) -> None:
        """Load the kubernetes-asyncio configuration from in-cluster or kubeconfig."""
        assert self._log is not None
        self._log.debug("loading k8s config")
        try:
            import kubernetes_asyncio.config as k8s_config  # type: ignore[import-untyped]

            try:
                k8s_config.load_incluster_config()
                self._log.info("k8s client configured from in-cluster service account")
            except k8s_config.ConfigException:
                await k8s_config.load_kube_config()
                self._log.info("k8s client configured from kubeconfig")
        except Exception as exc:
            raise _ComponentError("k8s_client", exc) from exc

    async def _start_fetcher(self) -> None:
        assert self._log is not None
        try:
            from volcboard.kube.fetcher import KubeResourceFetcher

            self._fetcher = KubeResourceFetcher()
            self._log.info("resource fetcher started")
        except Exception as exc:
            raise _ComponentError("fetcher", exc) from exc

    async def _verify_volcano(self) -> None:
        """Check Volcano CRD access.  Non-fatal: core views still work without it."""
        assert self._log is not None
        self._volcano_ready = await self._fetcher.verify_volcano()  # type: ignore[union-attr]
        if self._volcano_ready:
            self._log.info("volcano support available")
        else:
            self._log.error("volcano support is not available; job and queue views will fail")

    async def _start_rest(self) -> None:
        """Start the uvicorn REST server."""
        assert self._log is not None
        assert self.config is not None
        self._log.debug("starting rest api")
        try:
            import uvicorn

            from volcboard.api import build_app

            fastapi_app = build_app(fetcher=self._fetcher, config=self.config)
            uv_config = uvicorn.Config(
                app=fastapi_app,
                host=self.config.api.host,
                port=self.config.api.port,
                log_config=None,  # structlog handles all logging
                access_log=False,
            )
            server = uvicorn.Server(uv_config)
            task = asyncio.create_task(server.serve(), name="rest-server")
            self._background_tasks.append(task)
            self._rest_server = server
            self._log.info("rest api started", port=self.config.api.port)
        except Exception as exc:
            raise _ComponentError("rest", exc) from exc

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Gracefully stop all components in reverse startup order."""
        if not self._running and self._log is None:
            return

        log = self._log or get_logger("app")
        log.info("volcboard shutting down")

        self._running = False

        if self._rest_server is not None:
            self._rest_server.should_exit = True  # type: ignore[attr-defined]

        for task in reversed(self._background_tasks):
            if not task.done():
                task.cancel()
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
        self._background_tasks.clear()

        await self._stop_component("fetcher", self._fetcher)
        self._rest_server = None
        self._fetcher = None

        log.info("volcboard stopped")

    async def _stop_component(self, name: str, component: object | None) -> None:
        """Call stop() on a component if it has that method, catching all errors."""
        if component is None:
            return
        log = self._log or get_logger("app")
        stop_fn = getattr(component, "stop", None)
        if stop_fn is None:
            return
        try:
            result = stop_fn()
            if asyncio.iscoroutine(result):
                await asyncio.wait_for(result, timeout=_SHUTDOWN_GRACE_SECONDS)
        except TimeoutError:
            log.warning("component stop timed out", component=name, timeout=_SHUTDOWN_GRACE_SECONDS)
        except Exception as exc:
            log.error("component stop raised an error", component=name, error=str(exc))


def _volcboard_version() -> str:
    from volcboard import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main(config: VolcBoardConfig | None = None) -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = VolcBoardApp(config)
    loop = asyncio.get_running_loop()

    shutdown_triggered = False

    def _request_shutdown() -> None:
        nonlocal shutdown_triggered
        if shutdown_triggered:
            return
        shutdown_triggered = True
        asyncio.create_task(app.stop(), name="shutdown")

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _request_shutdown)

    try:
        await app.start()
        while app.running:
            await asyncio.sleep(1)
    except _ComponentError as exc:
        log = get_logger("app")
        log.critical(
            "fatal startup error",
            component=exc.component,
            error=str(exc.cause),
        )
        await app.stop()
        raise SystemExit(1) from exc
    finally:
        if app.running:
            await app.stop()
