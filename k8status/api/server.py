"""FastAPI server exposing the cluster health report.

Endpoints:
  GET /healthz   run every check and return the summarized report
  GET /readyz    liveness of this process
  GET /metrics   Prometheus metrics
"""

from __future__ import annotations

import logging
import platform
import threading
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import uvicorn
from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.base import RequestResponseEndpoint

from k8status import __version__
from k8status.config import Settings
from k8status.context import CheckContext
from k8status.health.runner import Runner

from .metrics import CHECK_RUNS, instrument, metrics_response

logger = logging.getLogger(__name__)

router = APIRouter()


@dataclass
class ServingState:
    """Serving flags owned by one server instance; flipped once on shutdown."""

    healthy: bool = True
    ready: bool = True

    def shut_down(self) -> None:
        self.healthy = False
        self.ready = False

    @property
    def shutting_down(self) -> bool:
        return not (self.healthy and self.ready)


# ── Routes ───────────────────────────────────────────────────────────────────


@router.get("/healthz")
def healthz(request: Request) -> Any:
    """Run all checks and return the cluster health report."""
    if not request.app.state.serving.healthy:
        return JSONResponse(status_code=503, content={"detail": "shutting down"})

    runner: Runner = request.app.state.runner
    ctx = CheckContext.background().with_timeout(request.app.state.check_timeout)
    final = runner.run(ctx)
    CHECK_RUNS.labels(final.status.value).inc()
    return final.to_dict()


@router.get("/readyz", response_class=PlainTextResponse)
def readyz(request: Request) -> PlainTextResponse:
    if not request.app.state.serving.ready:
        return PlainTextResponse("shutting down", status_code=503)
    return PlainTextResponse("OK")


@router.get("/metrics")
def metrics() -> Response:
    """Prometheus exposition of the server and check metrics."""
    return metrics_response()


# ── App factory ──────────────────────────────────────────────────────────────


def create_app(runner: Runner, cfg: Settings, state: ServingState | None = None) -> FastAPI:
    """Create the health API application around a configured runner."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("HTTP server started at port: %d", cfg.http_port)
        yield
        logger.info("HTTP server stopped")

    app = FastAPI(title="k8status", version=__version__, lifespan=lifespan)
    app.state.runner = runner
    app.state.serving = state or ServingState()
    app.state.check_timeout = cfg.check_timeout

    @app.middleware("http")
    async def server_header(request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        response.headers["Server"] = f"Python/{platform.python_version()}"
        return response

    app.middleware("http")(instrument)
    app.include_router(router)
    return app


# ── Serving ──────────────────────────────────────────────────────────────────


class GracefulServer(uvicorn.Server):
    """uvicorn server that stops answering healthy/ready before it stops serving.

    On the first exit signal the serving state flips, then uvicorn is told to
    exit after ``extra_sleep`` seconds and drains requests within its own
    graceful shutdown timeout. A second signal exits right away.
    """

    def __init__(self, config: uvicorn.Config, state: ServingState, extra_sleep: float) -> None:
        super().__init__(config)
        self.state = state
        self.extra_sleep = extra_sleep

    def handle_exit(self, sig: int, frame: Any) -> None:
        if self.state.shutting_down or self.extra_sleep <= 0:
            self.state.shut_down()
            super().handle_exit(sig, frame)
            return

        self.state.shut_down()
        logger.info("Shutdown requested, answering not ready for %ss", self.extra_sleep)
        timer = threading.Timer(self.extra_sleep, super().handle_exit, args=(sig, frame))
        timer.daemon = True
        timer.start()


def serve(runner: Runner, cfg: Settings) -> None:
    """Serve the health API until SIGINT/SIGTERM."""
    state = ServingState()
    app = create_app(runner, cfg, state)
    config = uvicorn.Config(
        app,
        host=cfg.http_host,
        port=cfg.http_port,
        log_level=cfg.effective_log_level.lower(),
        timeout_graceful_shutdown=cfg.graceful_shutdown_timeout,
        server_header=False,
    )
    logger.debug(
        "Graceful shutdown: timeout %ss, extra sleep %ss",
        cfg.graceful_shutdown_timeout, cfg.graceful_shutdown_extra_sleep,
    )
    GracefulServer(config, state, float(cfg.graceful_shutdown_extra_sleep)).run()
