"""
Life OS Signal API Server - REST surface for the dashboard.

    uvicorn api.server:app --port 8420
    python -m api.server
"""
# ruff: noqa: S104
# S104: Development server binding (guarded by __name__ check)

import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from api.response_models import HealthResponse
from api.signals_router import signals_router
from lifeos import __version__
from lifeos.config import load_config
from lifeos.daemon import build_worker, make_text_client
from lifeos.document_store import DocumentStore
from lifeos.intelligence.temporal import to_iso, utcnow
from lifeos.observability import REGISTRY
from lifeos.worker import AnticipationWorker

logger = logging.getLogger(__name__)


def create_app(
    worker: AnticipationWorker | None = None,
    store: DocumentStore | None = None,
    autostart: bool | None = None,
) -> FastAPI:
    """
    Build the FastAPI app.

    An injected worker is attached immediately and, unless autostart is
    True, left to the caller to start. Without one, the worker is built on
    startup from load_config() and the default document store, then
    started.
    """
    if autostart is None:
        autostart = worker is None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.worker is None:
            app.state.worker = build_worker(load_config(), store, text_client=make_text_client())
        if autostart:
            await app.state.worker.start()
        try:
            yield
        finally:
            app.state.worker.stop()
            await app.state.worker.wait_idle()

    app = FastAPI(
        title="Life OS Signal API",
        description="Anticipation signals, learned patterns and the morning brief",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.worker = worker

    # CORS middleware - configurable via CORS_ORIGINS env var
    cors_origins_env = os.getenv("CORS_ORIGINS", "*")
    cors_origins = (
        ["*"] if cors_origins_env == "*" else [o.strip() for o in cors_origins_env.split(",")]
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(signals_router, prefix="/api")

    @app.get("/api/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__, "timestamp": to_iso(utcnow())}

    @app.get("/api/metrics", response_class=PlainTextResponse)
    async def metrics():
        """Prometheus-format metrics endpoint."""
        return PlainTextResponse(REGISTRY.to_prometheus())

    return app


app = create_app()


# ==== Main ====


def main():
    """Run the server."""
    from lifeos.observability import configure_logging

    configure_logging(os.environ.get("LOG_LEVEL", "INFO"))
    port = int(os.environ.get("PORT", 8420))
    uvicorn.run(app, host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
