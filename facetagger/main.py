# Top imports
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from facetagger.config import Settings, settings as default_settings
from facetagger.core.middleware import ErrorEnvelopeMiddleware
from facetagger.db import close_db, init_db
from facetagger.errors import FaceTaggerError
from facetagger.services.metrics import metrics_endpoint, metrics_middleware
from facetagger.services.observability import configure_logging, init_observability, instrument_fastapi
from facetagger.services.pipeline import build_pipeline

log = logging.getLogger("facetagger")


def _check_secrets(settings: Settings):
    if not settings.is_production:
        return
    for k in ("DETECTION_API_TOKEN", "TELEGRAM_BOT_TOKEN"):
        if not getattr(settings, k, ""):
            raise RuntimeError(f"{k} must be set in production")


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the API. ``transport`` replaces the outbound HTTP transport (tests)."""
    settings = settings or default_settings
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("Starting facetagger (%s)...", settings.APP_ENV)
        _check_secrets(settings)
        init_observability(settings)
        await init_db(settings)
        http_client = httpx.AsyncClient(
            transport=transport,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            limits=httpx.Limits(max_keepalive_connections=20, max_connections=100),
        )
        app.state.pipeline = build_pipeline(settings, http_client)
        try:
            yield
        finally:
            log.info("Shutting down facetagger...")
            await http_client.aclose()
            await close_db()
            log.info("Database connections closed")

    app = FastAPI(
        title="facetagger API",
        description="Face detection, cropping and labeling pipeline",
        version="1.0.0",
        lifespan=lifespan,
    )

    @app.exception_handler(FaceTaggerError)
    async def pipeline_error_handler(request: Request, exc: FaceTaggerError):
        log.warning("%s on %s: %s", type(exc).__name__, request.url.path, exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": type(exc).__name__, "detail": exc.message},
        )

    from facetagger.routers import router
    app.include_router(router)

    app.add_middleware(ErrorEnvelopeMiddleware)
    metrics_middleware(app, settings.METRICS_ENABLED)
    instrument_fastapi(app)

    @app.get("/metrics")
    async def prometheus_metrics():
        return await metrics_endpoint(settings.METRICS_ENABLED)

    @app.get("/health")
    async def health():
        return {"status": "healthy", "timestamp": datetime.now().isoformat()}

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("facetagger.main:app", host="0.0.0.0", port=8000, log_level="info")
