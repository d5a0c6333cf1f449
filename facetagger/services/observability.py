"""
Observability service with OpenTelemetry tracing and optional Sentry
"""
# Module scope
import os
import logging
from contextlib import contextmanager

import sentry_sdk
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

from facetagger.config import Settings

logger = logging.getLogger(__name__)
tracer = trace.get_tracer("facetagger")
_initialized = False


def configure_logging(settings: Settings):
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def init_observability(settings: Settings, app_name: str = "facetagger"):
    global _initialized
    if _initialized:
        return
    _initialized = True

    if settings.SENTRY_DSN:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1")),
            environment=settings.APP_ENV,
        )
        logger.info("Sentry initialized")

    resource = Resource.create({
        "service.name": app_name,
        "deployment.environment": settings.APP_ENV,
    })
    tp = TracerProvider(resource=resource)
    if os.getenv("OTEL_CONSOLE_EXPORT") == "1":
        tp.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        logger.info("Console span export enabled")
    trace.set_tracer_provider(tp)


def instrument_fastapi(app):
    FastAPIInstrumentor.instrument_app(app)
    HTTPXClientInstrumentor().instrument()
    logger.info("FastAPI instrumentation enabled")


@contextmanager
def trace_operation(name: str, **attrs):
    with tracer.start_as_current_span(name) as span:
        for k, v in attrs.items():
            span.set_attribute(k, str(v))
        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            raise
