"""
Prometheus metrics for the face pipeline
"""

import time

from fastapi import Request
from fastapi.responses import Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

REQUESTS_TOTAL = Counter(
    "facetagger_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

REQUEST_DURATION = Histogram(
    "facetagger_http_request_seconds",
    "Request duration in seconds",
    ["method", "path"],
)

FACES_DETECTED = Counter(
    "facetagger_faces_detected_total",
    "Face boxes returned by the detection provider",
    ["status"],
)

CROP_TASKS = Counter(
    "facetagger_crop_tasks_total",
    "Crop tasks processed by outcome",
    ["status"],
)

FACES_LABELED = Counter(
    "facetagger_faces_labeled_total",
    "Names assigned to faces",
)

RETRIEVALS = Counter(
    "facetagger_retrievals_total",
    "Find-by-name queries",
    ["result"],
)


async def metrics_endpoint(enabled: bool):
    """Prometheus metrics endpoint"""
    if not enabled:
        return Response(b"metrics disabled", media_type="text/plain")
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


def metrics_middleware(app, enabled: bool):
    """Add metrics middleware to FastAPI app"""
    if not enabled:
        return

    @app.middleware("http")
    async def _metrics(request: Request, call_next):
        start = time.time()
        response = await call_next(request)

        path = request.url.path
        REQUESTS_TOTAL.labels(
            method=request.method,
            path=path,
            status=str(response.status_code),
        ).inc()
        REQUEST_DURATION.labels(
            method=request.method,
            path=path,
        ).observe(time.time() - start)

        return response


def record_detected(status: str):
    """status: mapped | invalid"""
    FACES_DETECTED.labels(status=status).inc()


def record_crop(status: str):
    """status: created | skipped"""
    CROP_TASKS.labels(status=status).inc()


def record_labeled():
    FACES_LABELED.inc()


def record_retrieval(found: bool):
    RETRIEVALS.labels(result="hit" if found else "miss").inc()
