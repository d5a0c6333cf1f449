#!/usr/bin/env python3
"""
facetagger production startup script

    python start_production.py          # API server
    python start_production.py worker   # RQ crop worker (JOBS_BACKEND=rq)
"""

import sys

import uvicorn

from facetagger.config import settings


def start_production_server():
    """Start the API server with production configuration"""
    print("Starting facetagger API server...")
    print(f"Gateway base URL: {settings.PUBLIC_BASE_URL}")
    print(f"Crop jobs backend: {settings.JOBS_BACKEND}")
    print("=" * 60)

    uvicorn.run(
        "facetagger.main:app",
        host="0.0.0.0",
        port=8999,
        reload=False,
        workers=2,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=True,
    )


def start_crop_worker():
    from facetagger.workers.rq_tasks import start_worker

    if settings.JOBS_BACKEND != "rq":
        sys.exit("JOBS_BACKEND must be 'rq' to run a separate crop worker")
    start_worker(settings)


if __name__ == "__main__":
    if sys.argv[1:] == ["worker"]:
        start_crop_worker()
    else:
        start_production_server()
