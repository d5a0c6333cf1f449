"""
Background crop worker using RQ (Redis Queue).

Each job carries one serialized CropTask. A raised exception marks the job
failed and RQ's retry policy redelivers it; dropped tasks (missing source,
empty crop) complete normally.

The worker process owns one event loop, one database connection and one
cropping stage for its whole life. ``start_worker`` binds them before the
first job, and jobs run in-process on a ``SimpleWorker``.
"""

import asyncio
import logging
from typing import List, Optional

from redis import Redis
from rq import Queue, SimpleWorker

from facetagger.config import Settings
from facetagger.db import close_db, init_db
from facetagger.schemas.tasks import QueueEnvelope
from facetagger.services.cropping import CroppingStage
from facetagger.services.observability import configure_logging, init_observability
from facetagger.services.storage import LocalStorage

log = logging.getLogger("facetagger.worker")


async def _crop(stage: CroppingStage, body: str) -> List[str]:
    return await stage.handle_envelope(QueueEnvelope.wrap(body))


class CropRuntime:
    """Event loop, DB connection and cropping stage shared by every job of a worker."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.stage = CroppingStage(settings, LocalStorage.from_settings(settings))
        self.loop = asyncio.new_event_loop()
        self.loop.run_until_complete(init_db(settings))

    def run(self, body: str) -> List[str]:
        return self.loop.run_until_complete(_crop(self.stage, body))

    def close(self):
        try:
            self.loop.run_until_complete(close_db())
        finally:
            self.loop.close()


_runtime: Optional[CropRuntime] = None


def bind_runtime(runtime: Optional[CropRuntime]):
    global _runtime
    _runtime = runtime


def process_crop_message(body: str) -> List[str]:
    """RQ entry point for one crop task message."""
    if _runtime is None:
        raise RuntimeError("crop worker runtime is not bound; start jobs through start_worker")
    face_ids = _runtime.run(body)
    log.info("Crop job done, faces=%s", face_ids)
    return face_ids


def start_worker(settings: Settings):
    """Start an RQ worker on the crop queue"""
    configure_logging(settings)
    init_observability(settings, "facetagger-worker")
    runtime = CropRuntime(settings)
    bind_runtime(runtime)
    conn = Redis.from_url(settings.REDIS_URL)
    worker = SimpleWorker([Queue(settings.CROP_QUEUE_NAME, connection=conn)], connection=conn)
    log.info("Starting RQ worker on %s...", settings.CROP_QUEUE_NAME)
    try:
        worker.work()
    finally:
        bind_runtime(None)
        runtime.close()


if __name__ == "__main__":
    from facetagger.config import settings

    start_worker(settings)
