import asyncio
import logging
import uuid
from typing import Awaitable, Callable, List, Optional

from redis import Redis
from redis.exceptions import RedisError
from rq import Queue, Retry

from facetagger.config import Settings
from facetagger.errors import EnqueueError
from facetagger.schemas.tasks import QueueEnvelope

log = logging.getLogger("facetagger.jobs")

EnvelopeConsumer = Callable[[QueueEnvelope], Awaitable[object]]

# Dotted path so the producer never imports the worker module
CROP_JOB = "facetagger.workers.rq_tasks.process_crop_message"


class CropQueue:
    """Transport for serialized CropTask bodies. ``send`` returns a message id."""

    async def send(self, body: str) -> str:
        raise NotImplementedError


class InlineCropQueue(CropQueue):
    """
    In-process transport.

    Every body is recorded in ``sent``; when a consumer is attached it is
    awaited with a one-message envelope, mirroring a trigger that delivers
    each queue message separately.

    Consumer errors (StoreError, PersistError) propagate out of ``send`` and
    fail the detection notification that produced the task. Redelivering that
    notification crops every face again, so faces cropped before the failure
    are duplicated. Use the rq backend where each task retries on its own.
    """

    def __init__(self, consumer: Optional[EnvelopeConsumer] = None):
        self.consumer = consumer
        self.sent: List[str] = []

    async def send(self, body: str) -> str:
        message_id = str(uuid.uuid4())
        self.sent.append(body)
        log.info("[INLINE] crop task %s queued", message_id)
        if self.consumer is not None:
            await self.consumer(QueueEnvelope.wrap(body, message_id=message_id))
        return message_id

    def drain(self) -> QueueEnvelope:
        envelope = QueueEnvelope.wrap(*self.sent)
        self.sent = []
        return envelope


class RQCropQueue(CropQueue):
    def __init__(self, queue: Queue, max_retries: int = 3):
        self.queue = queue
        self.max_retries = max_retries

    @classmethod
    def from_settings(cls, settings: Settings) -> "RQCropQueue":
        conn = Redis.from_url(settings.REDIS_URL)
        return cls(Queue(settings.CROP_QUEUE_NAME, connection=conn))

    async def send(self, body: str) -> str:
        try:
            job = await asyncio.to_thread(
                self.queue.enqueue, CROP_JOB, body, retry=Retry(max=self.max_retries)
            )
        except RedisError as exc:
            raise EnqueueError("failed to enqueue crop task", queue=self.queue.name) from exc
        log.info("Crop task queued on %s, job %s", self.queue.name, job.get_id())
        return job.get_id()


def build_crop_queue(settings: Settings, consumer: Optional[EnvelopeConsumer] = None) -> CropQueue:
    if settings.JOBS_BACKEND == "rq":
        log.info("Queue backend: RQ (%s)", settings.CROP_QUEUE_NAME)
        return RQCropQueue.from_settings(settings)
    log.info("Queue backend: inline")
    return InlineCropQueue(consumer)
