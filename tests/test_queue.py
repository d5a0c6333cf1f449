import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from facetagger.errors import EnqueueError, StoreError
from facetagger.schemas.tasks import QueueEnvelope
from facetagger.services.queue import CROP_JOB, InlineCropQueue, RQCropQueue, build_crop_queue


class FakeJob:
    def __init__(self, job_id):
        self.job_id = job_id

    def get_id(self):
        return self.job_id


@pytest.fixture
def rq_queue(settings):
    settings.JOBS_BACKEND = "rq"
    settings.REDIS_URL = "redis://localhost:6399/0"
    queue = build_crop_queue(settings)
    assert isinstance(queue, RQCropQueue)
    return queue


async def test_rq_send_enqueues_crop_job(rq_queue, monkeypatch):
    calls = []

    def enqueue(func, *args, **kwargs):
        calls.append((func, args, kwargs))
        return FakeJob("job-1")

    monkeypatch.setattr(rq_queue.queue, "enqueue", enqueue)

    assert await rq_queue.send('{"objectID": "img1"}') == "job-1"
    ((func, args, kwargs),) = calls
    assert func == CROP_JOB
    assert args == ('{"objectID": "img1"}',)
    assert kwargs["retry"].max == 3


async def test_rq_send_maps_redis_errors(rq_queue, monkeypatch):
    def enqueue(*args, **kwargs):
        raise RedisConnectionError("connection refused")

    monkeypatch.setattr(rq_queue.queue, "enqueue", enqueue)

    with pytest.raises(EnqueueError) as exc_info:
        await rq_queue.send("{}")
    assert exc_info.value.status_code == 503
    assert exc_info.value.context["queue"] == "face-crops"


async def test_inline_send_hands_each_body_to_consumer():
    received = []

    async def consumer(envelope: QueueEnvelope):
        received.append(envelope.bodies())

    queue = InlineCropQueue(consumer)
    message_id = await queue.send("a")
    await queue.send("b")

    assert received == [["a"], ["b"]]
    assert message_id
    assert queue.drain().bodies() == ["a", "b"]
    assert queue.sent == []


async def test_inline_consumer_errors_fail_the_send():
    async def consumer(envelope):
        raise StoreError("store unreachable")

    queue = InlineCropQueue(consumer)

    with pytest.raises(StoreError):
        await queue.send("a")
    assert queue.sent == ["a"]
