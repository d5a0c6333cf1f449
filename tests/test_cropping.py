from io import BytesIO

import pytest
from PIL import Image

from conftest import make_jpeg, make_png
from facetagger.errors import PersistError, StoreError
from facetagger.models import Face, Relation
from facetagger.schemas.tasks import CropTask, FaceBounds, QueueEnvelope
from facetagger.services.cropping import CroppingStage, parse_envelope


def task(object_id="img1", x=0, y=0, width=100, height=100) -> CropTask:
    return CropTask(bounds=FaceBounds(x=x, y=y, width=width, height=height), object_id=object_id)


@pytest.fixture
def stage(settings, storage):
    return CroppingStage(settings, storage)


def crop_size(storage, face_id):
    with Image.open(BytesIO(storage.read_face(face_id))) as im:
        assert im.format == "JPEG"
        return im.size


async def test_creates_face_and_relation(db_setup, stage, storage):
    storage.save_image("img1", make_jpeg(200, 200))

    face_id = await stage.process(task())

    face = await Face.get(face_id=face_id)
    assert face.face_name is None
    relations = await Relation.filter(face_id=face_id).all()
    assert [r.image_id for r in relations] == ["img1"]
    assert crop_size(storage, face_id) == (100, 100)


async def test_redelivery_duplicates_rows(db_setup, stage, storage):
    storage.save_image("img1", make_jpeg(200, 200))
    envelope = QueueEnvelope.wrap(task().to_message())

    first = await stage.handle_envelope(envelope)
    second = await stage.handle_envelope(envelope)

    assert len(first) == len(second) == 1
    assert first != second
    assert await Face.all().count() == 2
    assert await Relation.filter(image_id="img1").count() == 2


async def test_missing_source_is_dropped(db_setup, stage):
    assert await stage.process(task(object_id="evicted.jpg")) is None
    assert await Face.all().count() == 0
    assert await Relation.all().count() == 0


async def test_bounds_are_clamped_to_image(db_setup, stage, storage):
    storage.save_image("img1", make_png(120, 80))

    face_id = await stage.process(task(x=100, y=60, width=50, height=50))

    assert crop_size(storage, face_id) == (20, 20)


async def test_crop_outside_image_is_dropped(db_setup, stage, storage):
    storage.save_image("img1", make_jpeg(50, 50))

    assert await stage.process(task(x=60, y=0, width=10, height=10)) is None
    assert await Face.all().count() == 0


async def test_envelope_batch_continues_past_dropped_tasks(db_setup, stage, storage):
    storage.save_image("img1", make_jpeg(100, 100))
    envelope = QueueEnvelope.wrap(
        task(object_id="missing").to_message(),
        task(width=10, height=10).to_message(),
        task(x=500).to_message(),
        task(x=50, y=50, width=50, height=50).to_message(),
    )

    face_ids = await stage.handle_envelope(envelope)

    assert len(face_ids) == 2
    assert await Relation.filter(image_id="img1").count() == 2


async def test_empty_envelope(db_setup, stage):
    assert await stage.handle_envelope(parse_envelope({"messages": []})) == []


def test_parse_envelope_unwraps_transport_shape():
    raw = {
        "messages": [
            {
                "event_metadata": {"event_id": "e1"},
                "details": {
                    "queue_id": "q1",
                    "message": {"message_id": "m1", "body": task().to_message()},
                },
            }
        ]
    }
    envelope = parse_envelope(raw)
    assert envelope.bodies() == [task().to_message()]
    assert parse_envelope(envelope.model_dump_json()).bodies() == envelope.bodies()


@pytest.mark.parametrize("raw", [
    {"messages": [{"details": {}}]},
    {"messages": "nope"},
    b"{not json",
])
def test_malformed_envelope_fails_closed(raw):
    with pytest.raises(StoreError):
        parse_envelope(raw)


@pytest.mark.parametrize("body", [
    '{"bounds": {"x": 0, "y": 0, "width": 0, "height": 10}, "objectID": "img1"}',
    '{"bounds": {"x": 0, "y": 0, "width": 10, "height": 10}}',
    "garbage",
])
async def test_malformed_task_fails_closed(db_setup, stage, body):
    with pytest.raises(StoreError):
        await stage.handle_envelope(QueueEnvelope.wrap(body))
    assert await Face.all().count() == 0


async def test_persist_failure_propagates_without_rows(db_setup, stage, storage, monkeypatch):
    storage.save_image("img1", make_jpeg(100, 100))

    def fail(face_id, data):
        raise PersistError("disk full", face_id=face_id)

    monkeypatch.setattr(storage, "save_face", fail)

    with pytest.raises(PersistError):
        await stage.process(task(width=10, height=10))
    assert await Face.all().count() == 0


async def test_unreadable_source_is_retried_not_dropped(db_setup, stage, storage):
    storage.image_path("img1").mkdir()

    with pytest.raises(StoreError):
        await stage.process(task())

    assert await Face.all().count() == 0
