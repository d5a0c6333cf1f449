"""End-to-end: upload notification -> crop -> label -> find."""

import json

from conftest import make_jpeg
from facetagger.models import Face, Relation
from facetagger.schemas.events import ObjectEventBatch
from facetagger.services.pipeline import build_pipeline
from facetagger.services.queue import InlineCropQueue


async def test_detect_crop_label_find(db_setup, settings, http_client, fake_http):
    queue = InlineCropQueue()
    pipeline = build_pipeline(settings, http_client, queue=queue)
    pipeline.storage.save_image("img1", make_jpeg(200, 200))
    fake_http.set_faces((0.0, 0.5, 0.0, 0.5))

    await pipeline.detection.handle_batch(ObjectEventBatch.for_object("img1"))
    assert [json.loads(b) for b in queue.sent] == [
        {"bounds": {"x": 0, "y": 0, "width": 100, "height": 100}, "objectID": "img1"}
    ]

    (face_id,) = await pipeline.cropping.handle_envelope(queue.drain())
    assert await Relation.filter(face_id=face_id, image_id="img1").count() == 1

    assert await pipeline.labeling.next_unlabeled() == face_id
    await pipeline.labeling.assign_name(face_id, "Bob")

    assert await pipeline.retrieval.find_images_by_name("Bob") == ["img1"]
    assert await pipeline.labeling.next_unlabeled() is None


async def test_inline_backend_crops_immediately(db_setup, settings, http_client, fake_http):
    pipeline = build_pipeline(settings, http_client)
    pipeline.storage.save_image("group.jpg", make_jpeg(300, 100))
    fake_http.set_faces((0.0, 0.2, 0.0, 1.0), (0.4, 0.6, 0.0, 1.0), (0.8, 1.0, 0.0, 1.0))

    tasks = await pipeline.detection.handle_batch(ObjectEventBatch.for_object("group.jpg"))

    assert len(tasks) == 3
    assert await Face.filter(face_name__isnull=True).count() == 3
    assert await Relation.filter(image_id="group.jpg").count() == 3
