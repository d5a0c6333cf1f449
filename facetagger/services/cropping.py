"""
Cropping stage: crop task envelope -> face crop artifact + Face/Relation rows.

Redelivery of a task creates another Face/Relation pair for the same rectangle;
there is no dedup key. The two rows are written in one transaction, but the
artifact write that precedes them is not rolled back if the rows fail.
"""

import asyncio
import logging
import uuid
from typing import List, Optional

from pydantic import ValidationError
from tortoise.exceptions import BaseORMException
from tortoise.transactions import in_transaction

from facetagger.config import Settings
from facetagger.errors import EmptyCrop, ImageDecodeError, InvalidGeometry, SourceNotFound, StoreError
from facetagger.models import Face, Relation
from facetagger.schemas.tasks import CropTask, QueueEnvelope
from facetagger.services.geometry import clamp_bounds
from facetagger.services.metrics import record_crop
from facetagger.services.observability import trace_operation
from facetagger.services.storage import LocalStorage
from facetagger.utils.imaging import crop_to_jpeg, image_size

log = logging.getLogger("facetagger.cropping")


def parse_envelope(raw: bytes | str | dict) -> QueueEnvelope:
    try:
        if isinstance(raw, dict):
            return QueueEnvelope.model_validate(raw)
        return QueueEnvelope.model_validate_json(raw)
    except ValidationError as exc:
        raise StoreError("malformed queue envelope") from exc


def parse_task(body: str) -> CropTask:
    try:
        return CropTask.model_validate_json(body)
    except ValidationError as exc:
        raise StoreError("malformed crop task", body=body[:200]) from exc


class CroppingStage:
    def __init__(self, settings: Settings, storage: LocalStorage):
        self.settings = settings
        self.storage = storage

    async def handle_envelope(self, envelope: QueueEnvelope) -> List[str]:
        """Process zero or more crop tasks; returns the ids of the faces created."""
        tasks = [parse_task(body) for body in envelope.bodies()]
        face_ids: List[str] = []
        for task in tasks:
            face_id = await self.process(task)
            if face_id:
                face_ids.append(face_id)
        return face_ids

    async def process(self, task: CropTask) -> Optional[str]:
        """Crop and persist one face. Returns None when the task is dropped."""
        with trace_operation("cropping.process", object_id=task.object_id):
            try:
                source = self.storage.read_image(task.object_id)
                face_bytes = await asyncio.to_thread(self._crop, source, task)
            except (SourceNotFound, ImageDecodeError, EmptyCrop) as exc:
                record_crop("skipped")
                log.warning("Dropping crop task for %s: %s", task.object_id, exc)
                return None

            face_id = str(uuid.uuid4())
            self.storage.save_face(face_id, face_bytes)
            await self._record(face_id, task.object_id)
            record_crop("created")
            log.info("Face %s extracted from %s at %s", face_id, task.object_id, task.bounds.box)
            return face_id

    def _crop(self, source: bytes, task: CropTask) -> bytes:
        width, height = image_size(source)
        try:
            box = clamp_bounds(task.bounds, width, height)
        except InvalidGeometry as exc:
            raise EmptyCrop("crop is empty after clamping", object_id=task.object_id) from exc
        return crop_to_jpeg(source, box, quality=self.settings.FACE_IMAGE_QUALITY)

    async def _record(self, face_id: str, image_id: str):
        try:
            async with in_transaction() as conn:
                face = await Face.create(face_id=face_id, face_name=None, using_db=conn)
                await Relation.create(image_id=image_id, face=face, using_db=conn)
        except BaseORMException as exc:
            raise StoreError("failed to record face", face_id=face_id, image_id=image_id) from exc
