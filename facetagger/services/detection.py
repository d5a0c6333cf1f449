"""
Detection stage: image-uploaded notification -> provider call -> crop tasks.
"""

import logging
from typing import Dict, List

import httpx
from pydantic import TypeAdapter, ValidationError

from facetagger.config import Settings
from facetagger.errors import (
    DetectionProviderError,
    ImageDecodeError,
    InvalidGeometry,
    SourceNotFound,
)
from facetagger.schemas.detection import DetectedFace, DetectionRequest, ProviderResult
from facetagger.schemas.events import ObjectEvent, ObjectEventBatch
from facetagger.schemas.tasks import CropTask
from facetagger.services.geometry import map_box
from facetagger.services.links import image_url
from facetagger.services.metrics import record_detected
from facetagger.services.observability import trace_operation
from facetagger.services.queue import CropQueue
from facetagger.services.storage import LocalStorage
from facetagger.utils.imaging import image_size

log = logging.getLogger("facetagger.detection")

_response_adapter = TypeAdapter(Dict[str, ProviderResult])


class DetectionClient:
    """Client for the third-party face detection API (Eden AI compatible)."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self.settings = settings
        self.http = http_client

    async def detect(self, file_url: str) -> List[DetectedFace]:
        provider = self.settings.DETECTION_PROVIDER
        payload = DetectionRequest(providers=provider, file_url=file_url)
        headers = {"Authorization": f"Bearer {self.settings.DETECTION_API_TOKEN}"}
        try:
            r = await self.http.post(
                self.settings.DETECTION_API_URL,
                json=payload.model_dump(),
                headers=headers,
                timeout=self.settings.HTTP_TIMEOUT_SECONDS,
            )
        except httpx.HTTPError as exc:
            raise DetectionProviderError("detection request failed", url=file_url) from exc

        if not r.is_success:
            raise DetectionProviderError(
                "detection provider returned an error",
                status=r.status_code,
                body=r.text[:200],
            )

        try:
            results = _response_adapter.validate_json(r.content)
        except ValidationError as exc:
            raise DetectionProviderError("malformed detection response") from exc

        result = results.get(provider)
        if result is None:
            raise DetectionProviderError("provider missing from response", provider=provider)
        if result.status == "fail":
            raise DetectionProviderError("provider reported failure", error=result.error)
        return result.items


class DetectionStage:
    def __init__(self, settings: Settings, storage: LocalStorage, client: DetectionClient, queue: CropQueue):
        self.settings = settings
        self.storage = storage
        self.client = client
        self.queue = queue

    async def handle_batch(self, batch: ObjectEventBatch) -> List[CropTask]:
        """Process every notification; returns the crop tasks that were enqueued."""
        enqueued: List[CropTask] = []
        for event in batch.messages:
            enqueued.extend(await self.handle_event(event))
        return enqueued

    async def handle_event(self, event: ObjectEvent) -> List[CropTask]:
        object_id = event.details.object_id
        with trace_operation("detection.handle_event", object_id=object_id):
            try:
                if not self.storage.image_exists(object_id):
                    raise SourceNotFound("source image missing", object_id=object_id)
                width, height = image_size(self.storage.image_path(object_id))
            except (ImageDecodeError, SourceNotFound) as exc:
                log.warning("Skipping %s: %s", object_id, exc)
                return []

            faces = await self.client.detect(image_url(self.settings, object_id))
            log.info("Provider found %d face(s) in %s (%dx%d)", len(faces), object_id, width, height)

            tasks: List[CropTask] = []
            for face in faces:
                try:
                    bounds = map_box(width, height, face.bounding_box)
                except InvalidGeometry as exc:
                    record_detected("invalid")
                    log.warning("Dropping face box in %s: %s", object_id, exc)
                    continue
                record_detected("mapped")
                task = CropTask(bounds=bounds, object_id=object_id)
                message_id = await self.queue.send(task.to_message())
                log.info("Crop task %s sent for %s: %s", message_id, object_id, bounds.box)
                tasks.append(task)
            return tasks
