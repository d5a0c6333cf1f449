from fastapi import APIRouter, Body, Depends

from facetagger.schemas.events import ObjectEventBatch
from facetagger.schemas.image import CropOut, DetectionOut
from facetagger.services.cropping import parse_envelope
from facetagger.services.pipeline import Pipeline, get_pipeline

router = APIRouter(prefix="/triggers", tags=["triggers"])


@router.post("/image-uploaded", response_model=DetectionOut)
async def image_uploaded(batch: ObjectEventBatch, pipeline: Pipeline = Depends(get_pipeline)):
    """
    Object-storage trigger. Provider or queue failures surface as 5xx so the
    trigger redelivers the batch.
    """
    tasks = await pipeline.detection.handle_batch(batch)
    return DetectionOut(notifications=len(batch.messages), crop_tasks=len(tasks))


@router.post("/crop-tasks", response_model=CropOut)
async def crop_tasks(payload: dict = Body(...), pipeline: Pipeline = Depends(get_pipeline)):
    """Queue trigger delivering a batch of serialized crop tasks."""
    envelope = parse_envelope(payload)
    face_ids = await pipeline.cropping.handle_envelope(envelope)
    return CropOut(messages=len(envelope.messages), face_ids=face_ids)
