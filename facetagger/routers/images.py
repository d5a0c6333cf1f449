# facetagger/routers/images.py

import hashlib
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, File, UploadFile

from facetagger.errors import FaceTaggerError
from facetagger.schemas.events import ObjectEventBatch
from facetagger.schemas.image import UploadOut
from facetagger.services.pipeline import Pipeline, get_pipeline
from facetagger.services.upload_validate import validate_upload
from facetagger.utils.imaging import image_size

router = APIRouter(prefix="/images", tags=["images"])
log = logging.getLogger("facetagger.ingest")


async def _run_detection(pipeline: Pipeline, object_id: str):
    # background tasks have no caller to redeliver to; log and move on
    try:
        await pipeline.detection.handle_batch(ObjectEventBatch.for_object(object_id))
    except FaceTaggerError as exc:
        log.error("Detection failed for %s: %s", object_id, exc)


@router.post("/upload", response_model=UploadOut, status_code=201)
async def upload_image(
    background: BackgroundTasks,
    file: UploadFile = File(...),
    pipeline: Pipeline = Depends(get_pipeline),
):
    content, ext = await validate_upload(file, pipeline.settings.MAX_UPLOAD_SIZE_MB)
    width, height = image_size(content)

    checksum = hashlib.sha256(content).hexdigest()
    object_id = f"{checksum[:32]}.{ext}"
    if pipeline.storage.image_exists(object_id):
        return UploadOut(object_id=object_id, width=width, height=height, duplicate=True, detection_scheduled=False)

    pipeline.storage.save_image(object_id, content)
    background.add_task(_run_detection, pipeline, object_id)
    log.info("Stored upload %s as %s", file.filename, object_id)
    return UploadOut(object_id=object_id, width=width, height=height, detection_scheduled=True)
