import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from facetagger.errors import SourceNotFound
from facetagger.services.pipeline import Pipeline, get_pipeline
from facetagger.utils.imaging import sniff_mime

router = APIRouter(tags=["gateway"])
log = logging.getLogger("facetagger.gateway")


@router.get("/")
async def serve_artifact(
    face: Optional[str] = Query(default=None),
    image: Optional[str] = Query(default=None),
    pipeline: Pipeline = Depends(get_pipeline),
):
    """Stream a face crop (``?face=<id>``) or a source image (``?image=<id>``)."""
    if not face and not image:
        return Response(status_code=404)
    log.info("Serving %s=%s", "face" if face else "image", face or image)
    try:
        if face:
            data = pipeline.storage.read_face(face)
        else:
            data = pipeline.storage.read_image(image)
    except SourceNotFound:
        return Response(status_code=404)
    return Response(content=data, media_type=sniff_mime(data))
