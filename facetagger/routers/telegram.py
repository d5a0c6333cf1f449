from fastapi import APIRouter, Depends

from facetagger.schemas.telegram import Update
from facetagger.services.pipeline import Pipeline, get_pipeline

router = APIRouter(prefix="/telegram", tags=["telegram"])


@router.post("/webhook")
async def telegram_webhook(update: Update, pipeline: Pipeline = Depends(get_pipeline)):
    await pipeline.chatbot.handle_update(update)
    return {"ok": True}
