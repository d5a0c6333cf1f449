from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import Request

from facetagger.config import Settings
from facetagger.services.chatbot import ChatBot
from facetagger.services.cropping import CroppingStage
from facetagger.services.detection import DetectionClient, DetectionStage
from facetagger.services.labeling import LabelingService
from facetagger.services.queue import CropQueue, build_crop_queue
from facetagger.services.retrieval import RetrievalService
from facetagger.services.storage import LocalStorage
from facetagger.services.telegram import TelegramClient


@dataclass
class Pipeline:
    """Components wired once per process around shared clients."""

    settings: Settings
    storage: LocalStorage
    queue: CropQueue
    detection: DetectionStage
    cropping: CroppingStage
    labeling: LabelingService
    retrieval: RetrievalService
    chatbot: ChatBot


def build_pipeline(
    settings: Settings,
    http_client: httpx.AsyncClient,
    queue: Optional[CropQueue] = None,
) -> Pipeline:
    storage = LocalStorage.from_settings(settings)
    cropping = CroppingStage(settings, storage)
    if queue is None:
        # inline backend hands each message straight to the cropping stage
        queue = build_crop_queue(settings, consumer=cropping.handle_envelope)
    detection = DetectionStage(settings, storage, DetectionClient(settings, http_client), queue)
    labeling = LabelingService()
    retrieval = RetrievalService()
    chatbot = ChatBot(settings, TelegramClient(settings, http_client), labeling, retrieval)
    return Pipeline(
        settings=settings,
        storage=storage,
        queue=queue,
        detection=detection,
        cropping=cropping,
        labeling=labeling,
        retrieval=retrieval,
        chatbot=chatbot,
    )


def get_pipeline(request: Request) -> Pipeline:
    return request.app.state.pipeline
