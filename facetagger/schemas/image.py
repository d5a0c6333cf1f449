from pydantic import BaseModel
from typing import List


class UploadOut(BaseModel):
    object_id: str
    width: int
    height: int
    duplicate: bool = False
    detection_scheduled: bool


class DetectionOut(BaseModel):
    notifications: int
    crop_tasks: int


class CropOut(BaseModel):
    messages: int
    face_ids: List[str]
