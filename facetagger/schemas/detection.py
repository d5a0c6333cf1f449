from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DetectionRequest(BaseModel):
    providers: str
    file_url: str


class BoundingBox(BaseModel):
    x_min: float
    x_max: float
    y_min: float
    y_max: float


class DetectedFace(BaseModel):
    model_config = ConfigDict(extra="ignore")

    confidence: Optional[float] = None
    bounding_box: BoundingBox


class ProviderResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: Optional[str] = None
    items: List[DetectedFace] = Field(default_factory=list)
    error: Optional[dict] = None
