from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class EventMetadata(BaseModel):
    event_id: Optional[str] = None
    event_type: Optional[str] = None
    created_at: Optional[datetime] = None


class ObjectDetails(BaseModel):
    bucket_id: Optional[str] = None
    object_id: str = Field(min_length=1)


class ObjectEvent(BaseModel):
    event_metadata: Optional[EventMetadata] = None
    details: ObjectDetails


class ObjectEventBatch(BaseModel):
    """Image-uploaded notifications delivered by the object storage trigger."""

    messages: List[ObjectEvent] = Field(default_factory=list)

    @classmethod
    def for_object(cls, object_id: str, bucket_id: Optional[str] = None) -> "ObjectEventBatch":
        return cls(messages=[
            ObjectEvent(details=ObjectDetails(bucket_id=bucket_id, object_id=object_id))
        ])
