from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FaceBounds(BaseModel):
    """Absolute crop rectangle in source-image pixel space."""

    x: int = Field(ge=0)
    y: int = Field(ge=0)
    width: int = Field(gt=0)
    height: int = Field(gt=0)

    @property
    def box(self) -> tuple[int, int, int, int]:
        # PIL crop box: (left, upper, right, lower)
        return (self.x, self.y, self.x + self.width, self.y + self.height)


class CropTask(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bounds: FaceBounds
    object_id: str = Field(alias="objectID", min_length=1)

    def to_message(self) -> str:
        return self.model_dump_json(by_alias=True)


# Queue transport envelope: {"messages": [{"details": {"message": {"body": "..."}}}]}

class QueueMessageBody(BaseModel):
    message_id: Optional[str] = None
    body: str


class QueueMessageDetails(BaseModel):
    message: QueueMessageBody


class QueueMessage(BaseModel):
    details: QueueMessageDetails


class QueueEnvelope(BaseModel):
    messages: List[QueueMessage] = Field(default_factory=list)

    @classmethod
    def wrap(cls, *bodies: str, message_id: Optional[str] = None) -> "QueueEnvelope":
        return cls(messages=[
            QueueMessage(details=QueueMessageDetails(
                message=QueueMessageBody(message_id=message_id, body=body)
            ))
            for body in bodies
        ])

    def bodies(self) -> List[str]:
        return [m.details.message.body for m in self.messages]
