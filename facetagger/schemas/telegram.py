from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Chat(BaseModel):
    id: int


class PhotoSize(BaseModel):
    file_id: str
    file_unique_id: str
    width: int
    height: int


class Message(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message_id: int
    chat: Chat
    text: Optional[str] = None
    caption: Optional[str] = None
    photo: List[PhotoSize] = Field(default_factory=list)
    reply_to_message: Optional["Message"] = None


class Update(BaseModel):
    model_config = ConfigDict(extra="ignore")

    update_id: int
    message: Optional[Message] = None


class SendMessage(BaseModel):
    chat_id: int
    text: str
    reply_to_message_id: Optional[int] = None
    parse_mode: Optional[str] = "Markdown"


class SendPhoto(BaseModel):
    chat_id: int
    photo: str
    caption: Optional[str] = None
    reply_to_message_id: Optional[int] = None
    parse_mode: Optional[str] = "Markdown"


Message.model_rebuild()
