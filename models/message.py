# FILE: models/message.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.task import utc_now


class Message(BaseModel):
    """
    One chat message. Read-only for the assistant core.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    conversation_id: str
    user_id: str
    author: Literal["user", "assistant"]
    content: str
    image_url: Optional[str] = Field(None)
    image_prompt: Optional[str] = Field(None)
    created_at: datetime = Field(default_factory=utc_now)


class Conversation(BaseModel):
    id: str
    user_id: str
    title: Optional[str] = Field(None)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
