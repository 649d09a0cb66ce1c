# FILE: models/turn.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from models.task import Task


# -----------------------------
# Executor output (Executor -> AssistantService)
# -----------------------------
class TurnReply(BaseModel):
    type: str = Field(..., description="Intent tag, 'plain_reply' or 'error'")
    message: str
    data: Optional[Dict[str, Any]] = Field(None, description="Provider record for actions")
    task: Optional[Task] = Field(None)
    image_url: Optional[str] = Field(None)
    image_prompt: Optional[str] = Field(None)


# -----------------------------
# Turn result (AssistantService -> API)
# -----------------------------
class TurnOutcome(TurnReply):
    conversation_id: str
    suggestions: List[Task] = Field(default_factory=list)
