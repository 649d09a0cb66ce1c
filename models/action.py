# FILE: models/action.py
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.intent import ActionIntentTag


class ActionResult(BaseModel):
    """
    Outcome of one provider call.
    The payload is forwarded as-is; the dispatcher never interprets it.
    """

    model_config = ConfigDict(frozen=True)

    kind: ActionIntentTag
    payload: Optional[Dict[str, Any]] = Field(None)
    succeeded: bool
    error: Optional[str] = Field(None, description="Failure reason when succeeded is False")
