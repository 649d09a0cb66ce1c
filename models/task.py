# FILE: models/task.py
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.intent import ActionIntentTag
from core.task_state import TaskStatus, TaskType
from models.bookings import parse_response


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Task(BaseModel):
    """
    Immutable snapshot of one tracked action.

    Only services.task_registry.TaskRegistry produces new snapshots;
    every transition replaces the stored snapshot with a copy.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique task id, never reused")
    task_type: TaskType = Field(default=TaskType.GENERIC)
    status: TaskStatus = Field(default=TaskStatus.PENDING)
    title: str
    description: str = Field(default="")
    api_response: Optional[Dict[str, Any]] = Field(None, description="Provider record, set once on success")
    error_message: Optional[str] = Field(None, description="Failure reason, set once on failure")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    intent: Optional[ActionIntentTag] = Field(None, description="Action that produced the task")
    suggested: bool = Field(default=False, description="Advisory task from the suggestion engine")

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal()

    def typed_response(self) -> Any:
        if self.api_response is None:
            return None
        return parse_response(self.task_type, self.api_response)
