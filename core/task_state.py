# core/task_state.py
from enum import Enum


class TaskStatus(str, Enum):
    """
    The authoritative lifecycle state of a task.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    # -----------------------------
    # Semantic helpers (SAFE)
    # -----------------------------
    def is_terminal(self) -> bool:
        return self in {TaskStatus.COMPLETED, TaskStatus.FAILED}

    def can_move_to(self, target: "TaskStatus") -> bool:
        return target in ALLOWED_TRANSITIONS[self]


# Monotone: pending -> processing -> {completed | failed}
ALLOWED_TRANSITIONS = {
    TaskStatus.PENDING: {TaskStatus.PROCESSING, TaskStatus.COMPLETED, TaskStatus.FAILED},
    TaskStatus.PROCESSING: {TaskStatus.COMPLETED, TaskStatus.FAILED},
    TaskStatus.COMPLETED: set(),
    TaskStatus.FAILED: set(),
}


class TaskType(str, Enum):
    RESTAURANT = "restaurant"
    HOTEL = "hotel"
    FLIGHT = "flight"
    RIDE = "ride"
    ECOMMERCE = "ecommerce"
    GENERIC = "generic"

    @property
    def label(self) -> str:
        return TASK_TYPE_LABELS[self]


TASK_TYPE_LABELS = {
    TaskType.RESTAURANT: "Food Order",
    TaskType.HOTEL: "Hotel Booking",
    TaskType.FLIGHT: "Flight Booking",
    TaskType.RIDE: "Ride Booking",
    TaskType.ECOMMERCE: "Online Order",
    TaskType.GENERIC: "Task",
}
