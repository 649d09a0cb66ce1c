# FILE: services/task_registry.py
"""
Task Registry: the single owner of Task records.

Rules:
- Only create / mark_processing / complete / fail change a task
- Transitions are monotone: pending -> processing -> {completed | failed}
- Terminal tasks never change again; attempts raise InvalidTransition
- Subscribers get one notification per creation and per transition,
  in the order the transitions happened
"""

import itertools
import logging
import threading
from collections import deque
from typing import Any, Callable, Dict, List, Optional

from core.errors import InvalidTransition, TaskNotFound
from core.intent import ActionIntentTag
from core.task_state import TaskStatus, TaskType
from models.task import Task, utc_now

logger = logging.getLogger("task_registry")

TaskListener = Callable[[Task], None]


# ---------------------------------------------------------------------
# Subscription
# ---------------------------------------------------------------------
class Subscription:
    """
    Handle returned by TaskRegistry.subscribe.

    Notifications are queued and delivered on a dedicated worker thread,
    so a slow listener never blocks the registry.
    """

    def __init__(self, registry: "TaskRegistry", listener: TaskListener, name: str):
        self._registry = registry
        self._listener = listener
        self.name = name

        self._pending: deque = deque()
        self._cond = threading.Condition()
        self._delivering = False

        # Held while the listener runs; unsubscribe waits on it
        self._call_lock = threading.RLock()
        self._active = True

        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    @property
    def active(self) -> bool:
        return self._active

    def _enqueue(self, task: Task) -> None:
        with self._cond:
            self._pending.append(task)
            self._cond.notify_all()

    def _run(self) -> None:
        while True:
            with self._cond:
                while not self._pending and self._active:
                    self._cond.wait()
                if not self._active:
                    self._pending.clear()
                    self._cond.notify_all()
                    return
                task = self._pending.popleft()
                self._delivering = True

            try:
                with self._call_lock:
                    if self._active:
                        try:
                            self._listener(task)
                        except Exception:
                            logger.exception(
                                f"[SUBSCRIBER_ERROR] subscription={self.name}, task_id={task.id}"
                            )
            finally:
                with self._cond:
                    self._delivering = False
                    self._cond.notify_all()

    def unsubscribe(self) -> None:
        """
        Stop delivery. Once this returns the listener is never called again.
        """
        with self._call_lock:
            if not self._active:
                return
            self._active = False

        self._registry._detach(self)
        with self._cond:
            self._pending.clear()
            self._cond.notify_all()

    def flush(self, timeout: Optional[float] = None) -> bool:
        """
        Block until every queued notification has been delivered.
        Returns False on timeout.
        """
        with self._cond:
            return self._cond.wait_for(
                lambda: not self._active or (not self._pending and not self._delivering),
                timeout,
            )


# ---------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------
class TaskRegistry:
    def __init__(self, id_prefix: str = "task"):
        self._id_prefix = id_prefix
        self._counter = itertools.count(1)
        self._lock = threading.RLock()

        self._tasks: Dict[str, Task] = {}
        # creation order, used to break created_at ties in list()
        self._sequence: Dict[str, int] = {}

        self._subscriptions: List[Subscription] = []
        self._subscription_ids = itertools.count(1)

    # -----------------------------
    # Reads
    # -----------------------------
    def get(self, task_id: str) -> Task:
        with self._lock:
            task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task

    def list(self) -> List[Task]:
        """Newest first by created_at."""
        with self._lock:
            tasks = list(self._tasks.values())
            sequence = dict(self._sequence)
        return sorted(
            tasks,
            key=lambda t: (t.created_at, sequence[t.id]),
            reverse=True,
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    # -----------------------------
    # Writes
    # -----------------------------
    def create(
        self,
        task_type: TaskType,
        title: str,
        description: str = "",
        *,
        intent: Optional[ActionIntentTag] = None,
        suggested: bool = False,
    ) -> Task:
        with self._lock:
            seq = next(self._counter)
            now = utc_now()
            task = Task(
                id=f"{self._id_prefix}-{seq}",
                task_type=TaskType(task_type),
                status=TaskStatus.PENDING,
                title=title,
                description=description,
                created_at=now,
                updated_at=now,
                intent=intent,
                suggested=suggested,
            )
            self._tasks[task.id] = task
            self._sequence[task.id] = seq
            self._publish(task)

        logger.info(f"[TASK_CREATED] task_id={task.id}, type={task.task_type.value}, title='{title[:80]}'")
        return task

    def mark_processing(self, task_id: str) -> Task:
        return self._transition(task_id, TaskStatus.PROCESSING)

    def complete(self, task_id: str, payload: Dict[str, Any]) -> Task:
        if payload is None:
            raise ValueError("A completed task needs a payload")
        return self._transition(task_id, TaskStatus.COMPLETED, api_response=dict(payload))

    def fail(self, task_id: str, error_message: str) -> Task:
        if not error_message:
            error_message = "Unknown error"
        return self._transition(task_id, TaskStatus.FAILED, error_message=str(error_message))

    def _transition(self, task_id: str, target: TaskStatus, **fields: Any) -> Task:
        with self._lock:
            current = self._tasks.get(task_id)
            if current is None:
                raise TaskNotFound(task_id)

            # PROCESSING -> PROCESSING is not a transition either
            if not current.status.can_move_to(target):
                logger.error(
                    f"[INVALID_TRANSITION] task_id={task_id}, "
                    f"from={current.status.value}, to={target.value}"
                )
                raise InvalidTransition(task_id, current.status, target)

            updated = current.model_copy(
                update={"status": target, "updated_at": utc_now(), **fields}
            )
            self._tasks[task_id] = updated
            self._publish(updated)

        logger.info(f"[TASK_{target.value.upper()}] task_id={task_id}")
        return updated

    # -----------------------------
    # Pub/Sub
    # -----------------------------
    def subscribe(self, listener: TaskListener) -> Subscription:
        with self._lock:
            name = f"task-subscriber-{next(self._subscription_ids)}"
            subscription = Subscription(self, listener, name)
            self._subscriptions.append(subscription)
        return subscription

    def _detach(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def _publish(self, task: Task) -> None:
        # Caller holds self._lock, so queue order == transition order
        for subscription in self._subscriptions:
            subscription._enqueue(task)
