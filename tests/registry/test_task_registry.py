import threading
from datetime import timedelta

import pytest

from core.errors import InvalidTransition, TaskNotFound
from core.intent import ActionIntentTag
from core.task_state import TaskStatus, TaskType
from services.task_registry import TaskRegistry


# ---------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------

def test_create_starts_pending_with_equal_timestamps(registry):
    task = registry.create(TaskType.HOTEL, "Hotel booking", "location: Paris", intent=ActionIntentTag.HOTEL_BOOKING)

    assert task.id == "task-1"
    assert task.status is TaskStatus.PENDING
    assert task.task_type is TaskType.HOTEL
    assert task.api_response is None
    assert task.error_message is None
    assert task.created_at == task.updated_at
    assert task.intent is ActionIntentTag.HOTEL_BOOKING
    assert registry.get(task.id) == task


def test_ids_are_unique_under_concurrent_creation():
    registry = TaskRegistry()
    ids = []
    lock = threading.Lock()

    def worker():
        for _ in range(50):
            task = registry.create(TaskType.GENERIC, "t")
            with lock:
                ids.append(task.id)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(ids) == 400
    assert len(set(ids)) == 400
    assert len(registry) == 400


def test_custom_id_prefix():
    registry = TaskRegistry(id_prefix="aura")
    assert registry.create(TaskType.RIDE, "Ride").id == "aura-1"


# ---------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------

def test_complete_sets_response_and_bumps_updated_at(registry):
    task = registry.create(TaskType.HOTEL, "Hotel booking")
    processing = registry.mark_processing(task.id)
    done = registry.complete(task.id, {"bookingId": "H123"})

    assert processing.status is TaskStatus.PROCESSING
    assert done.status is TaskStatus.COMPLETED
    assert done.api_response == {"bookingId": "H123"}
    assert done.error_message is None
    assert done.updated_at >= done.created_at
    assert done.created_at == task.created_at


def test_fail_sets_message_only(registry):
    task = registry.create(TaskType.FLIGHT, "Flight booking")
    registry.mark_processing(task.id)
    failed = registry.fail(task.id, "timeout")

    assert failed.status is TaskStatus.FAILED
    assert failed.error_message == "timeout"
    assert failed.api_response is None


def test_pending_can_resolve_without_processing(registry):
    task = registry.create(TaskType.GENERIC, "Quick")
    assert registry.complete(task.id, {}).status is TaskStatus.COMPLETED


@pytest.mark.parametrize("finish", ["complete", "fail"])
def test_terminal_tasks_never_change(registry, finish):
    task = registry.create(TaskType.RIDE, "Ride")
    if finish == "complete":
        terminal = registry.complete(task.id, {"rideId": "R1"})
    else:
        terminal = registry.fail(task.id, "no drivers")

    with pytest.raises(InvalidTransition):
        registry.complete(task.id, {"rideId": "R2"})
    with pytest.raises(InvalidTransition):
        registry.fail(task.id, "late failure")
    with pytest.raises(InvalidTransition):
        registry.mark_processing(task.id)

    assert registry.get(task.id) == terminal


def test_processing_twice_is_rejected(registry):
    task = registry.create(TaskType.HOTEL, "Hotel booking")
    registry.mark_processing(task.id)

    with pytest.raises(InvalidTransition) as exc:
        registry.mark_processing(task.id)

    assert exc.value.current is TaskStatus.PROCESSING


def test_complete_requires_payload(registry):
    task = registry.create(TaskType.HOTEL, "Hotel booking")
    with pytest.raises(ValueError):
        registry.complete(task.id, None)
    assert registry.get(task.id).status is TaskStatus.PENDING


def test_unknown_task_raises_not_found(registry):
    with pytest.raises(TaskNotFound):
        registry.get("task-99")
    with pytest.raises(TaskNotFound):
        registry.fail("task-99", "nope")


# ---------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------

def test_list_is_newest_first(registry):
    first = registry.create(TaskType.GENERIC, "first")
    second = registry.create(TaskType.GENERIC, "second")
    third = registry.create(TaskType.GENERIC, "third")

    # Transitions do not reorder the list
    registry.complete(first.id, {})

    assert [t.id for t in registry.list()] == [third.id, second.id, first.id]


def test_list_orders_by_created_at(registry):
    old = registry.create(TaskType.GENERIC, "old")
    new = registry.create(TaskType.GENERIC, "new")

    # Force an explicit created_at order opposite to creation order
    registry._tasks[old.id] = old.model_copy(update={"created_at": new.created_at + timedelta(seconds=5)})

    assert [t.id for t in registry.list()] == [old.id, new.id]


# ---------------------------------------------------------------------
# Subscriptions
# ---------------------------------------------------------------------

def test_subscriber_sees_every_change_in_order(registry):
    seen = []
    sub = registry.subscribe(lambda task: seen.append((task.id, task.status)))

    task = registry.create(TaskType.HOTEL, "Hotel booking")
    registry.mark_processing(task.id)
    registry.complete(task.id, {"bookingId": "H123"})

    assert sub.flush(timeout=2)
    assert seen == [
        (task.id, TaskStatus.PENDING),
        (task.id, TaskStatus.PROCESSING),
        (task.id, TaskStatus.COMPLETED),
    ]
    sub.unsubscribe()


def test_unsubscribe_stops_notifications(registry):
    seen = []
    sub = registry.subscribe(lambda task: seen.append(task.id))

    a = registry.create(TaskType.GENERIC, "a")
    b = registry.create(TaskType.GENERIC, "b")
    assert sub.flush(timeout=2)
    assert seen == [a.id, b.id]

    sub.unsubscribe()
    registry.create(TaskType.GENERIC, "c")
    registry.complete(a.id, {})

    assert seen == [a.id, b.id]
    assert not sub.active


def test_failing_listener_does_not_break_registry(registry):
    calls = []

    def listener(task):
        calls.append(task.id)
        raise RuntimeError("listener bug")

    sub = registry.subscribe(listener)
    task = registry.create(TaskType.GENERIC, "x")
    registry.complete(task.id, {})

    assert sub.flush(timeout=2)
    assert calls == [task.id, task.id]
    assert registry.get(task.id).status is TaskStatus.COMPLETED
    sub.unsubscribe()


def test_slow_listener_does_not_block_writers(registry):
    release = threading.Event()
    sub = registry.subscribe(lambda task: release.wait(timeout=5))

    # Would deadlock if delivery were synchronous
    for i in range(5):
        registry.create(TaskType.GENERIC, f"t{i}")
    assert len(registry) == 5

    release.set()
    assert sub.flush(timeout=5)
    sub.unsubscribe()
