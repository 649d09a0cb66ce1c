import asyncio
from datetime import date
from unittest.mock import patch

import pytest

from core.errors import IncompleteRequest, ProviderRejected, ProviderUnavailable, UnroutableIntent
from core.intent import ActionIntent, ActionIntentTag
from core.task_state import TaskStatus, TaskType
from executors.action import ActionExecutor
from models.bookings import HotelBookingResponse
from services.dispatcher import ActionDispatcher, Route
from services.request_builders import build_hotel
from services.routes import ROUTE_SPECS, build_dispatcher, default_providers
from task_doubles import StubProvider, hotel_dispatcher, hotel_intent


# ---------------------------------------------------------------------
# Tracked round trip
# ---------------------------------------------------------------------

def test_hotel_booking_completes_task(registry, action_executor, stub_provider):
    task, result = asyncio.run(action_executor.run(hotel_intent()))

    assert result.succeeded
    assert task.status is TaskStatus.COMPLETED
    assert task.task_type is TaskType.HOTEL
    assert task.api_response["bookingId"] == "H123"
    assert task.intent is ActionIntentTag.HOTEL_BOOKING

    request = stub_provider.requests[0]
    assert request.location == "Paris"
    assert request.nights == 2

    typed = task.typed_response()
    assert isinstance(typed, HotelBookingResponse)
    assert typed.bookingId == "H123"
    assert typed.hotelName == "Grand Plaza Paris"


def test_provider_timeout_fails_task(registry):
    provider = StubProvider(error=ProviderUnavailable("timeout"))
    executor = ActionExecutor(hotel_dispatcher(provider), registry)

    task, result = asyncio.run(executor.run(hotel_intent()))

    assert not result.succeeded
    assert task.status is TaskStatus.FAILED
    assert "timeout" in task.error_message
    assert task.api_response is None


def test_provider_rejection_carries_reason(registry):
    provider = StubProvider(error=ProviderRejected("No rooms left"))
    executor = ActionExecutor(hotel_dispatcher(provider), registry)

    reply = asyncio.run(executor.execute(hotel_intent()))

    assert reply.task.status is TaskStatus.FAILED
    assert reply.task.error_message == "No rooms left"
    assert "No rooms left" in reply.message
    assert "try again" in reply.message


def test_slow_provider_hits_dispatcher_timeout(registry):
    provider = StubProvider(payload={"bookingId": "late"}, delay=1.0)
    executor = ActionExecutor(hotel_dispatcher(provider, timeout=0.05), registry)

    task, result = asyncio.run(executor.run(hotel_intent()))

    assert task.status is TaskStatus.FAILED
    assert "timeout" in task.error_message


def test_unexpected_provider_bug_becomes_failure(registry):
    provider = StubProvider(error=KeyError("bookingId"))
    executor = ActionExecutor(hotel_dispatcher(provider), registry)

    task, result = asyncio.run(executor.run(hotel_intent()))

    assert task.status is TaskStatus.FAILED
    assert result.error


def test_every_transition_is_published_in_order(registry, action_executor):
    seen = []
    sub = registry.subscribe(lambda t: seen.append(t.status))

    asyncio.run(action_executor.run(hotel_intent()))

    assert sub.flush(timeout=2)
    assert seen == [TaskStatus.PENDING, TaskStatus.PROCESSING, TaskStatus.COMPLETED]
    sub.unsubscribe()


def test_abandoned_turn_still_resolves_task(registry):
    provider = StubProvider(payload={"bookingId": "H9"}, delay=0.1)
    executor = ActionExecutor(hotel_dispatcher(provider), registry)

    async def scenario():
        turn = asyncio.ensure_future(executor.run(hotel_intent()))
        await asyncio.sleep(0.02)
        turn.cancel()
        with pytest.raises(asyncio.CancelledError):
            await turn
        await executor.drain()

    asyncio.run(scenario())

    [task] = registry.list()
    assert task.status is TaskStatus.COMPLETED
    assert task.api_response == {"bookingId": "H9"}


# ---------------------------------------------------------------------
# Contract errors: raised before any task exists
# ---------------------------------------------------------------------

def test_unroutable_intent_creates_no_task(registry):
    executor = ActionExecutor(ActionDispatcher(), registry)
    intent = ActionIntent(tag=ActionIntentTag.RIDE_BOOKING, raw_text="Get me a cab to the airport")

    with pytest.raises(UnroutableIntent):
        asyncio.run(executor.run(intent))

    assert registry.list() == []


def test_incomplete_request_creates_no_task(registry, stub_provider):
    dispatcher = build_dispatcher({ActionIntentTag.FLIGHT_BOOKING: stub_provider})
    executor = ActionExecutor(dispatcher, registry)
    intent = ActionIntent(tag=ActionIntentTag.FLIGHT_BOOKING, raw_text="Book me a flight")

    with pytest.raises(IncompleteRequest) as exc:
        asyncio.run(executor.run(intent))

    assert exc.value.field == "origin"
    assert exc.value.tag is ActionIntentTag.FLIGHT_BOOKING
    assert registry.list() == []
    assert stub_provider.requests == []


def test_unreadable_check_in_slot_creates_no_task(registry, action_executor, stub_provider):
    with pytest.raises(IncompleteRequest) as exc:
        asyncio.run(action_executor.run(hotel_intent(check_in="sometime soon")))

    assert exc.value.field == "check_in"
    assert registry.list() == []
    assert stub_provider.requests == []


def test_relative_check_in_slot_is_resolved(registry, action_executor, stub_provider):
    with patch("services.request_builders.get_today", return_value=date(2026, 3, 10)):
        task, _ = asyncio.run(action_executor.run(hotel_intent(check_in="next Friday")))

    assert task.status is TaskStatus.COMPLETED
    assert stub_provider.requests[0].check_in == "2026-03-13"


def test_slots_fill_missing_fields(registry, stub_provider):
    dispatcher = build_dispatcher({ActionIntentTag.FLIGHT_BOOKING: stub_provider})
    executor = ActionExecutor(dispatcher, registry)
    intent = ActionIntent(
        tag=ActionIntentTag.FLIGHT_BOOKING,
        raw_text="Book me a flight",
        slots={"origin": "Delhi", "destination": "Mumbai"},
    )

    task, _ = asyncio.run(executor.run(intent))

    assert task.task_type is TaskType.FLIGHT
    assert stub_provider.requests[0].origin == "Delhi"


def test_plain_reply_cannot_be_routed():
    dispatcher = ActionDispatcher()
    route = Route(task_type=TaskType.GENERIC, provider=StubProvider(), build_request=build_hotel, title="x")
    with pytest.raises(ValueError):
        dispatcher.register(ActionIntentTag.PLAIN_REPLY, route)


# ---------------------------------------------------------------------
# Routing table
# ---------------------------------------------------------------------

def test_every_action_tag_has_a_route():
    routable = {tag for tag in ActionIntentTag if tag is not ActionIntentTag.PLAIN_REPLY}
    assert set(ROUTE_SPECS) == routable
    assert set(default_providers(latency=0)) == routable


@pytest.mark.parametrize(
    "tag, task_type",
    [
        (ActionIntentTag.FOOD_BOOKING, TaskType.RESTAURANT),
        (ActionIntentTag.RESTAURANT_ORDER, TaskType.RESTAURANT),
        (ActionIntentTag.FASTERBOOK_FOOD, TaskType.RESTAURANT),
        (ActionIntentTag.TICKET_BOOKING, TaskType.ECOMMERCE),
        (ActionIntentTag.FASTERBOOK_MOVIE, TaskType.ECOMMERCE),
        (ActionIntentTag.HOTEL_BOOKING, TaskType.HOTEL),
        (ActionIntentTag.FLIGHT_BOOKING, TaskType.FLIGHT),
        (ActionIntentTag.RIDE_BOOKING, TaskType.RIDE),
        (ActionIntentTag.FASTERBOOK_MENU, TaskType.GENERIC),
        (ActionIntentTag.FASTERBOOK_BOOKINGS, TaskType.GENERIC),
        (ActionIntentTag.IMAGE_GENERATION, TaskType.GENERIC),
    ],
)
def test_tag_maps_to_task_type(tag, task_type):
    dispatcher = build_dispatcher(default_providers(latency=0))
    assert dispatcher.routes[tag].task_type is task_type


def test_fasterbook_url_swaps_fasterbook_providers():
    providers = default_providers(latency=0, fasterbook_url="http://fasterbook.test")

    assert providers[ActionIntentTag.FASTERBOOK_FOOD].name == "fasterbook_food"
    assert providers[ActionIntentTag.FASTERBOOK_MENU].name == "fasterbook_menu"
    assert providers[ActionIntentTag.FOOD_BOOKING].name == "mock_restaurant"


def test_dispatch_without_tracking(stub_provider):
    result = asyncio.run(hotel_dispatcher(stub_provider).dispatch(hotel_intent()))

    assert result.succeeded
    assert result.kind is ActionIntentTag.HOTEL_BOOKING
    assert result.payload["bookingId"] == "H123"


def test_task_types_have_labels():
    assert TaskType.RESTAURANT.label == "Food Order"
    assert all(task_type.label for task_type in TaskType)
