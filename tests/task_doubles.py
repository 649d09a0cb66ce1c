# tests/task_doubles.py
import asyncio

from core.intent import ActionIntent, ActionIntentTag
from core.task_state import TaskType
from providers.base import CapabilityProvider
from services.dispatcher import ActionDispatcher, Route
from services.request_builders import build_hotel


class StubProvider(CapabilityProvider):
    """
    Provider double: returns `payload`, or raises `error`, after `delay`.
    """

    name = "stub"

    def __init__(self, payload=None, error=None, delay=0.0):
        self.payload = payload if payload is not None else {}
        self.error = error
        self.delay = delay
        self.requests = []

    async def invoke(self, request):
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.payload


def hotel_intent(text="Book a hotel in Paris for 2 nights", **slots) -> ActionIntent:
    return ActionIntent(tag=ActionIntentTag.HOTEL_BOOKING, raw_text=text, slots=slots)


def hotel_dispatcher(provider: CapabilityProvider, timeout: float = 5.0) -> ActionDispatcher:
    dispatcher = ActionDispatcher(timeout=timeout)
    dispatcher.register(
        ActionIntentTag.HOTEL_BOOKING,
        Route(task_type=TaskType.HOTEL, provider=provider, build_request=build_hotel, title="Hotel booking"),
    )
    return dispatcher
