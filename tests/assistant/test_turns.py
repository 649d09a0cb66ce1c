import asyncio
from unittest.mock import AsyncMock

import pytest

from core.errors import ClassifierError, ProviderUnavailable
from core.intent import ActionIntent, ActionIntentTag, ImageRequest, PlainReply
from core.task_state import TaskStatus, TaskType
from executors.action import ActionExecutor
from providers.image import ImageGenerationProvider
from services.assistant import CLASSIFIER_APOLOGY, RETRY_MESSAGE, AssistantService
from services.conversation_store import InMemoryConversationStore
from services.routes import build_dispatcher
from services.suggestions import SuggestionEngine
from task_doubles import StubProvider


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def _service(registry, classification=None, classifier_error=None, suggestions=(), providers=None):
    classifier = AsyncMock(return_value=classification, side_effect=classifier_error)
    generator = AsyncMock(return_value=list(suggestions))
    dispatcher = build_dispatcher(providers or {})
    service = AssistantService(
        registry,
        ActionExecutor(dispatcher, registry),
        store=InMemoryConversationStore(),
        suggestion_engine=SuggestionEngine(registry, generator=generator),
        classifier=classifier,
    )
    return service, classifier, generator


def _turn(service, text, conversation_id="conv-1"):
    return asyncio.run(service.handle_turn(conversation_id, "user-1", text))


# ---------------------------------------------------------------------
# Plain replies
# ---------------------------------------------------------------------

def test_plain_reply_creates_no_task(registry):
    service, _, _ = _service(registry, PlainReply(text="The weather is sunny"))

    outcome = _turn(service, "What's the weather like?")

    assert outcome.type == "plain_reply"
    assert outcome.message == "The weather is sunny"
    assert outcome.task is None
    assert registry.list() == []


def test_messages_are_persisted_in_order(registry):
    service, classifier, _ = _service(registry, PlainReply(text="Hi there!"))

    _turn(service, "Hello")
    _turn(service, "Still there?")

    messages = asyncio.run(service.store.get_messages("conv-1"))
    assert [(m.author, m.content) for m in messages] == [
        ("user", "Hello"),
        ("assistant", "Hi there!"),
        ("user", "Still there?"),
        ("assistant", "Hi there!"),
    ]

    # Second turn is classified with the first exchange as history
    history = classifier.await_args_list[1].args[1]
    assert [m.content for m in history] == ["Hello", "Hi there!"]


# ---------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------

def test_action_turn_tracks_a_task(registry):
    provider = StubProvider(payload={"rideId": "R1", "driverName": "Maria", "vehicleType": "SUV", "fare": 12.0})
    intent = ActionIntent(tag=ActionIntentTag.RIDE_BOOKING, raw_text="Get me a cab to the station")
    service, _, _ = _service(registry, intent, providers={ActionIntentTag.RIDE_BOOKING: provider})

    outcome = _turn(service, intent.raw_text)

    assert outcome.type == "ride_booking"
    assert outcome.message == "Your ride is on its way! Here are the details:"
    assert outcome.data["rideId"] == "R1"
    assert outcome.task.status is TaskStatus.COMPLETED
    assert outcome.task.task_type is TaskType.RIDE
    assert registry.get(outcome.task.id).api_response["rideId"] == "R1"


def test_image_request_runs_as_image_action(registry):
    service, _, _ = _service(
        registry,
        ImageRequest(prompt="a cat astronaut"),
        providers={ActionIntentTag.IMAGE_GENERATION: ImageGenerationProvider(base_url="https://img.test")},
    )

    outcome = _turn(service, "Draw a cat astronaut")

    assert outcome.type == "image_generation"
    assert outcome.image_prompt == "a cat astronaut"
    assert outcome.image_url.startswith("https://img.test/prompt/a%20cat%20astronaut")
    assert outcome.task.task_type is TaskType.GENERIC

    reply = asyncio.run(service.store.get_messages("conv-1"))[-1]
    assert reply.image_url == outcome.image_url


def test_incomplete_request_asks_to_retry_without_task(registry):
    intent = ActionIntent(tag=ActionIntentTag.FLIGHT_BOOKING, raw_text="Book me a flight")
    service, _, _ = _service(registry, intent, providers={ActionIntentTag.FLIGHT_BOOKING: StubProvider()})

    outcome = _turn(service, intent.raw_text)

    assert outcome.type == "error"
    assert outcome.message == RETRY_MESSAGE
    assert outcome.task is None
    assert registry.list() == []


def test_unroutable_intent_asks_to_retry(registry):
    intent = ActionIntent(tag=ActionIntentTag.HOTEL_BOOKING, raw_text="Book a hotel in Rome")
    service, _, _ = _service(registry, intent)

    outcome = _turn(service, intent.raw_text)

    assert outcome.type == "error"
    assert registry.list() == []


# ---------------------------------------------------------------------
# Classifier failures and suggestions
# ---------------------------------------------------------------------

def test_classifier_failure_returns_apology(registry):
    service, _, _ = _service(registry, classifier_error=ClassifierError("model unavailable"))

    outcome = _turn(service, "Hello?")

    assert outcome.type == "error"
    assert outcome.message == CLASSIFIER_APOLOGY
    assert registry.list() == []


def test_suggestions_follow_failed_actions(registry):
    provider = StubProvider(error=ProviderUnavailable("down"))
    intent = ActionIntent(tag=ActionIntentTag.HOTEL_BOOKING, raw_text="Book a hotel in Rome")
    service, _, generator = _service(
        registry,
        intent,
        suggestions=["Try a different hotel"],
        providers={ActionIntentTag.HOTEL_BOOKING: provider},
    )

    outcome = _turn(service, intent.raw_text)

    assert outcome.task.status is TaskStatus.FAILED
    assert [s.title for s in outcome.suggestions] == ["Try a different hotel"]
    assert outcome.suggestions[0].status is TaskStatus.PENDING
    generator.assert_awaited_once_with(intent.raw_text, outcome.message)


@pytest.mark.parametrize("classification", [PlainReply(text="Sure!"), None])
def test_suggestions_run_on_every_turn(registry, classification):
    error = ClassifierError("down") if classification is None else None
    service, _, generator = _service(registry, classification, classifier_error=error, suggestions=["Plan a trip"])

    outcome = _turn(service, "hello")

    generator.assert_awaited_once()
    assert len(outcome.suggestions) == 1
    assert outcome.suggestions[0].suggested
