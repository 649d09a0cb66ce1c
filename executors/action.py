import asyncio
import logging
from typing import Set, Tuple

from core.intent import ActionIntent, ActionIntentTag
from executors.base import BaseExecutor
from models.action import ActionResult
from models.task import Task
from models.turn import TurnReply
from services.dispatcher import ActionDispatcher, PreparedAction
from services.task_registry import TaskRegistry

logger = logging.getLogger("action_executor")

Tag = ActionIntentTag

SUCCESS_MESSAGES = {
    Tag.FOOD_BOOKING: "I've processed your food order! Here are the details:",
    Tag.TICKET_BOOKING: "I've booked your tickets! Here are the details:",
    Tag.FASTERBOOK_FOOD: "I've processed your FasterBook food order! Here are the details:",
    Tag.FASTERBOOK_MOVIE: "I've processed your FasterBook movie booking! Here are the details:",
    Tag.FASTERBOOK_BOOKINGS: "Here are your FasterBook bookings:",
    Tag.FASTERBOOK_MENU: "Here's the FasterBook menu with all available items:",
    Tag.RESTAURANT_ORDER: "Your restaurant order has been placed! Here are the details:",
    Tag.HOTEL_BOOKING: "Your hotel is booked! Here are the details:",
    Tag.FLIGHT_BOOKING: "Your flight is booked! Here are the details:",
    Tag.RIDE_BOOKING: "Your ride is on its way! Here are the details:",
}

# "I apologize, but I encountered an issue <what>. Please try again."
FAILURE_SUBJECTS = {
    Tag.FOOD_BOOKING: "processing your food order",
    Tag.TICKET_BOOKING: "booking your tickets",
    Tag.FASTERBOOK_FOOD: "with your FasterBook food order",
    Tag.FASTERBOOK_MOVIE: "with your FasterBook movie booking",
    Tag.FASTERBOOK_BOOKINGS: "retrieving your FasterBook bookings",
    Tag.FASTERBOOK_MENU: "retrieving the FasterBook menu",
    Tag.RESTAURANT_ORDER: "processing your restaurant order",
    Tag.HOTEL_BOOKING: "booking your hotel",
    Tag.FLIGHT_BOOKING: "booking your flight",
    Tag.RIDE_BOOKING: "booking your ride",
    Tag.IMAGE_GENERATION: "generating the image",
}


def success_message(intent: ActionIntent, result: ActionResult) -> str:
    if intent.tag is Tag.IMAGE_GENERATION:
        prompt = (result.payload or {}).get("prompt", intent.raw_text)
        return f"I've generated an image based on your request: \"{prompt}\""
    return SUCCESS_MESSAGES.get(intent.tag, "Done! Here are the details:")


def failure_message(intent: ActionIntent, error: str) -> str:
    subject = FAILURE_SUBJECTS.get(intent.tag, "with your request")
    return f"I apologize, but I encountered an issue {subject}: {error}. Please try again."


class ActionExecutor(BaseExecutor):
    """
    Runs one action intent as a tracked task:
    create -> processing -> exactly one of complete / fail.

    Routing and extraction errors raise before any task exists.
    """

    def __init__(self, dispatcher: ActionDispatcher, registry: TaskRegistry):
        self.dispatcher = dispatcher
        self.registry = registry
        # Keeps shielded jobs alive if their turn is abandoned
        self._inflight: Set[asyncio.Future] = set()

    async def run(self, intent: ActionIntent) -> Tuple[Task, ActionResult]:
        prepared = self.dispatcher.prepare(intent)

        task = self.registry.create(
            prepared.task_type,
            prepared.title,
            prepared.description,
            intent=intent.tag,
        )

        job = asyncio.ensure_future(self._resolve(task.id, prepared))
        self._inflight.add(job)
        job.add_done_callback(self._inflight.discard)

        # The caller may be cancelled; the job still resolves the task
        return await asyncio.shield(job)

    async def _resolve(self, task_id: str, prepared: PreparedAction) -> Tuple[Task, ActionResult]:
        self.registry.mark_processing(task_id)
        try:
            result = await self.dispatcher.invoke(prepared)
        except asyncio.CancelledError:
            self.registry.fail(task_id, "Action was cancelled before it finished")
            raise
        except Exception as e:
            self.registry.fail(task_id, f"Unexpected error: {e}")
            raise

        if result.succeeded:
            task = self.registry.complete(task_id, result.payload or {})
        else:
            task = self.registry.fail(task_id, result.error or "Action failed")
            logger.warning(f"[TASK_FAILED] task_id={task_id}, tag={prepared.intent.tag.value}, error={result.error}")
        return task, result

    async def execute(self, intent: ActionIntent) -> TurnReply:
        task, result = await self.run(intent)

        if not result.succeeded:
            return TurnReply(
                type=intent.tag.value,
                message=failure_message(intent, result.error or "unknown error"),
                task=task,
            )

        payload = result.payload or {}
        reply = TurnReply(
            type=intent.tag.value,
            message=success_message(intent, result),
            data=payload,
            task=task,
        )
        if intent.tag is Tag.IMAGE_GENERATION:
            reply.image_url = payload.get("imageUrl")
            reply.image_prompt = payload.get("prompt")
        return reply

    async def drain(self) -> None:
        """Wait for every in-flight action (used on shutdown)."""
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)
