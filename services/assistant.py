# FILE: services/assistant.py
"""
Turn orchestration: persist -> classify -> execute -> persist -> suggest.

Each turn is sequential. Many turns may run at once; they only share the
TaskRegistry and the conversation store.
"""

import logging
from typing import Awaitable, Callable, Optional

from core.errors import ClassifierError, IncompleteRequest, UnroutableIntent
from core.intent import ActionIntent, ActionIntentTag, ImageRequest, PlainReply
from executors.action import ActionExecutor
from executors.conversation import ConversationExecutor
from models.turn import TurnOutcome, TurnReply
from services.conversation_store import ConversationStore, InMemoryConversationStore
from services.router import classify
from services.suggestions import SuggestionEngine
from services.task_registry import TaskRegistry
from services.utils import preview

logger = logging.getLogger("assistant")

CLASSIFIER_APOLOGY = (
    "I apologize, but I encountered a brief connection issue. "
    "Please try your message again, and I'll be ready to assist you."
)
RETRY_MESSAGE = (
    "I couldn't work out all the details for that request. "
    "Please try again with a bit more information."
)


class AssistantService:
    def __init__(
        self,
        registry: TaskRegistry,
        action_executor: ActionExecutor,
        store: Optional[ConversationStore] = None,
        suggestion_engine: Optional[SuggestionEngine] = None,
        classifier: Optional[Callable[..., Awaitable]] = None,
    ):
        self.registry = registry
        self.action_executor = action_executor
        self.conversation_executor = ConversationExecutor()
        self.store = store or InMemoryConversationStore()
        self.suggestion_engine = suggestion_engine or SuggestionEngine(registry)
        self.classifier = classifier or classify

    async def handle_turn(self, conversation_id: str, user_id: str, text: str) -> TurnOutcome:
        logger.info(f"[TURN_START] conversation_id={conversation_id}, user_id={user_id}, text='{preview(text)}'")

        history = await self.store.get_messages(conversation_id)
        await self.store.add_message(conversation_id, user_id, "user", text)

        reply = await self._reply(text, history)

        await self.store.add_message(
            conversation_id,
            user_id,
            "assistant",
            reply.message,
            image_url=reply.image_url,
            image_prompt=reply.image_prompt,
        )

        # Suggestions follow every turn, failed actions included
        suggestions = await self.suggestion_engine.propose(text, reply.message)

        logger.info(
            f"[TURN_END] conversation_id={conversation_id}, type={reply.type}, "
            f"task_id={reply.task.id if reply.task else None}, suggestions={len(suggestions)}"
        )
        return TurnOutcome(
            **reply.model_dump(),
            conversation_id=conversation_id,
            suggestions=suggestions,
        )

    async def _reply(self, text: str, history) -> TurnReply:
        try:
            classification = await self.classifier(text, history)
        except ClassifierError as e:
            logger.warning(f"[CLASSIFIER_ERROR] {e}")
            return TurnReply(type="error", message=CLASSIFIER_APOLOGY)

        logger.info(f"[INTENT] kind={classification.kind}")

        if isinstance(classification, PlainReply):
            return await self.conversation_executor.execute(classification)

        if isinstance(classification, ImageRequest):
            classification = ActionIntent(
                tag=ActionIntentTag.IMAGE_GENERATION,
                raw_text=text,
                slots={"prompt": classification.prompt},
            )

        try:
            return await self.action_executor.execute(classification)
        except (UnroutableIntent, IncompleteRequest) as e:
            logger.warning(f"[ACTION_REJECTED] type={e.error_type}, detail={e}")
            return TurnReply(type="error", message=RETRY_MESSAGE)
