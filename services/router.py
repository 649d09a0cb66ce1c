# services/router.py
"""
Intent Classifier adapter.

Forwards the message (and recent history) to the router agent and turns
its decision into exactly one ClassificationResult. No local heuristics.
Anything that goes wrong surfaces as ClassifierError.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence, Union

from agents.conversation_agent import handle_conversation, render_prompt
from agents.router_agent import RouteDecision, get_router_agent
from config import CLASSIFIER_HISTORY_LIMIT, CLASSIFIER_TIMEOUT_SECONDS
from core.errors import ClassifierError
from core.intent import ActionIntent, ActionIntentTag, ImageRequest, PlainReply
from models.message import Message
from services.utils import preview

logger = logging.getLogger("intent_classifier")

Classification = Union[PlainReply, ImageRequest, ActionIntent]


async def get_route(user_input: str, context: Sequence[Message] = ()) -> RouteDecision:
    """
    Uses the Router Agent to decide how a message is handled.
    Returns the structured output object (with .route).
    """
    result = await get_router_agent().run(render_prompt(user_input, context))
    return result.output


async def generate_reply(user_input: str, context: Sequence[Message] = ()) -> str:
    conversation = await handle_conversation(user_input, context)
    return conversation.response


async def classify(
    user_text: str,
    context: Sequence[Message] = (),
    *,
    route_fn: Optional[Callable[..., Awaitable[RouteDecision]]] = None,
    reply_fn: Optional[Callable[..., Awaitable[str]]] = None,
    timeout: float = CLASSIFIER_TIMEOUT_SECONDS,
) -> Classification:
    route_fn = route_fn or get_route
    reply_fn = reply_fn or generate_reply
    history = list(context)[-CLASSIFIER_HISTORY_LIMIT:] if CLASSIFIER_HISTORY_LIMIT > 0 else []

    try:
        decision = await asyncio.wait_for(route_fn(user_text, history), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise ClassifierError("Intent classification timed out") from e
    except ClassifierError:
        raise
    except Exception as e:
        raise ClassifierError(f"Intent classification failed: {e}") from e

    if decision is None or getattr(decision, "route", None) is None:
        raise ClassifierError("Router returned no decision")

    logger.info(f"[ROUTING] route={decision.route}, tag={decision.tag}, text='{preview(user_text)}'")

    # -----------------
    # Image
    # -----------------
    if decision.route == "image":
        prompt = (decision.image_prompt or user_text).strip()
        if not prompt:
            raise ClassifierError("Image route without a prompt")
        return ImageRequest(prompt=prompt)

    # -----------------
    # Action
    # -----------------
    if decision.route == "action":
        if not decision.tag:
            raise ClassifierError("Action route without a tag")
        try:
            tag = ActionIntentTag(decision.tag.strip().lower())
        except ValueError as e:
            raise ClassifierError(f"Unknown action tag '{decision.tag}'") from e

        if tag is ActionIntentTag.PLAIN_REPLY:
            return await _plain_reply(user_text, history, reply_fn, timeout)
        if tag is ActionIntentTag.IMAGE_GENERATION:
            return ImageRequest(prompt=(decision.image_prompt or user_text).strip())
        return ActionIntent(tag=tag, raw_text=user_text, slots=dict(decision.slots or {}))

    # -----------------
    # Plain reply
    # -----------------
    if decision.route == "plain_reply":
        return await _plain_reply(user_text, history, reply_fn, timeout)

    raise ClassifierError(f"Unknown route '{decision.route}'")


async def _plain_reply(user_text, history, reply_fn, timeout) -> PlainReply:
    try:
        text = await asyncio.wait_for(reply_fn(user_text, history), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise ClassifierError("Reply generation timed out") from e
    except Exception as e:
        raise ClassifierError(f"Reply generation failed: {e}") from e

    if not text or not text.strip():
        raise ClassifierError("Empty reply")
    return PlainReply(text=text)
