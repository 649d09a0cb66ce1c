# FILE: services/dispatcher.py
"""
Action Dispatcher: the single authoritative mapping from an intent tag
to (provider, request builder), plus orchestration of the provider call.

Raises (before any Task exists):
- UnroutableIntent   tag has no route
- IncompleteRequest  request is missing a required field

Never raises for provider-side failures: those come back as
ActionResult(succeeded=False).
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from pydantic import BaseModel

from config import PROVIDER_TIMEOUT_SECONDS
from core.errors import IncompleteRequest, ProviderError, ProviderUnavailable, UnroutableIntent
from core.intent import ActionIntent, ActionIntentTag
from core.task_state import TaskType
from models.action import ActionResult
from providers.base import CapabilityProvider
from services.request_builders import RequestBuilder
from services.utils import deep_serialize

logger = logging.getLogger("action_dispatcher")


@dataclass(frozen=True)
class Route:
    task_type: TaskType
    provider: CapabilityProvider
    build_request: RequestBuilder
    title: str


@dataclass(frozen=True)
class PreparedAction:
    intent: ActionIntent
    route: Route
    request: BaseModel

    @property
    def task_type(self) -> TaskType:
        return self.route.task_type

    @property
    def title(self) -> str:
        return self.route.title

    @property
    def description(self) -> str:
        return describe_request(self.request)


def describe_request(request: BaseModel) -> str:
    fields = request.model_dump(exclude_none=True)
    return ", ".join(f"{key}: {value}" for key, value in fields.items())


class ActionDispatcher:
    def __init__(
        self,
        routes: Optional[Dict[ActionIntentTag, Route]] = None,
        timeout: float = PROVIDER_TIMEOUT_SECONDS,
    ):
        self.routes: Dict[ActionIntentTag, Route] = dict(routes or {})
        self.timeout = timeout

    def register(self, tag: ActionIntentTag, route: Route) -> None:
        if tag is ActionIntentTag.PLAIN_REPLY:
            raise ValueError("plain_reply is answered directly and cannot be routed")
        self.routes[ActionIntentTag(tag)] = route

    # -----------------------------
    # Steps 1-2: route + request (may raise)
    # -----------------------------
    def prepare(self, intent: ActionIntent) -> PreparedAction:
        route = self.routes.get(intent.tag)
        if route is None:
            logger.error(f"[UNROUTABLE] tag={intent.tag}")
            raise UnroutableIntent(intent.tag.value)

        try:
            request = route.build_request(intent.raw_text, dict(intent.slots))
        except IncompleteRequest as e:
            e.tag = intent.tag
            logger.warning(f"[INCOMPLETE_REQUEST] tag={intent.tag.value}, missing={e.field}")
            raise

        return PreparedAction(intent=intent, route=route, request=request)

    # -----------------------------
    # Steps 3-4: provider call (never raises for provider failures)
    # -----------------------------
    async def invoke(self, prepared: PreparedAction) -> ActionResult:
        tag = prepared.intent.tag
        provider = prepared.route.provider

        try:
            try:
                payload = await asyncio.wait_for(provider.invoke(prepared.request), timeout=self.timeout)
            except asyncio.TimeoutError:
                raise ProviderUnavailable(f"{provider.name} timeout after {self.timeout:g}s")

        except ProviderError as e:
            logger.warning(f"[PROVIDER_FAILED] tag={tag.value}, provider={provider.name}, error={e}")
            return ActionResult(kind=tag, succeeded=False, error=str(e))

        except Exception as e:
            # Unexpected provider bugs are still an operational failure
            logger.exception(f"[PROVIDER_ERROR] tag={tag.value}, provider={provider.name}")
            return ActionResult(kind=tag, succeeded=False, error=f"{provider.name} failed: {e}")

        if not isinstance(payload, dict):
            payload = {"result": payload}

        logger.info(f"[PROVIDER_OK] tag={tag.value}, provider={provider.name}")
        return ActionResult(kind=tag, payload=deep_serialize(payload), succeeded=True)

    async def dispatch(self, intent: ActionIntent) -> ActionResult:
        prepared = self.prepare(intent)
        return await self.invoke(prepared)
