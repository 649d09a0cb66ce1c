# FILE: services/suggestions.py
import logging
from typing import Awaitable, Callable, List, Optional

from agents.suggestion_agent import generate_task_suggestions
from config import MAX_SUGGESTIONS
from core.task_state import TaskType
from models.task import Task
from services.task_registry import TaskRegistry

logger = logging.getLogger("suggestion_engine")

SUGGESTION_DESCRIPTION = "Generated from your conversation with A.U.R.A"
MAX_TITLE_LENGTH = 120


class SuggestionEngine:
    """
    Derives advisory follow-up tasks from one exchange.

    Suggested tasks are created in 'pending' and are never dispatched.
    A failing generator means no suggestions, never an error.
    """

    def __init__(
        self,
        registry: TaskRegistry,
        generator: Optional[Callable[[str, str], Awaitable[List[str]]]] = None,
        limit: int = MAX_SUGGESTIONS,
    ):
        self.registry = registry
        self.generator = generator or generate_task_suggestions
        self.limit = limit

    async def suggest(self, user_text: str, assistant_reply: str) -> List[str]:
        try:
            raw = await self.generator(user_text, assistant_reply)
        except Exception:
            logger.exception("[SUGGESTIONS_FAILED]")
            return []

        titles: List[str] = []
        seen = set()
        for item in raw or []:
            if not isinstance(item, str):
                continue
            title = " ".join(item.split()).strip(" -•*.")
            if not title:
                continue
            title = title[:MAX_TITLE_LENGTH]
            key = title.lower()
            if key in seen:
                continue
            seen.add(key)
            titles.append(title)
            if len(titles) >= self.limit:
                break
        return titles

    async def propose(self, user_text: str, assistant_reply: str) -> List[Task]:
        titles = await self.suggest(user_text, assistant_reply)
        tasks = [
            self.registry.create(
                TaskType.GENERIC,
                title,
                SUGGESTION_DESCRIPTION,
                suggested=True,
            )
            for title in titles
        ]
        if tasks:
            logger.info(f"[SUGGESTIONS] created={len(tasks)}")
        return tasks
