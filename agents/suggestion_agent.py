import json
from functools import lru_cache
from typing import List

from pydantic import BaseModel, Field
from pydantic_ai import Agent

from agents.models import get_model


class TaskSuggestions(BaseModel):
    suggestions: List[str] = Field(default_factory=list)


@lru_cache(maxsize=1)
def get_suggestion_agent() -> Agent:
    return Agent(
        get_model(),
        system_prompt=(
            "You suggest follow-up tasks from a conversation between a user and A.U.R.A.\n\n"
            "You receive JSON with 'user_message' and 'assistant_reply'.\n"
            "Rules:\n"
            "1. Suggest 0 to 3 concrete, actionable tasks the user may want to do next.\n"
            "2. Each suggestion is a short task title (at most 8 words), no trailing punctuation.\n"
            "3. Greetings, small talk and finished requests need no suggestions: return an empty list.\n"
            "4. Never repeat what was just done.\n\n"
            "Return strictly as JSON: {\"suggestions\": [\"...\"]}."
        ),
        output_type=TaskSuggestions,
    )


async def generate_task_suggestions(user_text: str, assistant_reply: str) -> List[str]:
    payload = json.dumps({"user_message": user_text, "assistant_reply": assistant_reply}, ensure_ascii=False)
    result = await get_suggestion_agent().run(payload)
    return list(result.output.suggestions)
