import json
from functools import lru_cache
from typing import List, Sequence

from pydantic import BaseModel
from pydantic_ai import Agent

from agents.models import get_model
from models.message import Message


class ConversationResponse(BaseModel):
    response: str
    conversation_type: str  # "general", "assistant_help", "greeting"


@lru_cache(maxsize=1)
def get_conversation_agent() -> Agent:
    # Simple conversation agent
    return Agent(
        get_model(),
        system_prompt=(
            "You are A.U.R.A, a Universal Reasoning Agent. You help people think through "
            "complex problems, manage tasks, and understand the world around them.\n\n"

            "Be helpful, friendly, and clear. You can also order food, book tickets, hotels, "
            "flights and rides, show menus and bookings, and generate images; if the user "
            "asks what you can do, mention these.\n\n"

            "You receive JSON with 'history' (earlier messages) and 'message'. Answer 'message'.\n\n"

            "Classify conversation as:\n"
            "- 'greeting': Hello, hi, how are you\n"
            "- 'assistant_help': Questions about what you can do\n"
            "- 'general': Other conversation\n"
        ),
        output_type=ConversationResponse,
    )


def render_prompt(user_input: str, history: Sequence[Message] = ()) -> str:
    """JSON prompt shared by the router and conversation agents."""
    turns: List[dict] = [{"author": m.author, "content": m.content} for m in history]
    return json.dumps({"history": turns, "message": user_input}, ensure_ascii=False)


async def handle_conversation(user_input: str, history: Sequence[Message] = ()) -> ConversationResponse:
    """Generate a plain chat reply for the latest message."""
    result = await get_conversation_agent().run(render_prompt(user_input, history))
    return result.output
