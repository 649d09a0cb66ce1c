from functools import lru_cache
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field
from pydantic_ai import Agent

from agents.models import get_model


# Define router schema
class RouteDecision(BaseModel):
    route: Literal["plain_reply", "image", "action"]
    tag: Optional[str] = Field(None, description="Action tag when route is 'action'")
    image_prompt: Optional[str] = Field(None, description="Cleaned prompt when route is 'image'")
    slots: Dict[str, Any] = Field(default_factory=dict)


SYSTEM_PROMPT = (
    "You are the routing assistant for A.U.R.A, a Universal Reasoning Agent that can also "
    "take actions for the user. Decide how the LATEST user message should be handled. "
    "You receive JSON with 'history' (earlier messages) and 'message' (the latest one).\n\n"
    "Routes:\n"
    "1. 'image' - the user wants a picture, drawing or image generated. Put a clean "
    "description of the image in image_prompt.\n"
    "2. 'action' - the user wants something booked, ordered or looked up. Set tag to one of:\n"
    "   - food_booking: order food delivery\n"
    "   - restaurant_order: order from a specific restaurant\n"
    "   - fasterbook_food: order food through FasterBook\n"
    "   - fasterbook_movie: book movie tickets through FasterBook\n"
    "   - fasterbook_bookings: show the user's FasterBook bookings\n"
    "   - fasterbook_menu: show the FasterBook menu / available items\n"
    "   - ticket_booking: book tickets for an event, concert or show\n"
    "   - hotel_booking: book a hotel room\n"
    "   - flight_booking: book a flight\n"
    "   - ride_booking: book a taxi, cab or ride\n"
    "3. 'plain_reply' - anything else (questions, chat, advice).\n\n"
    "When the route is 'action', fill slots with any details you are sure of, using these keys: "
    "item, quantity, restaurant, cuisine, event, date (YYYY-MM-DD), time (HH:MM), location, "
    "check_in, nights, guests, origin, destination, passengers, pickup, vehicle_type. "
    "Never invent details the user did not give.\n\n"
    "Return strictly as JSON: {\"route\": ..., \"tag\": ..., \"image_prompt\": ..., \"slots\": {...}}."
)


@lru_cache(maxsize=1)
def get_router_agent() -> Agent:
    # Router agent
    return Agent(
        get_model(),
        system_prompt=SYSTEM_PROMPT,
        output_type=RouteDecision,
    )
