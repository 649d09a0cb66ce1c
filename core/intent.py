from enum import Enum
from typing import Annotated, Any, Dict, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class ActionIntentTag(str, Enum):
    """
    Every action family the router can decide on.
    """

    FOOD_BOOKING = "food_booking"
    TICKET_BOOKING = "ticket_booking"
    FASTERBOOK_FOOD = "fasterbook_food"
    FASTERBOOK_MOVIE = "fasterbook_movie"
    FASTERBOOK_BOOKINGS = "fasterbook_bookings"
    FASTERBOOK_MENU = "fasterbook_menu"
    RESTAURANT_ORDER = "restaurant_order"
    HOTEL_BOOKING = "hotel_booking"
    FLIGHT_BOOKING = "flight_booking"
    RIDE_BOOKING = "ride_booking"
    PLAIN_REPLY = "plain_reply"
    IMAGE_GENERATION = "image_generation"


class PlainReply(BaseModel):
    """
    Chat answer. No task is ever created for it.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["plain_reply"] = "plain_reply"
    text: str


class ImageRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["image"] = "image"
    prompt: str


class ActionIntent(BaseModel):
    """
    A passive container that represents what the user wants done.
    This does NOT execute logic.
    Produced once by the classifier and never mutated.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["action"] = "action"
    tag: ActionIntentTag
    raw_text: str

    # Fields the classifier already extracted (e.g. {"destination": "Paris"})
    slots: Dict[str, Any] = Field(default_factory=dict)


ClassificationResult = Annotated[
    Union[PlainReply, ImageRequest, ActionIntent],
    Field(discriminator="kind"),
]
