# FILE: services/routes.py
"""
Routing table: intent tag -> (task type, provider, request builder).
This is the SINGLE SOURCE OF TRUTH for what each action does.
"""

import logging
from typing import Dict, Optional

from config import FASTERBOOK_API_URL
from core.intent import ActionIntentTag
from core.task_state import TaskType
from providers.base import CapabilityProvider
from providers.fasterbook import (
    FasterBookBookingsProvider,
    FasterBookClient,
    FasterBookFoodProvider,
    FasterBookMenuProvider,
    FasterBookMovieProvider,
)
from providers.image import ImageGenerationProvider
from providers.mock import (
    BookingLedger,
    MockBookingsProvider,
    MockFlightProvider,
    MockHotelProvider,
    MockMenuProvider,
    MockRestaurantProvider,
    MockRideProvider,
    MockTicketProvider,
)
from services import request_builders as rb
from services.dispatcher import ActionDispatcher, Route

logger = logging.getLogger("routes")

Tag = ActionIntentTag

# tag -> (task type, task title, request builder)
ROUTE_SPECS = {
    Tag.FOOD_BOOKING: (TaskType.RESTAURANT, "Food order", rb.build_food_order),
    Tag.RESTAURANT_ORDER: (TaskType.RESTAURANT, "Restaurant order", rb.build_food_order),
    Tag.FASTERBOOK_FOOD: (TaskType.RESTAURANT, "FasterBook food order", rb.build_food_order),
    Tag.TICKET_BOOKING: (TaskType.ECOMMERCE, "Ticket booking", rb.build_ticket),
    Tag.FASTERBOOK_MOVIE: (TaskType.ECOMMERCE, "FasterBook movie booking", rb.build_ticket),
    Tag.HOTEL_BOOKING: (TaskType.HOTEL, "Hotel booking", rb.build_hotel),
    Tag.FLIGHT_BOOKING: (TaskType.FLIGHT, "Flight booking", rb.build_flight),
    Tag.RIDE_BOOKING: (TaskType.RIDE, "Ride booking", rb.build_ride),
    Tag.FASTERBOOK_MENU: (TaskType.GENERIC, "FasterBook menu", rb.build_menu),
    Tag.FASTERBOOK_BOOKINGS: (TaskType.GENERIC, "FasterBook bookings", rb.build_bookings_lookup),
    Tag.IMAGE_GENERATION: (TaskType.GENERIC, "Image generation", rb.build_image),
}


def default_providers(
    latency: Optional[float] = None,
    fasterbook_url: Optional[str] = None,
) -> Dict[ActionIntentTag, CapabilityProvider]:
    """
    Mock providers everywhere, except the FasterBook family when an
    endpoint is configured.
    """
    ledger = BookingLedger()
    restaurant = MockRestaurantProvider(latency=latency, ledger=ledger)
    tickets = MockTicketProvider(latency=latency, ledger=ledger)

    providers: Dict[ActionIntentTag, CapabilityProvider] = {
        Tag.FOOD_BOOKING: restaurant,
        Tag.RESTAURANT_ORDER: restaurant,
        Tag.FASTERBOOK_FOOD: restaurant,
        Tag.TICKET_BOOKING: tickets,
        Tag.FASTERBOOK_MOVIE: tickets,
        Tag.HOTEL_BOOKING: MockHotelProvider(latency=latency),
        Tag.FLIGHT_BOOKING: MockFlightProvider(latency=latency),
        Tag.RIDE_BOOKING: MockRideProvider(latency=latency),
        Tag.FASTERBOOK_MENU: MockMenuProvider(latency=latency),
        Tag.FASTERBOOK_BOOKINGS: MockBookingsProvider(latency=latency, ledger=ledger),
        Tag.IMAGE_GENERATION: ImageGenerationProvider(),
    }

    fasterbook_url = fasterbook_url or FASTERBOOK_API_URL
    if fasterbook_url:
        client = FasterBookClient(base_url=fasterbook_url)
        providers.update({
            Tag.FASTERBOOK_FOOD: FasterBookFoodProvider(client),
            Tag.FASTERBOOK_MOVIE: FasterBookMovieProvider(client),
            Tag.FASTERBOOK_BOOKINGS: FasterBookBookingsProvider(client),
            Tag.FASTERBOOK_MENU: FasterBookMenuProvider(client),
        })
        logger.info(f"FasterBook providers enabled at {fasterbook_url}")

    return providers


def build_dispatcher(
    providers: Optional[Dict[ActionIntentTag, CapabilityProvider]] = None,
    **kwargs,
) -> ActionDispatcher:
    """
    Build a dispatcher. Tags without a provider are left unrouted.
    """
    if providers is None:
        providers = default_providers()

    dispatcher = ActionDispatcher(**kwargs)
    for tag, provider in providers.items():
        task_type, title, builder = ROUTE_SPECS[tag]
        dispatcher.register(tag, Route(task_type=task_type, provider=provider, build_request=builder, title=title))
    return dispatcher
