# FILE: models/bookings.py
"""
Typed views over provider responses.

Providers return plain dicts that are stored unchanged in Task.api_response.
These models give each task_type a statically known shape for readers.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.task_state import TaskType


class _ProviderRecord(BaseModel):
    # Provider records may carry extra fields; keep them
    model_config = ConfigDict(extra="allow", populate_by_name=True)


# -----------------------------
# Restaurant / food delivery
# -----------------------------
class OrderedItem(_ProviderRecord):
    name: str
    quantity: int = Field(default=1, ge=1)
    price: Optional[float] = Field(None, ge=0)


class RestaurantOrderResponse(_ProviderRecord):
    orderId: str
    restaurant: str
    items: List[OrderedItem] = Field(default_factory=list)
    estimatedDelivery: str
    totalAmount: float = Field(..., ge=0)


# -----------------------------
# Hotel
# -----------------------------
class HotelBookingResponse(_ProviderRecord):
    bookingId: str
    hotelName: str
    checkIn: str
    checkOut: Optional[str] = None
    totalAmount: float = Field(..., ge=0)


# -----------------------------
# Flight
# -----------------------------
class FlightBookingResponse(_ProviderRecord):
    bookingId: str
    flightNumber: str
    from_: str = Field(..., alias="from")
    to: str
    departureDate: Optional[str] = None
    totalAmount: float = Field(..., ge=0)


# -----------------------------
# Ride
# -----------------------------
class RideBookingResponse(_ProviderRecord):
    rideId: str
    driverName: str
    vehicleType: str
    pickup: Optional[str] = None
    destination: Optional[str] = None
    fare: float = Field(..., ge=0)


# -----------------------------
# Tickets (events, movies)
# -----------------------------
class TicketBookingResponse(_ProviderRecord):
    bookingId: str
    event: str
    quantity: int = Field(default=1, ge=1)
    showTime: Optional[str] = None
    totalAmount: float = Field(..., ge=0)


RESPONSE_MODELS = {
    TaskType.RESTAURANT: RestaurantOrderResponse,
    TaskType.HOTEL: HotelBookingResponse,
    TaskType.FLIGHT: FlightBookingResponse,
    TaskType.RIDE: RideBookingResponse,
    TaskType.ECOMMERCE: TicketBookingResponse,
}


def parse_response(task_type: TaskType, payload: Dict[str, Any]) -> Any:
    """
    Parse a stored provider record into the model for its task_type.
    Generic tasks (menus, bookings lookups, images) stay plain dicts.
    """
    model = RESPONSE_MODELS.get(task_type)
    if model is None:
        return payload
    return model.model_validate(payload)
