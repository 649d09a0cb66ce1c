# FILE: models/requests.py
import re
from datetime import date as Date
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def _iso_date(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    try:
        Date.fromisoformat(v)
    except ValueError:
        raise ValueError(f"'{v}' is not an ISO date (YYYY-MM-DD)") from None
    return v


# -----------------------------
# Food (delivery, restaurant, FasterBook)
# -----------------------------
class FoodOrderRequest(BaseModel):
    item: str = Field(..., description="What to order")
    quantity: int = Field(default=1, ge=1)
    restaurant: Optional[str] = Field(None)
    cuisine: Optional[str] = Field(None)


# -----------------------------
# Tickets (events, movies)
# -----------------------------
class TicketRequest(BaseModel):
    event: str = Field(..., description="Movie or event title")
    quantity: int = Field(default=1, ge=1)
    date: Optional[str] = Field(None, description="ISO date YYYY-MM-DD")
    time: Optional[str] = Field(None, description="Show time HH:MM")

    @field_validator('date')
    @classmethod
    def validate_date(cls, v):
        return _iso_date(v)

    @field_validator('time')
    @classmethod
    def validate_time(cls, v):
        if v is not None and not re.fullmatch(r"([01]\d|2[0-3]):[0-5]\d", v):
            raise ValueError(f"'{v}' is not a time (HH:MM)")
        return v


# -----------------------------
# Travel
# -----------------------------
class HotelRequest(BaseModel):
    location: Optional[str] = Field(None)
    check_in: Optional[str] = Field(None, description="ISO date YYYY-MM-DD")
    nights: int = Field(default=1, ge=1)
    guests: int = Field(default=1, ge=1)

    @field_validator('check_in')
    @classmethod
    def validate_check_in(cls, v):
        return _iso_date(v)


class FlightRequest(BaseModel):
    origin: str
    destination: str
    date: Optional[str] = Field(None, description="ISO date YYYY-MM-DD")
    passengers: int = Field(default=1, ge=1)

    @field_validator('date')
    @classmethod
    def validate_date(cls, v):
        return _iso_date(v)


class RideRequest(BaseModel):
    destination: str
    pickup: Optional[str] = Field(None)
    vehicle_type: Optional[str] = Field(None)


# -----------------------------
# Lookups
# -----------------------------
class MenuRequest(BaseModel):
    restaurant: Optional[str] = Field(None)


class BookingsLookupRequest(BaseModel):
    kind: Optional[str] = Field(None, description="'food' or 'movie'; None means all")


# -----------------------------
# Image generation
# -----------------------------
class ImageGenerationRequest(BaseModel):
    prompt: str
    width: int = Field(default=1024, gt=0)
    height: int = Field(default=1024, gt=0)
