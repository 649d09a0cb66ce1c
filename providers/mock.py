# FILE: providers/mock.py
"""
Mock booking providers.

They behave like the real services: simulated latency, generated
confirmation ids and prices. Used whenever no real endpoint is configured.
"""

import asyncio
import random
import string
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from config import MOCK_PROVIDER_LATENCY
from core.errors import ProviderRejected
from models.requests import (
    BookingsLookupRequest,
    FlightRequest,
    FoodOrderRequest,
    HotelRequest,
    MenuRequest,
    RideRequest,
    TicketRequest,
)
from providers.base import CapabilityProvider

RESTAURANTS = ["Spice Garden", "Pizza Palace", "Green Bowl", "Tokyo Table", "Burger Barn"]
HOTELS = ["Grand Plaza", "Seaside Inn", "City Lights Hotel", "The Orchard Suites"]
AIRLINES = ["AU", "SK", "NX"]
DRIVERS = ["Arjun", "Maria", "Chen", "Fatima", "Lucas"]
VEHICLES = ["Sedan", "Hatchback", "SUV", "Auto"]

# Prices per unit
ITEM_PRICE_RANGE = (8.0, 25.0)
NIGHTLY_RATE_RANGE = (80.0, 260.0)
FARE_RANGE = (120.0, 650.0)
TICKET_PRICE_RANGE = (9.0, 18.0)


def _reference(prefix: str, rng: random.Random, length: int = 8) -> str:
    alphabet = string.ascii_uppercase + string.digits
    return f"{prefix}-{''.join(rng.choice(alphabet) for _ in range(length))}"


MENU = [
    {"name": "Margherita Pizza", "category": "Pizza", "price": 12.5, "available": True},
    {"name": "Paneer Tikka", "category": "Indian", "price": 10.0, "available": True},
    {"name": "Chicken Ramen", "category": "Japanese", "price": 14.0, "available": True},
    {"name": "Caesar Salad", "category": "Salads", "price": 9.0, "available": True},
    {"name": "Classic Burger", "category": "Burgers", "price": 11.0, "available": False},
]


class BookingLedger:
    """
    Confirmed mock bookings, shared so the bookings lookup can list them.
    """

    def __init__(self):
        self.records: List[Dict[str, Any]] = []

    def record(self, kind: str, record: Dict[str, Any]) -> None:
        self.records.append({"type": kind, **record})

    def find(self, kind: Optional[str] = None) -> List[Dict[str, Any]]:
        return [dict(r) for r in self.records if kind is None or r["type"] == kind]


class MockProvider(CapabilityProvider):
    def __init__(
        self,
        latency: Optional[float] = None,
        seed: Optional[int] = None,
        ledger: Optional[BookingLedger] = None,
    ):
        self.latency = MOCK_PROVIDER_LATENCY if latency is None else latency
        self.rng = random.Random(seed)
        self.ledger = ledger

    async def _simulate_latency(self) -> None:
        if self.latency > 0:
            await asyncio.sleep(self.latency)

    def _price(self, bounds) -> float:
        return round(self.rng.uniform(*bounds), 2)


class MockRestaurantProvider(MockProvider):
    name = "mock_restaurant"

    async def invoke(self, request: FoodOrderRequest) -> Dict[str, Any]:
        await self._simulate_latency()
        unit_price = self._price(ITEM_PRICE_RANGE)
        restaurant = request.restaurant or self.rng.choice(RESTAURANTS)
        minutes = self.rng.randint(25, 50)
        order = {
            "orderId": _reference("ORD", self.rng),
            "restaurant": restaurant,
            "items": [{"name": request.item, "quantity": request.quantity, "price": unit_price}],
            "estimatedDelivery": f"{minutes} minutes",
            "totalAmount": round(unit_price * request.quantity, 2),
            "status": "confirmed",
        }
        if self.ledger is not None:
            self.ledger.record("food", order)
        return order


class MockHotelProvider(MockProvider):
    name = "mock_hotel"

    async def invoke(self, request: HotelRequest) -> Dict[str, Any]:
        await self._simulate_latency()
        check_in = request.check_in or (datetime.now() + timedelta(days=1)).date().isoformat()
        check_out = (datetime.fromisoformat(check_in) + timedelta(days=request.nights)).date().isoformat()
        rate = self._price(NIGHTLY_RATE_RANGE)
        hotel = self.rng.choice(HOTELS)
        if request.location:
            hotel = f"{hotel} {request.location}"
        return {
            "bookingId": _reference("HTL", self.rng),
            "hotelName": hotel,
            "checkIn": check_in,
            "checkOut": check_out,
            "guests": request.guests,
            "totalAmount": round(rate * request.nights, 2),
        }


class MockFlightProvider(MockProvider):
    name = "mock_flight"

    async def invoke(self, request: FlightRequest) -> Dict[str, Any]:
        await self._simulate_latency()
        if request.origin.strip().lower() == request.destination.strip().lower():
            raise ProviderRejected("Origin and destination must be different")
        fare = self._price(FARE_RANGE)
        return {
            "bookingId": _reference("FLT", self.rng),
            "flightNumber": f"{self.rng.choice(AIRLINES)}{self.rng.randint(100, 999)}",
            "from": request.origin,
            "to": request.destination,
            "departureDate": request.date or (datetime.now() + timedelta(days=7)).date().isoformat(),
            "passengers": request.passengers,
            "totalAmount": round(fare * request.passengers, 2),
        }


class MockRideProvider(MockProvider):
    name = "mock_ride"

    async def invoke(self, request: RideRequest) -> Dict[str, Any]:
        await self._simulate_latency()
        return {
            "rideId": _reference("RIDE", self.rng),
            "driverName": self.rng.choice(DRIVERS),
            "vehicleType": request.vehicle_type or self.rng.choice(VEHICLES),
            "pickup": request.pickup or "Current location",
            "destination": request.destination,
            "fare": self._price((6.0, 40.0)),
            "eta": f"{self.rng.randint(2, 12)} minutes",
        }


class MockTicketProvider(MockProvider):
    name = "mock_ticket"

    async def invoke(self, request: TicketRequest) -> Dict[str, Any]:
        await self._simulate_latency()
        if request.quantity > 10:
            raise ProviderRejected("A maximum of 10 tickets can be booked at once")
        price = self._price(TICKET_PRICE_RANGE)
        show_date = request.date or datetime.now().date().isoformat()
        booking = {
            "bookingId": _reference("TKT", self.rng),
            "event": request.event,
            "quantity": request.quantity,
            "showTime": f"{show_date} {request.time or '19:30'}",
            "seats": [f"F{n}" for n in range(1, request.quantity + 1)],
            "totalAmount": round(price * request.quantity, 2),
        }
        if self.ledger is not None:
            self.ledger.record("movie", booking)
        return booking


class MockMenuProvider(MockProvider):
    name = "mock_menu"

    async def invoke(self, request: MenuRequest) -> Dict[str, Any]:
        await self._simulate_latency()
        return {
            "restaurant": request.restaurant or "FasterBook Kitchen",
            "items": [dict(item) for item in MENU if item["available"]],
        }


class MockBookingsProvider(MockProvider):
    name = "mock_bookings"

    async def invoke(self, request: BookingsLookupRequest) -> Dict[str, Any]:
        await self._simulate_latency()
        bookings = self.ledger.find(request.kind) if self.ledger is not None else []
        return {"bookings": bookings, "count": len(bookings)}
