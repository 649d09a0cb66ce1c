# FILE: services/request_builders.py
"""
Request extraction rules, one per domain.

- Deterministic only (no LLM calls)
- Classifier slots win over anything extracted from the text
- A missing required field raises IncompleteRequest(field)
"""

import re
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional, Type

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta, MO, TU, WE, TH, FR, SA, SU
from pydantic import BaseModel, ValidationError

from core.errors import IncompleteRequest
from models.requests import (
    BookingsLookupRequest,
    FlightRequest,
    FoodOrderRequest,
    HotelRequest,
    ImageGenerationRequest,
    MenuRequest,
    RideRequest,
    TicketRequest,
)

RequestBuilder = Callable[[str, Dict[str, Any]], BaseModel]

NUMBER_WORDS = {
    "a": 1, "an": 1, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10, "a couple of": 2,
}
_NUMBER = r"(\d+|a\s+couple\s+of|one|two|three|four|five|six|seven|eight|nine|ten|an|a)"

WEEKDAYS = {
    "monday": MO, "tuesday": TU, "wednesday": WE, "thursday": TH,
    "friday": FR, "saturday": SA, "sunday": SU,
}

CUISINES = [
    "italian", "chinese", "indian", "japanese", "mexican", "thai",
    "korean", "french", "mediterranean", "american", "vietnamese",
]

# Items too vague to order
GENERIC_FOOD = {"food", "something", "some food", "something to eat", "dinner", "lunch", "breakfast", "a meal", "meal"}

DATE_FIELDS = {"date", "check_in"}
TIME_FIELDS = {"time"}

VEHICLES = ["sedan", "suv", "hatchback", "auto", "bike", "premium", "xl"]

# Words that end a free-text span ("order pizza for 2 people tonight")
_SPAN_END = (
    r"(?=\s+(?:for|on|at|by|tomorrow|today|tonight|next|this|please|asap|now|with|"
    r"from|to|in|around|departing|leaving|returning|checking)\b|[,.!?;]|$)"
)

# "to" that introduces a place, not a verb ("a cab to go to the airport")
_TO_PLACE = (
    r"\bto\s+(?!(?:go|get|fly|travel|head|reach|visit|catch|take|leave|ride|drive|"
    r"book|order|see|watch|be|have|make|come|return|attend|meet)\b)"
)


def get_today() -> date:
    """Return today's date (system clock)."""
    return date.today()


# -----------------------------
# Shared helpers
# -----------------------------
def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = re.sub(r"\s+", " ", value).strip(" '\"")
    value = re.sub(r"^(?:the|a|an|some|my)\s+", "", value, flags=re.IGNORECASE)
    return value or None


def _to_int(token: str) -> Optional[int]:
    token = re.sub(r"\s+", " ", token.lower().strip())
    if token.isdigit():
        return int(token)
    return NUMBER_WORDS.get(token)


def extract_count(text: str, nouns: str) -> Optional[int]:
    """First '<number> <noun>' count in the text, e.g. '3 tickets'."""
    m = re.search(rf"\b{_NUMBER}\s+(?:{nouns})\b", text, re.IGNORECASE)
    if not m:
        return None
    return _to_int(m.group(1))


def extract_date(text: str) -> Optional[str]:
    """
    Resolve the first date expression in the text to an ISO date.
    Returns None when the text has none.
    """
    lowered = text.lower()
    today = get_today()

    iso = re.search(r"\b(\d{4}-\d{2}-\d{2})\b", text)
    if iso:
        return iso.group(1)

    if "day after tomorrow" in lowered:
        return (today + relativedelta(days=2)).isoformat()
    if "tomorrow" in lowered:
        return (today + relativedelta(days=1)).isoformat()
    if re.search(r"\b(today|tonight)\b", lowered):
        return today.isoformat()

    weekday = re.search(r"\b(?:next|on|this)\s+(" + "|".join(WEEKDAYS) + r")\b", lowered)
    if weekday:
        return (today + relativedelta(days=1, weekday=WEEKDAYS[weekday.group(1)](+1))).isoformat()

    months = r"(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*"
    named = re.search(
        rf"\b(\d{{1,2}}(?:st|nd|rd|th)?\s+{months}(?:\s+\d{{4}})?|{months}\s+\d{{1,2}}(?:st|nd|rd|th)?(?:,?\s+\d{{4}})?)\b",
        lowered,
    )
    if named:
        default = datetime(today.year, today.month, today.day)
        try:
            parsed = date_parser.parse(named.group(1), default=default).date()
        except (ValueError, OverflowError):
            return None
        # "May 1" in June means next year's May 1
        if parsed < today and not re.search(r"\d{4}", named.group(1)):
            parsed = parsed + relativedelta(years=1)
        return parsed.isoformat()

    return None


def extract_time(text: str) -> Optional[str]:
    m = re.search(r"\b(\d{1,2})(?::(\d{2}))?\s*(am|pm)\b", text, re.IGNORECASE)
    if m:
        hour = int(m.group(1)) % 12
        if m.group(3).lower() == "pm":
            hour += 12
        return f"{hour:02d}:{m.group(2) or '00'}"
    m = re.search(r"\b([01]?\d|2[0-3]):([0-5]\d)\b", text)
    if m:
        return f"{int(m.group(1)):02d}:{m.group(2)}"
    return None


def _normalize_slot(field: str, value: Any) -> Any:
    # Slots may say "next Friday" or "7pm"; unresolved values are left for the model to reject
    if not isinstance(value, str):
        return value
    if field in DATE_FIELDS:
        return extract_date(value) or value
    if field in TIME_FIELDS:
        return extract_time(value) or value
    return value


def _build(model: Type[BaseModel], values: Dict[str, Any], slots: Dict[str, Any], required=()) -> BaseModel:
    merged = {k: v for k, v in values.items() if v is not None}
    merged.update({
        k: _normalize_slot(k, v)
        for k, v in (slots or {}).items()
        if k in model.model_fields and v not in (None, "")
    })

    for field in required:
        if not merged.get(field):
            raise IncompleteRequest(field)

    try:
        return model(**merged)
    except ValidationError as e:
        loc = e.errors()[0].get("loc") or ("request",)
        raise IncompleteRequest(str(loc[0])) from e


# -----------------------------
# Food (delivery, restaurant, FasterBook)
# -----------------------------
_FOOD_TRIGGER = re.compile(
    r"\b(?:order|get|want|deliver|bring|buy|craving)\s+(?:me\s+|us\s+)?",
    re.IGNORECASE,
)


def _food_span(text: str) -> Optional[str]:
    # "I want to order sushi": skip triggers followed by "to <verb>"
    for m in _FOOD_TRIGGER.finditer(text):
        rest = text[m.end():]
        if rest and not re.match(r"to\s+", rest, re.IGNORECASE):
            return rest
    return None


def build_food_order(text: str, slots: Dict[str, Any]) -> FoodOrderRequest:
    item = None
    quantity = None
    restaurant = None

    rest = _food_span(text)
    if rest:
        rm = re.search(r"\bfrom\s+(?P<restaurant>.+?)" + _SPAN_END, rest, re.IGNORECASE)
        if rm:
            restaurant = _clean(rm.group("restaurant"))
            rest = rest[: rm.start()]

        qm = re.match(rf"\s*{_NUMBER}\s+(?P<item>.+)$", rest, re.IGNORECASE)
        if qm:
            quantity = _to_int(qm.group(1))
            rest = qm.group("item")

        im = re.match(r"\s*(?P<item>.+?)" + _SPAN_END, rest, re.IGNORECASE)
        item = _clean(im.group("item") if im else rest)

    if item and item.lower() in GENERIC_FOOD:
        item = None

    lowered = text.lower()
    cuisine = next((c for c in CUISINES if re.search(rf"\b{c}\b", lowered)), None)

    return _build(
        FoodOrderRequest,
        {"item": item, "quantity": quantity, "restaurant": restaurant, "cuisine": cuisine},
        slots,
        required=("item",),
    )


# -----------------------------
# Tickets (events, movies)
# -----------------------------
def build_ticket(text: str, slots: Dict[str, Any]) -> TicketRequest:
    event = None

    quoted = re.search(r"[\"“]([^\"”]{2,})[\"”]", text)
    if quoted:
        event = _clean(quoted.group(1))
    else:
        m = re.search(
            r"\b(?:tickets?|seats?)\s+(?:for|to)\s+(?P<event>.+?)" + _SPAN_END,
            text,
            re.IGNORECASE,
        ) or re.search(
            r"\b(?:watch|see|book)\s+(?:me\s+|us\s+)?(?P<event>(?!(?:\d+|one|two|three|four|five|a|an)\s+tickets?).+?)" + _SPAN_END,
            text,
            re.IGNORECASE,
        )
        if m:
            event = _clean(m.group("event"))
            if event and re.fullmatch(r"(?:a\s+)?(?:movie|film|show|tickets?)", event, re.IGNORECASE):
                event = None

    return _build(
        TicketRequest,
        {
            "event": event,
            "quantity": extract_count(text, "tickets?|seats?|people|persons"),
            "date": extract_date(text),
            "time": extract_time(text),
        },
        slots,
        required=("event",),
    )


# -----------------------------
# Travel
# -----------------------------
def build_hotel(text: str, slots: Dict[str, Any]) -> HotelRequest:
    m = re.search(r"(?<!check\s)\b(?:in|at|near)\s+(?P<location>.+?)" + _SPAN_END, text, re.IGNORECASE)
    location = _clean(m.group("location")) if m else None
    if location and re.fullmatch(r"\d.*", location):
        location = None

    return _build(
        HotelRequest,
        {
            "location": location,
            "check_in": extract_date(text),
            "nights": extract_count(text, "nights?"),
            "guests": extract_count(text, "guests?|people|persons|adults"),
        },
        slots,
    )


def build_flight(text: str, slots: Dict[str, Any]) -> FlightRequest:
    origin = None
    destination = None

    m = re.search(
        r"\bfrom\s+(?P<origin>.+?)\s+" + _TO_PLACE + r"(?P<destination>.+?)" + _SPAN_END,
        text,
        re.IGNORECASE,
    )
    if m:
        origin, destination = m.group("origin"), m.group("destination")
    else:
        m = re.search(
            _TO_PLACE + r"(?P<destination>.+?)\s+from\s+(?P<origin>.+?)" + _SPAN_END,
            text,
            re.IGNORECASE,
        )
        if m:
            origin, destination = m.group("origin"), m.group("destination")
        else:
            d = re.search(_TO_PLACE + r"(?P<destination>.+?)" + _SPAN_END, text, re.IGNORECASE)
            destination = d.group("destination") if d else None

    return _build(
        FlightRequest,
        {
            "origin": _clean(origin),
            "destination": _clean(destination),
            "date": extract_date(text),
            "passengers": extract_count(text, "passengers?|people|persons|adults|tickets?|seats?"),
        },
        slots,
        required=("origin", "destination"),
    )


def build_ride(text: str, slots: Dict[str, Any]) -> RideRequest:
    d = re.search(_TO_PLACE + r"(?P<destination>.+?)" + _SPAN_END, text, re.IGNORECASE)
    p = re.search(r"\bfrom\s+(?P<pickup>.+?)" + _SPAN_END, text, re.IGNORECASE)
    lowered = text.lower()
    vehicle = next((v for v in VEHICLES if re.search(rf"\b{v}\b", lowered)), None)

    return _build(
        RideRequest,
        {
            "destination": _clean(d.group("destination")) if d else None,
            "pickup": _clean(p.group("pickup")) if p else None,
            "vehicle_type": vehicle,
        },
        slots,
        required=("destination",),
    )


# -----------------------------
# Lookups
# -----------------------------
def build_menu(text: str, slots: Dict[str, Any]) -> MenuRequest:
    m = re.search(r"\bmenu\s+(?:of|for|at|from)\s+(?P<restaurant>.+?)" + _SPAN_END, text, re.IGNORECASE)
    return _build(MenuRequest, {"restaurant": _clean(m.group("restaurant")) if m else None}, slots)


def build_bookings_lookup(text: str, slots: Dict[str, Any]) -> BookingsLookupRequest:
    lowered = text.lower()
    kind = None
    if re.search(r"\b(movie|movies|film|ticket|tickets)\b", lowered):
        kind = "movie"
    elif re.search(r"\b(food|order|orders|meal|meals)\b", lowered):
        kind = "food"
    return _build(BookingsLookupRequest, {"kind": kind}, slots)


# -----------------------------
# Image generation
# -----------------------------
_IMAGE_PREFIX = re.compile(
    r"^\s*(?:please\s+)?(?:generate|create|draw|make|paint|render|show)\s+(?:me\s+)?"
    r"(?:an?\s+)?(?:image|picture|photo|drawing|painting|illustration)?\s*(?:of|showing)?\s*",
    re.IGNORECASE,
)


def build_image(text: str, slots: Dict[str, Any]) -> ImageGenerationRequest:
    prompt = _IMAGE_PREFIX.sub("", text).strip(" .!?") or None
    return _build(ImageGenerationRequest, {"prompt": prompt}, slots, required=("prompt",))
