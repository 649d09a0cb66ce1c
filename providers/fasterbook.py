# FILE: providers/fasterbook.py
"""
FasterBook HTTP providers (food orders, movie bookings, bookings lookup, menu).

Error mapping:
- timeouts, connection errors, 5xx  -> ProviderUnavailable
- 4xx                               -> ProviderRejected (server message)
"""

import logging
from typing import Any, Dict, Optional

import httpx

from config import FASTERBOOK_API_URL, PROVIDER_TIMEOUT_SECONDS
from core.errors import ProviderRejected, ProviderUnavailable
from models.requests import BookingsLookupRequest, FoodOrderRequest, MenuRequest, TicketRequest
from providers.base import CapabilityProvider

logger = logging.getLogger("fasterbook")


class FasterBookClient:
    """
    Thin async client shared by the FasterBook providers.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = PROVIDER_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or FASTERBOOK_API_URL or "").rstrip("/")
        if not self.base_url:
            raise RuntimeError("FASTERBOOK_API_URL is not configured")
        self.timeout = timeout
        self._transport = transport

    async def request(self, method: str, path: str, **kwargs) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, **kwargs)
                response.raise_for_status()
                return response.json()

        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            reason = _error_reason(e.response)
            logger.warning(f"[FASTERBOOK_HTTP_ERROR] {method} {path} status={status_code} reason='{reason}'")
            if status_code >= 500:
                raise ProviderUnavailable(f"FasterBook error {status_code}: {reason}") from e
            raise ProviderRejected(reason) from e
        except httpx.TimeoutException as e:
            raise ProviderUnavailable(f"FasterBook request timed out: {method} {path}") from e
        except httpx.RequestError as e:
            raise ProviderUnavailable(f"FasterBook unreachable: {e}") from e
        except ValueError as e:
            # response.json() on a non-JSON body
            raise ProviderUnavailable("FasterBook returned a malformed response") from e


def _error_reason(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body.get("detail") or body)
    return str(body)


def _as_record(data: Any, key: str) -> Dict[str, Any]:
    # List endpoints are wrapped so Task.api_response is always a dict
    if isinstance(data, dict):
        return data
    return {key: data}


class FasterBookFoodProvider(CapabilityProvider):
    name = "fasterbook_food"

    def __init__(self, client: FasterBookClient):
        self.client = client

    async def invoke(self, request: FoodOrderRequest) -> Dict[str, Any]:
        data = await self.client.request(
            "POST",
            "/api/orders/food",
            json={
                "item": request.item,
                "quantity": request.quantity,
                "restaurant": request.restaurant,
            },
        )
        return _as_record(data, "order")


class FasterBookMovieProvider(CapabilityProvider):
    name = "fasterbook_movie"

    def __init__(self, client: FasterBookClient):
        self.client = client

    async def invoke(self, request: TicketRequest) -> Dict[str, Any]:
        data = await self.client.request(
            "POST",
            "/api/bookings/movie",
            json={
                "movie": request.event,
                "tickets": request.quantity,
                "date": request.date,
                "time": request.time,
            },
        )
        return _as_record(data, "booking")


class FasterBookBookingsProvider(CapabilityProvider):
    name = "fasterbook_bookings"

    def __init__(self, client: FasterBookClient):
        self.client = client

    async def invoke(self, request: BookingsLookupRequest) -> Dict[str, Any]:
        params = {"type": request.kind} if request.kind else None
        data = await self.client.request("GET", "/api/bookings", params=params)
        return _as_record(data, "bookings")


class FasterBookMenuProvider(CapabilityProvider):
    name = "fasterbook_menu"

    def __init__(self, client: FasterBookClient):
        self.client = client

    async def invoke(self, request: MenuRequest) -> Dict[str, Any]:
        params = {"restaurant": request.restaurant} if request.restaurant else None
        data = await self.client.request("GET", "/api/menu", params=params)
        return _as_record(data, "items")
