from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any


def deep_serialize(obj: Any) -> Any:
    """
    Recursively convert provider records to JSON-safe primitives.
    Pydantic models are dumped by alias so 'from' stays 'from'.
    """
    if obj is None:
        return None
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if hasattr(obj, "model_dump"):
        return deep_serialize(obj.model_dump(by_alias=True))
    if isinstance(obj, dict):
        return {str(k): deep_serialize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [deep_serialize(v) for v in obj]
    if isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)


def preview(text: str, limit: int = 100) -> str:
    """Single-line, length-capped copy of user text for log lines."""
    flat = " ".join((text or "").split())
    if len(flat) <= limit:
        return flat
    return flat[: limit - 3] + "..."
