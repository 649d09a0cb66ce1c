# tests/conftest.py
import sys
from pathlib import Path

# ---------------------------------------------------------
# Ensure project root is on PYTHONPATH BEFORE app imports
# ---------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# ---------------------------------------------------------
# Now safe to import app modules
# ---------------------------------------------------------
import pytest

from executors.action import ActionExecutor
from services.task_registry import TaskRegistry
from task_doubles import StubProvider, hotel_dispatcher


@pytest.fixture
def registry():
    return TaskRegistry()


@pytest.fixture
def stub_provider():
    return StubProvider(
        payload={"bookingId": "H123", "hotelName": "Grand Plaza Paris", "checkIn": "2026-05-01", "totalAmount": 240.0}
    )


@pytest.fixture
def action_executor(registry, stub_provider):
    return ActionExecutor(hotel_dispatcher(stub_provider), registry)
