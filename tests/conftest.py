"""
Shared pytest fixtures available to every test file automatically.
No imports needed in test files — pytest discovers this by convention.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from booking_service.crud import get_booking_crud
from booking_service.deps import get_payment_gateway, get_tickets_client
from booking_service.main import create_app

from .factories import OTHER_TICKET_ID, TICKET_ID, FakeTicketsClient, ticket_dict

# ---------------------------------------------------------------------------
# App builder — used by all client fixtures
# ---------------------------------------------------------------------------


def build_app(tickets_client=None, crud=None, payment_gateway=None) -> FastAPI:
    """
    Fresh app with the inventory client (and optionally the CRUD layer and
    payment gateway) swapped for test doubles.
    The database is only opened when the TestClient is used as a context
    manager, which runs the lifespan against in-memory sqlite.
    """
    app = create_app(db_url="sqlite://:memory:", generate_schemas=True)

    tc = tickets_client if tickets_client is not None else FakeTicketsClient()
    app.dependency_overrides[get_tickets_client] = lambda: tc
    if crud is not None:
        app.dependency_overrides[get_booking_crud] = lambda: crud
    if payment_gateway is not None:
        app.dependency_overrides[get_payment_gateway] = lambda: payment_gateway

    return app


# ---------------------------------------------------------------------------
# Reusable fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def tickets():
    """Inventory with two events: 10 seats at 25.50 and 3 seats at 100."""
    return FakeTicketsClient(
        {
            TICKET_ID: ticket_dict(),
            OTHER_TICKET_ID: ticket_dict(
                _id=OTHER_TICKET_ID, eventName="Opera Gala", price=100, availableSeats=3
            ),
        }
    )


@pytest.fixture()
def client(tickets):
    """Real workflow + real ORM against a throwaway sqlite database."""
    with TestClient(build_app(tickets_client=tickets)) as c:
        yield c


@pytest.fixture()
def mock_crud():
    mock = MagicMock()
    mock.create_booking = AsyncMock()
    mock.get_booking = AsyncMock(return_value=None)
    mock.get_by_reference = AsyncMock(return_value=None)
    mock.list_for_user = AsyncMock(return_value=[])
    mock.mark_cancelled = AsyncMock(return_value=None)
    mock.stats = AsyncMock()
    return mock


@pytest.fixture()
def client_factory():
    """
    Build a TestClient without running the lifespan (no database).
    Pair with a mocked CRUD layer.
    """

    def _make(tickets_client=None, crud=None, payment_gateway=None) -> TestClient:
        return TestClient(
            build_app(
                tickets_client=tickets_client,
                crud=crud,
                payment_gateway=payment_gateway,
            ),
            raise_server_exceptions=False,
        )

    return _make
