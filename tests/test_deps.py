"""
Tests for booking_service/deps.py: TicketsClient and the payment gateway.
HTTP is served by httpx.MockTransport; nothing leaves the process.
"""

from __future__ import annotations

import json
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio

from booking_service.deps import (
    SimulatedPaymentGateway,
    TicketsClient,
    close_http_clients,
    get_payment_gateway,
    get_tickets_client,
)
from booking_service.models import PaymentStatus
from booking_service.schemas import ReservationDirection

from .factories import TICKET_ID, ticket_dict

BASE_URL = "http://tickets.test"


@pytest_asyncio.fixture()
async def make_client():
    """TicketsClient factory over MockTransport; every client is closed afterwards."""
    opened: list[httpx.AsyncClient] = []

    def _make(handler) -> TicketsClient:
        http = httpx.AsyncClient(
            base_url=BASE_URL, transport=httpx.MockTransport(handler)
        )
        opened.append(http)
        return TicketsClient(http_client=http)

    yield _make
    for http in opened:
        await http.aclose()


class TestGetTicket:
    @pytest.mark.asyncio
    async def test_parses_ticket(self, make_client):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["path"] = request.url.path
            return httpx.Response(200, json=ticket_dict())

        ticket = await make_client(handler).get_ticket(TICKET_ID)

        assert captured["path"] == f"/api/tickets/{TICKET_ID}"
        assert ticket is not None
        assert ticket.event_name == "Jazz Night"
        assert ticket.price == Decimal("25.5")
        assert ticket.available_seats == 10

    @pytest.mark.asyncio
    async def test_404_returns_none(self, make_client):
        client = make_client(lambda r: httpx.Response(404))
        ticket = await client.get_ticket(TICKET_ID)
        assert ticket is None

    @pytest.mark.asyncio
    async def test_server_error_returns_none(self, make_client):
        client = make_client(lambda r: httpx.Response(503))
        ticket = await client.get_ticket(TICKET_ID)
        assert ticket is None

    @pytest.mark.asyncio
    async def test_timeout_returns_none(self, make_client):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        assert await make_client(handler).get_ticket(TICKET_ID) is None

    @pytest.mark.asyncio
    async def test_connection_error_returns_none(self, make_client):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        assert await make_client(handler).get_ticket(TICKET_ID) is None

    @pytest.mark.asyncio
    async def test_malformed_body_returns_none(self, make_client):
        ticket = await make_client(
            lambda r: httpx.Response(200, json={"eventName": "No price"})
        ).get_ticket(TICKET_ID)
        assert ticket is None

    @pytest.mark.asyncio
    async def test_non_json_body_returns_none(self, make_client):
        ticket = await make_client(
            lambda r: httpx.Response(200, text="<html>oops</html>")
        ).get_ticket(TICKET_ID)
        assert ticket is None


class TestAdjustReservation:
    @pytest.mark.asyncio
    async def test_reserve_posts_quantity(self, make_client):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["method"] = request.method
            captured["path"] = request.url.path
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"message": "Seats reserved"})

        assert await make_client(handler).reserve(TICKET_ID, 3) is True
        assert captured == {
            "method": "POST",
            "path": f"/api/tickets/{TICKET_ID}/reserve",
            "body": {"quantity": 3},
        }

    @pytest.mark.asyncio
    async def test_release_hits_release_endpoint(self, make_client):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["path"] = request.url.path
            return httpx.Response(200)

        assert await make_client(handler).release(TICKET_ID, 1) is True
        assert captured["path"] == f"/api/tickets/{TICKET_ID}/release"

    @pytest.mark.asyncio
    async def test_rejected_reservation_returns_false(self, make_client):
        client = make_client(
            lambda r: httpx.Response(400, json={"error": "Not enough seats"})
        )
        assert (
            await client.adjust_reservation(TICKET_ID, 5, ReservationDirection.RESERVE)
            is False
        )

    @pytest.mark.asyncio
    async def test_timeout_returns_false(self, make_client):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        assert await make_client(handler).release(TICKET_ID, 1) is False


class TestTicketIdEscaping:
    """Ticket ids come from the request body and must stay one path segment."""

    @pytest.mark.asyncio
    async def test_slashes_and_dots_are_escaped_on_get(self, make_client):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["raw_path"] = request.url.raw_path
            return httpx.Response(404)

        assert await make_client(handler).get_ticket("t1/release/..") is None
        assert captured["raw_path"] == b"/api/tickets/t1%2Frelease%2F.."

    @pytest.mark.asyncio
    async def test_query_marker_is_escaped_on_reserve(self, make_client):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["raw_path"] = request.url.raw_path
            return httpx.Response(200)

        await make_client(handler).reserve("t1?x=", 1)
        assert captured["raw_path"] == b"/api/tickets/t1%3Fx%3D/reserve"

    @pytest.mark.asyncio
    async def test_traversal_and_fragment_are_escaped(self, make_client):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["raw_path"] = request.url.raw_path
            return httpx.Response(200)

        await make_client(handler).reserve("../../bookings/x#", 1)
        assert captured["raw_path"] == (
            b"/api/tickets/..%2F..%2Fbookings%2Fx%23/reserve"
        )

    @pytest.mark.asyncio
    async def test_bare_dot_dot_id_is_escaped(self, make_client):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["raw_path"] = request.url.raw_path
            return httpx.Response(200)

        await make_client(handler).release("..", 1)
        assert captured["raw_path"] == b"/api/tickets/%2E%2E/release"


class TestProviders:
    def test_same_tickets_client_returned_each_time(self):
        assert isinstance(get_tickets_client(), TicketsClient)
        assert get_tickets_client() is get_tickets_client()

    @pytest.mark.asyncio
    async def test_default_client_property_returns_async_client(self):
        """Without an injected client, ._client comes from the lru_cache factory."""
        try:
            assert isinstance(TicketsClient()._client, httpx.AsyncClient)
        finally:
            await close_http_clients()

    @pytest.mark.asyncio
    async def test_simulated_payment_always_completes(self):
        gateway = get_payment_gateway()
        assert isinstance(gateway, SimulatedPaymentGateway)
        assert await gateway.authorize(Decimal("42.00")) == PaymentStatus.COMPLETED
