from decimal import Decimal
from functools import lru_cache
from typing import Protocol
from urllib.parse import quote

import httpx
from loguru import logger
from pydantic import ValidationError

from booking_service import settings
from booking_service.models import PaymentStatus
from booking_service.schemas import ReservationDirection, TicketDetails

# ---------------------------------------------------------------------------
# TicketsClient — thin async wrapper around the ticket inventory service API
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def _get_tickets_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.ticket_service_url,
        timeout=httpx.Timeout(settings.ticket_service_timeout),
        follow_redirects=True,
    )


def _ticket_path(ticket_id: str) -> str:
    # One escaped path segment, so "/", "?", "#" and ".." stay part of the id
    segment = quote(ticket_id, safe="")
    if segment in (".", ".."):
        segment = segment.replace(".", "%2E")
    return f"/api/tickets/{segment}"


async def close_http_clients() -> None:
    if _get_tickets_http_client.cache_info().currsize:
        await _get_tickets_http_client().aclose()
        _get_tickets_http_client.cache_clear()


class TicketsClient:
    """
    Thin async wrapper around the ticket inventory service.
    The inventory service owns seat counts and makes reserve/release atomic;
    this client only reports whether a call went through.
    Timeouts and transport errors are treated like any other failed call.
    """

    def __init__(self, http_client: httpx.AsyncClient | None = None):
        self._http_client = http_client

    @property
    def _client(self) -> httpx.AsyncClient:
        return self._http_client or _get_tickets_http_client()

    async def get_ticket(self, ticket_id: str) -> TicketDetails | None:
        """Returns the ticket, or None if it is absent or the service is unreachable."""
        try:
            resp = await self._client.get(_ticket_path(ticket_id))
        except httpx.HTTPError as exc:
            logger.warning("Ticket service unreachable for ticket {}: {}", ticket_id, exc)
            return None

        if resp.status_code >= 400:
            logger.warning(
                "Ticket service returned {} for ticket {}", resp.status_code, ticket_id
            )
            return None

        try:
            return TicketDetails.model_validate(resp.json())
        except (ValueError, ValidationError):
            logger.warning("Ticket service sent an unreadable ticket {}", ticket_id)
            return None

    async def adjust_reservation(
        self, ticket_id: str, quantity: int, direction: ReservationDirection
    ) -> bool:
        """POST /api/tickets/{id}/reserve|release. True only on a 2xx/3xx answer."""
        try:
            resp = await self._client.post(
                f"{_ticket_path(ticket_id)}/{direction.value}",
                json={"quantity": quantity},
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "Ticket service {} call failed for ticket {}: {}",
                direction.value,
                ticket_id,
                exc,
            )
            return False

        if resp.status_code >= 400:
            logger.warning(
                "Ticket service {} returned {} for ticket {}",
                direction.value,
                resp.status_code,
                ticket_id,
            )
            return False
        return True

    async def reserve(self, ticket_id: str, quantity: int) -> bool:
        return await self.adjust_reservation(
            ticket_id, quantity, ReservationDirection.RESERVE
        )

    async def release(self, ticket_id: str, quantity: int) -> bool:
        return await self.adjust_reservation(
            ticket_id, quantity, ReservationDirection.RELEASE
        )


_tickets_client = TicketsClient()


def get_tickets_client() -> TicketsClient:
    return _tickets_client


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


class PaymentGateway(Protocol):
    async def authorize(self, amount: Decimal) -> PaymentStatus: ...


class SimulatedPaymentGateway:
    """Stand-in until a real payment provider is wired in. Always succeeds."""

    async def authorize(self, amount: Decimal) -> PaymentStatus:
        logger.debug("Simulated payment authorized: amount={}", amount)
        return PaymentStatus.COMPLETED


_payment_gateway = SimulatedPaymentGateway()


def get_payment_gateway() -> PaymentGateway:
    return _payment_gateway
