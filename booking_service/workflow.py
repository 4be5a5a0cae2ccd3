"""
Booking lifecycle: create (check availability, reserve, persist) and cancel
(release, mark cancelled), plus the read-only queries the router exposes.

Consistency notes:
  - The check-then-reserve sequence is not locked locally. Overselling is
    prevented by the inventory service, whose reserve call is atomic.
  - If persisting fails after a successful reserve, the seats stay reserved
    with no booking pointing at them. The error is logged with enough detail
    to reconcile by hand.
  - A failed release during cancellation is logged and ignored; the booking
    side is authoritative.
  - A payment that does not complete leaves the booking pending with its seats
    still reserved. Nothing releases them until the booking is cancelled.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends
from loguru import logger
from tortoise.exceptions import BaseORMException

from booking_service.crud import BookingCRUD, get_booking_crud
from booking_service.deps import (
    PaymentGateway,
    TicketsClient,
    get_payment_gateway,
    get_tickets_client,
)
from booking_service.errors import (
    AlreadyCancelled,
    InsufficientInventory,
    InvalidRequest,
    NotFound,
    PersistenceError,
    ReservationFailed,
    StatsUnavailable,
    TicketNotFound,
)
from booking_service.models import VALID_TRANSITIONS, BookingStatus, PaymentStatus
from booking_service.schemas import BookingCreate, BookingResponse, BookingStats


@dataclass
class BookingWorkflow:
    crud: BookingCRUD
    tickets: TicketsClient
    payments: PaymentGateway

    async def create(self, payload: BookingCreate) -> BookingResponse:
        ticket = await self.tickets.get_ticket(payload.ticket_id)
        if ticket is None:
            raise TicketNotFound("Ticket not found")

        if ticket.available_seats < payload.quantity:
            raise InsufficientInventory(
                f"Not enough seats available "
                f"(requested {payload.quantity}, available {ticket.available_seats})"
            )

        if not await self.tickets.reserve(payload.ticket_id, payload.quantity):
            raise ReservationFailed("Error reserving seats")

        payment_status = await self.payments.authorize(ticket.price * payload.quantity)
        status = (
            BookingStatus.CONFIRMED
            if payment_status == PaymentStatus.COMPLETED
            else BookingStatus.PENDING
        )

        try:
            booking = await self.crud.create_booking(
                user_id=payload.user_id,
                username=payload.username,
                ticket_id=payload.ticket_id,
                ticket=ticket,
                quantity=payload.quantity,
                status=status,
                payment_status=payment_status,
                contact_email=payload.contact_email,
                contact_phone=payload.contact_phone,
            )
        except BaseORMException as exc:
            logger.opt(exception=exc).error(
                "Seats reserved but booking not saved: ticket_id={} quantity={} user_id={}",
                payload.ticket_id,
                payload.quantity,
                payload.user_id,
            )
            raise PersistenceError("Error creating booking") from exc

        logger.info(
            "Booking {} created: ticket_id={} quantity={} total={}",
            booking.booking_reference,
            booking.ticket_id,
            booking.quantity,
            booking.total_price,
        )
        return booking

    async def list_for_user(self, user_id: str | None) -> list[BookingResponse]:
        if not user_id:
            raise InvalidRequest("userId is required")
        return await self.crud.list_for_user(user_id)

    async def get(self, booking_id: str) -> BookingResponse:
        booking = await self.crud.get_booking(booking_id)
        if not booking:
            raise NotFound("Booking not found")
        return booking

    async def get_by_reference(self, reference: str) -> BookingResponse:
        booking = await self.crud.get_by_reference(reference)
        if not booking:
            raise NotFound("Booking not found")
        return booking

    async def cancel(self, booking_id: str) -> BookingResponse:
        booking = await self.get(booking_id)
        if BookingStatus.CANCELLED not in VALID_TRANSITIONS[booking.status]:
            raise AlreadyCancelled("Booking already cancelled")

        if not await self.tickets.release(booking.ticket_id, booking.quantity):
            logger.error(
                "Seat release failed for booking {} (ticket_id={} quantity={}); "
                "cancelling anyway",
                booking.booking_reference,
                booking.ticket_id,
                booking.quantity,
            )

        try:
            cancelled = await self.crud.mark_cancelled(booking.id)
        except BaseORMException as exc:
            logger.opt(exception=exc).error(
                "Could not save cancellation of booking {}", booking.booking_reference
            )
            raise PersistenceError("Error cancelling booking") from exc

        if cancelled is None:
            # Lost a race with another cancel of the same booking
            raise AlreadyCancelled("Booking already cancelled")

        logger.info("Booking {} cancelled", cancelled.booking_reference)
        return cancelled

    async def stats(self) -> BookingStats:
        try:
            return await self.crud.stats()
        except BaseORMException as exc:
            logger.opt(exception=exc).error("Booking statistics query failed")
            raise StatsUnavailable("Error fetching statistics") from exc


def get_booking_workflow(
    crud: BookingCRUD = Depends(get_booking_crud),
    tickets: TicketsClient = Depends(get_tickets_client),
    payments: PaymentGateway = Depends(get_payment_gateway),
) -> BookingWorkflow:
    return BookingWorkflow(crud=crud, tickets=tickets, payments=payments)
