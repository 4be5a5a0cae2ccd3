from __future__ import annotations

import secrets
import string
import time
from decimal import Decimal
from uuid import UUID

from loguru import logger
from tortoise.exceptions import IntegrityError
from tortoise.functions import Sum
from tortoise.transactions import in_transaction

from booking_service.models import Booking, BookingStatus, PaymentStatus
from booking_service.schemas import BookingResponse, BookingStats, TicketDetails

REFERENCE_ATTEMPTS = 5
_BASE36 = string.digits + string.ascii_uppercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_booking_reference() -> str:
    """BK-<epoch millis, base36>-<5 random base36 chars>, e.g. BK-MC2D7Q1K-4ZQ0A."""
    timestamp = _to_base36(time.time_ns() // 1_000_000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(5))
    return f"BK-{timestamp}-{suffix}"


def _parse_id(booking_id: str | UUID) -> UUID | None:
    if isinstance(booking_id, UUID):
        return booking_id
    try:
        return UUID(booking_id)
    except (ValueError, TypeError):
        return None


class BookingCRUD:
    async def create_booking(
        self,
        user_id: str,
        username: str,
        ticket_id: str,
        ticket: TicketDetails,
        quantity: int,
        status: BookingStatus,
        payment_status: PaymentStatus,
        contact_email: str | None = None,
        contact_phone: str | None = None,
    ) -> BookingResponse:
        """
        Persist a booking with an event snapshot taken from `ticket`.
        The unique index on booking_reference is the real guard; on a collision
        a fresh reference is generated and the insert retried.
        """
        unit_price = Decimal(ticket.price).quantize(Decimal("0.01"))
        total_price = unit_price * quantity

        for attempt in range(1, REFERENCE_ATTEMPTS + 1):
            reference = generate_booking_reference()
            try:
                inst = await Booking.create(
                    booking_reference=reference,
                    user_id=user_id,
                    username=username,
                    ticket_id=ticket_id,
                    event_name=ticket.event_name,
                    venue=ticket.venue,
                    event_date=ticket.date,
                    event_time=ticket.time,
                    quantity=quantity,
                    unit_price=unit_price,
                    total_price=total_price,
                    status=status,
                    payment_status=payment_status,
                    contact_email=contact_email,
                    contact_phone=contact_phone,
                )
            except IntegrityError:
                if attempt == REFERENCE_ATTEMPTS:
                    raise
                logger.warning("Insert rejected for reference {}, retrying", reference)
            else:
                break

        return BookingResponse.model_validate(inst, from_attributes=True)

    async def get_booking(self, booking_id: str | UUID) -> BookingResponse | None:
        pk = _parse_id(booking_id)
        if pk is None:
            return None
        inst = await Booking.get_or_none(id=pk)
        if not inst:
            return None
        return BookingResponse.model_validate(inst, from_attributes=True)

    async def get_by_reference(self, reference: str) -> BookingResponse | None:
        inst = await Booking.get_or_none(booking_reference=reference)
        if not inst:
            return None
        return BookingResponse.model_validate(inst, from_attributes=True)

    async def list_for_user(self, user_id: str) -> list[BookingResponse]:
        bookings = await Booking.filter(user_id=user_id).order_by("-created_at")
        return [
            BookingResponse.model_validate(b, from_attributes=True) for b in bookings
        ]

    async def mark_cancelled(self, booking_id: str | UUID) -> BookingResponse | None:
        """
        Flip a non-cancelled booking to cancelled/refunded.
        Returns None if the booking is gone or was cancelled concurrently.
        """
        pk = _parse_id(booking_id)
        if pk is None:
            return None

        # Row lock so two concurrent cancels cannot both succeed
        async with in_transaction():
            inst = await Booking.select_for_update().get_or_none(id=pk)
            if not inst or inst.status == BookingStatus.CANCELLED:
                return None
            inst.status = BookingStatus.CANCELLED  # type: ignore
            inst.payment_status = PaymentStatus.REFUNDED  # type: ignore
            await inst.save(update_fields=["status", "payment_status", "updated_at"])

        return BookingResponse.model_validate(inst, from_attributes=True)

    async def stats(self) -> BookingStats:
        total = await Booking.all().count()
        confirmed = await Booking.filter(status=BookingStatus.CONFIRMED).count()
        cancelled = await Booking.filter(status=BookingStatus.CANCELLED).count()
        revenue = (
            await Booking.filter(
                status=BookingStatus.CONFIRMED,
                payment_status=PaymentStatus.COMPLETED,
            )
            .annotate(total=Sum("total_price"))
            .first()
            .values_list("total", flat=True)
        )
        # SUM over no rows is NULL
        if revenue is None:
            revenue = Decimal("0")
        return BookingStats(
            total_bookings=total,
            confirmed_bookings=confirmed,
            cancelled_bookings=cancelled,
            total_revenue=Decimal(str(revenue)),
        )


booking_crud = BookingCRUD()


def get_booking_crud() -> BookingCRUD:
    return booking_crud
