from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from booking_service.models import BookingStatus, PaymentStatus

# Decimal internally, plain JSON number on the wire
Money = Annotated[
    Decimal, PlainSerializer(lambda v: float(v), return_type=float, when_used="json")
]


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class ReservationDirection(StrEnum):
    RESERVE = "reserve"
    RELEASE = "release"


class BookingCreate(CamelModel):
    user_id: str = Field(min_length=1)
    username: str = Field(min_length=1)
    ticket_id: str = Field(min_length=1)
    quantity: int = Field(ge=1)
    contact_email: str | None = Field(default=None, max_length=255)
    contact_phone: str | None = Field(default=None, max_length=64)


class BookingResponse(CamelModel):
    id: UUID
    booking_reference: str
    user_id: str
    username: str
    ticket_id: str
    event_name: str
    venue: str | None
    event_date: datetime | None
    event_time: str | None
    quantity: int
    unit_price: Money
    total_price: Money
    status: BookingStatus
    payment_status: PaymentStatus
    contact_email: str | None
    contact_phone: str | None
    created_at: datetime
    updated_at: datetime


class BookingStats(CamelModel):
    total_bookings: int
    confirmed_bookings: int
    cancelled_bookings: int
    total_revenue: Money


class HealthResponse(BaseModel):
    status: str = "ok"
    service: str = "booking-service"


class TicketDetails(CamelModel):
    """The subset of the inventory service's ticket record this service reads."""

    event_name: str
    venue: str | None = None
    date: datetime | None = None
    time: str | None = None
    price: Decimal = Field(ge=0)
    available_seats: int
