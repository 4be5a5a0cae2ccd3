from enum import StrEnum

from tortoise import fields
from tortoise.models import Model


class BookingStatus(StrEnum):
    PENDING = "pending"  # reserved, awaiting payment
    CONFIRMED = "confirmed"  # reserved and paid
    CANCELLED = "cancelled"  # seats released, payment refunded


class PaymentStatus(StrEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


VALID_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.CANCELLED},
    BookingStatus.CANCELLED: set(),
}


class TimestampedModel(Model):
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:  # type: ignore
        abstract = True


class Booking(TimestampedModel):
    id = fields.UUIDField(primary_key=True)
    booking_reference = fields.CharField(max_length=32, unique=True)

    user_id = fields.CharField(max_length=255, db_index=True)
    username = fields.CharField(max_length=255)
    ticket_id = fields.CharField(max_length=255)  # id in the ticket inventory service

    # Event snapshot taken from the inventory service at booking time
    event_name = fields.CharField(max_length=255)
    venue = fields.CharField(max_length=255, null=True)
    event_date = fields.DatetimeField(null=True)
    event_time = fields.CharField(max_length=32, null=True)

    quantity = fields.IntField()
    unit_price = fields.DecimalField(max_digits=10, decimal_places=2)  # snapshot
    total_price = fields.DecimalField(max_digits=12, decimal_places=2)  # computed

    status = fields.CharEnumField(BookingStatus, default=BookingStatus.PENDING)
    payment_status = fields.CharEnumField(PaymentStatus, default=PaymentStatus.PENDING)

    contact_email = fields.CharField(max_length=255, null=True)
    contact_phone = fields.CharField(max_length=64, null=True)

    class Meta:  # type: ignore
        table = "bookings"
