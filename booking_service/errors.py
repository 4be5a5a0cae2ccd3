"""Error taxonomy for the booking service.

Every error maps to one HTTP status and a stable ``code`` that clients can
branch on. Handlers in ``booking_service.main`` render them as
``{"error": code, "detail": message}``.
"""

from fastapi import status


class BookingError(Exception):
    code = "BookingError"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class InvalidRequest(BookingError):
    code = "InvalidRequest"
    status_code = status.HTTP_400_BAD_REQUEST


class TicketNotFound(BookingError):
    code = "TicketNotFound"
    status_code = status.HTTP_404_NOT_FOUND


class InsufficientInventory(BookingError):
    code = "InsufficientInventory"
    status_code = status.HTTP_400_BAD_REQUEST


class ReservationFailed(BookingError):
    code = "ReservationFailed"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class AlreadyCancelled(BookingError):
    code = "AlreadyCancelled"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(BookingError):
    code = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND


class PersistenceError(BookingError):
    code = "PersistenceError"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class StatsUnavailable(BookingError):
    code = "StatsUnavailable"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class InternalError(BookingError):
    code = "InternalError"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
