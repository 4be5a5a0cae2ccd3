from fastapi import APIRouter, Depends, Query, status

from booking_service.schemas import BookingCreate, BookingResponse, BookingStats
from booking_service.workflow import BookingWorkflow, get_booking_workflow

router = APIRouter(prefix="/bookings", tags=["bookings"])


# ---------------------------------------------------------------------------
# Endpoints
#   Static paths (/stats/summary, /reference/...) are declared before
#   /{booking_id} so they are not captured as ids.
# ---------------------------------------------------------------------------


@router.get("/stats/summary", response_model=BookingStats)
async def get_booking_stats(
    workflow: BookingWorkflow = Depends(get_booking_workflow),
) -> BookingStats:
    """Totals over every booking. Revenue counts confirmed, paid bookings only."""
    return await workflow.stats()


@router.get("/reference/{reference}", response_model=BookingResponse)
async def get_booking_by_reference(
    reference: str,
    workflow: BookingWorkflow = Depends(get_booking_workflow),
) -> BookingResponse:
    return await workflow.get_by_reference(reference)


@router.get("", response_model=list[BookingResponse])
async def list_bookings(
    user_id: str | None = Query(default=None, alias="userId"),
    workflow: BookingWorkflow = Depends(get_booking_workflow),
) -> list[BookingResponse]:
    """A user's bookings, newest first."""
    return await workflow.list_for_user(user_id)


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    workflow: BookingWorkflow = Depends(get_booking_workflow),
) -> BookingResponse:
    return await workflow.create(payload)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    workflow: BookingWorkflow = Depends(get_booking_workflow),
) -> BookingResponse:
    return await workflow.get(booking_id)


@router.delete("/{booking_id}", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str,
    workflow: BookingWorkflow = Depends(get_booking_workflow),
) -> BookingResponse:
    """Cancel a booking and hand its seats back to the inventory service."""
    return await workflow.cancel(booking_id)
