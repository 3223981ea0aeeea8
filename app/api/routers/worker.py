from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import get_use_cases
from app.api.schemas.bookings import ReconcileSummaryResponse, ReservationView

router = APIRouter()


@router.post(
    "/workers/reconcile",
    response_model=ReconcileSummaryResponse,
    status_code=status.HTTP_200_OK,
)
async def reconcile_pending(
    use_cases: Annotated[dict, Depends(get_use_cases)],
    limit: int = Query(default=50, ge=1, le=500),
) -> ReconcileSummaryResponse:
    """
    Poll the supplier for every reservation still in booking_processing.

    Meant to be called by an external scheduler; each reservation is handled
    independently and supplier errors leave it unchanged.
    """
    summary = await use_cases["coordinator"].reconcile_pending(limit=limit)
    return ReconcileSummaryResponse(
        checked=summary.checked,
        confirmed=summary.confirmed,
        failed=summary.failed,
        pending=summary.pending,
    )


@router.post(
    "/workers/reconcile/{reservation_id}",
    response_model=ReservationView,
    status_code=status.HTTP_200_OK,
)
async def reconcile_one(
    reservation_id: str,
    use_cases: Annotated[dict, Depends(get_use_cases)],
) -> ReservationView:
    reservation = await use_cases["coordinator"].reconcile(reservation_id)
    return ReservationView.from_entity(reservation)
