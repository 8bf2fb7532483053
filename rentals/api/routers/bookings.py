# rentals/api/routers/bookings.py
from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import Field

from rentals.api.auth import get_current_user
from rentals.api.deps import get_availability_service, get_booking_service
from rentals.domain.schemas import (
    AvailabilityIn,
    AvailabilityOut,
    BookingCreate,
    BookingEnvelope,
    BookingListOut,
    CurrentUser,
    RequestModel,
)
from rentals.services.availability_service import AvailabilityService
from rentals.services.booking_service import BookingService

router = APIRouter(prefix="/bookings", tags=["bookings"])


class StatusUpdateIn(RequestModel):
    status: Literal["confirmed", "active", "completed"] = Field(...)


@router.post("/check-availability", response_model=AvailabilityOut)
def check_availability(
    payload: AvailabilityIn,
    svc: AvailabilityService = Depends(get_availability_service),
):
    return svc.check_availability(
        payload.product_id,
        payload.start_date,
        payload.end_date,
        payload.quantity,
    )


@router.post("", response_model=BookingEnvelope, status_code=201)
def create_booking(
    payload: BookingCreate,
    user: CurrentUser = Depends(get_current_user),
    svc: BookingService = Depends(get_booking_service),
):
    """
    Creates a pending/unpaid booking.
    Stock is re-checked under the product locks and totalAmount is always
    computed here from the rate cards.
    """
    return {"booking": svc.create_booking(user, payload)}


@router.get("", response_model=BookingListOut)
def list_bookings(
    user: CurrentUser = Depends(get_current_user),
    svc: BookingService = Depends(get_booking_service),
):
    return {"bookings": svc.list_bookings(user)}


@router.get("/{booking_id}", response_model=BookingEnvelope)
def get_booking(
    booking_id: int,
    user: CurrentUser = Depends(get_current_user),
    svc: BookingService = Depends(get_booking_service),
):
    return {"booking": svc.get_booking(booking_id, user)}


@router.put("/{booking_id}/cancel", response_model=BookingEnvelope)
def cancel_booking(
    booking_id: int,
    user: CurrentUser = Depends(get_current_user),
    svc: BookingService = Depends(get_booking_service),
):
    return {"booking": svc.cancel_booking(booking_id, user)}


@router.put("/{booking_id}/status", response_model=BookingEnvelope)
def update_booking_status(
    booking_id: int,
    payload: StatusUpdateIn,
    user: CurrentUser = Depends(get_current_user),
    svc: BookingService = Depends(get_booking_service),
):
    """Admin only: approve, hand over (active) or close (completed) a booking."""
    return {"booking": svc.update_status(booking_id, user, payload.status)}
