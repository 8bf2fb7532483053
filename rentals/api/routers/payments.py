# rentals/api/routers/payments.py
from fastapi import APIRouter, Depends

from rentals.api.auth import get_current_user
from rentals.api.deps import get_booking_service, get_payment_gateway
from rentals.domain.schemas import (
    BookingStatusOut,
    CreateOrderIn,
    CurrentUser,
    GatewayKeyOut,
    GatewaySignature,
    GatewayVerifyIn,
    InitiatePaymentIn,
    OrderOut,
    OtpCode,
    OtpVerifyIn,
    PaymentFailIn,
    PaymentResultOut,
    UpiId,
    UpiVerifyIn,
)
from rentals.services.booking_service import BookingService

router = APIRouter(prefix="/payments", tags=["payments"])


@router.get("/gateway/key", response_model=GatewayKeyOut)
def get_gateway_key(gateway=Depends(get_payment_gateway)):
    return {"key_id": gateway.key_id}


@router.post("/initiate", response_model=BookingStatusOut)
def initiate_payment(
    payload: InitiatePaymentIn,
    user: CurrentUser = Depends(get_current_user),
    svc: BookingService = Depends(get_booking_service),
):
    return svc.initiate_payment(payload.booking_id, user, payload.method)


@router.post("/gateway/create-order", response_model=OrderOut)
def create_gateway_order(
    payload: CreateOrderIn,
    user: CurrentUser = Depends(get_current_user),
    svc: BookingService = Depends(get_booking_service),
):
    return svc.create_gateway_order(payload.booking_id, user, payload.amount, payload.currency)


@router.post("/gateway/verify", response_model=PaymentResultOut)
def verify_gateway_payment(
    payload: GatewayVerifyIn,
    user: CurrentUser = Depends(get_current_user),
    svc: BookingService = Depends(get_booking_service),
):
    evidence = GatewaySignature(
        order_id=payload.order_id,
        payment_id=payload.payment_id,
        signature=payload.signature,
    )
    return {"success": True, "booking": svc.confirm_payment(payload.booking_id, user, evidence)}


@router.post("/otp/verify", response_model=PaymentResultOut)
def verify_otp_payment(
    payload: OtpVerifyIn,
    user: CurrentUser = Depends(get_current_user),
    svc: BookingService = Depends(get_booking_service),
):
    """Demo path: any well-formed 6-digit code is accepted, no OTP is actually sent."""
    evidence = OtpCode(otp=payload.otp)
    return {"success": True, "booking": svc.confirm_payment(payload.booking_id, user, evidence)}


@router.post("/upi/verify", response_model=PaymentResultOut)
def verify_upi_payment(
    payload: UpiVerifyIn,
    user: CurrentUser = Depends(get_current_user),
    svc: BookingService = Depends(get_booking_service),
):
    """Demo path: a syntactically valid UPI id confirms the booking, no settlement."""
    evidence = UpiId(upi_id=payload.upi_id, amount=payload.amount)
    return {"success": True, "booking": svc.confirm_payment(payload.booking_id, user, evidence)}


@router.post("/fail", response_model=PaymentResultOut)
def fail_payment(
    payload: PaymentFailIn,
    user: CurrentUser = Depends(get_current_user),
    svc: BookingService = Depends(get_booking_service),
):
    return {"success": False, "booking": svc.fail_payment(payload.booking_id, user, payload.reason)}
