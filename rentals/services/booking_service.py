# rentals/services/booking_service.py
import re
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List

from rentals.data.models.booking import BookingModel
from rentals.data.models.booking_item import BookingItemModel
from rentals.domain.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PaymentSignatureError,
    ValidationError,
)
from rentals.domain.schemas import (
    BookingCreate,
    CurrentUser,
    GatewaySignature,
    OtpCode,
    PaymentEvidence,
    UpiId,
    CENT,
)
from rentals.repos.base import BookingRepository, ProductRepository
from rentals.services.availability_service import AvailabilityService
from rentals.services.lock_service import LockService
from rentals.services.pricing import price
from rentals.utils.dates import as_utc
from rentals.utils.settings import PAYMENT_CURRENCY, PAYMENT_DEMO_MODE
from rentals.utils.logging import get_logger

logger = get_logger(__name__)

OTP_PATTERN = re.compile(r"\d{6}", re.ASCII)
UPI_PATTERN = re.compile(r"[A-Za-z0-9._-]+@[A-Za-z]{3,}", re.ASCII)

# admin driven lifecycle after payment
ADMIN_TRANSITIONS = {
    "pending": {"confirmed"},
    "confirmed": {"active"},
    "active": {"completed"},
}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _cents(amount) -> Decimal:
    return Decimal(amount).quantize(CENT)


def booking_to_dict(booking: BookingModel) -> Dict[str, Any]:
    return {
        "id": booking.id,
        "status": booking.status,
        "payment_status": booking.payment_status,
        "items": [
            {
                "product": i.product_id,
                "quantity": i.quantity,
                "start_date": as_utc(i.start_date),
                "end_date": as_utc(i.end_date),
                "line_total": i.line_total,
            }
            for i in booking.items
        ],
        "total_amount": booking.total_amount,
        "payment_info": dict(booking.payment_info or {}),
        "delivery_info": dict(booking.delivery_info or {}),
        "user": {
            "id": booking.user_id,
            "name": booking.user_name,
            "email": booking.user_email,
        },
        "created_at": as_utc(booking.created_at),
        "updated_at": as_utc(booking.updated_at),
    }


def booking_status_dict(booking: BookingModel) -> Dict[str, Any]:
    return {"id": booking.id, "status": booking.status, "payment_status": booking.payment_status}


class BookingService:
    """
    Booking lifecycle and payment state.

    status:         pending -> confirmed -> active -> completed, or cancelled
    payment_status: unpaid -> processing -> paid | failed

    Every mutation goes through _transition (optimistic version check).
    All confirmation paths (gateway signature, OTP, UPI) share confirm_payment
    and differ only in how their evidence is verified.
    """

    def __init__(
        self,
        product_repo: ProductRepository,
        booking_repo: BookingRepository,
        lock_service: LockService,
        gateway,
        demo_mode: bool = PAYMENT_DEMO_MODE,
        currency: str = PAYMENT_CURRENCY,
    ):
        self.product_repo = product_repo
        self.booking_repo = booking_repo
        self.lock_service = lock_service
        self.gateway = gateway
        self.demo_mode = demo_mode
        self.currency = currency
        self.availability = AvailabilityService(product_repo, booking_repo)

    #queries
    def get_booking(self, booking_id: int, user: CurrentUser) -> Dict[str, Any]:
        booking = self._load(booking_id)
        self._authorize(booking, user)
        return booking_to_dict(booking)

    def list_bookings(self, user: CurrentUser) -> List[Dict[str, Any]]:
        bookings = self.booking_repo.list_bookings(None if user.is_admin else user.id)
        return [booking_to_dict(b) for b in bookings]

    #commands
    def create_booking(self, user: CurrentUser, payload: BookingCreate) -> Dict[str, Any]:
        products = {}
        for item in payload.items:
            product = self.product_repo.get_product(item.product)
            if product is None:
                raise ValidationError(f"Invalid product {item.product}")
            products[item.product] = product

        with self.lock_service.hold_products(products.keys()):
            # re-check under the lock, earlier items of this request count too
            accepted = defaultdict(list)
            for item in payload.items:
                product = products[item.product]
                reserved = self.availability.reserved_units(
                    item.product, item.start_date, item.end_date, extra=accepted[item.product]
                )
                free = max(0, product.stock - reserved)
                if free < item.quantity:
                    logger.warning(
                        f"Booking rejected for user {user.id}: product {item.product} "
                        f"has {free} free unit(s), {item.quantity} requested"
                    )
                    raise ConflictError(
                        f"Insufficient stock for product {item.product}: "
                        f"{free} unit(s) available for the requested dates"
                    )
                accepted[item.product].append((item.start_date, item.end_date, item.quantity))

            items = [
                BookingItemModel(
                    product_id=item.product,
                    quantity=item.quantity,
                    start_date=item.start_date,
                    end_date=item.end_date,
                    line_total=price(products[item.product], item.start_date, item.end_date, item.quantity),
                )
                for item in payload.items
            ]

            # always the server's figure, never the client's
            total = sum((i.line_total for i in items), Decimal("0"))
            if payload.total_amount is not None and _cents(payload.total_amount) != _cents(total):
                logger.warning(
                    f"Client total {payload.total_amount} ignored for user {user.id}, server total {_cents(total)}"
                )

            payment_info = {}
            if payload.payment_info.method:
                payment_info["method"] = payload.payment_info.method

            created = self.booking_repo.create_booking(
                BookingModel(
                    status="pending",
                    payment_status="unpaid",
                    version=1,
                    total_amount=total,
                    payment_info=payment_info,
                    delivery_info=payload.delivery_info.model_dump(by_alias=True, exclude_none=True),
                    user_id=user.id,
                    user_name=user.name,
                    user_email=user.email,
                    items=items,
                )
            )

        logger.info(f"Booking {created.id} created for user {user.id}, total {total}")
        return booking_to_dict(created)

    def cancel_booking(self, booking_id: int, user: CurrentUser) -> Dict[str, Any]:
        booking = self._load(booking_id)
        self._authorize(booking, user)

        if booking.status == "cancelled":
            return booking_to_dict(booking)
        if booking.status == "completed":
            raise ValidationError("Completed bookings cannot be cancelled")

        booking = self._transition(booking, {"status": "cancelled"})
        return booking_to_dict(booking)

    def update_status(self, booking_id: int, user: CurrentUser, status: str) -> Dict[str, Any]:
        if not user.is_admin:
            raise ForbiddenError("Only administrators can change booking status")

        booking = self._load(booking_id)
        if status == booking.status:
            return booking_to_dict(booking)
        if status not in ADMIN_TRANSITIONS.get(booking.status, set()):
            raise ValidationError(f"Cannot move booking from {booking.status} to {status}")

        booking = self._transition(booking, {"status": status})
        return booking_to_dict(booking)

    def initiate_payment(self, booking_id: int, user: CurrentUser, method: str) -> Dict[str, Any]:
        booking = self._load(booking_id)
        self._authorize(booking, user)
        self._check_payable(booking)
        if method in ("otp", "upi"):
            self._require_demo(method.upper())

        info = dict(booking.payment_info or {})
        info.update({"method": method, "initiated_at": _now_iso()})
        booking = self._transition(booking, {"payment_status": "processing", "payment_info": info})
        return booking_status_dict(booking)

    def create_gateway_order(
        self,
        booking_id: int,
        user: CurrentUser,
        amount: Decimal | None = None,
        currency: str | None = None,
    ) -> Dict[str, Any]:
        booking = self._load(booking_id)
        self._authorize(booking, user, owner_only=True)
        self._check_payable(booking)

        payable = Decimal(booking.total_amount)
        if amount is not None and _cents(amount) != _cents(payable):
            raise ValidationError(f"Amount {amount} does not match booking total {_cents(payable)}")
        currency = (currency or self.currency).upper()

        info = dict(booking.payment_info or {})

        # same booking, amount and currency while still processing -> reuse the order
        if (
            booking.payment_status == "processing"
            and info.get("gateway_order_id")
            and info.get("order_source") == self.gateway.source
            and info.get("order_amount") == str(_cents(payable))
            and info.get("order_currency") == currency
        ):
            logger.info(f"Reusing gateway order {info['gateway_order_id']} for booking {booking.id}")
            return {
                "order_id": info["gateway_order_id"],
                "amount": payable,
                "currency": currency,
                "booking_id": booking.id,
            }

        # GatewayError propagates, no substitute order on failure
        order = self.gateway.create_order(
            payable,
            currency,
            {
                "receipt": f"booking_{booking.id}",
                "booking_id": str(booking.id),
                "idempotency_key": f"booking-{booking.id}-{_cents(payable)}-{currency}",
            },
        )

        info.update(
            {
                "method": "gateway",
                "gateway_order_id": order["order_id"],
                "order_source": order["source"],
                "order_amount": str(_cents(payable)),
                "order_currency": currency,
                "order_created_at": _now_iso(),
            }
        )
        self._transition(booking, {"payment_status": "processing", "payment_info": info})

        return {
            "order_id": order["order_id"],
            "amount": payable,
            "currency": currency,
            "booking_id": booking.id,
        }

    def confirm_payment(self, booking_id: int, user: CurrentUser, evidence: PaymentEvidence) -> Dict[str, Any]:
        booking = self._load(booking_id)
        self._authorize(booking, user)

        if booking.status == "cancelled":
            raise ValidationError("Booking is cancelled")

        # evidence is checked even on a paid booking, a bad signature is never a no-op
        payment_updates = self._verify_evidence(booking, evidence)

        if booking.payment_status == "paid":
            logger.info(f"Booking {booking.id} already paid, {evidence.method} confirmation ignored")
            return booking_status_dict(booking)

        info = dict(booking.payment_info or {})
        info.update(payment_updates)
        info["paid_at"] = _now_iso()

        new_data = {"payment_status": "paid", "payment_info": info}
        if booking.status == "pending":
            new_data["status"] = "confirmed"

        try:
            booking = self._transition(booking, new_data)
        except ConflictError:
            # lost the race to a concurrent confirmation of the same booking
            current = self._load(booking.id)
            if current.payment_status != "paid":
                raise
            logger.info(f"Booking {current.id} paid by a concurrent confirmation, {evidence.method} ignored")
            return booking_status_dict(current)
        return booking_status_dict(booking)

    def fail_payment(self, booking_id: int, user: CurrentUser, reason: str | None = None) -> Dict[str, Any]:
        booking = self._load(booking_id)
        self._authorize(booking, user)

        if booking.payment_status == "paid":
            raise ValidationError("Booking is already paid")

        info = dict(booking.payment_info or {})
        info.update({"failure_reason": reason or "payment failed", "failed_at": _now_iso()})
        booking = self._transition(booking, {"payment_status": "failed", "payment_info": info})
        return booking_status_dict(booking)

    #helpers
    def _load(self, booking_id: int) -> BookingModel:
        booking = self.booking_repo.get_booking(booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    def _authorize(self, booking: BookingModel, user: CurrentUser, owner_only: bool = False) -> None:
        if booking.user_id == user.id:
            return
        if user.is_admin and not owner_only:
            return
        logger.warning(f"User {user.id} denied access to booking {booking.id}")
        raise ForbiddenError("Not authorized to access this booking")

    def _check_payable(self, booking: BookingModel) -> None:
        if booking.status == "cancelled":
            raise ValidationError("Booking is cancelled")
        if booking.payment_status == "paid":
            raise ValidationError("Booking is already paid")

    def _require_demo(self, label: str) -> None:
        if not self.demo_mode:
            raise ForbiddenError(f"{label} demo payments are disabled")

    def _verify_evidence(self, booking: BookingModel, evidence: PaymentEvidence) -> Dict[str, Any]:
        info = booking.payment_info or {}

        if isinstance(evidence, GatewaySignature):
            if info.get("gateway_order_id") != evidence.order_id:
                raise ValidationError("Payment order does not belong to this booking")

            # demo orders were issued in-process, nothing to sign them
            if self.demo_mode and info.get("order_source") == "demo":
                logger.info(f"Demo order {evidence.order_id} accepted without signature")
                verified = False
            else:
                if not self.gateway.verify_signature(evidence.order_id, evidence.payment_id, evidence.signature):
                    logger.warning(f"Invalid payment signature for booking {booking.id}")
                    raise PaymentSignatureError("Invalid payment signature")
                verified = True

            return {
                "method": "gateway",
                "gateway_payment_id": evidence.payment_id,
                "signature_verified": verified,
            }

        if isinstance(evidence, OtpCode):
            self._require_demo("OTP")
            if not OTP_PATTERN.fullmatch(evidence.otp):
                raise ValidationError("Invalid OTP, expected 6 digits")
            return {"method": "otp", "otp_verified": True}

        if isinstance(evidence, UpiId):
            self._require_demo("UPI")
            if not UPI_PATTERN.fullmatch(evidence.upi_id):
                raise ValidationError("Invalid UPI ID (e.g. username@bank)")
            if evidence.amount is not None and _cents(evidence.amount) != _cents(booking.total_amount):
                raise ValidationError("UPI amount does not match booking total")
            return {"method": "upi", "upi_id": evidence.upi_id}

        raise ValidationError("Unsupported payment method")

    def _transition(self, booking: BookingModel, new_data: Dict[str, Any]) -> BookingModel:
        old_version = booking.version
        rowcount = self.booking_repo.update_booking_version(
            booking_id=booking.id,
            old_version=old_version,
            new_data={**new_data, "version": old_version + 1},
        )

        # e.g. UPDATE bookings SET version 3 WHERE id 1 AND version 2 -> 0 rows
        if rowcount == 0:
            self.booking_repo.rollback()
            raise ConflictError("Booking was modified by another request, please retry")

        self.booking_repo.commit()

        changes = ", ".join(f"{k}={v}" for k, v in new_data.items() if k != "payment_info")
        logger.info(f"Booking {booking.id} v{old_version + 1}: {changes}")

        return self._load(booking.id)
