# rentals/domain/schemas.py
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    model_validator,
)
from pydantic.alias_generators import to_camel

from rentals.utils.dates import as_utc

CENT = Decimal("0.01")


def to_display_amount(value: Decimal) -> float:
    # the only rounding step, applied when an amount leaves the service
    return float(Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


Money = Annotated[Decimal, PlainSerializer(to_display_amount, return_type=float, when_used="json")]
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]

PaymentMethod = Literal["gateway", "otp", "upi"]


class RequestModel(BaseModel):
    """Request bodies: camelCase on the wire, unknown fields rejected."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class ResponseModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# --- availability -----------------------------------------------------------

class RentalWindowIn(RequestModel):
    start_date: UtcDatetime
    end_date: UtcDatetime

    @model_validator(mode="after")
    def check_range(self):
        if self.end_date <= self.start_date:
            raise ValueError("endDate must be after startDate")
        return self


class AvailabilityIn(RentalWindowIn):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(default=1, ge=1)


class AvailabilityOut(ResponseModel):
    available: bool
    available_units: int


# --- quotations -------------------------------------------------------------

class QuoteItemIn(RequestModel):
    product: int = Field(..., gt=0, description="Product ID")
    start_date: UtcDatetime
    end_date: UtcDatetime
    quantity: int = Field(default=1, ge=1)


class QuotationIn(RequestModel):
    items: List[QuoteItemIn] = Field(..., min_length=1)


class QuoteLineOut(ResponseModel):
    product: int
    product_name: Optional[str] = None
    quantity: int
    start_date: datetime
    end_date: datetime
    days: int
    line_total: Money


class QuotationOut(ResponseModel):
    items: List[QuoteLineOut]
    subtotal: Money
    tax: Money
    delivery_fee: Money
    total: Money


class QuotationEnvelope(ResponseModel):
    quotation: QuotationOut


# --- bookings ---------------------------------------------------------------

class BookingItemIn(RentalWindowIn):
    product: int = Field(..., gt=0)
    quantity: int = Field(default=1, ge=1)


class DeliveryInfoIn(RequestModel):
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    phone: Optional[str] = None
    delivery_date: Optional[str] = None
    delivery_time: Optional[str] = None
    special_instructions: Optional[str] = None


class PaymentPreferenceIn(RequestModel):
    method: Optional[PaymentMethod] = None


class BookingCreate(RequestModel):
    items: List[BookingItemIn] = Field(..., min_length=1)
    delivery_info: DeliveryInfoIn = Field(default_factory=DeliveryInfoIn)
    payment_info: PaymentPreferenceIn = Field(default_factory=PaymentPreferenceIn)
    # client display figure, logged when it differs and never stored
    total_amount: Optional[Decimal] = Field(default=None, ge=0)


class BookingItemOut(ResponseModel):
    product: int
    quantity: int
    start_date: datetime
    end_date: datetime
    line_total: Money


class BookingUserOut(ResponseModel):
    id: str
    name: str
    email: str


class BookingOut(ResponseModel):
    id: int
    status: str
    payment_status: str
    items: List[BookingItemOut]
    total_amount: Money
    payment_info: Dict[str, Any]
    delivery_info: Dict[str, Any]
    user: BookingUserOut
    created_at: datetime
    updated_at: datetime


class BookingEnvelope(ResponseModel):
    booking: BookingOut


class BookingListOut(ResponseModel):
    bookings: List[BookingOut]


# --- payments ---------------------------------------------------------------

class InitiatePaymentIn(RequestModel):
    booking_id: int = Field(..., gt=0)
    method: PaymentMethod


class CreateOrderIn(RequestModel):
    booking_id: int = Field(..., gt=0)
    amount: Optional[Decimal] = Field(default=None, gt=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)


class OrderOut(ResponseModel):
    order_id: str
    amount: Money
    currency: str
    booking_id: int


class GatewayVerifyIn(RequestModel):
    order_id: str = Field(..., min_length=1)
    payment_id: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1)
    booking_id: int = Field(..., gt=0)


class OtpVerifyIn(RequestModel):
    otp: str = Field(..., min_length=1)
    booking_id: int = Field(..., gt=0)


class UpiVerifyIn(RequestModel):
    booking_id: int = Field(..., gt=0)
    upi_id: str = Field(..., min_length=1)
    amount: Optional[Decimal] = Field(default=None, gt=0)


class PaymentFailIn(RequestModel):
    booking_id: int = Field(..., gt=0)
    reason: Optional[str] = Field(default=None, max_length=500)


class BookingStatusOut(ResponseModel):
    id: int
    status: str
    payment_status: str


class PaymentResultOut(ResponseModel):
    success: bool
    booking: BookingStatusOut


class GatewayKeyOut(ResponseModel):
    key_id: str


# --- payment evidence -------------------------------------------------------
# one variant per confirmation path, all handled by BookingService.confirm_payment

class GatewaySignature(BaseModel):
    method: Literal["gateway"] = "gateway"
    order_id: str
    payment_id: str
    signature: str


class OtpCode(BaseModel):
    method: Literal["otp"] = "otp"
    otp: str


class UpiId(BaseModel):
    method: Literal["upi"] = "upi"
    upi_id: str
    amount: Optional[Decimal] = None


PaymentEvidence = Annotated[Union[GatewaySignature, OtpCode, UpiId], Field(discriminator="method")]


# --- auth -------------------------------------------------------------------

class CurrentUser(BaseModel):
    id: str
    role: str = "customer"
    name: str = ""
    email: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
