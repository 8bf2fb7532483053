# rentals/api/deps.py
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from rentals.data.database import get_db
from rentals.repos.booking_repo import BookingRepo
from rentals.repos.product_repo import ProductRepo
from rentals.services.availability_service import AvailabilityService
from rentals.services.booking_service import BookingService
from rentals.services.lock_service import LockService
from rentals.services.payment_gateway import DemoPaymentGateway, RazorpayGateway
from rentals.services.quotation_service import QuotationService
from rentals.utils.settings import PAYMENT_DEMO_MODE


@lru_cache
def get_lock_service() -> LockService:
    # one redis pool for the process
    return LockService()


def get_demo_mode() -> bool:
    return PAYMENT_DEMO_MODE


def get_payment_gateway(demo_mode: bool = Depends(get_demo_mode)):
    if demo_mode:
        return DemoPaymentGateway()
    return RazorpayGateway()


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(ProductRepo(db), BookingRepo(db))


def get_quotation_service(db: Session = Depends(get_db)) -> QuotationService:
    return QuotationService(ProductRepo(db))


def get_booking_service(
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
    gateway=Depends(get_payment_gateway),
    demo_mode: bool = Depends(get_demo_mode),
) -> BookingService:
    return BookingService(
        product_repo=ProductRepo(db),
        booking_repo=BookingRepo(db),
        lock_service=lock_service,
        gateway=gateway,
        demo_mode=demo_mode,
    )
