# rentals/services/availability_service.py
from datetime import datetime
from typing import Dict, Iterable, Tuple

from rentals.domain.errors import NotFoundError
from rentals.repos.base import BookingRepository, ProductRepository
from rentals.services.pricing import overlaps
from rentals.utils.logging import get_logger

logger = get_logger(__name__)

# (start_date, end_date, quantity) of a reservation not yet stored
PendingReservation = Tuple[datetime, datetime, int]


class AvailabilityService:
    """
    Free units of a product for a window.
    Only pending/confirmed/active bookings reserve stock. Advisory on its own,
    BookingService re-runs it under the product lock before inserting.
    """

    def __init__(self, product_repo: ProductRepository, booking_repo: BookingRepository):
        self.product_repo = product_repo
        self.booking_repo = booking_repo

    def reserved_units(
        self,
        product_id: int,
        start_date: datetime,
        end_date: datetime,
        extra: Iterable[PendingReservation] = (),
    ) -> int:
        reserved = sum(
            item.quantity
            for item in self.booking_repo.list_active_items_for_product(product_id)
            if overlaps(item.start_date, item.end_date, start_date, end_date)
        )
        reserved += sum(
            quantity
            for extra_start, extra_end, quantity in extra
            if overlaps(extra_start, extra_end, start_date, end_date)
        )
        return reserved

    def check_availability(
        self,
        product_id: int,
        start_date: datetime,
        end_date: datetime,
        quantity: int = 1,
    ) -> Dict[str, object]:
        product = self.product_repo.get_product(product_id)
        if product is None:
            raise NotFoundError("Product not found")

        reserved = self.reserved_units(product_id, start_date, end_date)
        available_units = max(0, product.stock - reserved)

        logger.info(
            f"Availability product={product_id} window={start_date.isoformat()}..{end_date.isoformat()} "
            f"stock={product.stock} reserved={reserved} requested={quantity}"
        )

        return {
            "available": available_units >= max(1, quantity),
            "available_units": available_units,
        }
