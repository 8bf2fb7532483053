# rentals/repos/base.py
"""
Storage seams the services depend on. The SQLAlchemy repos in this package
satisfy them; anything else exposing the same methods can be swapped in.
"""
from typing import Any, Dict, List, Optional, Protocol

from rentals.data.models.booking import BookingModel
from rentals.data.models.booking_item import BookingItemModel
from rentals.data.models.product import ProductModel


class ProductRepository(Protocol):
    def get_product(self, product_id: int) -> Optional[ProductModel]: ...


class BookingRepository(Protocol):
    def get_booking(self, booking_id: int) -> Optional[BookingModel]: ...

    def list_bookings(self, user_id: Optional[str] = None) -> List[BookingModel]: ...

    def list_active_items_for_product(self, product_id: int) -> List[BookingItemModel]: ...

    def create_booking(self, booking: BookingModel) -> BookingModel: ...

    def update_booking_version(self, booking_id: int, old_version: int, new_data: Dict[str, Any]) -> int: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
