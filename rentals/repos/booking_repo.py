# rentals/repos/booking_repo.py
from typing import Any, Dict, List

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from rentals.data.models.booking import BookingModel
from rentals.data.models.booking_item import BookingItemModel

#statuses that still hold stock
RESERVING_STATUSES = ("pending", "confirmed", "active")


class BookingRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_booking(self, booking_id: int) -> BookingModel | None:
        return self.db.get(BookingModel, booking_id)

    def list_bookings(self, user_id: str | None = None) -> List[BookingModel]:
        stmt = select(BookingModel).order_by(BookingModel.created_at.desc(), BookingModel.id.desc())
        if user_id is not None:
            stmt = stmt.where(BookingModel.user_id == user_id)
        return list(self.db.execute(stmt).scalars().all())

    def list_active_items_for_product(self, product_id: int) -> List[BookingItemModel]:
        stmt = (
            select(BookingItemModel)
            .join(BookingModel, BookingItemModel.booking_id == BookingModel.id)
            .where(
                BookingItemModel.product_id == product_id,
                BookingModel.status.in_(RESERVING_STATUSES),
            )
        )
        return list(self.db.execute(stmt).scalars().all())

    def create_booking(self, booking: BookingModel) -> BookingModel:
        self.db.add(booking)
        self.db.commit()
        self.db.refresh(booking)
        return booking

    def update_booking_version(self, booking_id: int, old_version: int, new_data: Dict[str, Any]) -> int:
        # UPDATE bookings SET ... WHERE id = :id AND version = :old_version
        result = self.db.execute(
            update(BookingModel)
            .where(BookingModel.id == booking_id, BookingModel.version == old_version)
            .values(**new_data)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
