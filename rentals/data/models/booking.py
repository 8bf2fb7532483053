#rentals/data/models/booking.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Numeric, JSON
from sqlalchemy.orm import relationship

from rentals.data.database import Base


def _now():
    return datetime.now(timezone.utc)


class BookingModel(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True)

    status = Column(String(20), nullable=False, default="pending")  # pending, confirmed, active, completed, cancelled
    payment_status = Column(String(20), nullable=False, default="unpaid")  # unpaid, processing, paid, failed
    version = Column(Integer, nullable=False, default=1)

    total_amount = Column(Numeric(12, 2), nullable=False)
    payment_info = Column(JSON, nullable=False, default=dict)
    delivery_info = Column(JSON, nullable=False, default=dict)

    # snapshot of the customer at booking time, not a foreign key
    user_id = Column(String, nullable=False, index=True)
    user_name = Column(String, nullable=False)
    user_email = Column(String, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    items = relationship(
        "BookingItemModel",
        back_populates="booking",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
