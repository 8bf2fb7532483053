from sqlalchemy import Column, Integer, ForeignKey, Numeric, DateTime, CheckConstraint
from sqlalchemy.orm import relationship

from rentals.data.database import Base


class BookingItemModel(Base):
    __tablename__ = "booking_items"

    id = Column(Integer, primary_key=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)

    quantity = Column(Integer, nullable=False, default=1)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    line_total = Column(Numeric(12, 2), nullable=False)

    booking = relationship("BookingModel", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="check_booking_item_quantity_positive"),
    )
