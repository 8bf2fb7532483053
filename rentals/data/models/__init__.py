#all models imported here so SQLAlchemy registers them in Base.metadata

from rentals.data.models.product import ProductModel
from rentals.data.models.booking import BookingModel
from rentals.data.models.booking_item import BookingItemModel

__all__ = ["ProductModel", "BookingModel", "BookingItemModel"]
