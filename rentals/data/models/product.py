from sqlalchemy import Column, Integer, String, Numeric

from rentals.data.database import Base
from rentals.utils.settings import DEFAULT_STOCK


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False, default="Other")

    #rate card, daily is the fallback for every remainder
    daily_rate = Column(Numeric(12, 2), nullable=False)
    weekly_rate = Column(Numeric(12, 2), nullable=True)
    monthly_rate = Column(Numeric(12, 2), nullable=True)

    stock = Column(Integer, nullable=False, default=DEFAULT_STOCK)
