# rentals/data/seed.py
from decimal import Decimal

from rentals.data.database import Base, SessionLocal, engine
from rentals.data.models import ProductModel
from rentals.utils.settings import DEFAULT_STOCK
from rentals.utils.logging import get_logger

logger = get_logger(__name__)

# name, category, daily, weekly, monthly
SAMPLE_PRODUCTS = [
    ("Electric Drill", "Tools", "15", "90", None),
    ("Ladder 10ft", "Tools", "8", "48", None),
    ("Projector 1080p", "Electronics", "25", "150", "500"),
    ("Cement Mixer", "Construction Equipment", "45", "270", "900"),
    ("PA Speaker", "Event Supplies", "30", "180", None),
    ("DSLR Camera", "Photography", "40", "240", "800"),
    ("GoPro Action Camera", "Photography", "22", "132", None),
    ("Electric Chainsaw", "Tools", "18", "108", None),
    ("Event Tent 20x30", "Event Supplies", "85", "510", None),
    ("Electric Scooter", "Vehicles", "28", "168", "560"),
]


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(ProductModel).first():
            logger.info("Products already present, skipping seed")
            return

        for name, category, daily, weekly, monthly in SAMPLE_PRODUCTS:
            db.add(
                ProductModel(
                    name=name,
                    category=category,
                    daily_rate=Decimal(daily),
                    weekly_rate=Decimal(weekly) if weekly else None,
                    monthly_rate=Decimal(monthly) if monthly else None,
                    stock=DEFAULT_STOCK,
                )
            )
        db.commit()
        logger.info(f"Seeded {len(SAMPLE_PRODUCTS)} products")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
