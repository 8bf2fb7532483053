# rentals/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from rentals.data.database import Base, engine
from rentals.api.errors import setup_exception_handlers
from rentals.api.routers import bookings, health, payments, quotations
from rentals.utils.logging import get_logger

# models must be imported before create_all so Base.metadata knows them
import rentals.data.models  # noqa: F401

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Initializing database, tables: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise
    logger.info("Database tables ready")
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Rental Booking Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    setup_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(quotations.router)
    app.include_router(bookings.router)
    app.include_router(payments.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
