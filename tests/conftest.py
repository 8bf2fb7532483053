import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from decimal import Decimal
from itertools import count

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rentals.api.deps import get_demo_mode, get_lock_service, get_payment_gateway
from rentals.data.database import Base, get_db
from rentals.data.models import ProductModel
from rentals.domain.errors import GatewayError
from rentals.main import app
from rentals.services.lock_service import LockService
from rentals.services.payment_gateway import sign
from rentals.utils.settings import JWT_ALGORITHM, JWT_SECRET

GATEWAY_SECRET = "gateway-test-secret"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


class InMemoryLockService(LockService):
    """Same hold/release logic as LockService, dict instead of redis."""

    def __init__(self, ttl: int = 10):
        self.ttl = ttl
        self.locks = {}
        self.history = []

    def acquire_product_lock(self, product_id, token, ttl):
        self.history.append(("acquire", product_id))
        if product_id in self.locks:
            return False
        self.locks[product_id] = token
        return True

    def release_product_lock(self, product_id, token):
        self.history.append(("release", product_id))
        if self.locks.get(product_id) == token:
            del self.locks[product_id]
            return True
        return False


class FakeGateway:
    """Issues sequential order ids and signs like the real gateway."""

    source = "gateway"
    key_id = "rzp_test_key"

    def __init__(self, secret: str = GATEWAY_SECRET):
        self.key_secret = secret
        self.orders = []
        self.fail_with = None
        self._ids = count(1)

    def create_order(self, amount, currency, metadata):
        if self.fail_with:
            raise GatewayError(self.fail_with)
        order_id = f"order_test_{next(self._ids)}"
        self.orders.append({"order_id": order_id, "amount": amount, "currency": currency, "metadata": metadata})
        return {"order_id": order_id, "amount": amount, "currency": currency, "source": self.source}

    def verify_signature(self, order_id, payment_id, signature):
        return sign(self.key_secret, order_id, payment_id) == signature


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def lock_service():
    return InMemoryLockService()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def demo_mode():
    return {"enabled": True}


@pytest.fixture
def client(db, lock_service, gateway, demo_mode):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_lock_service] = lambda: lock_service
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_demo_mode] = lambda: demo_mode["enabled"]

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def make_product(db):
    def _make(daily="10", weekly=None, monthly=None, stock=5, name="Electric Drill"):
        product = ProductModel(
            name=name,
            category="Tools",
            daily_rate=Decimal(daily),
            weekly_rate=Decimal(weekly) if weekly is not None else None,
            monthly_rate=Decimal(monthly) if monthly is not None else None,
            stock=stock,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


def make_token(user_id: str, role: str = "customer", name: str = "Test User", email: str = "user@example.com") -> str:
    return jwt.encode({"sub": user_id, "role": role, "name": name, "email": email}, JWT_SECRET, algorithm=JWT_ALGORITHM)


def auth(user_id: str = "user-1", role: str = "customer") -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}


@pytest.fixture
def make_booking(client):
    def _make(product_id, start="2025-01-01T00:00:00Z", end="2025-01-05T00:00:00Z", quantity=1, user_id="user-1"):
        resp = client.post(
            "/bookings",
            json={"items": [{"product": product_id, "startDate": start, "endDate": end, "quantity": quantity}]},
            headers=auth(user_id),
        )
        assert resp.status_code == 201, resp.text
        return resp.json()["booking"]

    return _make
