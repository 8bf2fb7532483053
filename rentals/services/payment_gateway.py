# rentals/services/payment_gateway.py
import hashlib
import hmac
import uuid
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict

import requests

from rentals.domain.errors import GatewayError
from rentals.utils.retry import http_retry
from rentals.utils.settings import (
    RAZORPAY_API_URL,
    RAZORPAY_KEY_ID,
    RAZORPAY_KEY_SECRET,
    GATEWAY_TIMEOUT_SECONDS,
)
from rentals.utils.logging import get_logger

logger = get_logger(__name__)


def sign(secret: str, order_id: str, payment_id: str) -> str:
    """HMAC-SHA256 over "<order_id>|<payment_id>", hex encoded."""
    payload = f"{order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()


def to_minor_units(amount: Decimal) -> int:
    # gateway amounts are integers in paise/cents
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class RazorpayGateway:
    """Orders API client. Signature checks use the shared key secret."""

    source = "gateway"

    def __init__(
        self,
        key_id: str | None = None,
        key_secret: str | None = None,
        base_url: str | None = None,
        timeout: int = GATEWAY_TIMEOUT_SECONDS,
    ):
        self.key_id = key_id if key_id is not None else RAZORPAY_KEY_ID
        self.key_secret = key_secret if key_secret is not None else RAZORPAY_KEY_SECRET
        self.base_url = (base_url or RAZORPAY_API_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def _post_order(self, body: Dict[str, Any]) -> requests.Response:
        url = f"{self.base_url}/orders"
        logger.info(f"RazorpayGateway POST {url} receipt={body.get('receipt')}")
        return requests.post(url, json=body, auth=(self.key_id, self.key_secret), timeout=self.timeout)

    def create_order(self, amount: Decimal, currency: str, metadata: Dict[str, str]) -> Dict[str, Any]:
        if not self.key_id or not self.key_secret:
            raise GatewayError("Payment gateway is not configured")

        body = {
            "amount": to_minor_units(amount),
            "currency": currency,
            "receipt": metadata.get("receipt"),
            "notes": metadata,
        }

        try:
            resp = self._post_order(body)
        except requests.RequestException as e:
            logger.error(f"Payment gateway unreachable: {e}")
            raise GatewayError(f"Payment gateway unavailable: {e}") from e

        if resp.status_code >= 400:
            try:
                description = resp.json().get("error", {}).get("description") or resp.text
            except ValueError:
                description = resp.text
            logger.error(f"Payment gateway rejected order ({resp.status_code}): {description}")
            raise GatewayError(f"Payment gateway rejected the order: {description}")

        try:
            data = resp.json()
            order_id = data["id"]
            order_amount = Decimal(data.get("amount", body["amount"])) / 100
        except (ValueError, KeyError, TypeError, ArithmeticError) as e:
            logger.error(f"Payment gateway returned an unreadable order ({resp.status_code}): {resp.text}")
            raise GatewayError("Payment gateway returned an invalid order response") from e

        logger.info(f"Gateway order {order_id} created for receipt {body['receipt']}")
        return {
            "order_id": order_id,
            "amount": order_amount,
            "currency": data.get("currency", currency),
            "source": self.source,
        }

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        if not self.key_secret:
            return False
        expected = sign(self.key_secret, order_id, payment_id)
        return hmac.compare_digest(expected, signature)


class DemoPaymentGateway:
    """
    Offline gateway for PAYMENT_DEMO_MODE. Orders are issued locally and
    tagged with source "demo"; BookingService only skips the signature check
    for orders it recorded from this class while demo mode is on.
    """

    source = "demo"

    def __init__(self, key_secret: str = "demo-secret"):
        self.key_id = "demo"
        self.key_secret = key_secret

    def create_order(self, amount: Decimal, currency: str, metadata: Dict[str, str]) -> Dict[str, Any]:
        order_id = f"order_demo_{uuid.uuid4().hex[:14]}"
        logger.info(f"Demo order {order_id} issued for receipt {metadata.get('receipt')}")
        return {"order_id": order_id, "amount": Decimal(amount), "currency": currency, "source": self.source}

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        return hmac.compare_digest(sign(self.key_secret, order_id, payment_id), signature)
