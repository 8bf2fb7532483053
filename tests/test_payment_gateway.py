"""
Tests for the Razorpay orders client and signature check.
"""
from decimal import Decimal

import pytest
import requests
from urllib3.exceptions import MaxRetryError, NewConnectionError

from rentals.domain.errors import GatewayError
from rentals.services import payment_gateway
from rentals.services.payment_gateway import DemoPaymentGateway, RazorpayGateway, sign, to_minor_units


class FakeResponse:
    def __init__(self, status_code, body):
        self.status_code = status_code
        self._body = body
        self.text = str(body)

    def json(self):
        return self._body


@pytest.fixture
def gateway():
    return RazorpayGateway(key_id="rzp_test_key", key_secret="s3cret", base_url="https://gateway.test/v1")


class TestCreateOrder:

    def test_posts_minor_units_with_receipt(self, gateway, monkeypatch):
        calls = []

        def fake_post(url, json, auth, timeout):
            calls.append({"url": url, "json": json, "auth": auth})
            return FakeResponse(200, {"id": "order_abc", "amount": json["amount"], "currency": "INR"})

        monkeypatch.setattr(payment_gateway.requests, "post", fake_post)

        order = gateway.create_order(Decimal("123.45"), "INR", {"receipt": "booking_7", "booking_id": "7"})

        assert order == {"order_id": "order_abc", "amount": Decimal("123.45"), "currency": "INR", "source": "gateway"}
        assert calls[0]["url"] == "https://gateway.test/v1/orders"
        assert calls[0]["json"]["amount"] == 12345
        assert calls[0]["json"]["receipt"] == "booking_7"
        assert calls[0]["auth"] == ("rzp_test_key", "s3cret")

    def test_rejection_raises_with_gateway_message(self, gateway, monkeypatch):
        body = {"error": {"code": "BAD_REQUEST_ERROR", "description": "Authentication failed"}}
        monkeypatch.setattr(payment_gateway.requests, "post", lambda *a, **kw: FakeResponse(401, body))

        with pytest.raises(GatewayError) as exc:
            gateway.create_order(Decimal("10"), "INR", {"receipt": "booking_1"})

        assert "Authentication failed" in exc.value.message

    def test_http_errors_are_not_retried(self, gateway, monkeypatch):
        calls = []

        def fake_post(*args, **kwargs):
            calls.append(1)
            return FakeResponse(500, {"error": {"description": "boom"}})

        monkeypatch.setattr(payment_gateway.requests, "post", fake_post)

        with pytest.raises(GatewayError):
            gateway.create_order(Decimal("10"), "INR", {"receipt": "booking_1"})
        assert len(calls) == 1

    def test_connect_timeout_retried_then_raised(self, gateway, monkeypatch):
        calls = []

        def fake_post(*args, **kwargs):
            calls.append(1)
            raise requests.ConnectTimeout("connect timed out")

        monkeypatch.setattr(payment_gateway.requests, "post", fake_post)

        with pytest.raises(GatewayError) as exc:
            gateway.create_order(Decimal("10"), "INR", {"receipt": "booking_1"})

        assert len(calls) == 3
        assert "unavailable" in exc.value.message

    def test_refused_connection_retried(self, gateway, monkeypatch):
        receipts = []

        def fake_post(url, json, auth, timeout):
            receipts.append(json["receipt"])
            if len(receipts) == 1:
                refused = NewConnectionError(None, "Connection refused")
                raise requests.ConnectionError(MaxRetryError(None, url, reason=refused))
            return FakeResponse(200, {"id": "order_abc", "amount": json["amount"], "currency": "INR"})

        monkeypatch.setattr(payment_gateway.requests, "post", fake_post)

        order = gateway.create_order(Decimal("10"), "INR", {"receipt": "booking_1"})

        assert order["order_id"] == "order_abc"
        assert receipts == ["booking_1", "booking_1"]

    def test_read_timeout_after_send_is_not_resent(self, gateway, monkeypatch):
        receipts = []

        def fake_post(url, json, auth, timeout):
            receipts.append(json["receipt"])
            if len(receipts) == 1:
                raise requests.ReadTimeout("read timed out")
            return FakeResponse(200, {"id": "order_dup", "amount": json["amount"], "currency": "INR"})

        monkeypatch.setattr(payment_gateway.requests, "post", fake_post)

        with pytest.raises(GatewayError):
            gateway.create_order(Decimal("10"), "INR", {"receipt": "booking_1"})

        assert receipts == ["booking_1"]

    def test_dropped_response_is_not_resent(self, gateway, monkeypatch):
        calls = []

        def fake_post(*args, **kwargs):
            calls.append(1)
            raise requests.ConnectionError("Connection aborted: RemoteDisconnected")

        monkeypatch.setattr(payment_gateway.requests, "post", fake_post)

        with pytest.raises(GatewayError):
            gateway.create_order(Decimal("10"), "INR", {"receipt": "booking_1"})

        assert len(calls) == 1

    def test_unreadable_success_body_is_gateway_error(self, gateway, monkeypatch):
        monkeypatch.setattr(payment_gateway.requests, "post", lambda *a, **kw: FakeResponse(200, {"status": "created"}))

        with pytest.raises(GatewayError) as exc:
            gateway.create_order(Decimal("10"), "INR", {"receipt": "booking_1"})

        assert "invalid order response" in exc.value.message

    def test_non_json_success_body_is_gateway_error(self, gateway, monkeypatch):
        class HtmlResponse(FakeResponse):
            def json(self):
                raise ValueError("Expecting value")

        monkeypatch.setattr(payment_gateway.requests, "post", lambda *a, **kw: HtmlResponse(200, "<html>"))

        with pytest.raises(GatewayError):
            gateway.create_order(Decimal("10"), "INR", {"receipt": "booking_1"})

    def test_unconfigured_gateway_refuses(self):
        with pytest.raises(GatewayError):
            RazorpayGateway(key_id="", key_secret="").create_order(Decimal("10"), "INR", {"receipt": "x"})


class TestSignature:

    def test_sign_is_hex_sha256_over_joined_ids(self):
        import hashlib
        import hmac

        expected = hmac.new(b"secret", b"order_1|pay_1", hashlib.sha256).hexdigest()
        assert sign("secret", "order_1", "pay_1") == expected
        assert sign("secret", "order_1", "pay_2") != expected

    def test_verify(self, gateway):
        good = sign("s3cret", "order_1", "pay_1")

        assert gateway.verify_signature("order_1", "pay_1", good)
        assert not gateway.verify_signature("order_1", "pay_2", good)
        assert not gateway.verify_signature("order_1", "pay_1", sign("other", "order_1", "pay_1"))

    def test_no_secret_never_verifies(self):
        gw = RazorpayGateway(key_id="k", key_secret="")
        assert not gw.verify_signature("order_1", "pay_1", sign("", "order_1", "pay_1"))


class TestDemoGateway:

    def test_orders_tagged_demo(self):
        order = DemoPaymentGateway().create_order(Decimal("40"), "INR", {"receipt": "booking_1"})

        assert order["source"] == "demo"
        assert order["order_id"].startswith("order_demo_")


def test_to_minor_units_rounds_half_up():
    assert to_minor_units(Decimal("10.005")) == 1001
    assert to_minor_units(Decimal("99.99")) == 9999
