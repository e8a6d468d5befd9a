"""
Test helpers: Stripe-shaped payloads, real Stripe-Signature headers, and a
fake gateway standing in for the Stripe API.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from typing import Any, Dict, List, Optional

from checkout.errors import PaymentProviderError

WEBHOOK_SECRET = "whsec_storefront_test"


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """Stripe-Signature header value (t=...,v1=...) for `payload`."""
    ts = int(time.time()) if timestamp is None else timestamp
    signed = f"{ts}.".encode("utf-8") + payload
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"


def make_event(event_type: str, obj: Dict[str, Any], event_id: str = "evt_test_1") -> bytes:
    return json.dumps(
        {
            "id": event_id,
            "object": "event",
            "type": event_type,
            "data": {"object": obj},
        }
    ).encode("utf-8")


def make_session(
    order_id: Optional[str] = "order-1",
    *,
    session_id: str = "cs_test_1",
    amount_total: int = 240000,
    payment_intent: Optional[str] = "pi_test_1",
    client_reference_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    customer_details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    meta = dict(metadata or {})
    if order_id is not None and "order_id" not in meta:
        meta["order_id"] = order_id
    return {
        "id": session_id,
        "object": "checkout.session",
        "amount_total": amount_total,
        "payment_status": "paid",
        "client_reference_id": client_reference_id,
        "payment_intent": payment_intent,
        "customer_details": (
            customer_details if customer_details is not None else {"name": "Stripe Name", "email": "stripe@example.com"}
        ),
        "metadata": meta,
    }


def make_line_item(
    description: str = "Almonds",
    unit_amount: int = 120000,
    quantity: int = 2,
    amount_total: Optional[int] = 240000,
    product_id: Optional[str] = None,
) -> Dict[str, Any]:
    product: Any = "prod_test_1"
    if product_id:
        product = {"id": "prod_test_1", "metadata": {"product_id": product_id}}
    return {
        "id": "li_test_1",
        "object": "item",
        "description": description,
        "quantity": quantity,
        "amount_total": amount_total,
        "price": {"id": "price_test_1", "unit_amount": unit_amount, "product": product},
    }


class FakeGateway:
    """Records calls; returns canned Stripe objects."""

    def __init__(
        self,
        session: Optional[Dict[str, Any]] = None,
        line_items: Optional[List[Dict[str, Any]]] = None,
        receipt_url: Optional[str] = "https://pay.stripe.com/receipts/test_1",
        receipt_error: bool = False,
        create_error: bool = False,
    ) -> None:
        self.session = session or make_session()
        self.line_items = list(line_items if line_items is not None else [make_line_item()])
        self.receipt_url = receipt_url
        self.receipt_error = receipt_error
        self.create_error = create_error
        self.calls: List[tuple] = []

    def create_checkout_session(self, params, *, idempotency_key=None):
        self.calls.append(("create", params, idempotency_key))
        if self.create_error:
            raise PaymentProviderError("Stripe checkout session create failed: card_declined")
        return {"id": "cs_test_created", "url": "https://checkout.stripe.com/c/pay/cs_test_created"}

    def retrieve_checkout_session(self, session_id):
        self.calls.append(("retrieve_session", session_id))
        return self.session

    def list_line_items(self, session_id):
        self.calls.append(("line_items", session_id))
        return list(self.line_items)

    def retrieve_payment_intent(self, payment_intent_id):
        self.calls.append(("payment_intent", payment_intent_id))
        if self.receipt_error:
            raise PaymentProviderError("Stripe payment intent retrieve failed: timeout")
        return {
            "id": payment_intent_id,
            "object": "payment_intent",
            "latest_charge": {"id": "ch_test_1", "receipt_url": self.receipt_url},
        }
