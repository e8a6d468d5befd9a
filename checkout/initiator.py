"""
checkout.initiator

Session Initiator: cart + shipping -> Stripe Checkout Session.

Flow
1. Validate the cart (non-empty, named items, non-negative prices).
2. Generate our own order id (uuid4) BEFORE talking to Stripe.
3. Register the session; the order id travels as client_reference_id,
   session metadata and payment intent metadata.
4. Only after Stripe accepted the session, record a `pending` order row
   (insert-if-absent: the webhook may already have created it as `paid`).

========= CHANGE LOG =========
2026-10-14 • ADD: pending order row recorded after session creation (never before).   # CHANGED:
2026-10-09 • ADD: product reference carried in product_data.metadata.product_id.     # CHANGED:
2026-10-02 • FIX: success/cancel URLs built with urllib.parse (no double slashes).
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlencode, urljoin

from .config import CheckoutConfig
from .errors import InvalidCartError, PaymentProviderError
from .events import field_of
from .gateway import StripeGateway
from .store import from_minor_units, record_pending_order, to_minor_units

log = logging.getLogger(__name__)

SUCCESS_PATH = "/"
CANCEL_PATH = "/shop"


@dataclass(frozen=True)
class CartItem:
    product_id: Optional[str]
    name: str
    price: Decimal
    quantity: int
    image: Optional[str] = None

    @property
    def unit_amount(self) -> int:
        return to_minor_units(self.price)


@dataclass(frozen=True)
class ShippingInfo:
    name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""


@dataclass(frozen=True)
class CheckoutStart:
    url: str
    session_id: str
    order_id: str


def _str(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def _quantity(raw: Any, idx: int) -> int:
    """Whole quantity; missing or below 1 counts as 1."""
    if raw is None or raw == "":
        return 1
    try:
        value = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        raise InvalidCartError(f"Cart item {idx} has an invalid quantity") from None
    if not value.is_finite() or value != value.to_integral_value():
        raise InvalidCartError(f"Cart item {idx} has an invalid quantity")
    return max(1, int(value))


def parse_cart(raw: Any) -> List[CartItem]:
    if not isinstance(raw, list) or not raw:
        raise InvalidCartError("Cart is empty")

    items: List[CartItem] = []
    for idx, entry in enumerate(raw):
        if not isinstance(entry, Mapping):
            raise InvalidCartError(f"Cart item {idx} is not an object")
        name = _str(entry.get("name"))
        if not name:
            raise InvalidCartError(f"Cart item {idx} has no name")
        try:
            price = Decimal(str(entry.get("price") or 0))
        except (InvalidOperation, ValueError):
            raise InvalidCartError(f"Cart item {idx} has an invalid price") from None
        if not price.is_finite():
            raise InvalidCartError(f"Cart item {idx} has an invalid price")
        if price < 0:
            raise InvalidCartError(f"Cart item {idx} has a negative price")
        quantity = _quantity(entry.get("quantity"), idx)
        items.append(
            CartItem(
                product_id=_str(entry.get("id")) or None,
                name=name,
                price=price,
                quantity=quantity,
                image=_str(entry.get("image")) or None,
            )
        )
    return items


def parse_shipping(raw: Any) -> ShippingInfo:
    if not isinstance(raw, Mapping):
        return ShippingInfo()
    return ShippingInfo(
        name=_str(raw.get("name")),
        email=_str(raw.get("email")),
        phone=_str(raw.get("phone")),
        address=_str(raw.get("address")),
    )


def build_url(base: str, path: str, params: Optional[Dict[str, str]] = None) -> str:
    """base + path + query, with exactly one slash between base and path."""
    root = base.rstrip("/") + "/"
    url = urljoin(root, path.lstrip("/"))
    if params:
        url = f"{url}?{urlencode(params)}"
    return url


def line_items_for(cart: List[CartItem], currency: str) -> List[Dict[str, Any]]:
    line_items = []
    for item in cart:
        product_data: Dict[str, Any] = {
            "name": item.name,
            "images": [item.image] if item.image else [],
        }
        if item.product_id:
            product_data["metadata"] = {"product_id": item.product_id}
        line_items.append(
            {
                "price_data": {
                    "currency": currency,
                    "product_data": product_data,
                    "unit_amount": item.unit_amount,
                },
                "quantity": item.quantity,
            }
        )
    return line_items


def session_params(order_id: str, cart: List[CartItem], shipping: ShippingInfo, config: CheckoutConfig) -> Dict[str, Any]:
    params: Dict[str, Any] = {
        "mode": "payment",
        "payment_method_types": ["card"],
        "line_items": line_items_for(cart, config.currency),
        "client_reference_id": order_id,
        "payment_intent_data": {"metadata": {"order_id": order_id}},
        # Root + query param; the redirect middleware forwards it to /success/.
        "success_url": build_url(config.public_url, SUCCESS_PATH, {"order_id": order_id}),
        "cancel_url": build_url(config.public_url, CANCEL_PATH),
        "metadata": {
            "order_id": order_id,
            "customer_name": shipping.name,
            "email": shipping.email,
            "phone": shipping.phone,
            "address": shipping.address,
        },
    }
    if shipping.email and "@" in shipping.email:
        params["customer_email"] = shipping.email
    return params


def start_checkout(
    cart: Any,
    shipping: Any,
    *,
    config: CheckoutConfig,
    gateway: Optional[StripeGateway] = None,
) -> CheckoutStart:
    """
    Register a Stripe Checkout Session for `cart`.

    Raises InvalidCartError before any Stripe call, PaymentProviderError when
    Stripe rejects or cannot be reached (no order row is written then).
    """
    items = parse_cart(cart)
    info = parse_shipping(shipping)
    order_id = str(uuid.uuid4())

    log.info("[checkout-session] incoming items=%s order_id=%s", len(items), order_id)

    gateway = gateway or StripeGateway(config.stripe)
    session = gateway.create_checkout_session(
        session_params(order_id, items, info, config),
        idempotency_key=f"checkout_{order_id}",
    )

    url = field_of(session, "url")
    session_id = field_of(session, "id")
    if not url or not session_id:
        raise PaymentProviderError("Stripe did not return a session URL.")

    provisional = from_minor_units(sum(i.unit_amount * i.quantity for i in items))
    _, created = record_pending_order(
        order_id,
        {
            "customer_name": info.name or None,
            "email": info.email or None,
            "phone": info.phone or None,
            "address": info.address or None,
            "subtotal": provisional,
            "stripe_session_id": str(session_id),
        },
    )
    log.info(
        "[checkout-session] created session_id=%s order_id=%s pending_row_created=%s",
        session_id,
        order_id,
        created,
    )
    return CheckoutStart(url=str(url), session_id=str(session_id), order_id=order_id)
