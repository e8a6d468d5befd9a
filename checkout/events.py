"""
checkout.events

Normalization of Stripe payloads into plain dataclasses.

Stripe objects arrive in several shapes (webhook payload vs. retrieved
object, expanded vs. id-only references, dict vs. StripeObject). All of that
variability is absorbed here; the reconciler only sees the dataclasses below
with their defined optional fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from .store import from_minor_units

CHECKOUT_COMPLETED = "checkout.session.completed"
PAYMENT_SUCCEEDED = "payment_intent.succeeded"

DEFAULT_CUSTOMER_NAME = "Customer"
DEFAULT_ITEM_NAME = "Item"


def field_of(obj: Any, name: str, default: Any = None) -> Any:
    """Read `name` from a dict or a StripeObject; missing/None -> default."""
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        value = obj.get(name)
    else:
        try:
            value = obj[name]
        except (KeyError, TypeError, IndexError):
            value = getattr(obj, name, None)
    return default if value is None else value


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def ref_id(value: Any) -> Optional[str]:
    """Stripe references are either an id string or an expanded object with `id`."""
    if isinstance(value, str):
        return _text(value)
    return _text(field_of(value, "id"))


def _metadata(obj: Any) -> Dict[str, Any]:
    meta = field_of(obj, "metadata")
    if meta is None:
        return {}
    if isinstance(meta, Mapping):
        return dict(meta)
    to_dict = getattr(meta, "to_dict", None)
    if callable(to_dict):
        return dict(to_dict())
    try:
        return dict(meta)
    except (TypeError, ValueError):
        return {}


@dataclass(frozen=True)
class LineItemData:
    name: str
    unit_amount: int
    quantity: int
    amount_total: Optional[int] = None
    product_id: Optional[str] = None

    def as_order_item(self) -> Dict[str, Any]:
        total_minor = self.amount_total
        if total_minor is None:
            total_minor = self.unit_amount * self.quantity
        return {
            "product_id": self.product_id,
            "name": self.name,
            "price": from_minor_units(self.unit_amount),
            "quantity": self.quantity,
            "total": from_minor_units(total_minor),
        }


@dataclass(frozen=True)
class CheckoutSessionData:
    session_id: Optional[str]
    order_id: Optional[str]
    order_id_source: Optional[str]
    amount_total: Optional[int]
    payment_intent_id: Optional[str]
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    line_items: Tuple[LineItemData, ...] = ()

    @property
    def subtotal(self) -> Decimal:
        return from_minor_units(self.amount_total or 0)

    def order_fields(self, receipt_url: Optional[str] = None) -> Dict[str, Any]:
        """
        Columns written on the order when this checkout is reconciled. Values
        the event does not supply are left out, so an existing row keeps what
        checkout start stored (shipping info, an earlier receipt).
        """
        meta = self.metadata
        fields = {
            "customer_name": _text(meta.get("customer_name")) or self.customer_name,
            "email": _text(meta.get("email")) or self.customer_email,
            "phone": _text(meta.get("phone")),
            "address": _text(meta.get("address")),
            "subtotal": self.subtotal,
            "stripe_session_id": self.session_id,
            "stripe_payment_intent": self.payment_intent_id,
            "stripe_receipt_url": receipt_url,
        }
        return {k: v for k, v in fields.items() if v is not None}

    def insert_defaults(self) -> Dict[str, Any]:
        """Columns only used when the webhook creates the order row itself."""
        return {"customer_name": DEFAULT_CUSTOMER_NAME}


@dataclass(frozen=True)
class PaymentIntentData:
    payment_intent_id: Optional[str]
    order_id: Optional[str]
    amount_received: Optional[int]
    receipt_url: Optional[str] = None

    @property
    def subtotal(self) -> Decimal:
        return from_minor_units(self.amount_received or 0)


def correlate_order_id(session: Any) -> Tuple[Optional[str], Optional[str]]:
    """(order_id, source): metadata.order_id first, then client_reference_id."""
    meta_id = _text(_metadata(session).get("order_id"))
    if meta_id:
        return meta_id, "metadata"
    ref = _text(field_of(session, "client_reference_id"))
    if ref:
        return ref, "client_reference_id"
    return None, None


def normalize_line_item(item: Any) -> LineItemData:
    price = field_of(item, "price")
    unit_amount = _int(field_of(price, "unit_amount"))
    if unit_amount is None:
        unit_amount = _int(field_of(item, "unit_amount")) or 0
    quantity = _int(field_of(item, "quantity")) or 1

    product = field_of(price, "product")
    product_id = None
    if product is not None and not isinstance(product, str):
        product_id = _text(_metadata(product).get("product_id"))

    return LineItemData(
        name=_text(field_of(item, "description")) or _text(field_of(item, "name")) or DEFAULT_ITEM_NAME,
        unit_amount=unit_amount,
        quantity=quantity,
        amount_total=_int(field_of(item, "amount_total")),
        product_id=product_id,
    )


def embedded_line_items(session: Any) -> list:
    """Line items carried inside a session payload (list or {data: [...]})."""
    raw = field_of(session, "line_items")
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return list(raw)
    data = field_of(raw, "data")
    return list(data) if isinstance(data, (list, tuple)) else []


def normalize_checkout_session(
    session: Any,
    *,
    fallback: Any = None,
    line_items: Iterable[Any] = (),
) -> CheckoutSessionData:
    """
    Build CheckoutSessionData from `session` (the authoritative, re-fetched
    object), filling gaps from `fallback` (the webhook payload object).
    """

    def pick(name: str) -> Any:
        value = field_of(session, name)
        return value if value is not None else field_of(fallback, name)

    order_id, source = correlate_order_id(fallback) if fallback is not None else (None, None)
    if not order_id:
        order_id, source = correlate_order_id(session)

    details = pick("customer_details")
    metadata = {**_metadata(fallback), **_metadata(session)}

    return CheckoutSessionData(
        session_id=_text(pick("id")),
        order_id=order_id,
        order_id_source=source,
        amount_total=_int(pick("amount_total")),
        payment_intent_id=ref_id(field_of(session, "payment_intent")) or ref_id(field_of(fallback, "payment_intent")),
        customer_name=_text(field_of(details, "name")),
        customer_email=_text(field_of(details, "email")) or _text(pick("customer_email")),
        metadata=metadata,
        line_items=tuple(normalize_line_item(li) for li in line_items),
    )


def receipt_url_of(payment_intent: Any) -> Optional[str]:
    """receipt_url of the PaymentIntent's latest charge, when it was expanded."""
    charge = field_of(payment_intent, "latest_charge")
    if charge is None or isinstance(charge, str):
        return None
    return _text(field_of(charge, "receipt_url"))


def normalize_payment_intent(payment_intent: Any) -> PaymentIntentData:
    return PaymentIntentData(
        payment_intent_id=ref_id(payment_intent),
        order_id=_text(_metadata(payment_intent).get("order_id")),
        amount_received=_int(field_of(payment_intent, "amount_received")),
        receipt_url=receipt_url_of(payment_intent),
    )
