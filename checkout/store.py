"""
checkout.store

Order Store: the only module that writes orders / order_items.

Operations
- find_order(order_id)                      -> Order | None
- upsert_order(order_id, fields, ...)       -> (Order, created)
- replace_line_items(order_id, items)       -> list[OrderItem]
- record_pending_order(order_id, fields)    -> (Order, created)

Concurrency
- Upserts are insert-first. A duplicate primary key (a concurrent delivery of
  the same event got there first) is caught inside a savepoint and turned into
  an UPDATE of exactly the given fields. There is no check-then-write window.
- Line item replacement locks the parent order row for the duration of the
  delete + insert, so concurrent replacements for one order serialize while
  different orders never contend.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

from django.db import IntegrityError, transaction
from django.db.models import Case, F, Value, When
from django.utils import timezone

from .models import Order, OrderItem

log = logging.getLogger(__name__)

CENT = Decimal("0.01")

ORDER_FIELDS = frozenset(
    {
        "customer_name",
        "email",
        "phone",
        "address",
        "subtotal",
        "status",
        "stripe_session_id",
        "stripe_payment_intent",
        "stripe_receipt_url",
    }
)
ITEM_FIELDS = ("product_id", "name", "price", "quantity", "total")


def from_minor_units(amount: Any) -> Decimal:
    """Stripe minor units (cents/paisa) -> base currency Decimal with 2 places."""
    if amount in (None, ""):
        return Decimal("0.00")
    try:
        return (Decimal(int(amount)) / 100).quantize(CENT)
    except (TypeError, ValueError, InvalidOperation):
        return Decimal("0.00")


def to_minor_units(amount: Any) -> int:
    """Base currency amount -> Stripe minor units (x100, rounded half-up)."""
    try:
        value = Decimal(str(amount if amount not in (None, "") else 0))
    except (InvalidOperation, ValueError):
        value = Decimal("0")
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _clean_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - ORDER_FIELDS
    if unknown:
        raise ValueError(f"Unknown order fields: {', '.join(sorted(unknown))}")
    return dict(fields)


def find_order(order_id: Optional[str]) -> Optional[Order]:
    if not order_id:
        return None
    return Order.objects.filter(pk=str(order_id)).first()


def upsert_order(
    order_id: str,
    fields: Mapping[str, Any],
    *,
    create_defaults: Optional[Mapping[str, Any]] = None,
    status_from: Optional[Sequence[str]] = None,
) -> Tuple[Order, bool]:
    """
    Create-or-update an order by primary key.

    `fields` are written on both branches; on update ONLY these columns change.
    `create_defaults` are extra columns used when the row is inserted.
    `status_from`, when given, limits the status overwrite on the update branch
    to rows whose current status is one of these values.
    """
    if not order_id:
        raise ValueError("order_id is required")
    order_id = str(order_id)
    fields = _clean_fields(fields)
    defaults = _clean_fields(create_defaults or {})

    try:
        with transaction.atomic():
            order = Order.objects.create(id=order_id, **{**defaults, **fields})
        return order, True
    except IntegrityError:
        log.info("[store] order %s already exists; updating in place", order_id)

    updates: dict[str, Any] = dict(fields)
    if status_from is not None and "status" in updates:
        updates["status"] = Case(
            When(status__in=list(status_from), then=Value(updates["status"])),
            default=F("status"),
        )
    Order.objects.filter(pk=order_id).update(updated_at=timezone.now(), **updates)
    return Order.objects.get(pk=order_id), False


def record_pending_order(order_id: str, fields: Mapping[str, Any]) -> Tuple[Order, bool]:
    """
    Insert a `pending` order if none exists yet. An existing row (for example
    one the webhook already marked paid) is returned untouched.
    """
    values = _clean_fields(fields)
    values["status"] = Order.STATUS_PENDING
    try:
        with transaction.atomic():
            return Order.objects.create(id=str(order_id), **values), True
    except IntegrityError:
        return Order.objects.get(pk=str(order_id)), False


def replace_line_items(order_id: str, items: Iterable[Mapping[str, Any]]) -> list[OrderItem]:
    """
    Delete every item of the order and insert `items`, in one transaction.
    Replaying with the same input leaves the same final set.
    """
    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=str(order_id))
        deleted, _ = OrderItem.objects.filter(order=order).delete()
        rows = [
            OrderItem(order=order, **{k: item[k] for k in ITEM_FIELDS if k in item})
            for item in items
        ]
        OrderItem.objects.bulk_create(rows)

    log.info("[store] order %s items replaced removed=%s inserted=%s", order_id, deleted, len(rows))
    return rows
