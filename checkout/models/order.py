"""
checkout.models.order

One row per purchase, keyed by the order id generated before payment.

The id is the correlation key for the whole checkout flow: it is handed to
Stripe as client_reference_id + metadata and comes back on the webhook.
Rows are created `pending` (checkout start) or lazily `paid` (webhook first),
and are never deleted by the checkout core.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models


class Order(models.Model):
    """
    Represents a single storefront purchase (centered on our own order id).
    """

    STATUS_PENDING = "pending"
    STATUS_PAID = "paid"
    STATUS_PROCESSING = "processing"
    STATUS_SHIPPED = "shipped"
    STATUS_CANCELLED = "cancelled"
    STATUS_REFUNDED = "refunded"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_PAID, "Paid"),
        (STATUS_PROCESSING, "Processing"),
        (STATUS_SHIPPED, "Shipped"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_REFUNDED, "Refunded"),
    ]

    # Statuses the payment reconciler may (re)write to "paid". Anything else
    # was set by an administrator and wins over a replayed webhook.
    RECONCILABLE_STATUSES = (STATUS_PENDING, STATUS_PAID)

    id = models.CharField(
        primary_key=True,
        max_length=64,
        editable=False,
        help_text="Order id generated at checkout start (UUID string).",
    )

    # ---- customer (captured at checkout) ----
    customer_name = models.CharField(max_length=255, blank=True, null=True)
    email = models.EmailField(blank=True, null=True, db_index=True)
    phone = models.CharField(max_length=64, blank=True, null=True)
    address = models.TextField(blank=True, null=True)

    # ---- amounts ----
    subtotal = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
        help_text="Base currency units (not cents). Authoritative from Stripe once paid.",
    )

    # ---- status ----
    status = models.CharField(
        max_length=16,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING,
        db_index=True,
    )

    # ---- Stripe identifiers (null until payment confirms) ----
    stripe_session_id = models.CharField(
        max_length=255,
        blank=True,
        null=True,
        db_index=True,
        help_text="Stripe Checkout Session id (cs_...).",
    )

    stripe_payment_intent = models.CharField(
        max_length=255,
        blank=True,
        null=True,
        db_index=True,
        help_text="Stripe PaymentIntent id (pi_...).",
    )

    stripe_receipt_url = models.URLField(
        max_length=1024,
        blank=True,
        null=True,
        help_text="Customer-facing receipt from the latest charge (best-effort).",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "orders"
        ordering = ("-created_at",)

    def __str__(self) -> str:
        email = self.email or "unknown-email"
        return f"Order({self.id})<{email}> {self.status}"
