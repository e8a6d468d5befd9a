from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                (
                    "id",
                    models.CharField(
                        editable=False,
                        help_text="Order id generated at checkout start (UUID string).",
                        max_length=64,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("customer_name", models.CharField(blank=True, max_length=255, null=True)),
                ("email", models.EmailField(blank=True, db_index=True, max_length=254, null=True)),
                ("phone", models.CharField(blank=True, max_length=64, null=True)),
                ("address", models.TextField(blank=True, null=True)),
                (
                    "subtotal",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        help_text="Base currency units (not cents). Authoritative from Stripe once paid.",
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("paid", "Paid"),
                            ("processing", "Processing"),
                            ("shipped", "Shipped"),
                            ("cancelled", "Cancelled"),
                            ("refunded", "Refunded"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=16,
                    ),
                ),
                (
                    "stripe_session_id",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text="Stripe Checkout Session id (cs_...).",
                        max_length=255,
                        null=True,
                    ),
                ),
                (
                    "stripe_payment_intent",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text="Stripe PaymentIntent id (pi_...).",
                        max_length=255,
                        null=True,
                    ),
                ),
                (
                    "stripe_receipt_url",
                    models.URLField(
                        blank=True,
                        help_text="Customer-facing receipt from the latest charge (best-effort).",
                        max_length=1024,
                        null=True,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "orders",
                "ordering": ("-created_at",),
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("product_id", models.CharField(blank=True, max_length=255, null=True)),
                ("name", models.CharField(max_length=255)),
                ("price", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=12)),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("total", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=12)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="checkout.order",
                    ),
                ),
            ],
            options={
                "db_table": "order_items",
                "ordering": ("name", "id"),
            },
        ),
    ]
