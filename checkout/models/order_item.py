from __future__ import annotations

from decimal import Decimal

from django.db import models


class OrderItem(models.Model):
    """
    One purchased line. The set of items for an order is replaced as a unit
    by the reconciler; individual rows are never edited in place.
    """

    order = models.ForeignKey(
        "checkout.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product_id = models.CharField(max_length=255, blank=True, null=True)
    name = models.CharField(max_length=255)
    price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    quantity = models.PositiveIntegerField(default=1)
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))

    class Meta:
        db_table = "order_items"
        ordering = ("name", "id")

    def __str__(self) -> str:
        return f"{self.name} x{self.quantity}"
