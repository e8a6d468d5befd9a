from django.conf import settings
from django.utils import timezone
from rest_framework import serializers

from .models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            'name',
            'price',
            'quantity',
            'total',
        ]


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    awaiting_payment = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id',
            'customer_name',
            'email',
            'subtotal',
            'status',
            'created_at',
            'stripe_receipt_url',
            'items',
            'awaiting_payment',
        ]

    def get_awaiting_payment(self, order):
        return order.status == Order.STATUS_PENDING


def poll_retry_after(order):
    """
    Seconds the confirmation page should wait before asking again, or None
    once polling is pointless (paid, or pending for longer than the window).
    """
    if order.status != Order.STATUS_PENDING:
        return None
    window = int(getattr(settings, "ORDER_CONFIRMATION_POLL_SECONDS", 60) or 0)
    age = (timezone.now() - order.created_at).total_seconds()
    if age >= window:
        return None
    return 2
