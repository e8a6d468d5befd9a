# -*- coding: utf-8 -*-
"""
Checkout: models package entrypoint.

This app uses a models/ package (not a single models.py); Django only
registers models whose modules are imported here.
"""

from .order import Order
from .order_item import OrderItem

__all__ = [
    "Order",
    "OrderItem",
]
