"""
Checkout views: public surface.

create_checkout_session / stripe_webhook mirror the two serverless functions;
the order views serve the confirmation page.
"""

from .checkout_session import create_checkout_session
from .health import health
from .orders import OrderConfirmationView, OrderDetailView
from .stripe_webhook import stripe_webhook

__all__ = [
    "create_checkout_session",
    "health",
    "OrderConfirmationView",
    "OrderDetailView",
    "stripe_webhook",
]
