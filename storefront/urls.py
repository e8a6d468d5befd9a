"""
Storefront URL configuration.

CHANGE LOG
----------
2026-10-12
- ADD: /success/ and /api/orders/<id>/ confirmation reads.                      # CHANGED:
2026-10-08
- ADD: /functions/create-checkout-session/ and /functions/stripe-webhook/.
"""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    # Admin (administrative order status updates)
    path("admin/", admin.site.urls),

    # Checkout functions + confirmation reads
    path("", include("checkout.urls")),
]
