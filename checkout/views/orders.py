"""
Order confirmation reads.

The order row may still be `pending` when the shopper lands on the
confirmation page (the webhook has not arrived yet). That is a normal
transient state: the payload says `awaiting_payment` and, for up to
ORDER_CONFIRMATION_POLL_SECONDS after checkout start, a Retry-After header
tells the page when to ask again.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from ..models import Order
from ..serializers import OrderSerializer, poll_retry_after


def _order_response(order_id: str) -> Response:
    order = Order.objects.prefetch_related("items").filter(pk=order_id.strip()).first()
    if order is None:
        return Response({"error": "Order not found."}, status=status.HTTP_404_NOT_FOUND)

    resp = Response(OrderSerializer(order).data)
    retry_after = poll_retry_after(order)
    if retry_after is not None:
        resp["Retry-After"] = str(retry_after)
    return resp


class OrderDetailView(APIView):
    """GET /api/orders/<order_id>/ (track order by id)."""

    def get(self, request, order_id):
        return _order_response(order_id)


class OrderConfirmationView(APIView):
    """GET /success/?order_id=<id> (landing page after Stripe redirects back)."""

    def get(self, request):
        order_id = (request.query_params.get("order_id") or "").strip()
        if not order_id:
            return Response({"error": "Missing order id in URL."}, status=status.HTTP_400_BAD_REQUEST)
        return _order_response(order_id)
