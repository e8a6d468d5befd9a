"""
checkout.views.checkout_session

POST JSON body:
  {
    "cart": [{"id": "p1", "name": "Almonds", "price": 1200, "quantity": 2, "image": "optional"}],
    "shipping": {"name": "...", "email": "...", "phone": "...", "address": "..."}
  }

Responses
- 200 {url, id, order_id}
- 400 {error}  empty/invalid cart, invalid JSON, missing Stripe configuration
- 500 {error}  Stripe failure
OPTIONS answers the CORS preflight; GET is a liveness message.
"""

from __future__ import annotations

import logging

from django.http import HttpRequest, HttpResponse
from django.views.decorators.csrf import csrf_exempt

from ..config import get_checkout_config
from ..errors import ConfigurationError, InvalidCartError, PaymentProviderError
from ..initiator import start_checkout
from .utils import _json_response, _method_not_allowed, _parse_json_body, _with_cors

log = logging.getLogger(__name__)


@csrf_exempt
def create_checkout_session(request: HttpRequest) -> HttpResponse:
    if request.method == "OPTIONS":
        return _with_cors(HttpResponse("ok"), request)
    if request.method == "GET":
        return _json_response(
            {"status": "ok", "message": "Use POST to create a Stripe Checkout Session."},
            request=request,
        )
    if request.method != "POST":
        return _method_not_allowed(request)

    try:
        cfg = get_checkout_config()
    except ConfigurationError as e:
        log.error("[checkout-session] misconfigured: missing=%s", ",".join(e.missing))
        return _json_response({"error": "Missing Stripe configuration"}, 400, request)

    body = _parse_json_body(request)
    if body is None:
        return _json_response({"error": "Invalid JSON body"}, 400, request)

    try:
        started = start_checkout(body.get("cart"), body.get("shipping"), config=cfg)
    except InvalidCartError as e:
        return _json_response({"error": str(e)}, 400, request)
    except PaymentProviderError:
        # Already logged with detail by the gateway.
        return _json_response({"error": "Failed to create checkout session"}, 500, request)
    except Exception:
        log.exception("[checkout-session] unexpected error")
        return _json_response({"error": "Failed to create checkout session"}, 500, request)

    return _json_response(
        {"url": started.url, "id": started.session_id, "order_id": started.order_id},
        request=request,
    )
