"""
checkout.views.stripe_webhook

Stripe webhook endpoint. Reconciliation itself lives in checkout.reconciler;
this view only maps its outcome onto what Stripe understands:
- 200 {received: true, ...}  processed, or intentionally ignored
- 400 {error}                bad signature / missing configuration
- 500 {error}                anything transient -> Stripe retries

ENV (read in settings.py)
- STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET (required)
- WEBHOOK_TEST_MODE=insecure + WEBHOOK_TEST_TOKEN (optional, non-production only)
"""

from __future__ import annotations

import logging

from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt

from ..config import get_webhook_config
from ..errors import ConfigurationError, InvalidSignatureError
from ..reconciler import WebhookReconciler
from .utils import _method_not_allowed

log = logging.getLogger(__name__)


@csrf_exempt
def stripe_webhook(request: HttpRequest) -> HttpResponse:
    if request.method == "GET":
        return JsonResponse({"status": "ok", "message": "Stripe webhook live"})
    if request.method != "POST":
        return _method_not_allowed()

    try:
        cfg = get_webhook_config()
    except ConfigurationError as e:
        log.error("[webhook] misconfigured: missing=%s", ",".join(e.missing))
        return JsonResponse({"error": "Missing server configuration"}, status=400)

    payload = request.body  # raw bytes; the signature covers exactly these
    reconciler = WebhookReconciler(cfg)

    try:
        result = reconciler.handle(
            payload,
            request.META.get("HTTP_STRIPE_SIGNATURE", ""),
            test_secret=request.META.get("HTTP_X_TEST_SECRET"),
            test_event_type=request.META.get("HTTP_X_TEST_EVENT_TYPE"),
        )
    except InvalidSignatureError as e:
        log.warning("[webhook] rejected: %s", e)
        return JsonResponse({"error": "Invalid signature"}, status=400)
    except Exception:
        log.exception("[webhook] processing failed")
        return JsonResponse({"error": "Webhook processing failed"}, status=500)

    return JsonResponse(result.as_dict())
