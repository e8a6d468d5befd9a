"""
checkout.gateway

Thin wrapper over the Stripe SDK. Every outbound Stripe API call of the
checkout core goes through StripeGateway so that:
- credentials / API version are passed per request (no global api_key),
- calls are bounded by a timeout and never retried internally
  (Stripe's own webhook retry policy is the outer retry loop),
- any SDK failure surfaces as PaymentProviderError.

Webhook signature verification lives in checkout.reconciler; it needs no
network access.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import stripe

from .config import StripeConfig
from .errors import PaymentProviderError

log = logging.getLogger(__name__)

_HTTP_CLIENT_TIMEOUT: Optional[float] = None


def _configure_http_client(timeout: float) -> None:
    global _HTTP_CLIENT_TIMEOUT
    if _HTTP_CLIENT_TIMEOUT == timeout:
        return
    stripe.default_http_client = stripe.RequestsClient(timeout=timeout)
    stripe.max_network_retries = 0
    _HTTP_CLIENT_TIMEOUT = timeout


class StripeGateway:
    def __init__(self, config: StripeConfig) -> None:
        self.config = config
        _configure_http_client(config.timeout)

    def _opts(self) -> Dict[str, Any]:
        opts: Dict[str, Any] = {"api_key": self.config.secret_key}
        if self.config.api_version:
            opts["stripe_version"] = self.config.api_version
        return opts

    def _fail(self, action: str, err: Exception) -> PaymentProviderError:
        detail = getattr(err, "user_message", None) or str(err)
        log.error("[stripe] %s failed: %s", action, detail)
        return PaymentProviderError(f"Stripe {action} failed: {detail}")

    def create_checkout_session(self, params: Dict[str, Any], *, idempotency_key: Optional[str] = None) -> Any:
        try:
            return stripe.checkout.Session.create(
                idempotency_key=idempotency_key,
                **self._opts(),
                **params,
            )
        except stripe.StripeError as e:
            raise self._fail("checkout session create", e) from e

    def retrieve_checkout_session(self, session_id: str) -> Any:
        try:
            return stripe.checkout.Session.retrieve(
                session_id,
                expand=["payment_intent"],
                **self._opts(),
            )
        except stripe.StripeError as e:
            raise self._fail("checkout session retrieve", e) from e

    def list_line_items(self, session_id: str) -> List[Any]:
        try:
            page = stripe.checkout.Session.list_line_items(
                session_id,
                limit=100,
                expand=["data.price.product"],
                **self._opts(),
            )
            return list(page.auto_paging_iter())
        except stripe.StripeError as e:
            raise self._fail("line items list", e) from e

    def retrieve_payment_intent(self, payment_intent_id: str) -> Any:
        try:
            return stripe.PaymentIntent.retrieve(
                payment_intent_id,
                expand=["latest_charge"],
                **self._opts(),
            )
        except stripe.StripeError as e:
            raise self._fail("payment intent retrieve", e) from e
