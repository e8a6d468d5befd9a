"""
checkout.errors

Error kinds raised by the checkout core. Views translate them into HTTP
responses; nothing below the view layer builds responses itself.

Propagation policy
- InvalidCartError / ConfigurationError / InvalidSignatureError -> 400
- PaymentProviderError -> 500 (Stripe retries webhooks on non-2xx)
- CorrelationMissingError -> acknowledged with 200 (a retry cannot fix it)
"""

from __future__ import annotations


class CheckoutError(Exception):
    """Base class for every error raised by the checkout core."""

    code = "checkout_error"


class InvalidCartError(CheckoutError):
    code = "invalid_cart"


class ConfigurationError(CheckoutError):
    code = "misconfigured"

    def __init__(self, message: str, missing: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.missing = tuple(missing)


class PaymentProviderError(CheckoutError):
    """Network, auth or validation failure while talking to Stripe."""

    code = "provider_error"


class InvalidSignatureError(CheckoutError):
    code = "bad_signature"


class CorrelationMissingError(CheckoutError):
    """The event carries no order id we can tie it to."""

    code = "correlation_missing"
