"""
checkout.config

Typed view of the checkout settings.

settings.py reads the environment once at process start (including the
alias names for the same secret). This module only validates what settings
already hold and hands out frozen dataclasses, cached until Django reports a
settings change (override_settings in tests).
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from django.conf import settings
from django.core.signals import setting_changed
from django.dispatch import receiver

from .errors import ConfigurationError

WATCHED_SETTINGS = frozenset(
    {
        "STRIPE_SECRET_KEY",
        "STRIPE_WEBHOOK_SECRET",
        "STRIPE_API_VERSION",
        "STRIPE_CURRENCY",
        "STRIPE_TIMEOUT_SECONDS",
        "STRIPE_MODE",
        "PUBLIC_SITE_URL",
        "WEBHOOK_TEST_MODE",
        "WEBHOOK_TEST_TOKEN",
    }
)


@dataclass(frozen=True)
class StripeConfig:
    secret_key: str
    api_version: Optional[str]
    timeout: float
    mode: str


@dataclass(frozen=True)
class CheckoutConfig:
    stripe: StripeConfig
    public_url: str
    currency: str


@dataclass(frozen=True)
class WebhookConfig:
    stripe: StripeConfig
    webhook_secret: str
    test_mode: str
    test_token: str

    @property
    def insecure_test_enabled(self) -> bool:
        # Both switches must be set; either alone keeps the bypass unreachable.
        return self.test_mode == "insecure" and bool(self.test_token)


def _setting(name: str) -> str:
    return str(getattr(settings, name, "") or "").strip()


def _raise_missing(missing: list[str], what: str) -> None:
    if missing:
        raise ConfigurationError(
            f"Missing {what} configuration: {', '.join(missing)}",
            missing=tuple(missing),
        )


def _stripe_config(missing: list[str]) -> StripeConfig:
    secret_key = _setting("STRIPE_SECRET_KEY")
    if not secret_key:
        missing.append("STRIPE_SECRET_KEY")
    return StripeConfig(
        secret_key=secret_key,
        api_version=_setting("STRIPE_API_VERSION") or None,
        timeout=float(getattr(settings, "STRIPE_TIMEOUT_SECONDS", 10) or 10),
        mode=_setting("STRIPE_MODE") or "live",
    )


@lru_cache(maxsize=1)
def get_checkout_config() -> CheckoutConfig:
    missing: list[str] = []
    stripe_cfg = _stripe_config(missing)
    public_url = _setting("PUBLIC_SITE_URL")
    if not public_url:
        missing.append("PUBLIC_SITE_URL")
    _raise_missing(missing, "Stripe checkout")
    return CheckoutConfig(
        stripe=stripe_cfg,
        public_url=public_url,
        currency=(_setting("STRIPE_CURRENCY") or "pkr").lower(),
    )


@lru_cache(maxsize=1)
def get_webhook_config() -> WebhookConfig:
    missing: list[str] = []
    stripe_cfg = _stripe_config(missing)
    webhook_secret = _setting("STRIPE_WEBHOOK_SECRET")
    if not webhook_secret:
        missing.append("STRIPE_WEBHOOK_SECRET")
    _raise_missing(missing, "server")
    return WebhookConfig(
        stripe=stripe_cfg,
        webhook_secret=webhook_secret,
        test_mode=_setting("WEBHOOK_TEST_MODE").lower(),
        test_token=_setting("WEBHOOK_TEST_TOKEN"),
    )


def missing_settings() -> list[str]:
    """Names of every checkout setting that is currently unset (for startup checks)."""
    missing: list[str] = []
    for loader in (get_checkout_config, get_webhook_config):
        try:
            loader()
        except ConfigurationError as e:
            missing.extend(m for m in e.missing if m not in missing)
    return missing


def clear_config_cache() -> None:
    get_checkout_config.cache_clear()
    get_webhook_config.cache_clear()


@receiver(setting_changed)
def _reset_on_setting_changed(sender, setting, **kwargs):
    if setting in WATCHED_SETTINGS:
        clear_config_cache()
