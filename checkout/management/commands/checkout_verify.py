# -*- coding: utf-8 -*-
"""
Single-shot configuration check for the checkout functions.
Prints presence (never values) of each setting; exits 1 when any is missing.
"""

from __future__ import annotations

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from checkout.config import clear_config_cache, missing_settings

CHECKED = (
    "STRIPE_SECRET_KEY",
    "STRIPE_WEBHOOK_SECRET",
    "PUBLIC_SITE_URL",
)


class Command(BaseCommand):
    help = "Verifies the Stripe checkout configuration without printing secrets."

    def handle(self, *args, **opts) -> None:
        clear_config_cache()
        self.stdout.write(self.style.NOTICE(f"[verify] stripe_mode={getattr(settings, 'STRIPE_MODE', 'live')}"))
        for name in CHECKED:
            value = str(getattr(settings, name, "") or "")
            self._report(name, bool(value), detail=f"len={len(value)}")

        test_mode = str(getattr(settings, "WEBHOOK_TEST_MODE", "") or "")
        if test_mode == "insecure" and getattr(settings, "WEBHOOK_TEST_TOKEN", ""):
            self.stdout.write(self.style.WARNING("[verify] insecure webhook test mode is ENABLED"))

        missing = missing_settings()
        if missing:
            raise CommandError(f"Missing configuration: {', '.join(missing)}")
        self.stdout.write(self.style.SUCCESS("[verify] checkout configuration OK"))

    def _report(self, name: str, ok: bool, detail: str = "") -> None:
        style = self.style.SUCCESS if ok else self.style.ERROR
        label = "OK" if ok else "MISSING"
        self.stdout.write(style(f"[verify] {name}: {label} {detail}".rstrip()))
