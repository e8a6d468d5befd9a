# -*- coding: utf-8 -*-
"""
Manually reconcile one Stripe Checkout Session into the order store.

Operator recovery for webhook deliveries that were acknowledged without a
write (logged as "could not be correlated"), or for sessions whose webhook
never arrived. Safe to run repeatedly: it goes through the same idempotent
upsert + line item replacement as the webhook.

  python manage.py reconcile_checkout_session cs_test_123
  python manage.py reconcile_checkout_session cs_test_123 --order-id 0b6f...
"""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError, CommandParser

from checkout.config import get_webhook_config
from checkout.errors import CheckoutError
from checkout.events import field_of
from checkout.reconciler import WebhookReconciler


class Command(BaseCommand):
    help = "Re-runs checkout.session.completed reconciliation for a Stripe Checkout Session id."

    def add_arguments(self, parser: CommandParser) -> None:
        parser.add_argument("session_id", help="Stripe Checkout Session id (cs_...).")
        parser.add_argument(
            "--order-id",
            default=None,
            help="Order id to write to when the session carries no correlation metadata.",
        )

    def handle(self, *args, **opts) -> None:
        session_id: str = str(opts["session_id"]).strip()
        order_id = (opts.get("order_id") or "").strip() or None

        try:
            reconciler = WebhookReconciler(get_webhook_config())
            session = reconciler.gateway.retrieve_checkout_session(session_id)
            status = str(field_of(session, "payment_status") or "")
            if status and status not in ("paid", "no_payment_required"):
                raise CommandError(f"Session {session_id} is not paid (payment_status={status}).")
            result = reconciler.reconcile_checkout_session(session, order_id=order_id)
        except CheckoutError as e:
            raise CommandError(str(e)) from e

        self.stdout.write(
            self.style.SUCCESS(
                f"[reconcile] order={result.order_id} created={result.order_created} items={result.items_written}"
            )
        )
