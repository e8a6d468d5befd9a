"""
CHANGE LOG
----------
2026-10-16
- NEW FILE: HTTP surface tests (checkout function, webhook function,
  root redirect, confirmation + track order reads, health).
"""

from __future__ import annotations

import json
from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone

from checkout.errors import PaymentProviderError
from checkout.models import Order, OrderItem

from .helpers import FakeGateway, make_event, make_session, sign_payload

CART = [{"id": "p1", "name": "Almonds", "price": 1200, "quantity": 2}]
SHIPPING = {"name": "Ali", "email": "ali@example.com", "phone": "0300", "address": "Lahore"}


class CreateCheckoutSessionViewTests(TestCase):
    url = reverse("create-checkout-session")

    def post(self, body, **extra):
        data = body if isinstance(body, (bytes, str)) else json.dumps(body)
        return self.client.post(self.url, data=data, content_type="application/json", **extra)

    @mock.patch("checkout.initiator.StripeGateway")
    def test_creates_session(self, gateway_cls):
        gateway_cls.return_value = FakeGateway()

        resp = self.post({"cart": CART, "shipping": SHIPPING})

        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["id"], "cs_test_created")
        self.assertEqual(data["url"], "https://checkout.stripe.com/c/pay/cs_test_created")
        order = Order.objects.get(pk=data["order_id"])
        self.assertEqual(order.status, Order.STATUS_PENDING)
        self.assertEqual(order.address, "Lahore")

    @mock.patch("checkout.initiator.StripeGateway")
    def test_empty_cart_is_400_without_stripe_call(self, gateway_cls):
        resp = self.post({"cart": [], "shipping": SHIPPING})

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Cart is empty"})
        gateway_cls.assert_not_called()

    def test_invalid_json_is_400(self):
        resp = self.post(b"{not json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Invalid JSON body"})

    @override_settings(STRIPE_SECRET_KEY="")
    def test_missing_configuration_is_400(self):
        resp = self.post({"cart": CART})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Missing Stripe configuration"})

    @mock.patch("checkout.initiator.StripeGateway")
    def test_provider_failure_is_500(self, gateway_cls):
        gateway_cls.return_value = FakeGateway(create_error=True)

        resp = self.post({"cart": CART, "shipping": SHIPPING})

        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {"error": "Failed to create checkout session"})
        self.assertEqual(Order.objects.count(), 0)

    def test_preflight_echoes_origin(self):
        resp = self.client.options(self.url, HTTP_ORIGIN="https://shop.example.com")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp["Access-Control-Allow-Origin"], "https://shop.example.com")
        self.assertIn("POST", resp["Access-Control-Allow-Methods"])
        self.assertIn("content-type", resp["Access-Control-Allow-Headers"])

    def test_get_is_liveness_and_put_not_allowed(self):
        self.assertEqual(self.client.get(self.url).json()["status"], "ok")
        resp = self.client.put(self.url)
        self.assertEqual(resp.status_code, 405)
        self.assertEqual(resp["Access-Control-Allow-Origin"], "*")


class StripeWebhookViewTests(TestCase):
    url = reverse("stripe-webhook")

    def post_event(self, event_type, obj, *, secret=None, **extra):
        payload = make_event(event_type, obj)
        header = sign_payload(payload) if secret is None else sign_payload(payload, secret=secret)
        return self.client.post(
            self.url,
            data=payload,
            content_type="application/json",
            HTTP_STRIPE_SIGNATURE=header,
            **extra,
        )

    @mock.patch("checkout.reconciler.StripeGateway")
    def test_completed_session_marks_order_paid(self, gateway_cls):
        gateway_cls.return_value = FakeGateway(session=make_session("o-1"))
        Order.objects.create(id="o-1", subtotal=Decimal("5000"))

        resp = self.post_event("checkout.session.completed", make_session("o-1"))

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(
            resp.json(),
            {
                "received": True,
                "event": "checkout.session.completed",
                "order_id": "o-1",
                "order_created": False,
                "items_written": 1,
            },
        )
        order = Order.objects.get(pk="o-1")
        self.assertEqual(order.status, Order.STATUS_PAID)
        self.assertEqual(order.subtotal, Decimal("2400"))

    @mock.patch("checkout.reconciler.StripeGateway")
    def test_bad_signature_is_400(self, gateway_cls):
        resp = self.post_event("checkout.session.completed", make_session("o-1"), secret="whsec_wrong")

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Invalid signature"})
        self.assertEqual(Order.objects.count(), 0)
        gateway_cls.assert_not_called()

    def test_missing_signature_is_400(self):
        resp = self.client.post(self.url, data=make_event("checkout.session.completed", {}), content_type="application/json")
        self.assertEqual(resp.status_code, 400)

    def test_unhandled_type_acknowledged(self):
        resp = self.post_event("invoice.paid", {"id": "in_1"})

        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["ignored"])
        self.assertEqual(Order.objects.count(), 0)

    def test_uncorrelated_session_acknowledged(self):
        resp = self.post_event("checkout.session.completed", make_session(None))

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["reason"], "correlation_missing")

    @mock.patch("checkout.reconciler.StripeGateway")
    def test_provider_failure_is_500_for_retry(self, gateway_cls):
        gateway = FakeGateway()
        gateway.retrieve_checkout_session = mock.Mock(side_effect=PaymentProviderError("timeout"))
        gateway_cls.return_value = gateway

        resp = self.post_event("checkout.session.completed", make_session("o-1"))

        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {"error": "Webhook processing failed"})

    @override_settings(STRIPE_WEBHOOK_SECRET="")
    def test_missing_configuration_is_400(self):
        resp = self.post_event("checkout.session.completed", make_session("o-1"))
        self.assertEqual(resp.json(), {"error": "Missing server configuration"})
        self.assertEqual(resp.status_code, 400)

    def test_get_is_liveness_and_put_not_allowed(self):
        self.assertEqual(self.client.get(self.url).json(), {"status": "ok", "message": "Stripe webhook live"})
        self.assertEqual(self.client.put(self.url).status_code, 405)

    @override_settings(WEBHOOK_TEST_MODE="insecure", WEBHOOK_TEST_TOKEN="tok")
    def test_insecure_test_mode_with_matching_header(self):
        body = {"id": "pi_1", "object": "payment_intent", "amount_received": 100000, "metadata": {"order_id": "o-t"}}

        resp = self.client.post(
            self.url,
            data=json.dumps(body),
            content_type="application/json",
            HTTP_X_TEST_SECRET="tok",
            HTTP_X_TEST_EVENT_TYPE="payment_intent.succeeded",
        )

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["mode"], "insecure-test")
        self.assertEqual(Order.objects.get(pk="o-t").subtotal, Decimal("1000"))

    @override_settings(WEBHOOK_TEST_MODE="", WEBHOOK_TEST_TOKEN="tok")
    def test_test_header_ignored_when_mode_off(self):
        resp = self.client.post(
            self.url,
            data=json.dumps(make_session("o-t")),
            content_type="application/json",
            HTTP_X_TEST_SECRET="tok",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(Order.objects.count(), 0)


class OrderReadViewTests(TestCase):
    def setUp(self):
        self.order = Order.objects.create(
            id="o-1",
            customer_name="Ali",
            email="ali@example.com",
            subtotal=Decimal("2400"),
            status=Order.STATUS_PAID,
        )
        OrderItem.objects.create(order=self.order, name="Walnuts", price=100, quantity=1, total=100)
        OrderItem.objects.create(order=self.order, name="Almonds", price=1200, quantity=2, total=2400)

    def test_root_with_order_id_redirects_to_confirmation(self):
        resp = self.client.get("/?order_id=o-1")
        self.assertEqual(resp.status_code, 302)
        self.assertEqual(resp["Location"], "/success/?order_id=o-1")

    def test_other_paths_not_redirected(self):
        resp = self.client.get(reverse("checkout-health") + "?order_id=o-1")
        self.assertEqual(resp.status_code, 200)

    def test_confirmation_returns_order_with_sorted_items(self):
        resp = self.client.get(reverse("order-confirmation"), {"order_id": "o-1"})

        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["id"], "o-1")
        self.assertEqual(data["status"], "paid")
        self.assertFalse(data["awaiting_payment"])
        self.assertEqual([i["name"] for i in data["items"]], ["Almonds", "Walnuts"])
        self.assertFalse(resp.has_header("Retry-After"))

    def test_confirmation_without_order_id_is_400(self):
        resp = self.client.get(reverse("order-confirmation"))
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Missing order id in URL."})

    def test_unknown_order_is_404(self):
        resp = self.client.get(reverse("order-detail", args=["missing"]))
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json(), {"error": "Order not found."})

    def test_pending_order_asks_client_to_poll(self):
        Order.objects.create(id="o-2")

        resp = self.client.get(reverse("order-detail", args=["o-2"]))

        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["awaiting_payment"])
        self.assertEqual(resp["Retry-After"], "2")

    def test_stale_pending_order_stops_polling(self):
        Order.objects.create(id="o-2")
        Order.objects.filter(pk="o-2").update(created_at=timezone.now() - timedelta(minutes=5))

        resp = self.client.get(reverse("order-detail", args=["o-2"]))

        self.assertTrue(resp.json()["awaiting_payment"])
        self.assertFalse(resp.has_header("Retry-After"))


class HealthViewTests(TestCase):
    def test_health(self):
        resp = self.client.get(reverse("checkout-health"))
        self.assertEqual(resp.json(), {"ok": True, "service": "checkout"})
        self.assertEqual(self.client.post(reverse("checkout-health")).status_code, 405)
