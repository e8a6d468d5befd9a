from __future__ import annotations

import uuid
from decimal import Decimal

from django.test import TestCase

from checkout.config import get_checkout_config
from checkout.errors import InvalidCartError, PaymentProviderError
from checkout.initiator import build_url, parse_cart, start_checkout
from checkout.models import Order

from .helpers import FakeGateway

CART = [{"id": "p1", "name": "Almonds", "price": 1200, "quantity": 2}]
SHIPPING = {"name": "Ali", "email": "ali@example.com"}


class BuildUrlTests(TestCase):
    def test_no_double_slashes(self):
        self.assertEqual(build_url("https://shop.example.com/", "/shop"), "https://shop.example.com/shop")
        self.assertEqual(build_url("https://shop.example.com", "shop"), "https://shop.example.com/shop")

    def test_root_with_params(self):
        self.assertEqual(
            build_url("https://shop.example.com//", "/", {"order_id": "abc"}),
            "https://shop.example.com/?order_id=abc",
        )

    def test_base_with_path_prefix(self):
        self.assertEqual(build_url("https://example.com/store", "/shop"), "https://example.com/store/shop")


class ParseCartTests(TestCase):
    def test_empty_cart_rejected(self):
        for raw in ([], None, {}, "cart"):
            with self.assertRaises(InvalidCartError):
                parse_cart(raw)

    def test_quantity_floored_to_one(self):
        items = parse_cart([{"name": "A", "price": 1, "quantity": 0}, {"name": "B", "price": 1}])
        self.assertEqual([i.quantity for i in items], [1, 1])

    def test_negative_price_rejected(self):
        with self.assertRaises(InvalidCartError):
            parse_cart([{"name": "A", "price": -1}])

    def test_nameless_item_rejected(self):
        with self.assertRaises(InvalidCartError):
            parse_cart([{"price": 10}])

    def test_unit_amount_in_minor_units(self):
        item = parse_cart([{"name": "A", "price": "12.345"}])[0]
        self.assertEqual(item.unit_amount, 1235)

    def test_non_finite_price_reported_as_invalid(self):
        for price in ("NaN", "Infinity", "-Infinity"):
            with self.assertRaisesMessage(InvalidCartError, "invalid price"):
                parse_cart([{"name": "A", "price": price}])

    def test_negative_price_message(self):
        with self.assertRaisesMessage(InvalidCartError, "negative price"):
            parse_cart([{"name": "A", "price": "-0.01"}])

    def test_fractional_or_garbage_quantity_rejected(self):
        for quantity in ("2.5", 1.5, "two", "NaN"):
            with self.assertRaisesMessage(InvalidCartError, "invalid quantity"):
                parse_cart([{"name": "A", "price": 1, "quantity": quantity}])

    def test_whole_number_quantity_strings_accepted(self):
        items = parse_cart([{"name": "A", "price": 1, "quantity": "3"}, {"name": "B", "price": 1, "quantity": 2.0}])
        self.assertEqual([i.quantity for i in items], [3, 2])


class StartCheckoutTests(TestCase):
    def setUp(self):
        self.config = get_checkout_config()
        self.gateway = FakeGateway()

    def test_registers_session_with_correlation_everywhere(self):
        started = start_checkout(CART, SHIPPING, config=self.config, gateway=self.gateway)

        self.assertEqual(str(uuid.UUID(started.order_id)), started.order_id)
        self.assertEqual(started.session_id, "cs_test_created")
        self.assertTrue(started.url.startswith("https://checkout.stripe.com/"))

        (kind, params, idem_key), = self.gateway.calls
        self.assertEqual(kind, "create")
        self.assertEqual(params["client_reference_id"], started.order_id)
        self.assertEqual(params["metadata"]["order_id"], started.order_id)
        self.assertEqual(params["payment_intent_data"]["metadata"]["order_id"], started.order_id)
        self.assertEqual(params["metadata"]["customer_name"], "Ali")
        self.assertEqual(params["customer_email"], "ali@example.com")
        self.assertIn(started.order_id, idem_key)

    def test_line_items_use_minor_units_and_product_reference(self):
        start_checkout(CART, SHIPPING, config=self.config, gateway=self.gateway)
        params = self.gateway.calls[0][1]

        (line,) = params["line_items"]
        self.assertEqual(line["quantity"], 2)
        self.assertEqual(line["price_data"]["unit_amount"], 120000)
        self.assertEqual(line["price_data"]["currency"], "pkr")
        self.assertEqual(line["price_data"]["product_data"]["name"], "Almonds")
        self.assertEqual(line["price_data"]["product_data"]["metadata"], {"product_id": "p1"})

    def test_redirect_urls(self):
        started = start_checkout(CART, SHIPPING, config=self.config, gateway=self.gateway)
        params = self.gateway.calls[0][1]

        self.assertEqual(params["success_url"], f"https://shop.example.com/?order_id={started.order_id}")
        self.assertEqual(params["cancel_url"], "https://shop.example.com/shop")

    def test_pending_row_recorded_after_registration(self):
        started = start_checkout(CART, SHIPPING, config=self.config, gateway=self.gateway)

        order = Order.objects.get(pk=started.order_id)
        self.assertEqual(order.status, Order.STATUS_PENDING)
        self.assertEqual(order.subtotal, Decimal("2400"))
        self.assertEqual(order.email, "ali@example.com")
        self.assertEqual(order.stripe_session_id, "cs_test_created")

    def test_empty_cart_never_reaches_stripe(self):
        with self.assertRaises(InvalidCartError):
            start_checkout([], SHIPPING, config=self.config, gateway=self.gateway)
        self.assertEqual(self.gateway.calls, [])
        self.assertEqual(Order.objects.count(), 0)

    def test_provider_failure_leaves_no_row(self):
        gateway = FakeGateway(create_error=True)
        with self.assertRaises(PaymentProviderError):
            start_checkout(CART, SHIPPING, config=self.config, gateway=gateway)
        self.assertEqual(Order.objects.count(), 0)

    def test_missing_email_skips_customer_email(self):
        start_checkout(CART, {"name": "Ali"}, config=self.config, gateway=self.gateway)
        self.assertNotIn("customer_email", self.gateway.calls[0][1])
