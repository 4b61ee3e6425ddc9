from decimal import Decimal
from unittest.mock import patch

from django.core.cache import cache
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from apps.orders import services
from apps.orders.dedupe import claim_key, order_dedupe_key
from apps.orders.dispatch import Route, dispatch_order, route
from apps.orders.models import Order, OrderStatus
from apps.orders.signals import order_queued_for_review
from apps.providers.models import FulfillmentAttempt
from apps.providers.tests.test_fulfillment import NOT_VERIFIED, ORDER_OK, POST, VERIFIED
from apps.users import ledger
from apps.users.models import User


def _ml_payload(number="buyer-ML", package="86 Diamonds"):
    return {
        "orderNumber": number,
        "category": "mobile_legends",
        "productName": "Mobile Legends",
        "packageName": package,
        "quantity": 1,
        "price": "20",
        "details": {"userId": "123", "zoneId": "456"},
    }


class OrdersApiTestCase(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="buyer", password="pw-12345678")
        User.objects.filter(pk=self.user.pk).update(balance=Decimal("100"))
        self.admin = User.objects.create_user(username="boss", password="pw-12345678", role="sub_admin")
        self.client = APIClient()
        self.client.force_authenticate(self.user)
        self.admin_client = APIClient()
        self.admin_client.force_authenticate(self.admin)


class CreateOrderApiTests(OrdersApiTestCase):
    def test_requires_authentication(self):
        self.assertEqual(APIClient().post("/api/orders", {}, format="json").status_code, 401)

    def test_manual_order_waits_for_review(self):
        received = []

        def receiver(sender, **kwargs):
            received.append(kwargs["order_number"])

        order_queued_for_review.connect(receiver)
        self.addCleanup(order_queued_for_review.disconnect, receiver)
        payload = {"orderNumber": "buyer-FF1", "category": "freefire", "packageName": "520 Diamonds", "price": "30"}
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post("/api/orders", payload, format="json")

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["status"], "pending")
        self.assertEqual(body["orderNumber"], "buyer-FF1")
        self.assertEqual(Decimal(body["creditsDeducted"]), Decimal("30"))
        self.assertEqual(received, ["buyer-FF1"])
        self.assertEqual(ledger.current_balance(self.user.pk), Decimal("70"))

    @patch(POST)
    def test_automated_order_completes_in_sync_mode(self, post):
        post.side_effect = [VERIFIED, ORDER_OK]
        response = self.client.post("/api/orders", _ml_payload(), format="json")

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["status"], "completed")
        self.assertEqual(body["transactionId"], "TX-1")
        self.assertIsNone(body["customerMessage"])
        self.assertEqual(ledger.current_balance(self.user.pk), Decimal("80"))

    @patch(POST)
    def test_failed_delivery_shows_generic_message(self, post):
        post.side_effect = [NOT_VERIFIED]
        response = self.client.post("/api/orders", _ml_payload(), format="json")

        body = response.json()
        self.assertEqual(body["status"], "canceled")
        self.assertIn("User ID and Zone ID", body["customerMessage"])
        self.assertNotIn("Invalid player", body["customerMessage"])
        self.assertNotIn("failureReason", body)
        self.assertEqual(ledger.current_balance(self.user.pk), Decimal("100"))

    @override_settings(FULFILLMENT_DISPATCH_MODE="async")
    @patch(POST)
    def test_async_mode_runs_after_commit(self, post):
        post.side_effect = [VERIFIED, ORDER_OK]
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post("/api/orders", _ml_payload(), format="json")

        self.assertEqual(response.json()["status"], "pending")
        order = Order.objects.get(order_number="buyer-ML")
        self.assertEqual(order.status, OrderStatus.COMPLETED)

    def test_insufficient_funds(self):
        payload = {"orderNumber": "buyer-1", "category": "netflix", "packageName": "1 Year", "price": "150"}
        response = self.client.post("/api/orders", payload, format="json")

        self.assertEqual(response.status_code, 402)
        self.assertEqual(response.json()["code"], "INSUFFICIENT_FUNDS")
        self.assertFalse(Order.objects.exists())

    def test_unknown_package_is_rejected_before_charge(self):
        response = self.client.post("/api/orders", _ml_payload(package="3 Diamonds"), format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "UNKNOWN_PACKAGE")
        self.assertEqual(ledger.current_balance(self.user.pk), Decimal("100"))

    def test_duplicate_order_number(self):
        payload = {"orderNumber": "buyer-1", "category": "other", "packageName": "Thing", "price": "5"}
        self.assertEqual(self.client.post("/api/orders", payload, format="json").status_code, 201)
        response = self.client.post("/api/orders", payload, format="json")

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["code"], "DUPLICATE_ORDER")
        self.assertEqual(ledger.current_balance(self.user.pk), Decimal("95"))

    def test_submission_claimed_by_another_worker_is_rejected(self):
        cache.clear()
        self.addCleanup(cache.clear)
        key = order_dedupe_key(self.user.pk, "other", "Thing", 1)
        cache.add(claim_key(key), "1", timeout=60)
        payload = {"category": "other", "packageName": "Thing", "price": "5"}

        response = self.client.post("/api/orders", payload, format="json")

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["code"], "DUPLICATE_SUBMISSION")
        self.assertFalse(Order.objects.exists())
        self.assertEqual(ledger.current_balance(self.user.pk), Decimal("100"))

        cache.delete(claim_key(key))
        self.assertEqual(self.client.post("/api/orders", payload, format="json").status_code, 201)
        self.assertEqual(ledger.current_balance(self.user.pk), Decimal("95"))
        self.assertIsNone(cache.get(claim_key(key)))

    def test_serializer_limits(self):
        payload = {"category": "other", "packageName": "Thing", "price": "5", "quantity": 0}
        self.assertEqual(self.client.post("/api/orders", payload, format="json").status_code, 400)


class OrderReadApiTests(OrdersApiTestCase):
    def setUp(self):
        super().setUp()
        self.order = services.place_order(self.user, "buyer-1", "roblox", "800 Robux", 1, "10")

    def test_my_orders_and_details(self):
        response = self.client.get("/api/orders/me")
        self.assertEqual([o["orderNumber"] for o in response.json()["items"]], ["buyer-1"])

        response = self.client.get(f"/api/orders/{self.order.pk}")
        self.assertEqual(response.status_code, 200)

    def test_other_users_cannot_read_order(self):
        stranger = User.objects.create_user(username="stranger", password="pw-12345678")
        client = APIClient()
        client.force_authenticate(stranger)
        self.assertEqual(client.get(f"/api/orders/{self.order.pk}").status_code, 403)
        self.assertEqual(client.get("/api/orders/me").json()["items"], [])

    def test_admin_endpoints_reject_customers(self):
        self.assertEqual(self.client.get("/api/admin/orders").status_code, 403)
        self.assertEqual(self.client.post(f"/api/admin/orders/{self.order.pk}/confirm").status_code, 403)


class AdminOrderApiTests(OrdersApiTestCase):
    def setUp(self):
        super().setUp()
        self.order = services.place_order(self.user, "buyer-1", "chatgpt", "Plus", 1, "25")

    def test_list_and_queue(self):
        response = self.admin_client.get("/api/admin/orders", {"q": "buyer"})
        item = response.json()["items"][0]
        self.assertEqual(item["username"], "buyer")
        self.assertEqual(item["failureReason"], "")

        response = self.admin_client.get("/api/admin/orders/review-queue")
        self.assertEqual(len(response.json()["items"]), 1)

    def test_confirm(self):
        response = self.admin_client.post(
            f"/api/admin/orders/{self.order.pk}/confirm", {"adminRemarks": "sent code"}, format="json",
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "confirmed")
        self.assertEqual(body["reviewedBy"], "boss")

        response = self.admin_client.post(f"/api/admin/orders/{self.order.pk}/confirm", {}, format="json")
        self.assertEqual(response.status_code, 200)

    def test_cancel_refunds(self):
        response = self.admin_client.post(
            f"/api/admin/orders/{self.order.pk}/cancel", {"reason": "out of stock"}, format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "canceled")
        self.assertEqual(ledger.current_balance(self.user.pk), Decimal("100"))

        response = self.admin_client.post(
            f"/api/admin/orders/{self.order.pk}/cancel", {"reason": "out of stock"}, format="json",
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(ledger.current_balance(self.user.pk), Decimal("100"))

    def test_cancel_needs_reason(self):
        response = self.admin_client.post(f"/api/admin/orders/{self.order.pk}/cancel", {}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_missing_order(self):
        response = self.admin_client.get("/api/admin/orders/00000000-0000-0000-0000-000000000000")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["code"], "ORDER_NOT_FOUND")


class DispatchTests(OrdersApiTestCase):
    def test_routing_by_category(self):
        self.assertIs(route("mobile_legends", "86 Diamonds"), Route.AUTOMATED)
        self.assertIs(route("freefire", "86 Diamonds"), Route.MANUAL)

    def test_dispatch_never_raises(self):
        order = services.place_order(
            self.user, "buyer-ML", "mobile_legends", "86 Diamonds", 1, "5", {"userId": "1", "zoneId": "2"},
        )
        with patch("apps.providers.services.fulfill_order", side_effect=RuntimeError("db gone")):
            self.assertIs(dispatch_order(order), Route.AUTOMATED)
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertFalse(FulfillmentAttempt.objects.exists())
