from decimal import Decimal
from unittest.mock import patch

from django.core.management import call_command
from django.test import TestCase
from io import StringIO
from rest_framework.test import APIClient

from apps.orders.models import OrderStatus
from apps.orders.services import place_order
from apps.providers import services
from apps.providers.models import FulfillmentAttempt
from apps.users.models import User
from apps.providers.tests.test_fulfillment import NOT_VERIFIED, ORDER_OK, POST, VERIFIED


class FulfillmentAdminApiTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="gamer", password="pw-12345678")
        User.objects.filter(pk=self.user.pk).update(balance=Decimal("500"))
        self.admin = User.objects.create_user(username="boss", password="pw-12345678", role="super_admin")
        self.client = APIClient()
        self.client.force_authenticate(self.admin)

        with patch(POST, side_effect=[NOT_VERIFIED]):
            self.order = place_order(
                self.user, "gamer-X1", "mobile_legends", "172 Diamonds", 1, "150",
                {"userId": "42", "zoneId": "9"},
            )
            services.fulfill_order(self.order.pk)

    def test_requires_admin(self):
        client = APIClient()
        client.force_authenticate(self.user)
        self.assertEqual(client.get("/api/admin/fulfillment/stats").status_code, 403)
        self.assertEqual(client.post("/api/admin/fulfillment/retry-failed").status_code, 403)

    def test_attempts_and_stats(self):
        response = self.client.get("/api/admin/fulfillment/attempts", {"status": "failed"})
        self.assertEqual(response.status_code, 200)
        items = response.json()["items"]
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0]["orderNumber"], "gamer-X1")
        self.assertEqual(items[0]["errorCode"], "VERIFICATION_FAILED")

        response = self.client.get("/api/admin/fulfillment/stats")
        self.assertEqual(response.json()["failed"], 1)

    def test_attempts_page_through_shared_timestamps(self):
        with patch(POST, side_effect=[NOT_VERIFIED] * 2):
            for number in ("gamer-X2", "gamer-X3"):
                order = place_order(
                    self.user, number, "mobile_legends", "86 Diamonds", 1, "10",
                    {"userId": "42", "zoneId": "9"},
                )
                services.fulfill_order(order.pk)
        FulfillmentAttempt.objects.update(created_at=self.order.created_at)

        numbers = []
        params = {"limit": 1}
        while True:
            body = self.client.get("/api/admin/fulfillment/attempts", params).json()
            numbers.extend(item["orderNumber"] for item in body["items"])
            if not body["pageInfo"]["hasMore"]:
                break
            params["cursor"] = body["pageInfo"]["nextCursor"]

        self.assertEqual(sorted(numbers), ["gamer-X1", "gamer-X2", "gamer-X3"])

    @patch(POST)
    def test_retry_one(self, post):
        post.side_effect = [VERIFIED, ORDER_OK]
        response = self.client.post(f"/api/admin/orders/{self.order.pk}/retry")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["ok"])
        self.assertEqual(body["transactionId"], "TX-1")

        response = self.client.post(f"/api/admin/orders/{self.order.pk}/retry")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["code"], "INVALID_STATE_TRANSITION")

    @patch(POST)
    def test_retry_failed_bulk(self, post):
        post.side_effect = [VERIFIED, ORDER_OK]
        response = self.client.post("/api/admin/fulfillment/retry-failed")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"retried": 1, "succeeded": 1, "failed": 0, "errors": []})

    def test_order_details_include_attempt(self):
        response = self.client.get(f"/api/admin/orders/{self.order.pk}")
        body = response.json()
        self.assertEqual(body["status"], OrderStatus.CANCELED)
        self.assertEqual(body["fulfillment"]["status"], FulfillmentAttempt.Status.FAILED)

    @patch(POST)
    def test_management_command(self, post):
        post.side_effect = [VERIFIED, ORDER_OK]
        out = StringIO()
        call_command("retry_failed_fulfillments", stdout=out)
        self.assertIn("Retried=1 Succeeded=1 Failed=0", out.getvalue())
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.COMPLETED)

    @patch(POST)
    def test_scheduled_task(self, post):
        from apps.providers.tasks import retry_failed_fulfillments

        post.side_effect = [VERIFIED, ORDER_OK]
        result = retry_failed_fulfillments.delay()
        self.assertEqual(result.get()["succeeded"], 1)
