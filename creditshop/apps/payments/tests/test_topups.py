from decimal import Decimal

from django.test import TestCase
from rest_framework.test import APIClient

from apps.payments import services
from apps.payments.models import TopUpRequest
from apps.users import ledger
from apps.users.models import User
from apps.users.wallet_models import WalletTransaction


class TopUpServiceTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="buyer", password="pw-12345678")
        self.admin = User.objects.create_user(username="boss", password="pw-12345678", role="admin")

    def test_submit_defaults_credits_to_amount(self):
        req = services.submit_topup(self.user, "250", payment_reference=" UPI-1 ")
        self.assertEqual(req.status, TopUpRequest.Status.PENDING)
        self.assertEqual(req.credits, Decimal("250"))
        self.assertEqual(req.payment_reference, "UPI-1")
        self.assertEqual(ledger.current_balance(self.user.pk), Decimal("0"))

    def test_submit_rejects_bad_amounts(self):
        for amount in ("0", "-1", "abc", "2000000"):
            with self.subTest(amount=amount):
                with self.assertRaises(services.InvalidTopUpRequest):
                    services.submit_topup(self.user, amount)

    def test_approve_credits_wallet_once(self):
        req = services.submit_topup(self.user, "100", "120")

        approved = services.approve_topup(req.pk, processed_by=self.admin)
        self.assertEqual(approved.status, TopUpRequest.Status.APPROVED)
        self.assertEqual(approved.processed_by_id, self.admin.pk)
        self.assertIsNotNone(approved.processed_at)
        self.assertEqual(ledger.current_balance(self.user.pk), Decimal("120"))
        entry = WalletTransaction.objects.get(topup_id=req.pk)
        self.assertEqual(entry.kind, WalletTransaction.Kind.TOPUP)
        self.assertIsNone(entry.order_id)

        with self.assertRaises(services.TopUpAlreadyProcessed):
            services.approve_topup(req.pk, processed_by=self.admin)
        self.assertEqual(ledger.current_balance(self.user.pk), Decimal("120"))

    def test_reject_requires_remarks_and_leaves_balance(self):
        req = services.submit_topup(self.user, "100")
        with self.assertRaises(services.InvalidTopUpRequest):
            services.reject_topup(req.pk, processed_by=self.admin, remarks="  ")

        rejected = services.reject_topup(req.pk, processed_by=self.admin, remarks="No payment received")
        self.assertEqual(rejected.status, TopUpRequest.Status.REJECTED)
        self.assertEqual(rejected.remarks, "No payment received")
        self.assertEqual(ledger.current_balance(self.user.pk), Decimal("0"))

        with self.assertRaises(services.TopUpAlreadyProcessed):
            services.approve_topup(req.pk, processed_by=self.admin)

    def test_unknown_request(self):
        with self.assertRaises(services.TopUpNotFound):
            services.approve_topup("not-a-uuid")


class TopUpApiTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="buyer", password="pw-12345678")
        self.admin = User.objects.create_user(username="boss", password="pw-12345678", role="admin")
        self.client = APIClient()
        self.client.force_authenticate(self.user)
        self.admin_client = APIClient()
        self.admin_client.force_authenticate(self.admin)

    def test_submit_and_list_mine(self):
        response = self.client.post("/api/topups", {"amount": "50", "paymentReference": "TXN-9"}, format="json")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["status"], "pending")

        response = self.client.get("/api/topups/me")
        body = response.json()
        self.assertEqual(body["total"], 1)
        self.assertEqual(body["items"][0]["paymentReference"], "TXN-9")

    def test_admin_approve_and_reject(self):
        first = services.submit_topup(self.user, "30")
        second = services.submit_topup(self.user, "40")

        self.assertEqual(self.client.post(f"/api/admin/topups/{first.pk}/approve").status_code, 403)

        response = self.admin_client.post(f"/api/admin/topups/{first.pk}/approve", {}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "approved")

        response = self.admin_client.post(f"/api/admin/topups/{first.pk}/approve", {}, format="json")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["code"], "TOPUP_ALREADY_PROCESSED")

        response = self.admin_client.post(
            f"/api/admin/topups/{second.pk}/reject", {"remarks": "duplicate screenshot"}, format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "rejected")
        self.assertEqual(ledger.current_balance(self.user.pk), Decimal("30"))
