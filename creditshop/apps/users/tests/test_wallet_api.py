import uuid
from decimal import Decimal

from django.test import TestCase
from rest_framework.test import APIClient

from apps.users import ledger
from apps.users.models import User
from apps.users.wallet_models import WalletTransaction


class WalletApiTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="buyer", password="pw-12345678")
        self.client = APIClient()
        self.client.force_authenticate(self.user)

    def test_balance_requires_authentication(self):
        response = APIClient().get("/api/wallet/balance")
        self.assertEqual(response.status_code, 401)

    def test_balance_and_history(self):
        ledger.credit(self.user.pk, Decimal("50"), kind=WalletTransaction.Kind.TOPUP, topup_id=uuid.uuid4())
        ledger.deduct(self.user.pk, Decimal("20"), order_id=uuid.uuid4())

        response = self.client.get("/api/wallet/balance")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(Decimal(response.json()["balance"]), Decimal("30"))

        response = self.client.get("/api/wallet/transactions", {"kind": "order_charge"})
        body = response.json()
        self.assertEqual(body["total"], 1)
        self.assertEqual(body["transactions"][0]["kind"], "order_charge")
        self.assertEqual(Decimal(body["transactions"][0]["amount"]), Decimal("-20"))
