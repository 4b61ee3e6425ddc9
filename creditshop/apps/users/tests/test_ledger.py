"""
Ledger behaviour: atomic check-and-debit, credits and the wallet history.
"""
import uuid
from decimal import Decimal
from unittest.mock import MagicMock

from django.test import TestCase

from apps.users import ledger
from apps.users.models import User
from apps.users.signals import balance_changed
from apps.users.wallet_models import WalletTransaction


class LedgerDeductTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="buyer", password="pw-12345678")
        User.objects.filter(pk=self.user.pk).update(balance=Decimal("100"))
        self.order_id = uuid.uuid4()

    def test_deduct_reduces_balance_and_records_entry(self):
        result = ledger.deduct(self.user.pk, Decimal("40"), order_id=self.order_id, description="order")

        self.assertTrue(result.ok)
        self.assertEqual(result.new_balance, Decimal("60"))
        self.assertEqual(ledger.current_balance(self.user.pk), Decimal("60"))
        entry = WalletTransaction.objects.get(order_id=self.order_id)
        self.assertEqual(entry.kind, WalletTransaction.Kind.ORDER_CHARGE)
        self.assertEqual(entry.amount, Decimal("-40"))
        self.assertEqual(entry.balance_before, Decimal("100"))
        self.assertEqual(entry.balance_after, Decimal("60"))

    def test_deduct_exact_balance_reaches_zero(self):
        result = ledger.deduct(self.user.pk, "100", order_id=self.order_id)
        self.assertEqual(result.new_balance, Decimal("0"))

    def test_insufficient_funds_has_no_side_effect(self):
        with self.assertRaises(ledger.InsufficientFunds) as ctx:
            ledger.deduct(self.user.pk, Decimal("150"), order_id=self.order_id)

        self.assertEqual(ctx.exception.code, "INSUFFICIENT_FUNDS")
        self.assertEqual(ctx.exception.http_status, 402)
        self.assertEqual(ledger.current_balance(self.user.pk), Decimal("100"))
        self.assertFalse(WalletTransaction.objects.exists())

    def test_non_positive_amounts_are_rejected(self):
        for amount in (0, -5, "NaN", "Infinity", "abc", None):
            with self.subTest(amount=amount):
                with self.assertRaises(ledger.InvalidAmount):
                    ledger.deduct(self.user.pk, amount, order_id=self.order_id)
        self.assertEqual(ledger.current_balance(self.user.pk), Decimal("100"))

    def test_unknown_account(self):
        with self.assertRaises(ledger.AccountNotFound):
            ledger.deduct(987654, Decimal("1"), order_id=self.order_id)

    def test_attribution_must_be_exactly_one(self):
        with self.assertRaises(ValueError):
            ledger.deduct(self.user.pk, Decimal("1"))
        with self.assertRaises(ValueError):
            ledger.deduct(self.user.pk, Decimal("1"), order_id=uuid.uuid4(), topup_id=uuid.uuid4())


class LedgerCreditTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="buyer", password="pw-12345678")

    def test_credit_increases_balance(self):
        topup_id = uuid.uuid4()
        result = ledger.credit(
            self.user.pk, Decimal("25.5"), kind=WalletTransaction.Kind.TOPUP, topup_id=topup_id,
        )
        self.assertEqual(result.new_balance, Decimal("25.5"))
        self.assertEqual(result.entry.topup_id, topup_id)
        self.assertEqual(result.entry.amount, Decimal("25.5"))

    def test_charge_then_refund_nets_to_zero(self):
        order_id = uuid.uuid4()
        ledger.credit(self.user.pk, Decimal("10"), kind=WalletTransaction.Kind.TOPUP, topup_id=uuid.uuid4())
        ledger.deduct(self.user.pk, Decimal("7"), order_id=order_id)
        ledger.credit(self.user.pk, Decimal("7"), kind=WalletTransaction.Kind.ORDER_REFUND, order_id=order_id)

        self.assertEqual(ledger.net_effect_for_order(order_id), Decimal("0"))
        self.assertEqual(ledger.current_balance(self.user.pk), Decimal("10"))

    def test_balance_changed_sent_after_commit(self):
        receiver = MagicMock()
        balance_changed.connect(receiver, weak=False)
        self.addCleanup(balance_changed.disconnect, receiver)

        with self.captureOnCommitCallbacks(execute=True):
            ledger.credit(self.user.pk, Decimal("3"), kind=WalletTransaction.Kind.TOPUP, topup_id=uuid.uuid4())

        receiver.assert_called_once()
        self.assertEqual(receiver.call_args.kwargs["balance"], Decimal("3"))
        self.assertEqual(receiver.call_args.kwargs["delta"], Decimal("3"))

    def test_failing_receiver_does_not_break_mutation(self):
        def broken(**kwargs):
            raise RuntimeError("socket closed")

        balance_changed.connect(broken, weak=False)
        self.addCleanup(balance_changed.disconnect, broken)

        with self.captureOnCommitCallbacks(execute=True):
            result = ledger.credit(self.user.pk, Decimal("3"), kind=WalletTransaction.Kind.TOPUP, topup_id=uuid.uuid4())
        self.assertTrue(result.ok)
