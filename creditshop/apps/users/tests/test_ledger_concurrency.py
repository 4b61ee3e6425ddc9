"""
Check-and-debit from several threads, each on its own database connection.
"""
import threading
import time
import uuid
from decimal import Decimal

from django.db import OperationalError, connection
from django.test import TransactionTestCase

from apps.users import ledger
from apps.users.models import User
from apps.users.wallet_models import WalletTransaction


class ConcurrentDeductTests(TransactionTestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="buyer", password="pw-12345678")
        User.objects.filter(pk=self.user.pk).update(balance=Decimal("100"))

    def race(self, amounts):
        barrier = threading.Barrier(len(amounts))
        outcomes = []
        lock = threading.Lock()

        def worker(amount):
            try:
                barrier.wait(5)
                for _ in range(100):
                    try:
                        result = ledger.deduct(self.user.pk, amount, order_id=uuid.uuid4())
                        outcome = ("ok", result.new_balance)
                        break
                    except ledger.InsufficientFunds:
                        outcome = ("insufficient", None)
                        break
                    except OperationalError:
                        # sqlite reports a held table lock instead of waiting on it
                        time.sleep(0.01)
                else:
                    outcome = ("gave up", None)
                with lock:
                    outcomes.append(outcome)
            finally:
                connection.close()

        threads = [threading.Thread(target=worker, args=(amount,)) for amount in amounts]
        for t in threads:
            t.start()
        for t in threads:
            t.join(30)
        return outcomes

    def test_only_one_of_two_overlapping_debits_succeeds(self):
        outcomes = self.race([Decimal("60"), Decimal("60")])

        kinds = sorted(kind for kind, _ in outcomes)
        self.assertEqual(kinds, ["insufficient", "ok"])
        self.assertEqual(ledger.current_balance(self.user.pk), Decimal("40"))
        self.assertEqual(WalletTransaction.objects.filter(user=self.user).count(), 1)

    def test_parallel_debits_within_balance_all_land(self):
        outcomes = self.race([Decimal("25")] * 4)

        self.assertEqual([kind for kind, _ in outcomes], ["ok"] * 4)
        self.assertEqual(ledger.current_balance(self.user.pk), Decimal("0"))
        entries = WalletTransaction.objects.filter(user=self.user).order_by("balance_after")
        self.assertEqual([e.balance_after for e in entries], [Decimal("0"), Decimal("25"), Decimal("50"), Decimal("75")])
