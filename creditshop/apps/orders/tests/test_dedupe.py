import logging
import threading
from unittest import TestCase

from apps.orders.dedupe import DedupeGuard, order_dedupe_key


class _JoinCounter(logging.Handler):
    """Sets ``ready`` once ``expected`` callers are waiting on the leader."""

    def __init__(self, expected):
        super().__init__(level=logging.INFO)
        self.expected = expected
        self.seen = 0
        self.ready = threading.Event()

    def emit(self, record):
        if record.getMessage() == "joining in-flight submission":
            self.seen += 1
            if self.seen >= self.expected:
                self.ready.set()


class DedupeGuardTests(TestCase):
    def test_concurrent_identical_calls_share_one_execution(self):
        guard = DedupeGuard()
        key = order_dedupe_key(7, "freefire", "100 Diamonds", 1)
        started = threading.Event()
        release = threading.Event()
        calls = []
        balance = {"value": 100}

        def purchase():
            calls.append(1)
            started.set()
            release.wait(5)
            if balance["value"] < 60:
                raise RuntimeError("insufficient")
            balance["value"] -= 60
            return {"order": len(calls)}

        results = []
        leader = threading.Thread(target=lambda: results.append(guard.run(key, purchase)))
        leader.start()
        self.assertTrue(started.wait(5))
        self.assertTrue(guard.in_flight(key))

        counter = _JoinCounter(4)
        log = logging.getLogger("apps.orders.dedupe")
        previous_level = log.level
        log.setLevel(logging.INFO)
        log.addHandler(counter)
        self.addCleanup(log.setLevel, previous_level)
        self.addCleanup(log.removeHandler, counter)

        followers = [threading.Thread(target=lambda: results.append(guard.run(key, purchase))) for _ in range(4)]
        for t in followers:
            t.start()
        self.assertTrue(counter.ready.wait(5))
        release.set()
        for t in [leader, *followers]:
            t.join(5)

        self.assertEqual(len(calls), 1)
        self.assertEqual(balance["value"], 40)
        self.assertEqual(results, [{"order": 1}] * 5)
        self.assertFalse(guard.in_flight(key))

    def test_key_is_released_after_failure(self):
        guard = DedupeGuard()

        def boom():
            raise ValueError("nope")

        with self.assertRaises(ValueError):
            guard.run("k", boom)
        self.assertFalse(guard.in_flight("k"))
        self.assertEqual(guard.run("k", lambda: 3), 3)

    def test_sequential_calls_run_again(self):
        guard = DedupeGuard()
        calls = []
        for _ in range(2):
            guard.run("k", lambda: calls.append(1))
        self.assertEqual(len(calls), 2)

    def test_unusable_keys_bypass_the_guard(self):
        self.assertIsNone(order_dedupe_key(None, "freefire", "x", 1))
        self.assertIsNone(order_dedupe_key(1, "freefire", "", 1))
        self.assertEqual(
            order_dedupe_key(1, "freefire", " 100 Diamonds ", 2),
            order_dedupe_key(1, "freefire", "100 diamonds", 2),
        )
        guard = DedupeGuard()
        self.assertEqual(guard.run(None, lambda: "ran"), "ran")
        self.assertEqual(guard.run(["unhashable"], lambda: "ran"), "ran")
