"""
Single flight for order submissions.

Concurrent calls that share a key wait on the first caller's result instead of
starting their own placement. Within one process followers join the leader's
call; across workers the leader also claims the key in the shared cache, and a
submission that finds the key already claimed is rejected with
``DuplicateSubmission``. The key is dropped as soon as the call settles, so a
later purchase of the same package goes through normally. The database
transaction is what actually prevents a double charge, so the guard runs the
operation directly whenever it cannot build a usable key.
"""
from __future__ import annotations

import hashlib
import logging
import threading
from concurrent.futures import Future
from typing import Any, Callable, Dict, Hashable, Optional, TypeVar

from django.conf import settings
from django.core.cache import cache

from apps.core.errors import ServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CLAIM_TTL = 120


class DuplicateSubmission(ServiceError):
    code = "DUPLICATE_SUBMISSION"
    http_status = 409
    default_message = "This order is already being submitted, please wait for the first request to finish"


def order_dedupe_key(user_id, category, package_name, quantity) -> Optional[str]:
    if user_id in (None, "") or not package_name:
        return None
    package = str(package_name).strip().casefold()
    return f"order:{user_id}:{category}:{package}:{quantity}"


def claim_key(key: Hashable) -> str:
    return "dedupe:" + hashlib.sha256(str(key).encode("utf-8")).hexdigest()


class DedupeGuard:
    def __init__(self, cache: Any = None, ttl: Optional[int] = None) -> None:
        self._lock = threading.Lock()
        self._inflight: Dict[Hashable, Future] = {}
        self._cache = cache
        self._ttl = ttl

    def run(self, key: Optional[Hashable], operation: Callable[[], T]) -> T:
        if key is None:
            return operation()
        try:
            hash(key)
        except TypeError:
            logger.warning("dedupe key is not hashable, running without guard", extra={"key": repr(key)})
            return operation()

        with self._lock:
            future = self._inflight.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._inflight[key] = future

        if not leader:
            logger.info("joining in-flight submission", extra={"key": str(key)})
            return future.result()

        claimed = False
        try:
            claimed = self._claim(key)
            result = operation()
        except BaseException as exc:
            self._release(key, claimed)
            future.set_exception(exc)
            raise
        self._release(key, claimed)
        future.set_result(result)
        return result

    def in_flight(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._inflight

    def _claim_ttl(self) -> int:
        if self._ttl is not None:
            return self._ttl
        return int(getattr(settings, "ORDER_DEDUPE_TTL", DEFAULT_CLAIM_TTL))

    def _claim(self, key: Hashable) -> bool:
        """Claim ``key`` in the shared cache; False when no claim was recorded."""
        if self._cache is None:
            return False
        try:
            added = self._cache.add(claim_key(key), "1", timeout=self._claim_ttl())
        except Exception as exc:
            logger.warning("dedupe cache unavailable, guarding in-process only", extra={"key": str(key), "error": str(exc)})
            return False
        if not added:
            logger.info("submission already claimed by another worker", extra={"key": str(key)})
            raise DuplicateSubmission()
        return True

    def _release(self, key: Hashable, claimed: bool = False) -> None:
        with self._lock:
            self._inflight.pop(key, None)
        if claimed:
            try:
                self._cache.delete(claim_key(key))
            except Exception as exc:
                logger.warning("dedupe claim not released, it expires on its own", extra={"key": str(key), "error": str(exc)})


default_guard = DedupeGuard(cache=cache)
