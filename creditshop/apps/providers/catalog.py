"""
Package name -> provider variation id for the automated (Mobile Legends) category.

The table is validated once at import. Lookups of unknown names raise
``UnknownPackage`` so the order is rejected before any charge or API call.
"""
from __future__ import annotations

from typing import Mapping

from apps.core.errors import ServiceError


class UnknownPackage(ServiceError):
    code = "UNKNOWN_PACKAGE"
    default_message = "This package is not available for automatic delivery"


_VARIATIONS: dict[str, int] = {
    "5 Diamonds": 1,
    "11 Diamonds": 2,
    "22 Diamonds": 3,
    "56 Diamonds": 4,
    "86 Diamonds": 5,
    "112 Diamonds": 6,
    "172 Diamonds": 7,
    "257 Diamonds": 8,
    "343 Diamonds": 9,
    "429 Diamonds": 10,
    "514 Diamonds": 11,
    "600 Diamonds": 12,
    "706 Diamonds": 13,
    "792 Diamonds": 14,
    "878 Diamonds": 15,
    "963 Diamonds": 16,
    "1050 Diamonds": 17,
    "1135 Diamonds": 18,
    "1220 Diamonds": 19,
    "1412 Diamonds": 20,
    "2195 Diamonds": 21,
    "2901 Diamonds": 22,
    "3688 Diamonds": 23,
    "4394 Diamonds": 24,
    "5532 Diamonds": 25,
    "9288 Diamonds": 26,
    "Weekly Diamond Pass": 100,
    "Twilight Pass": 101,
}


def _validate(table: Mapping[str, int]) -> dict[str, int]:
    seen: dict[int, str] = {}
    for name, variation_id in table.items():
        if not name or name != name.strip():
            raise ValueError(f"catalog package name must be trimmed and non-empty: {name!r}")
        if not isinstance(variation_id, int) or isinstance(variation_id, bool) or variation_id <= 0:
            raise ValueError(f"catalog variation id must be a positive int: {name!r} -> {variation_id!r}")
        if variation_id in seen:
            raise ValueError(f"variation id {variation_id} used by both {seen[variation_id]!r} and {name!r}")
        seen[variation_id] = name
    return dict(table)


VARIATIONS = _validate(_VARIATIONS)
_BY_FOLDED_NAME = {name.casefold(): variation_id for name, variation_id in VARIATIONS.items()}


def resolve_variation_id(package_name: str) -> int:
    key = (package_name or "").strip().casefold()
    try:
        return _BY_FOLDED_NAME[key]
    except KeyError:
        raise UnknownPackage(
            f"Package '{package_name}' is not mapped to a provider product",
            package_name=package_name,
        ) from None
