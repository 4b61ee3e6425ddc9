from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from django.db.models import Q


@dataclass
class CursorPage:
    items: list
    next_cursor: Optional[str]
    has_more: bool


def encode_cursor(obj) -> str:
    return f"{obj.created_at.isoformat()}|{obj.pk}"


def _after_cursor(qs, cursor: str):
    stamp, _, last_id = cursor.partition("|")
    created_at = datetime.fromisoformat(stamp)
    if not last_id:
        return qs.filter(created_at__lt=created_at)
    return qs.filter(Q(created_at__lt=created_at) | Q(created_at=created_at, id__lt=uuid.UUID(last_id)))


def keyset_page(qs, *, cursor: Optional[str], limit: int) -> CursorPage:
    """
    Newest-first page of ``qs`` keyed on ``(created_at, id)``.

    Rows sharing a timestamp are split by id, so a page boundary inside such a
    group neither skips nor repeats rows. An unreadable cursor starts from the top.
    """
    qs = qs.order_by("-created_at", "-id")
    if cursor:
        try:
            qs = _after_cursor(qs, cursor)
        except ValueError:
            pass

    items = list(qs[: limit + 1])
    has_more = len(items) > limit
    items = items[:limit]
    next_cursor = encode_cursor(items[-1]) if has_more and items else None
    return CursorPage(items=items, next_cursor=next_cursor, has_more=has_more)
