"""
repositories/pagination.py
--------------------------
Opaque continuation cursors for newest-first, tenant-scoped listings.

A cursor encodes the (created_at, id) of the last row on a page. The next
page starts strictly after that position in (created_at desc, id desc)
order, so rows inserted meanwhile never shift the window.
"""

import base64
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional


@dataclass(frozen=True)
class CursorPosition:
    created_at: datetime
    id: str


def encode_cursor(entity: Any) -> str:
    raw = json.dumps({"createdAt": entity.created_at.isoformat(), "id": entity.id})
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: Optional[str]) -> Optional[CursorPosition]:
    """
    Returns None for an absent cursor (start from the first page).

    Raises:
        ValueError: the cursor was not produced by encode_cursor.
    """
    if not cursor:
        return None
    try:
        payload = json.loads(base64.urlsafe_b64decode(cursor.encode("ascii")))
        return CursorPosition(
            created_at=datetime.fromisoformat(payload["createdAt"]),
            id=str(payload["id"]),
        )
    except (KeyError, TypeError, UnicodeError) as exc:
        raise ValueError("Malformed cursor") from exc
