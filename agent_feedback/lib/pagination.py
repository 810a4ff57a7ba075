"""Stable cursor pagination over ``(created_at, id)``-ordered records.

Cursors are opaque base64url tokens wrapping ``{"v": 1, "created_at", "id"}``
taken from the last item of a page. Because ``(created_at, id)`` is a strict
total order, paging an append-only collection from ``cursor=None`` until
``next_cursor`` is ``None`` yields every item exactly once. Items inserted
later with an older timestamp than an issued cursor are not supported.
"""

import base64
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import cmp_to_key
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

CURSOR_VERSION = 1
DEFAULT_LIMIT = 50
MAX_LIMIT = 100

Order = Literal["newest", "oldest", "top"]
ORDERS = ("newest", "oldest", "top")


@dataclass(frozen=True)
class Cursor:
    """Decoded page boundary."""

    created_at: str
    id: str
    upvotes: Optional[int] = None


@dataclass
class Page:
    """One page of records plus the token for the next page."""

    items: List[Any] = field(default_factory=list)
    next_cursor: Optional[str] = None


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    return min(MAX_LIMIT, max(1, int(limit)))


def encode_cursor(item: Mapping[str, Any], include_upvotes: bool = False) -> str:
    payload: Dict[str, Any] = {
        "v": CURSOR_VERSION,
        "created_at": item["created_at"],
        "id": item["id"],
    }
    if include_upvotes:
        payload["upvotes"] = int(item.get("upvotes") or 0)
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_cursor(token: Optional[str]) -> Optional[Cursor]:
    """Decode a cursor token. Returns None for any malformed input."""
    if not token:
        return None

    try:
        padded = token + "=" * (-len(token) % 4)
        payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except (ValueError, TypeError):
        logger.debug("Ignoring undecodable cursor")
        return None

    if not isinstance(payload, dict) or payload.get("v") != CURSOR_VERSION:
        return None

    created_at = payload.get("created_at")
    item_id = payload.get("id")
    if not isinstance(created_at, str) or not isinstance(item_id, str) or not item_id:
        return None

    try:
        parse_timestamp(created_at)
    except ValueError:
        return None

    upvotes = payload.get("upvotes")
    if upvotes is not None and (isinstance(upvotes, bool) or not isinstance(upvotes, int)):
        return None

    return Cursor(created_at=created_at, id=item_id, upvotes=upvotes)


def _tuple(item: Mapping[str, Any]) -> Tuple[datetime, str]:
    return parse_timestamp(item["created_at"]), item["id"]


def compare_desc(a: Mapping[str, Any], b: Mapping[str, Any]) -> int:
    """Newest first; equal timestamps fall back to reverse ``id`` order."""
    ta, ida = _tuple(a)
    tb, idb = _tuple(b)
    if ta != tb:
        return -1 if ta > tb else 1
    if ida == idb:
        return 0
    return -1 if ida > idb else 1


def is_strictly_older_than(item: Mapping[str, Any], cursor: Cursor) -> bool:
    t_item, id_item = _tuple(item)
    t_cursor = parse_timestamp(cursor.created_at)
    return t_item < t_cursor or (t_item == t_cursor and id_item < cursor.id)


def is_strictly_newer_than(item: Mapping[str, Any], cursor: Cursor) -> bool:
    t_item, id_item = _tuple(item)
    t_cursor = parse_timestamp(cursor.created_at)
    return t_item > t_cursor or (t_item == t_cursor and id_item > cursor.id)


def _top_key(item: Mapping[str, Any]) -> Tuple[int, datetime, str]:
    t_item, id_item = _tuple(item)
    return int(item.get("upvotes") or 0), t_item, id_item


def _after_cursor(item: Mapping[str, Any], cursor: Cursor, order: str) -> bool:
    if order == "oldest":
        return is_strictly_newer_than(item, cursor)
    if order == "top":
        cursor_key = (cursor.upvotes or 0, parse_timestamp(cursor.created_at), cursor.id)
        return _top_key(item) < cursor_key
    return is_strictly_older_than(item, cursor)


def sort_records(items: List[Dict[str, Any]], order: str = "newest") -> List[Dict[str, Any]]:
    if order == "oldest":
        return sorted(items, key=cmp_to_key(compare_desc), reverse=True)
    if order == "top":
        return sorted(items, key=_top_key, reverse=True)
    return sorted(items, key=cmp_to_key(compare_desc))


def paginate(
    items: List[Dict[str, Any]],
    cursor: Optional[str] = None,
    limit: Optional[int] = None,
    order: str = "newest",
) -> Page:
    """Return the page of ``items`` that follows ``cursor`` in ``order``.

    Args:
        items: Every candidate record (each has ``created_at`` and ``id``)
        cursor: Token from a previous page, or None for the first page
        limit: Page size, clamped to 1..100
        order: ``newest`` (default), ``oldest`` or ``top``

    Returns:
        Page whose ``next_cursor`` is None when this is the last page
    """
    if order not in ORDERS:
        raise ValueError(f"Unknown order '{order}'")

    size = clamp_limit(limit)
    decoded = decode_cursor(cursor)
    if order == "top" and decoded is not None and decoded.upvotes is None:
        decoded = None

    ordered = sort_records(items, order)
    if decoded is not None:
        ordered = [item for item in ordered if _after_cursor(item, decoded, order)]

    page_items = ordered[:size]
    has_more = len(ordered) > size
    next_cursor = None
    if has_more and page_items:
        next_cursor = encode_cursor(page_items[-1], include_upvotes=(order == "top"))

    return Page(items=page_items, next_cursor=next_cursor)
