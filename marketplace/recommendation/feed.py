"""
Online feed over the precomputed snapshot.

Every available item is a feed entry; items without a snapshot row score 0.
Purchases are always re-checked live and prior clicks lift an item's score a
little. The next cursor advances by the number of rows read from the store,
before purchase filtering, so a filtered page can shift the following one.
"""
import base64
import json
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional

from django.db.models import Count, FloatField, OuterRef, Subquery, Value
from django.db.models.functions import Coalesce

from catalog.models import Item
from events.models import Interaction
from .candidates import to_candidates
from .conf import get_setting
from .exceptions import storage_errors
from .models import UserRecommendation

logger = logging.getLogger(__name__)

# larger offsets cannot be expressed as a query slice on every backend
MAX_CURSOR_OFFSET = 2 ** 31 - 1


@dataclass(frozen=True)
class FeedItem:
    id: int
    code: str
    description: str
    price: Optional[float]
    discount: float
    is_discount_percentage: bool
    category_names: tuple
    works_online: bool
    works_in_store: bool
    seller_id: int
    seller_username: str
    seller_reputation: Optional[float]
    shop_id: Optional[int]
    shop_name: Optional[str]
    expiry_date: Optional[date]
    created_at: datetime
    score: float
    was_clicked: bool = False


@dataclass(frozen=True)
class FeedPage:
    items: List[FeedItem]
    next_cursor: str
    has_more: bool


def encode_cursor(offset):
    payload = json.dumps({"offset": int(offset)}).encode("utf-8")
    return base64.urlsafe_b64encode(payload).decode("ascii")


def decode_cursor(cursor):
    """Offset stored in `cursor`; anything unreadable means start from the top."""
    if not cursor:
        return 0
    try:
        decoded = json.loads(base64.urlsafe_b64decode(cursor.encode("ascii")).decode("utf-8"))
        offset = decoded.get("offset", 0)
    except (ValueError, TypeError, AttributeError, UnicodeError) as exc:
        logger.debug("ignoring malformed feed cursor %r: %s", cursor, exc)
        return 0
    if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0 or offset > MAX_CURSOR_OFFSET:
        return 0
    return offset


def _snapshot_page(user_id, offset, limit):
    snapshot_score = UserRecommendation.objects.filter(user_id=user_id, item=OuterRef('pk')).values('score')[:1]
    qs = (
        Item.objects.available()
        .select_related('shop', 'seller', 'seller__profile')
        .annotate(score=Coalesce(Subquery(snapshot_score, output_field=FloatField()), Value(0.0)))
        .order_by('-score', 'id')
    )
    return list(qs[offset:offset + limit])


def get_feed(user_id, limit=None, cursor=None) -> FeedPage:
    default_limit = get_setting("FEED_PAGE_SIZE")
    try:
        limit = int(limit) if limit is not None else default_limit
    except (TypeError, ValueError):
        limit = default_limit
    if limit <= 0:
        limit = default_limit
    offset = decode_cursor(cursor)

    with storage_errors("feed query"):
        rows = _snapshot_page(user_id, offset, limit)
        page_ids = [row.id for row in rows]
        purchased = set(
            Interaction.objects.for_user(user_id)
            .filter(kind=Interaction.PURCHASE, item_id__in=page_ids)
            .values_list('item_id', flat=True)
        )
        clicks = dict(
            Interaction.objects.for_user(user_id)
            .filter(kind=Interaction.CLICK, item_id__in=page_ids)
            .values('item_id')
            .annotate(n=Count('id'))
            .values_list('item_id', 'n')
        )
        candidates = {c.id: c for c in to_candidates(rows)}

    step = get_setting("CLICK_BOOST")
    cap = get_setting("MAX_CLICK_BOOST")
    items = []
    for row in rows:
        if row.id in purchased:
            continue
        boost = min(cap, clicks.get(row.id, 0) * step)
        c = candidates[row.id]
        items.append(FeedItem(
            id=c.id,
            code=c.code,
            description=c.description,
            price=c.price,
            discount=c.discount,
            is_discount_percentage=c.is_discount_percentage,
            category_names=c.category_names,
            works_online=c.works_online,
            works_in_store=c.works_in_store,
            seller_id=c.seller_id,
            seller_username=c.seller_username,
            seller_reputation=c.seller_reputation,
            shop_id=c.shop_id,
            shop_name=c.shop_name,
            expiry_date=c.expiry_date,
            created_at=c.created_at,
            score=round(float(row.score) + boost, 4),
            was_clicked=boost > 0,
        ))
    items.sort(key=lambda item: item.score, reverse=True)

    logger.debug(
        "feed user=%s offset=%d fetched=%d served=%d", user_id, offset, len(rows), len(items),
    )
    return FeedPage(
        items=items,
        next_cursor=encode_cursor(offset + len(rows)),
        has_more=len(rows) == limit,
    )
