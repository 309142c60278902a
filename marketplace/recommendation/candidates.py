"""
Candidate items for ranking: eligible listings the user has not yet seen,
either newest first or narrowed to the user's preferred categories.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import List, Optional, Tuple

from django.core.exceptions import ObjectDoesNotExist
from django.db.models import Count, Q

from catalog.models import Item
from events.models import Interaction
from .conf import get_setting
from .exceptions import storage_errors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidateItem:
    id: int
    code: str
    description: str
    price: Optional[float]
    discount: float
    is_discount_percentage: bool
    category_names: Tuple[str, ...]
    works_online: bool
    works_in_store: bool
    seller_id: int
    seller_username: str
    seller_reputation: Optional[float]
    shop_id: Optional[int]
    shop_name: Optional[str]
    expiry_date: Optional[date]
    created_at: datetime
    is_saved: bool = False
    category_match_count: int = 0


def _seller_reputation(seller):
    try:
        return seller.profile.reputation
    except ObjectDoesNotExist:
        return None


def _excluding_seen(queryset, user_id):
    # own listings and anything the user already clicked, saved, discussed or bought
    seen = Interaction.objects.for_user(user_id).values('item_id')
    return queryset.exclude(seller_id=user_id).exclude(id__in=seen)


def _category_names_by_item(item_ids):
    names = defaultdict(set)
    rows = Item.objects.filter(id__in=item_ids).values_list('id', 'shop__categories__name')
    for item_id, name in rows:
        if name:
            names[item_id].add(name)
    return {item_id: tuple(sorted(values)) for item_id, values in names.items()}


def _saved_item_ids(user_id, item_ids):
    if user_id is None:
        return set()
    return set(
        Interaction.objects.for_user(user_id)
        .filter(kind=Interaction.SAVE, item_id__in=item_ids)
        .values_list('item_id', flat=True)
    )


def to_candidates(items, user_id=None) -> List[CandidateItem]:
    """Turn Item rows into candidate records with two batched lookups."""
    items = list(items)
    ids = [item.id for item in items]
    categories = _category_names_by_item(ids)
    saved = _saved_item_ids(user_id, ids)
    return [
        CandidateItem(
            id=item.id,
            code=item.code,
            description=item.description,
            price=float(item.price) if item.price is not None else None,
            discount=float(item.discount or 0),
            is_discount_percentage=item.is_discount_percentage,
            category_names=categories.get(item.id, ()),
            works_online=item.works_online,
            works_in_store=item.works_in_store,
            seller_id=item.seller_id,
            seller_username=item.seller.username,
            seller_reputation=_seller_reputation(item.seller),
            shop_id=item.shop_id,
            shop_name=item.shop.name if item.shop else None,
            expiry_date=item.expiry_date,
            created_at=item.created_at,
            is_saved=item.id in saved,
            category_match_count=getattr(item, 'category_match_count', 0) or 0,
        )
        for item in items
    ]


def fetch_recommendation_candidates(exclude_user_id=None, limit=None, sort_by="recent") -> List[CandidateItem]:
    """Eligible items ordered by recency, without any preference filter."""
    limit = limit or get_setting("CANDIDATE_LIMIT")
    qs = Item.objects.eligible().select_related('shop', 'seller', 'seller__profile')
    if exclude_user_id is not None:
        qs = _excluding_seen(qs, exclude_user_id)
    qs = qs.order_by('-created_at', '-id') if sort_by == "recent" else qs.order_by('id')

    with storage_errors("candidate query"):
        candidates = to_candidates(qs[:limit], user_id=exclude_user_id)
    logger.debug("unconstrained candidates user=%s count=%d", exclude_user_id, len(candidates))
    return candidates


def fetch_category_matched_candidates(user_id, limit=None, profile=None) -> List[CandidateItem]:
    """
    Eligible items from shops sharing at least one of the user's preferred
    categories, plus uncategorized items as filler, best matches first.
    Returns [] when the user has no preferred categories.
    """
    if profile is None:
        from .profile import build_user_preference_profile
        profile = build_user_preference_profile(user_id)
    names = profile.category_names
    if not names:
        return []

    limit = limit or get_setting("CANDIDATE_LIMIT")
    qs = _excluding_seen(
        Item.objects.eligible().select_related('shop', 'seller', 'seller__profile'),
        user_id,
    )
    qs = (
        qs.filter(Q(shop__categories__name__in=names) | Q(shop__categories__isnull=True))
        .annotate(category_match_count=Count(
            'shop__categories',
            filter=Q(shop__categories__name__in=names),
            distinct=True,
        ))
        .order_by('-category_match_count', '-created_at', '-id')
    )

    with storage_errors("category candidate query"):
        candidates = to_candidates(qs[:limit], user_id=user_id)
    # only the matched categories count on this path
    wanted = set(names)
    candidates = [
        replace(c, category_names=tuple(name for name in c.category_names if name in wanted))
        for c in candidates
    ]
    logger.debug("category candidates user=%s categories=%s count=%d", user_id, names, len(candidates))
    return candidates
