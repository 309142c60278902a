"""
Preference profile built from a user's implicit feedback.

Every interaction kind carries a fixed weight (click 1, save 2, conversation 3,
purchase 5). The profile summarizes what the user engages with: the price they
gravitate to, the categories of the shops they visit, the channel (online or
in-store) they use and the reputation of the sellers they deal with.
"""
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from django.core.cache import cache
from django.db.models import Sum
from django.utils import timezone

from catalog.models import Item
from events.models import Interaction, kind_weight
from .conf import get_setting
from .exceptions import storage_errors

logger = logging.getLogger(__name__)

MAX_PREFERRED_CATEGORIES = 10


@dataclass(frozen=True)
class PriceRange:
    preferred: float
    min: Optional[float] = None
    max: Optional[float] = None


@dataclass(frozen=True)
class CategoryPreference:
    name: str
    weight: float


@dataclass(frozen=True)
class ChannelPreference:
    online: float
    in_store: float
    preferred: str  # "online" | "in-store" | "both"


@dataclass(frozen=True)
class UserPreferenceProfile:
    user_id: int
    preference_strength: float = 0.0
    price_range: Optional[PriceRange] = None
    preferred_categories: Tuple[CategoryPreference, ...] = ()
    channel_preference: Optional[ChannelPreference] = None
    avg_seller_reputation: Optional[float] = None
    interaction_count: int = 0
    total_weighted_score: float = 0
    last_updated: datetime = field(default_factory=timezone.now, compare=False)

    @property
    def category_names(self):
        return [c.name for c in self.preferred_categories]


def _preferred_channel(online, in_store):
    if online > in_store:
        return "online"
    if in_store > online:
        return "in-store"
    return "both"


def _category_frequencies(item_ids):
    # one count per (item, category) pair, independent of interaction weight
    names = (
        Item.objects.filter(id__in=item_ids, is_deleted=False)
        .values_list('shop__categories__name', flat=True)
    )
    return Counter(name for name in names if name)


def build_user_preference_profile(user_id) -> UserPreferenceProfile:
    with storage_errors("preference profile query"):
        rows = list(
            Interaction.objects.for_user(user_id)
            .filter(item__is_deleted=False)
            .values(
                'item_id',
                'item__price',
                'item__works_online',
                'item__works_in_store',
                'item__seller__profile__reputation',
            )
            .annotate(weight=Sum(kind_weight()))
        )

    total_weight = 0
    total_price = 0.0
    price_weight = 0
    online_weight = 0
    in_store_weight = 0
    reputation_sum = 0.0
    reputation_weight = 0
    item_ids = set()

    for row in rows:
        weight = row['weight'] or 0
        if weight <= 0:
            continue
        total_weight += weight
        item_ids.add(row['item_id'])

        price = row['item__price']
        if price:
            total_price += float(price) * weight
            price_weight += weight

        if row['item__works_online']:
            online_weight += weight
        if row['item__works_in_store']:
            in_store_weight += weight

        reputation = row['item__seller__profile__reputation']
        if reputation is not None:
            reputation_sum += reputation * weight
            reputation_weight += weight

    if not item_ids:
        return UserPreferenceProfile(user_id=user_id)

    with storage_errors("preference category query"):
        frequencies = _category_frequencies(item_ids)

    price_range = None
    if price_weight > 0:
        price_range = PriceRange(preferred=round(total_price / price_weight, 2))

    normalizer = max(1, total_weight)
    categories = sorted(frequencies.items(), key=lambda kv: (-kv[1], kv[0]))
    preferred_categories = tuple(
        CategoryPreference(name=name, weight=round(count / normalizer, 3))
        for name, count in categories[:MAX_PREFERRED_CATEGORIES]
    )

    channel = None
    if online_weight + in_store_weight > 0:
        channel = ChannelPreference(
            online=round(online_weight / normalizer, 3),
            in_store=round(in_store_weight / normalizer, 3),
            preferred=_preferred_channel(online_weight, in_store_weight),
        )

    avg_reputation = None
    if reputation_weight > 0:
        avg_reputation = round(reputation_sum / reputation_weight, 1)

    profile = UserPreferenceProfile(
        user_id=user_id,
        preference_strength=round(total_weight / len(item_ids), 2),
        price_range=price_range,
        preferred_categories=preferred_categories,
        channel_preference=channel,
        avg_seller_reputation=avg_reputation,
        interaction_count=len(item_ids),
        total_weighted_score=total_weight,
    )
    logger.debug(
        "profile user=%s items=%d weight=%s categories=%s",
        user_id, profile.interaction_count, total_weight, profile.category_names,
    )
    return profile


def get_user_preferences(user_id) -> UserPreferenceProfile:
    """Profile lookup with an optional freshness window (PROFILE_CACHE_SECONDS)."""
    ttl = get_setting("PROFILE_CACHE_SECONDS")
    if not ttl or ttl <= 0:
        return build_user_preference_profile(user_id)
    key = f"recommendation:profile:{user_id}"
    profile = cache.get(key)
    if profile is None:
        profile = build_user_preference_profile(user_id)
        cache.set(key, profile, ttl)
    return profile


def compare_user_preferences(user_id_a, user_id_b) -> float:
    """Similarity of two users' profiles in [0, 1]: categories 50%, channel 25%, price 25%."""
    from .scoring import jaccard_similarity

    a = build_user_preference_profile(user_id_a)
    b = build_user_preference_profile(user_id_b)
    if not a.preferred_categories or not b.preferred_categories:
        return 0.0

    category_overlap = jaccard_similarity(a.category_names, b.category_names)

    channel_similarity = 0.0
    if a.channel_preference and b.channel_preference:
        channel_similarity = 1 - abs(a.channel_preference.online - b.channel_preference.online)

    price_similarity = 0.0
    if a.price_range and b.price_range:
        diff = abs(a.price_range.preferred - b.price_range.preferred)
        top = max(a.price_range.preferred, b.price_range.preferred)
        price_similarity = 1 - min(1, diff / top) if top else 1.0

    similarity = category_overlap * 0.5 + channel_similarity * 0.25 + price_similarity * 0.25
    return round(similarity, 3)
