"""
Content score: how well a candidate matches the user's preference profile.

Components are averaged with fixed weights; a component whose inputs are
missing (no preferred price, no categories on either side, no channel history,
unrated seller) is left out of both numerator and denominator.
"""
from .exceptions import ComputationError

W_PRICE = 0.35
W_CATEGORY = 0.35
W_CHANNEL = 0.15
W_REPUTATION = 0.15


def jaccard_similarity(a, b):
    a, b = set(a or ()), set(b or ())
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def price_similarity(candidate_price, preferred_price):
    candidate_price = candidate_price or 0.0
    diff = abs(candidate_price - preferred_price)
    return max(0.0, 1 - diff / max(candidate_price, preferred_price, 1))


def channel_score(channel_preference, works_online, works_in_store):
    if works_online and works_in_store:
        return 1.0
    if works_online:
        return channel_preference.online
    if works_in_store:
        return channel_preference.in_store
    return 0.0


def seller_reputation_score(reputation):
    return min(1.0, max(0.0, (reputation or 0) / 100))


def content_components(profile, candidate):
    """(score, weight) pairs for every component that has its inputs."""
    components = []
    try:
        if profile.price_range and profile.price_range.preferred:
            components.append((price_similarity(candidate.price, profile.price_range.preferred), W_PRICE))

        if profile.preferred_categories and candidate.category_names:
            components.append((jaccard_similarity(profile.category_names, candidate.category_names), W_CATEGORY))

        if profile.channel_preference:
            components.append((
                channel_score(profile.channel_preference, candidate.works_online, candidate.works_in_store),
                W_CHANNEL,
            ))

        if candidate.seller_reputation is not None:
            components.append((seller_reputation_score(candidate.seller_reputation), W_REPUTATION))
    except (TypeError, ValueError, AttributeError) as exc:
        raise ComputationError(f"item {getattr(candidate, 'id', '?')}: {exc}") from exc
    return components


def compute_content_score(profile, candidate):
    components = content_components(profile, candidate)
    total_weight = sum(weight for _, weight in components)
    if total_weight <= 0:
        return 0.0
    return sum(score * weight for score, weight in components) / total_weight
