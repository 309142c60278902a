"""
Collaborative signal: users who touched the same items as the requester are
its neighbours, and a candidate is as good as the share of neighbours that
interacted with it.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List

from django.db.models import Count, Sum

from events.models import Interaction, kind_weight
from .conf import get_setting
from .exceptions import storage_errors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NeighborUser:
    user_id: int
    similarity_score: float
    shared_item_count: int
    combined_weight: int = 0


def find_similar_users(user_id, limit=None) -> List[NeighborUser]:
    limit = limit or get_setting("SIMILAR_USERS_LIMIT")
    threshold = get_setting("MIN_SIMILARITY_THRESHOLD")

    with storage_errors("neighbour query"):
        item_ids = list(
            Interaction.objects.for_user(user_id).values_list('item_id', flat=True).distinct()
        )
        if not item_ids:
            return []
        rows = list(
            Interaction.objects.active()
            .filter(item_id__in=item_ids)
            .exclude(user_id=user_id)
            .values('user_id')
            .annotate(
                shared_items=Count('item', distinct=True),
                combined_weight=Sum(kind_weight()),
            )
            .order_by('-combined_weight', 'user_id')[:limit]
        )

    if not rows:
        return []

    max_weight = rows[0]['combined_weight'] or 1
    neighbors = []
    for row in rows:
        score = min(1.0, (row['combined_weight'] or 0) / max_weight)
        if score < threshold:
            continue
        neighbors.append(NeighborUser(
            user_id=row['user_id'],
            similarity_score=score,
            shared_item_count=row['shared_items'],
            combined_weight=row['combined_weight'],
        ))
    logger.debug("neighbours user=%s found=%d kept=%d", user_id, len(rows), len(neighbors))
    return neighbors


def compute_collaborative_scores_batch(candidates, neighbors) -> Dict[int, float]:
    """
    Share of neighbours that interacted with each candidate, in one aggregate
    query over all candidates and neighbours. Candidates without neighbour
    activity score 0.
    """
    scores = {c.id: 0.0 for c in candidates}
    if not neighbors or not scores:
        return scores

    neighbor_ids = [n.user_id for n in neighbors]
    with storage_errors("collaborative score query"):
        rows = (
            Interaction.objects.active()
            .filter(item_id__in=list(scores), user_id__in=neighbor_ids)
            .values('item_id')
            .annotate(neighbor_count=Count('user', distinct=True))
        )
        for row in rows:
            scores[row['item_id']] = min(1.0, row['neighbor_count'] / len(neighbor_ids))
    return scores
