"""Global engagement signal, independent of who is asking."""
import logging
from typing import Dict

from django.db.models import Sum

from events.models import Interaction, kind_weight
from .conf import get_setting
from .exceptions import storage_errors

logger = logging.getLogger(__name__)


def compute_popularity_scores_batch(candidates) -> Dict[int, float]:
    """
    Global engagement per candidate, all users included:
    clicks*1 + saves*2 + conversations*3 + purchases*5, scaled by
    POPULARITY_CALIBRATION and capped at 1.
    """
    scores = {c.id: 0.0 for c in candidates}
    if not scores:
        return scores

    calibration = float(get_setting("POPULARITY_CALIBRATION"))
    with storage_errors("popularity query"):
        rows = (
            Interaction.objects.active()
            .filter(item_id__in=list(scores))
            .values('item_id')
            .annotate(weighted_count=Sum(kind_weight()))
        )
        for row in rows:
            scores[row['item_id']] = min(1.0, (row['weighted_count'] or 0) / calibration)
    return scores
