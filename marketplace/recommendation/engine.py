"""
Rank aggregation: profile -> candidates -> {content, collaborative, popularity,
seller reputation} -> blended final score -> top-N.

    final = 0.45*content + 0.30*collaborative + 0.15*seller_reputation + 0.10*popularity
"""
import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, fields
from typing import List, Optional

import numpy as np
from django.db import connections

from events.models import Interaction
from .candidates import CandidateItem, fetch_category_matched_candidates, fetch_recommendation_candidates
from .conf import get_setting
from .exceptions import ComputationError, TransientStorageError, storage_errors
from .popularity import compute_popularity_scores_batch
from .profile import get_user_preferences
from .scoring import compute_content_score, seller_reputation_score
from .similarity import compute_collaborative_scores_batch, find_similar_users

logger = logging.getLogger(__name__)

# content, collaborative, seller reputation, popularity
W_CONTENT = 0.45
W_COLLABORATIVE = 0.30
W_SELLER_REPUTATION = 0.15
W_POPULARITY = 0.10
FINAL_WEIGHTS = np.array([W_CONTENT, W_COLLABORATIVE, W_SELLER_REPUTATION, W_POPULARITY])


@dataclass(frozen=True)
class ScoredCandidate(CandidateItem):
    content_score: float = 0.0
    collaborative_score: float = 0.0
    popularity_score: float = 0.0
    seller_rep_score: float = 0.0
    final_score: float = 0.0


@dataclass(frozen=True)
class QuickRecommendation:
    id: int
    code: str
    final_score: float
    discount: float
    price: Optional[float]


def _close_connections_after(func, *args):
    try:
        return func(*args)
    finally:
        connections.close_all()


def run_batch_scorers(candidates, neighbors):
    """
    Popularity and collaborative scores for the same candidate set. Both are
    read-only, so they run as two concurrent branches joined before ranking
    unless PARALLEL_SCORING is off. Missing the SCORING_TIMEOUT deadline
    raises TransientStorageError instead of returning a partial ranking.
    """
    if not get_setting("PARALLEL_SCORING"):
        return (
            compute_popularity_scores_batch(candidates),
            compute_collaborative_scores_batch(candidates, neighbors),
        )

    timeout = get_setting("SCORING_TIMEOUT")
    pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="recommendation-scoring")
    try:
        popularity = pool.submit(_close_connections_after, compute_popularity_scores_batch, candidates)
        collaborative = pool.submit(
            _close_connections_after, compute_collaborative_scores_batch, candidates, neighbors,
        )
        _, pending = wait([popularity, collaborative], timeout=timeout)
        if pending:
            for future in pending:
                future.cancel()
            logger.error("batch scoring missed its %ss deadline for %d candidates", timeout, len(candidates))
            raise TransientStorageError(f"batch scoring timed out after {timeout}s")
        return popularity.result(), collaborative.result()
    finally:
        pool.shutdown(wait=False)


def _content_score_or_zero(profile, candidate):
    try:
        return compute_content_score(profile, candidate)
    except ComputationError as exc:
        logger.warning("content score skipped: %s", exc)
        return 0.0


def _purchased_item_ids(user_id):
    with storage_errors("purchase lookup"):
        return set(
            Interaction.objects.for_user(user_id)
            .filter(kind=Interaction.PURCHASE)
            .values_list('item_id', flat=True)
        )


def generate_recommendations(user_id, limit=20, use_category_filter=True) -> List[ScoredCandidate]:
    limit = max(0, int(limit))
    candidate_limit = get_setting("CANDIDATE_LIMIT")
    profile = get_user_preferences(user_id)
    purchased = _purchased_item_ids(user_id)

    candidates = []
    category_path = use_category_filter and bool(profile.preferred_categories)
    if category_path:
        candidates = fetch_category_matched_candidates(user_id, candidate_limit, profile=profile)
    if not candidates:
        candidates = fetch_recommendation_candidates(exclude_user_id=user_id, limit=candidate_limit)

    candidates = [c for c in candidates if c.id not in purchased]
    if not candidates or limit == 0:
        logger.info("no candidates for user=%s", user_id)
        return []

    neighbors = find_similar_users(user_id)
    popularity, collaborative = run_batch_scorers(candidates, neighbors)

    matrix = np.array([
        [
            _content_score_or_zero(profile, c),
            collaborative.get(c.id, 0.0),
            seller_reputation_score(c.seller_reputation),
            popularity.get(c.id, 0.0),
        ]
        for c in candidates
    ], dtype=float)
    final = np.clip(matrix @ FINAL_WEIGHTS, 0.0, 1.0)
    order = np.argsort(-final, kind="stable")[:limit]

    base_fields = [f.name for f in fields(CandidateItem)]
    ranked = []
    for idx in order:
        c = candidates[idx]
        content, collab, seller_rep, pop = matrix[idx]
        ranked.append(ScoredCandidate(
            **{name: getattr(c, name) for name in base_fields},
            content_score=float(content),
            collaborative_score=float(collab),
            popularity_score=float(pop),
            seller_rep_score=float(seller_rep),
            final_score=float(final[idx]),
        ))

    logger.info(
        "ranked user=%s candidates=%d neighbours=%d returned=%d category_path=%s",
        user_id, len(candidates), len(neighbors), len(ranked), category_path,
    )
    return ranked


def get_quick_recommendations(user_id, limit=10) -> List[QuickRecommendation]:
    recommendations = generate_recommendations(user_id, limit=limit * 2, use_category_filter=True)
    return [
        QuickRecommendation(
            id=rec.id,
            code=rec.code,
            final_score=round(rec.final_score, 3),
            discount=rec.discount,
            price=rec.price,
        )
        for rec in recommendations[:limit]
    ]


def get_detailed_recommendations(user_id, limit=10) -> List[ScoredCandidate]:
    recommendations = generate_recommendations(user_id, limit=limit * 2, use_category_filter=True)
    return recommendations[:limit]
