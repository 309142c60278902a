"""
Per-user snapshot of the top-N ranking, read by the feed.

A recompute replaces a user's rows as one unit (delete + bulk insert inside a
single transaction), so readers see either the old ranking or the new one.
Concurrent recomputes for the same user are harmless; the last commit wins.
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from django.contrib.auth import get_user_model
from django.db import connections, transaction

from .conf import get_setting
from .engine import generate_recommendations
from .exceptions import storage_errors
from .models import UserRecommendation

logger = logging.getLogger(__name__)

SCORE_DECIMALS = 3


@dataclass(frozen=True)
class RecomputeResult:
    count: int
    duration_ms: int


@dataclass(frozen=True)
class SweepResult:
    succeeded: int
    failed: int


def recompute_and_store(user_id) -> RecomputeResult:
    started = time.monotonic()
    logger.info("computing recommendations for user=%s", user_id)

    recommendations = generate_recommendations(user_id, limit=get_setting("SNAPSHOT_SIZE"))
    if not recommendations:
        duration = int((time.monotonic() - started) * 1000)
        logger.info("no recommendations for user=%s", user_id)
        return RecomputeResult(count=0, duration_ms=duration)

    rows = [
        UserRecommendation(user_id=user_id, item_id=rec.id, score=round(rec.final_score, SCORE_DECIMALS))
        for rec in recommendations
    ]
    with storage_errors("snapshot replace"):
        with transaction.atomic():
            UserRecommendation.objects.filter(user_id=user_id).delete()
            UserRecommendation.objects.bulk_create(rows)

    duration = int((time.monotonic() - started) * 1000)
    logger.info("stored %d recommendations for user=%s in %dms", len(rows), user_id, duration)
    return RecomputeResult(count=len(rows), duration_ms=duration)


def _recompute_in_worker(user_id):
    try:
        return recompute_and_store(user_id)
    finally:
        connections.close_all()


def recompute_all(user_ids=None, workers=1) -> SweepResult:
    """
    Recompute every user's snapshot (or only `user_ids`). One user's failure is
    logged and counted; it never stops the sweep.
    """
    if user_ids is None:
        user_ids = list(get_user_model().objects.order_by('id').values_list('id', flat=True))
    logger.info("computing recommendations for %d users (workers=%d)", len(user_ids), workers)

    succeeded = failed = 0
    if workers <= 1:
        for user_id in user_ids:
            try:
                recompute_and_store(user_id)
                succeeded += 1
            except Exception:
                logger.exception("recompute failed for user=%s", user_id)
                failed += 1
    else:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="recommendation-sweep") as pool:
            futures = {user_id: pool.submit(_recompute_in_worker, user_id) for user_id in user_ids}
            for user_id, future in futures.items():
                try:
                    future.result()
                    succeeded += 1
                except Exception:
                    logger.exception("recompute failed for user=%s", user_id)
                    failed += 1

    logger.info("recommendation sweep finished: %d successful, %d failed", succeeded, failed)
    return SweepResult(succeeded=succeeded, failed=failed)
