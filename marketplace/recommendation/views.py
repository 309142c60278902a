"""
JSON endpoints of the recommendation engine. The caller is the logged-in user.

GET  /recommendations/?limit=20&detail=quick|detailed
GET  /recommendations/full/?limit=20
GET  /recommendations/feed/?limit=20&cursor=<opaque>
POST /recommendations/compute/
"""
import logging

from django.contrib.auth.mixins import LoginRequiredMixin
from django.http import JsonResponse
from django.views import View

from .engine import generate_recommendations, get_detailed_recommendations, get_quick_recommendations
from .exceptions import TransientStorageError
from .feed import get_feed
from .serializers import FeedItemSerializer, QuickRecommendationSerializer, ScoredCandidateSerializer
from .snapshot import recompute_and_store

logger = logging.getLogger(__name__)

MAX_LIMIT = 100
DETAIL_LEVELS = ('quick', 'detailed')


def parse_limit(raw, default=20):
    """int in [1, MAX_LIMIT] or None."""
    if raw in (None, ''):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    if value < 1 or value > MAX_LIMIT:
        return None
    return value


def _unavailable(exc):
    logger.error("recommendation storage unavailable: %s", exc)
    return JsonResponse({'message': 'Recommendations are temporarily unavailable, please retry'}, status=503)


class RecommendationsView(LoginRequiredMixin, View):
    """GET /recommendations/ -> quick or detailed recommendations for the current user"""
    raise_exception = True

    def get(self, request):
        limit = parse_limit(request.GET.get('limit'))
        if limit is None:
            return JsonResponse({'message': f'limit must be a number between 1 and {MAX_LIMIT}'}, status=400)
        detail = request.GET.get('detail', 'quick')
        if detail not in DETAIL_LEVELS:
            return JsonResponse({'message': "detail must be either 'quick' or 'detailed'"}, status=400)

        try:
            if detail == 'detailed':
                data = ScoredCandidateSerializer(get_detailed_recommendations(request.user.id, limit), many=True).data
            else:
                data = QuickRecommendationSerializer(get_quick_recommendations(request.user.id, limit), many=True).data
        except TransientStorageError as exc:
            return _unavailable(exc)

        return JsonResponse({
            'message': 'Recommendations generated successfully',
            'userId': request.user.id,
            'count': len(data),
            'limit': limit,
            'detail': detail,
            'data': data,
        })


class FullRecommendationsView(LoginRequiredMixin, View):
    """GET /recommendations/full/ -> every score of every ranked item (debugging/analytics)"""
    raise_exception = True

    def get(self, request):
        limit = parse_limit(request.GET.get('limit'))
        if limit is None:
            return JsonResponse({'message': f'limit must be a number between 1 and {MAX_LIMIT}'}, status=400)
        try:
            recommendations = generate_recommendations(request.user.id, limit=limit)
        except TransientStorageError as exc:
            return _unavailable(exc)
        data = ScoredCandidateSerializer(recommendations, many=True).data
        return JsonResponse({
            'message': 'Full recommendations generated successfully',
            'userId': request.user.id,
            'count': len(data),
            'limit': limit,
            'data': data,
        })


class FeedView(LoginRequiredMixin, View):
    """GET /recommendations/feed/ -> one page of the personalized feed"""
    raise_exception = True

    def get(self, request):
        # a bad limit or cursor falls back to defaults instead of failing
        try:
            page = get_feed(request.user.id, request.GET.get('limit'), request.GET.get('cursor'))
        except TransientStorageError as exc:
            return _unavailable(exc)
        return JsonResponse({
            'items': FeedItemSerializer(page.items, many=True).data,
            'cursor': page.next_cursor,
            'hasMore': page.has_more,
        })


class ComputeRecommendationsView(LoginRequiredMixin, View):
    """POST /recommendations/compute/ -> refresh the current user's snapshot now"""
    raise_exception = True

    def post(self, request):
        try:
            result = recompute_and_store(request.user.id)
        except TransientStorageError as exc:
            return _unavailable(exc)
        return JsonResponse({
            'message': 'Recommendations computed successfully',
            'count': result.count,
            'duration_ms': result.duration_ms,
        })
