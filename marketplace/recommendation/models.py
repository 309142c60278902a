from django.db import models
from django.conf import settings


class UserRecommendation(models.Model):
    """Precomputed score of one item for one user, rewritten in full on every recompute."""

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='recommendations')
    item = models.ForeignKey('catalog.Item', on_delete=models.CASCADE, related_name='recommended_to')
    score = models.FloatField()
    computed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['user', 'item'], name='unique_user_item_recommendation'),
        ]
        indexes = [
            models.Index(fields=['user', '-score']),
        ]

    def __str__(self):
        return f"{self.user_id}: {self.item_id} ({self.score})"
