from django.db import models
from django.conf import settings
from django.db.models import Case, IntegerField, Value, When
from django.utils import timezone


class InteractionQuerySet(models.QuerySet):
    def active(self):
        # deleted conversations no longer count as a signal
        return self.filter(is_deleted=False)

    def for_user(self, user_id):
        return self.active().filter(user_id=user_id)


class Interaction(models.Model):
    """One implicit-feedback event: a user clicked, saved, messaged about or bought an item."""

    CLICK = 'click'
    SAVE = 'save'
    CONVERSATION = 'conversation'
    PURCHASE = 'purchase'
    KIND_CHOICES = [
        (CLICK, 'Click'),
        (SAVE, 'Save'),
        (CONVERSATION, 'Conversation'),
        (PURCHASE, 'Purchase'),
    ]
    KIND_WEIGHTS = {
        CLICK: 1,
        SAVE: 2,
        CONVERSATION: 3,
        PURCHASE: 5,
    }

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='interactions')
    item = models.ForeignKey('catalog.Item', on_delete=models.CASCADE, related_name='interactions')
    kind = models.CharField(max_length=20, choices=KIND_CHOICES)
    is_deleted = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)

    objects = InteractionQuerySet.as_manager()

    class Meta:
        indexes = [
            models.Index(fields=['user', 'kind']),
            models.Index(fields=['item', 'kind']),
        ]

    def __str__(self):
        return f"{self.user} {self.kind} {self.item_id}"

    @property
    def weight(self):
        return self.KIND_WEIGHTS.get(self.kind, 0)


def kind_weight():
    """SQL expression mapping an interaction's kind to its weight."""
    return Case(
        *[When(kind=kind, then=Value(weight)) for kind, weight in Interaction.KIND_WEIGHTS.items()],
        default=Value(0),
        output_field=IntegerField(),
    )
