from django.db import models
from django.db.models import Exists, OuterRef, Q
from django.contrib.auth.models import User
from django.utils import timezone


class Category(models.Model):
    name = models.CharField(max_length=100, unique=True)

    class Meta:
        verbose_name_plural = 'categories'

    def __str__(self):
        return self.name


class Shop(models.Model):
    name = models.CharField(max_length=100)
    name_color = models.CharField(max_length=20, blank=True)
    bg_color = models.CharField(max_length=20, blank=True)
    categories = models.ManyToManyField(Category, blank=True, related_name='shops')

    def __str__(self):
        return self.name


class ItemQuerySet(models.QuerySet):
    def eligible(self, today=None):
        """Active, not deleted and not past its expiry date."""
        today = today or timezone.localdate()
        return self.filter(is_active=True, is_deleted=False).filter(
            Q(expiry_date__isnull=True) | Q(expiry_date__gte=today)
        )

    def available(self, today=None):
        """Eligible items that can still be bought (single-use items sell once)."""
        from events.models import Interaction
        sold = Interaction.objects.filter(item=OuterRef('pk'), kind=Interaction.PURCHASE)
        return self.eligible(today).filter(Q(is_multiple_use=True) | ~Exists(sold))


class Item(models.Model):
    seller = models.ForeignKey(User, on_delete=models.CASCADE, related_name='items')
    shop = models.ForeignKey(Shop, null=True, blank=True, on_delete=models.SET_NULL, related_name='items')
    code = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    discount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    is_discount_percentage = models.BooleanField(default=True)
    works_online = models.BooleanField(default=False)
    works_in_store = models.BooleanField(default=False)
    expiry_date = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    is_deleted = models.BooleanField(default=False)
    is_multiple_use = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)

    objects = ItemQuerySet.as_manager()

    class Meta:
        indexes = [
            models.Index(fields=['is_active', 'is_deleted', 'created_at']),
        ]

    def __str__(self):
        return f"{self.code} ({self.shop or 'no shop'})"
