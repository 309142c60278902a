from django.contrib import admin
from .models import UserRecommendation


@admin.register(UserRecommendation)
class UserRecommendationAdmin(admin.ModelAdmin):
    list_display = ('user', 'item', 'score', 'computed_at')
    list_filter = ('computed_at',)
    search_fields = ('user__username',)
