from django.contrib import admin
from .models import Interaction


@admin.register(Interaction)
class InteractionAdmin(admin.ModelAdmin):
    list_display = ('user', 'item', 'kind', 'is_deleted', 'created_at')
    list_filter = ('kind', 'is_deleted')
    search_fields = ('user__username', 'item__code')
