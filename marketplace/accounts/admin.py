from django.contrib import admin
from .models import Profile


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ('user', 'reputation', 'join_date')
    search_fields = ('user__username',)
    list_filter = ('join_date',)
