from django.contrib import admin
from .models import Category, Shop, Item


@admin.register(Item)
class ItemAdmin(admin.ModelAdmin) :
    list_display = ('code', 'shop', 'seller', 'price', 'is_active', 'is_deleted', 'expiry_date')
    search_fields = ('code', 'description', 'shop__name')
    list_filter = ('is_active', 'is_deleted', 'works_online', 'works_in_store')


@admin.register(Shop)
class ShopAdmin(admin.ModelAdmin):
    list_display = ('name',)
    search_fields = ('name',)
    filter_horizontal = ('categories',)


admin.site.register(Category)
