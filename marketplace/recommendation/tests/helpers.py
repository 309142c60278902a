import itertools
from datetime import timedelta

from django.contrib.auth.models import User
from django.utils import timezone

from catalog.models import Category, Item, Shop
from events.models import Interaction
from recommendation.candidates import CandidateItem
from recommendation.profile import CategoryPreference, ChannelPreference, PriceRange, UserPreferenceProfile

_codes = itertools.count(1)


def make_user(username, reputation=None):
    user = User.objects.create_user(username=username, password='testpass')
    if reputation is not None:
        user.profile.reputation = reputation
        user.profile.save()
    return user


def make_shop(name, *categories):
    shop = Shop.objects.create(name=name)
    for category_name in categories:
        category, _ = Category.objects.get_or_create(name=category_name)
        shop.categories.add(category)
    return shop


def make_item(seller, shop=None, price=10, age_days=0, **fields):
    values = {
        'code': f"CODE{next(_codes)}",
        'works_online': True,
        'works_in_store': False,
        'created_at': timezone.now() - timedelta(days=age_days),
    }
    values.update(fields)
    return Item.objects.create(seller=seller, shop=shop, price=price, **values)


def interact(user, item, kind, times=1):
    for _ in range(times):
        Interaction.objects.create(user=user, item=item, kind=kind)


def make_candidate(**overrides):
    values = {
        'id': 1,
        'code': 'C1',
        'description': '',
        'price': 22.0,
        'discount': 10.0,
        'is_discount_percentage': True,
        'category_names': ('Food',),
        'works_online': True,
        'works_in_store': False,
        'seller_id': 1,
        'seller_username': 'seller',
        'seller_reputation': 80.0,
        'shop_id': 1,
        'shop_name': 'Deli',
        'expiry_date': None,
        'created_at': timezone.now(),
    }
    values.update(overrides)
    return CandidateItem(**values)


def make_profile(**overrides):
    values = {
        'user_id': 1,
        'preference_strength': 5.0,
        'price_range': PriceRange(preferred=20.0),
        'preferred_categories': (CategoryPreference(name='Food', weight=0.2),),
        'channel_preference': ChannelPreference(online=1.0, in_store=0.0, preferred='online'),
        'avg_seller_reputation': None,
        'interaction_count': 3,
        'total_weighted_score': 15,
    }
    values.update(overrides)
    return UserPreferenceProfile(**values)
