# recommendation/urls.py
from django.urls import path
from . import views

urlpatterns = [
    path('', views.RecommendationsView.as_view(), name='recommendations'),
    path('full/', views.FullRecommendationsView.as_view(), name='recommendations-full'),
    path('feed/', views.FeedView.as_view(), name='recommendations-feed'),
    path('compute/', views.ComputeRecommendationsView.as_view(), name='recommendations-compute'),
]
