"""
Distribution — URL Configuration

@file distribution/urls.py
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import DistributionLogViewSet, DistributionPlanViewSet

app_name = 'distribution'

router = DefaultRouter()
router.register('plans', DistributionPlanViewSet, basename='plan')
router.register('logs', DistributionLogViewSet, basename='log')

urlpatterns = [
    path('', include(router.urls)),
]
